"""Rule-based classification of probe outcomes.

Maps (model, exit code, output) to a category using the compiled knowledge
base. Rules are checked in a fixed priority order and the first match wins:

    1. not-found pattern            -> NOT_FOUND (any exit code)
    2. exit 124 or timeout pattern  -> TIMEOUT
    3. known free model             -> its category, or FREE_ERROR
    4. "-free" suffix               -> FREE, or FREE_ERROR
    5. generic success              -> provider's free tier, or AVAILABLE
    6. quota pattern                -> NO_QUOTA
    7. auth pattern                 -> AUTH_FAILED
    8. rate-limit pattern           -> RATE_LIMITED
    9. anything else                -> ERROR

The function is total: every input yields a complete ClassificationResult.
"""

from __future__ import annotations

from llm_radar.core.categories import Category, ClassificationResult
from llm_radar.core.constants import FREE_SUFFIX, TIMEOUT_EXIT_CODE
from llm_radar.knowledge import CompiledKnowledgeBase
from llm_radar.utils.text import extract_provider

REASON_NOT_FOUND = "Model not available in OpenCode"
REASON_TIMEOUT = "Timed out"
REASON_KNOWN_FREE = "Known free model"
REASON_FAILED_SUFFIX = " (failed the test)"
REASON_FREE_SUFFIX = "-free suffix detected"
REASON_FREE_SUFFIX_FAILED = "-free suffix (failed)"
REASON_FREE_TIER = "Free tier"
REASON_AVAILABLE = "Model available"
REASON_NO_QUOTA = "No credits"
REASON_AUTH_FAILED = "Invalid API key"
REASON_RATE_LIMITED = "Rate limit"
REASON_UNKNOWN = "Unknown error"


def classify(
    model: str,
    exit_code: int,
    output: str,
    kb: CompiledKnowledgeBase,
) -> ClassificationResult:
    """Classify one probe outcome.

    Args:
        model: Model identifier that was probed.
        exit_code: Exit code of the last attempt (124 = killed on timeout).
        output: Captured (possibly trimmed) output of the last attempt.
        kb: Compiled knowledge base.

    Returns:
        The classification of the first rule that matches.
    """
    if kb.not_found_re.search(output):
        return ClassificationResult.of(Category.NOT_FOUND, REASON_NOT_FOUND)

    if exit_code == TIMEOUT_EXIT_CODE or kb.timeout_re.search(output):
        return ClassificationResult.of(Category.TIMEOUT, REASON_TIMEOUT)

    succeeded = kb.is_success(exit_code, output)

    info = kb.get_free_model(model)
    if info is not None:
        description = info.description or REASON_KNOWN_FREE
        if succeeded:
            return ClassificationResult.of(info.category, description)
        return ClassificationResult.of(Category.FREE_ERROR, description + REASON_FAILED_SUFFIX)

    if model.endswith(FREE_SUFFIX):
        if succeeded:
            return ClassificationResult.of(Category.FREE, REASON_FREE_SUFFIX)
        return ClassificationResult.of(Category.FREE_ERROR, REASON_FREE_SUFFIX_FAILED)

    if succeeded:
        provider = kb.get_free_tier_provider(extract_provider(model))
        if provider is not None:
            return ClassificationResult.of(
                provider.category, provider.limits or provider.description or REASON_FREE_TIER
            )
        return ClassificationResult.of(Category.AVAILABLE, REASON_AVAILABLE)

    if kb.quota_re.search(output):
        return ClassificationResult.of(Category.NO_QUOTA, REASON_NO_QUOTA)
    if kb.auth_re.search(output):
        return ClassificationResult.of(Category.AUTH_FAILED, REASON_AUTH_FAILED)
    if kb.rate_limit_re.search(output):
        return ClassificationResult.of(Category.RATE_LIMITED, REASON_RATE_LIMITED)

    return ClassificationResult.of(Category.ERROR, REASON_UNKNOWN)
