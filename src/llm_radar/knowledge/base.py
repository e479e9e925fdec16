"""Knowledge base loading and compilation.

The knowledge base tells the classifier which models are known to be free,
which providers offer a free tier, and which output patterns identify
success and the various failure modes. Built-in defaults are tuned to the
vocabulary of the opencode CLI; an optional JSON file can extend or replace
parts of them:

    {
      "free_models": {"custom/model": {"category": "FREE", "description": "Custom"}},
      "free_tier_providers": {"mistral": {"category": "FREE_LIMITED", "limits": "1 RPS"}},
      "rate_limit_regex": "(?i)(rate.limit|slow down)"
    }

Map fields are merged entry by entry over the defaults; pattern fields that
are present replace the default pattern. Compilation happens once at start
and the compiled knowledge base is shared read-only by every worker.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from llm_radar.core.categories import Category
from llm_radar.core.config import KnowledgeBaseConfig, ModelInfo, ProviderInfo
from llm_radar.core.errors import ConfigurationError
from llm_radar.core.logging import get_logger

_logger = get_logger("knowledge")

# Fields whose JSON objects are merged key-by-key instead of replaced
_MAP_FIELDS = ("free_models", "free_tier_providers")

PATTERN_FIELDS = (
    "success_regex",
    "not_found_regex",
    "auth_regex",
    "quota_regex",
    "rate_limit_regex",
    "timeout_regex",
)

_ZEN_LIMITS = "undocumented limits"


def default_config() -> KnowledgeBaseConfig:
    """Return the built-in knowledge base."""
    return KnowledgeBaseConfig(
        free_models={
            "opencode/big-pickle": ModelInfo(
                category=Category.FREE, description="Zen - Big Pickle", limits=_ZEN_LIMITS,
            ),
            "opencode/gpt-5-nano": ModelInfo(
                category=Category.FREE, description="Zen - GPT 5 Nano", limits=_ZEN_LIMITS,
            ),
            "opencode/minimax-m2.1-free": ModelInfo(
                category=Category.FREE, description="Zen - MiniMax M2.1", limits=_ZEN_LIMITS,
            ),
            "opencode/glm-4.7-free": ModelInfo(
                category=Category.FREE, description="Zen - GLM 4.7", limits=_ZEN_LIMITS,
            ),
            "opencode/kimi-k2.5-free": ModelInfo(
                category=Category.FREE, description="Zen - Kimi K2.5", limits=_ZEN_LIMITS,
            ),
            "opencode/trinity-large-preview-free": ModelInfo(
                category=Category.FREE, description="Zen - Trinity Large", limits=_ZEN_LIMITS,
            ),
        },
        free_tier_providers={
            "cerebras": ProviderInfo(
                category=Category.FREE_LIMITED,
                description="Cerebras",
                limits="1M tokens/day (aggregate)",
            ),
            "deepseek": ProviderInfo(
                category=Category.FREE_LIMITED,
                description="DeepSeek",
                limits="5M initial tokens + 50 RPM",
            ),
            "groq": ProviderInfo(
                category=Category.FREE_LIMITED,
                description="Groq",
                limits="14.4K req/day, 30 RPM",
            ),
        },
        success_regex=r"(?i)(^|\b)(2\s*,?\s*3\s*,?\s*5|prime|primos|OK)(\b|$)",
        not_found_regex=r"(?i)(404|not\.found|entity.was.not.found|modelnotfounderror)",
        auth_regex=r"(?i)(auth|unauthoriz|api\.?key|invalid.*key|401|403)",
        quota_regex=r"(?i)(insufficient.*quota|quota.*exceed|no.*credits?|billing.*limit)",
        rate_limit_regex=r"(?i)(rate.limit|too.many.*request|throttl|429)",
        timeout_regex=r"(?i)(timeout|timed.out|deadline.exceeded)",
    )


@dataclass(frozen=True)
class CompiledKnowledgeBase:
    """A knowledge base with its six patterns compiled, ready for matching."""

    config: KnowledgeBaseConfig
    success_re: re.Pattern[str]
    not_found_re: re.Pattern[str]
    auth_re: re.Pattern[str]
    quota_re: re.Pattern[str]
    rate_limit_re: re.Pattern[str]
    timeout_re: re.Pattern[str]

    def get_free_model(self, model: str) -> ModelInfo | None:
        """Knowledge-base entry for a known free model, if any."""
        return self.config.free_models.get(model)

    def get_free_tier_provider(self, provider: str) -> ProviderInfo | None:
        """Knowledge-base entry for a free-tier provider, if any."""
        return self.config.free_tier_providers.get(provider)

    @property
    def free_model_ids(self) -> frozenset[str]:
        """Identifiers of every known free model."""
        return frozenset(self.config.free_models)

    def is_success(self, exit_code: int, output: str) -> bool:
        """Whether an attempt exited cleanly with a correct answer."""
        return exit_code == 0 and self.success_re.search(output) is not None


def compile_config(config: KnowledgeBaseConfig) -> CompiledKnowledgeBase:
    """Compile the six patterns of a knowledge base.

    Raises:
        ConfigurationError: If a pattern is not a valid regular expression.
            The error's ``field`` names the pattern.
    """
    compiled: dict[str, re.Pattern[str]] = {}
    for name in PATTERN_FIELDS:
        pattern = getattr(config, name)
        try:
            compiled[name.removesuffix("_regex") + "_re"] = re.compile(pattern)
        except re.error as e:
            raise ConfigurationError(
                f"Invalid pattern in {name}: {e}", field=name
            ) from e
    return CompiledKnowledgeBase(config=config, **compiled)


def merge_override(base: KnowledgeBaseConfig, override: dict[str, Any]) -> KnowledgeBaseConfig:
    """Merge a parsed knowledge-base override over ``base``.

    Raises:
        ConfigurationError: If the merged result does not validate.
    """
    merged = base.model_dump()
    for key, value in override.items():
        if key in _MAP_FIELDS and isinstance(value, dict):
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value
    try:
        return KnowledgeBaseConfig.model_validate(merged)
    except ValidationError as e:
        first = e.errors()[0]
        field = str(first["loc"][0]) if first.get("loc") else None
        raise ConfigurationError(f"Invalid knowledge base: {e}", field=field) from e


def load_config(path: Path | None = None) -> KnowledgeBaseConfig:
    """Load the built-in knowledge base merged with an optional JSON file.

    A missing file is not an error: the defaults apply.

    Raises:
        ConfigurationError: If the file cannot be read, is not a JSON object,
            or does not validate.
    """
    config = default_config()
    if path is None:
        return config
    if not path.exists():
        _logger.info("knowledge.file_missing", path=str(path))
        return config

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise ConfigurationError(f"Cannot parse knowledge base {path}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Knowledge base {path} must contain a JSON object")

    config = merge_override(config, raw)
    _logger.debug(
        "knowledge.loaded",
        path=str(path),
        free_models=len(config.free_models),
        free_tier_providers=len(config.free_tier_providers),
    )
    return config


def load_and_compile(path: Path | None = None) -> CompiledKnowledgeBase:
    """Load (defaults + optional override file) and compile a knowledge base."""
    return compile_config(load_config(path))
