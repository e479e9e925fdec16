"""Text helpers shared by the probe pipeline and the CLI."""

from __future__ import annotations

from llm_radar.core.constants import TRIM_KEEP_RATIO, TRUNCATION_MARKER


def smart_trim(text: str, max_kb: int) -> str:
    """Shrink an oversized probe output while keeping both ends.

    The budget is ``max_kb * 1024`` bytes of UTF-8. Text within budget is
    returned unchanged. Longer text keeps the first and last 40% of the
    budget joined by the truncation marker; the middle is dropped. Cuts are
    made on character boundaries, so a multi-byte character is never split.

    Args:
        text: Captured output.
        max_kb: Budget in KiB.

    Returns:
        The original string or its head + marker + tail.
    """
    max_bytes = max_kb * 1024
    encoded = text.encode("utf-8")
    if len(encoded) <= max_bytes:
        return text

    keep = int(max_bytes * TRIM_KEEP_RATIO)
    head = encoded[:keep].decode("utf-8", errors="ignore")
    tail = encoded[len(encoded) - keep:].decode("utf-8", errors="ignore") if keep else ""
    return head + TRUNCATION_MARKER + tail


def truncate(text: str, limit: int) -> str:
    """Shorten text to ``limit`` characters, ending with an ellipsis."""
    if len(text) <= limit:
        return text
    if limit <= 3:
        return text[:limit]
    return text[: limit - 3] + "..."


def extract_provider(model: str) -> str:
    """Return the provider part of a ``provider/model-name`` identifier."""
    return model.split("/", 1)[0]
