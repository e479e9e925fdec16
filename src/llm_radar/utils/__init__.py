"""Shared utilities for LLM Radar.

Contains cross-cutting utilities used by multiple modules.
"""

from llm_radar.utils.text import extract_provider, smart_trim, truncate
from llm_radar.utils.time import format_duration, utc_now

__all__ = ["extract_provider", "format_duration", "smart_trim", "truncate", "utc_now"]
