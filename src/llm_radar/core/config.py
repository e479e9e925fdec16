"""Configuration models for LLM Radar.

Defines Pydantic v2 models for the run configuration (shared read-only by
every worker for the whole run) and for the knowledge-base file.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from llm_radar.core.categories import Category
from llm_radar.core.constants import (
    DEFAULT_EVENT_BUFFER_SIZE,
    DEFAULT_MAX_OUTPUT_KB,
    DEFAULT_PROBE_COMMAND,
    DEFAULT_PROMPT,
    DEFAULT_RETRIES,
    DEFAULT_TIMEOUT_SECONDS,
    MAX_AUTO_CONCURRENCY,
    MIN_AUTO_CONCURRENCY,
)


def default_concurrency() -> int:
    """Worker count used when none is requested: CPU count clamped to [2, 8]."""
    cpus = os.cpu_count() or MIN_AUTO_CONCURRENCY
    return max(MIN_AUTO_CONCURRENCY, min(cpus, MAX_AUTO_CONCURRENCY))


def default_cache_path() -> Path:
    """Location of the persisted result cache."""
    return Path.home() / ".config" / "opencode" / "cache" / "results.json"


def default_results_dir() -> Path:
    """Directory where exported result files are written."""
    return Path.home() / ".config" / "opencode" / "results"


class RunConfig(BaseModel):
    """Settings for one scan, immutable for the duration of the run."""

    model_config = ConfigDict(frozen=True)

    prompt: str = Field(
        default=DEFAULT_PROMPT,
        min_length=1,
        description="Prompt sent to every model",
    )
    timeout_seconds: float = Field(
        default=DEFAULT_TIMEOUT_SECONDS,
        gt=0,
        description="Deadline for a single probe attempt",
    )
    concurrency: int = Field(
        default_factory=default_concurrency,
        ge=1,
        le=64,
        description="Number of parallel workers",
    )
    retries: int = Field(
        default=DEFAULT_RETRIES,
        ge=0,
        le=10,
        description="Extra attempts after the first one",
    )
    max_output_kb: int = Field(
        default=DEFAULT_MAX_OUTPUT_KB,
        ge=1,
        description="Byte budget (KiB) for the output kept in a result",
    )
    use_cache: bool = Field(
        default=False,
        description="Reuse fresh cached results and persist new ones",
    )
    cache_path: Path = Field(
        default_factory=default_cache_path,
        description="JSON file holding the persisted result cache",
    )
    probe_command: str = Field(
        default=DEFAULT_PROBE_COMMAND,
        min_length=1,
        description="Probe executable used for `run` and `models`",
    )
    event_buffer_size: int = Field(
        default=DEFAULT_EVENT_BUFFER_SIZE,
        ge=1,
        description="Capacity of the event stream; producers wait when it is full",
    )


class ModelInfo(BaseModel):
    """Knowledge-base entry for an exact model identifier."""

    category: Category = Field(description="Category reported when the model answers")
    description: str = Field(default="", description="Display name")
    limits: str = Field(default="", description="Documented usage limits")


class ProviderInfo(BaseModel):
    """Knowledge-base entry for a provider with a free tier."""

    category: Category = Field(
        default=Category.FREE_LIMITED,
        description="Category reported when a model of this provider answers",
    )
    description: str = Field(default="", description="Display name")
    limits: str = Field(default="", description="Documented free-tier limits")


class KnowledgeBaseConfig(BaseModel):
    """Raw knowledge base: free models, free-tier providers and patterns.

    Field names match the keys of the knowledge-base JSON file.
    """

    free_models: dict[str, ModelInfo] = Field(
        default_factory=dict,
        description="Exact identifiers known to be free",
    )
    free_tier_providers: dict[str, ProviderInfo] = Field(
        default_factory=dict,
        description="Providers whose models are free within limits",
    )
    success_regex: str = Field(description="Matches a correct answer to the prompt")
    not_found_regex: str = Field(description="Matches an unknown-model error")
    auth_regex: str = Field(description="Matches a credential failure")
    quota_regex: str = Field(description="Matches exhausted credits or quota")
    rate_limit_regex: str = Field(description="Matches throttling")
    timeout_regex: str = Field(description="Matches a timeout reported in the output")
