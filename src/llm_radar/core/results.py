"""Result models shared by the prober, the cache and the CLI.

Pydantic v2 models so results can be written to the cache file and the
export file and validated back without hand-written (de)serialization.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from pydantic import BaseModel, Field

from llm_radar.core.categories import Category, ClassificationResult
from llm_radar.utils.text import extract_provider
from llm_radar.utils.time import format_duration, utc_now


class ModelResult(BaseModel):
    """Outcome of testing a single model.

    Carries the last attempt's exit code, output and duration; attempts are
    never aggregated.
    """

    model: str = Field(description="Model identifier (provider/model-name)")
    provider: str = Field(description="Provider part of the identifier")
    category: Category = Field(description="Assigned category")
    reason: str = Field(min_length=1, description="Human-readable reason")
    icon: str = Field(min_length=1, description="Category icon")
    duration: str = Field(default="0ms", description="Formatted duration of the last attempt")
    duration_ms: int = Field(default=0, ge=0, description="Duration of the last attempt in ms")
    output: str = Field(default="", description="Captured output, trimmed to budget")
    exit_code: int = Field(default=0, description="Exit code of the last attempt")
    timestamp: datetime = Field(default_factory=utc_now, description="When the result was produced")
    from_cache: bool = Field(
        default=False,
        description="True when the result was reused from the cache instead of probed",
    )

    @classmethod
    def from_classification(
        cls,
        model: str,
        classification: ClassificationResult,
        *,
        exit_code: int,
        output: str,
        duration_seconds: float,
    ) -> ModelResult:
        """Assemble a result from a classification and the last probe attempt."""
        return cls(
            model=model,
            provider=extract_provider(model),
            category=classification.category,
            reason=classification.reason,
            icon=classification.icon,
            duration=format_duration(duration_seconds),
            duration_ms=max(0, round(duration_seconds * 1000)),
            output=output,
            exit_code=exit_code,
        )


class CachedEntry(BaseModel):
    """A result snapshot with its freshness window."""

    result: ModelResult
    cached_at: datetime
    expires_at: datetime

    @classmethod
    def fresh(cls, result: ModelResult, ttl: timedelta) -> CachedEntry:
        """Create an entry cached now and expiring after ``ttl``."""
        now = utc_now()
        return cls(result=result, cached_at=now, expires_at=now + ttl)

    def is_expired(self, now: datetime | None = None) -> bool:
        """Whether the current time is past ``expires_at``."""
        return (now or utc_now()) > self.expires_at
