"""Event consumer that tracks progress and summarizes a scan."""

from __future__ import annotations

import time
from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import assert_never

from llm_radar.core.categories import Category
from llm_radar.core.errors import RadarError
from llm_radar.core.results import ModelResult
from llm_radar.orchestration.events import (
    Completed,
    Discovered,
    EventStream,
    Failed,
    ScanEvent,
    Started,
)
from llm_radar.utils.time import utc_now

EventCallback = Callable[[ScanEvent], None]


@dataclass
class ScanReport:
    """Aggregated view of a scan, built only from delivered events.

    Attributes:
        models: Discovered models in dispatch order.
        in_flight: Models started but not yet completed, with their start time.
        results: Completed results in completion order.
        error: Fatal error, if the scan failed.
    """

    models: tuple[str, ...] = ()
    in_flight: dict[str, datetime] = field(default_factory=dict)
    results: list[ModelResult] = field(default_factory=list)
    error: RadarError | None = None
    started_monotonic: float = field(default_factory=time.monotonic)
    finished_monotonic: float | None = None

    @property
    def total(self) -> int:
        return len(self.models)

    @property
    def completed(self) -> int:
        return len(self.results)

    @property
    def done(self) -> bool:
        """All discovered models completed, or the scan failed."""
        if self.error is not None:
            return True
        return bool(self.models) and self.completed >= self.total

    @property
    def failed(self) -> bool:
        return self.error is not None

    def apply(self, event: ScanEvent) -> None:
        """Fold one event into the report."""
        match event:
            case Discovered(models=models):
                self.models = models
            case Started(model=model, started_at=started_at):
                self.in_flight[model] = started_at
            case Completed(result=result):
                self.in_flight.pop(result.model, None)
                self.results.append(result)
            case Failed(error=error):
                self.error = error
            case _:
                assert_never(event)

        if self.done and self.finished_monotonic is None:
            self.finished_monotonic = time.monotonic()

    async def consume(
        self,
        events: EventStream,
        on_event: EventCallback | None = None,
    ) -> ScanReport:
        """Apply every event of ``events`` until the stream closes."""
        async for event in events:
            self.apply(event)
            if on_event is not None:
                on_event(event)
        if self.finished_monotonic is None:
            self.finished_monotonic = time.monotonic()
        return self

    @property
    def stats(self) -> Counter[Category]:
        """Result count per category."""
        return Counter(result.category for result in self.results)

    @property
    def usable_count(self) -> int:
        return sum(1 for result in self.results if result.category.usable)

    @property
    def usable_percent(self) -> float:
        if not self.results:
            return 0.0
        return self.usable_count * 100.0 / len(self.results)

    @property
    def cached_count(self) -> int:
        return sum(1 for result in self.results if result.from_cache)

    @property
    def elapsed_seconds(self) -> float:
        end = self.finished_monotonic if self.finished_monotonic is not None else time.monotonic()
        return end - self.started_monotonic

    def usable_results(self) -> list[ModelResult]:
        return [result for result in self.results if result.category.usable]

    def active_jobs(self, now: datetime | None = None) -> list[tuple[str, float]]:
        """In-flight models sorted by id, each with seconds since it started."""
        now = now or utc_now()
        # copy first: the live display calls this from its refresh thread
        snapshot = dict(self.in_flight)
        return [
            (model, max(0.0, (now - started_at).total_seconds()))
            for model, started_at in sorted(snapshot.items())
        ]
