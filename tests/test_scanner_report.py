"""Tests for the scanner and the event-driven report."""

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from llm_radar.core.categories import Category, ClassificationResult
from llm_radar.core.config import RunConfig
from llm_radar.core.errors import DiscoveryError
from llm_radar.core.results import ModelResult
from llm_radar.execution.process import ProbeExecutor, ProbeOutcome
from llm_radar.orchestration.events import (
    Completed,
    Discovered,
    EventStream,
    Failed,
    ScanEvent,
    Started,
)
from llm_radar.orchestration.report import ScanReport
from llm_radar.orchestration.scanner import Scanner
from llm_radar.state.cache import ResultCache
from llm_radar.utils.time import utc_now


def result(model: str, category: Category, from_cache: bool = False) -> ModelResult:
    return ModelResult.from_classification(
        model,
        ClassificationResult.of(category, "reason"),
        exit_code=0,
        output="",
        duration_seconds=0.1,
    ).model_copy(update={"from_cache": from_cache})


# ─── EventStream ───────────────────────────────────────────────────────


class TestEventStream:
    """Tests for the bounded event stream."""

    @pytest.mark.asyncio
    async def test_iteration_ends_on_close(self) -> None:
        stream = EventStream(maxsize=10)
        await stream.put(Started(model="a/b", started_at=utc_now()))
        await stream.close()

        events = [event async for event in stream]
        assert len(events) == 1

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self) -> None:
        stream = EventStream(maxsize=10)
        await stream.close()
        await stream.close()
        assert stream.closed
        assert [event async for event in stream] == []

    @pytest.mark.asyncio
    async def test_put_after_close_rejected(self) -> None:
        stream = EventStream()
        await stream.close()
        with pytest.raises(RuntimeError):
            await stream.put(Failed(error=DiscoveryError("x")))

    @pytest.mark.asyncio
    async def test_backpressure(self) -> None:
        """A full stream makes the producer wait for the consumer."""
        stream = EventStream(maxsize=1)
        await stream.put(Started(model="a/1", started_at=utc_now()))

        blocked = asyncio.create_task(stream.put(Started(model="a/2", started_at=utc_now())))
        await asyncio.sleep(0.05)
        assert not blocked.done()

        iterator = aiter(stream)
        await anext(iterator)
        await asyncio.wait_for(blocked, timeout=1.0)


# ─── ScanReport ────────────────────────────────────────────────────────


class TestScanReport:
    """Completion and statistics derived from events."""

    def test_done_after_all_completed(self) -> None:
        report = ScanReport()
        report.apply(Discovered(models=("a/1", "a/2")))
        report.apply(Started(model="a/1", started_at=utc_now()))
        report.apply(Completed(result=result("a/1", Category.FREE)))
        assert not report.done
        assert report.in_flight == {}

        report.apply(Completed(result=result("a/2", Category.ERROR)))
        assert report.done
        assert report.finished_monotonic is not None

    def test_not_done_before_discovery(self) -> None:
        assert not ScanReport().done

    def test_failed_is_done(self) -> None:
        report = ScanReport()
        report.apply(Failed(error=DiscoveryError("no models")))
        assert report.done
        assert report.failed

    def test_stats(self) -> None:
        report = ScanReport()
        report.apply(Discovered(models=("a/1", "a/2", "a/3", "a/4")))
        for model, category, cached in [
            ("a/1", Category.FREE, False),
            ("a/2", Category.FREE_LIMITED, True),
            ("a/3", Category.AUTH_FAILED, False),
            ("a/4", Category.FREE, False),
        ]:
            report.apply(Completed(result=result(model, category, cached)))

        assert report.stats[Category.FREE] == 2
        assert report.stats[Category.AUTH_FAILED] == 1
        assert report.usable_count == 3
        assert report.usable_percent == pytest.approx(75.0)
        assert report.cached_count == 1
        assert [r.model for r in report.usable_results()] == ["a/1", "a/2", "a/4"]

    def test_usable_percent_empty(self) -> None:
        assert ScanReport().usable_percent == 0.0

    def test_active_jobs_track_start_times(self) -> None:
        """Every in-flight model is listed, sorted, with its elapsed time."""
        now = utc_now()
        report = ScanReport()
        report.apply(Discovered(models=("b/2", "a/1", "c/3")))
        report.apply(Started(model="b/2", started_at=now - timedelta(seconds=12)))
        report.apply(Started(model="a/1", started_at=now - timedelta(seconds=3)))
        report.apply(Started(model="c/3", started_at=now - timedelta(seconds=1)))
        report.apply(Completed(result=result("c/3", Category.FREE)))

        assert report.active_jobs(now) == [("a/1", 3.0), ("b/2", 12.0)]

    def test_active_jobs_never_negative(self) -> None:
        now = utc_now()
        report = ScanReport()
        report.apply(Started(model="a/1", started_at=now + timedelta(seconds=5)))
        assert report.active_jobs(now) == [("a/1", 0.0)]


# ─── Scanner ───────────────────────────────────────────────────────────


async def collect(scanner: Scanner) -> tuple[ScanReport, list[ScanEvent]]:
    events = scanner.new_stream()
    seen: list[ScanEvent] = []
    producer = asyncio.create_task(scanner.run(events))
    report = await ScanReport().consume(events, on_event=seen.append)
    await producer
    return report, seen


class TestScanner:
    """Full scans through a stub probe."""

    @pytest.mark.asyncio
    async def test_full_scan(self, kb, fake_probe, run_config: RunConfig) -> None:
        config = run_config.model_copy(update={"probe_command": str(fake_probe)})
        scanner = Scanner(config, kb)

        report, seen = await collect(scanner)

        assert isinstance(seen[0], Discovered)
        # Known free first, then the discount provider, then the rest
        assert report.models == (
            "opencode/big-pickle",
            "zai-coding-plan/glm-4.6",
            "acme/good",
            "acme/locked",
        )
        assert report.done
        assert report.completed == 4 == scanner.pool.processed
        assert report.usable_count == 3

    @pytest.mark.asyncio
    async def test_discovery_failure_emits_failed(self, kb, run_config: RunConfig) -> None:
        executor = AsyncMock(spec=ProbeExecutor)
        executor.execute.return_value = ProbeOutcome("", 1)
        scanner = Scanner(run_config, kb, executor=executor)

        report, seen = await collect(scanner)

        assert len(seen) == 1
        assert isinstance(seen[0], Failed)
        assert isinstance(report.error, DiscoveryError)
        assert report.done

    @pytest.mark.asyncio
    async def test_cache_persisted(self, kb, fake_probe, run_config: RunConfig) -> None:
        """With caching on, the second scan is served from the cache file."""
        config = run_config.model_copy(
            update={"probe_command": str(fake_probe), "use_cache": True}
        )

        first, _ = await collect(Scanner(config, kb))
        assert first.cached_count == 0
        assert config.cache_path.exists()

        second, _ = await collect(Scanner(config, kb, cache=ResultCache(config.cache_path)))
        assert second.cached_count == 4
