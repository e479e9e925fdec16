"""Worker pool that probes models concurrently and reports lifecycle events.

The job queue is filled before any worker starts. Workers take jobs with
``get_nowait`` and exit on QueueEmpty, so each model is handed to exactly one
worker and the pool finishes once the queue is drained. Worker ``i`` waits
``i * 0.2s`` before its first job to spread the initial probe burst.

For every job the pool emits ``Started`` then exactly one ``Completed``,
including when the job blows up unexpectedly (the result is then ERROR).
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence

from llm_radar.core.categories import Category, ClassificationResult
from llm_radar.core.config import RunConfig
from llm_radar.core.constants import WORKER_STAGGER_SECONDS
from llm_radar.core.logging import ScanContext, get_current_context, get_logger, with_context
from llm_radar.core.results import ModelResult
from llm_radar.execution.probe import ModelProber
from llm_radar.orchestration.events import Completed, EventStream, Started
from llm_radar.state.cache import ResultCache
from llm_radar.utils.time import utc_now

_logger = get_logger("pool")

Sleeper = Callable[[float], Awaitable[None]]


class WorkerPool:
    """Runs ``ModelProber.test_model`` over a list of models.

    Args:
        config: Run configuration (concurrency, caching).
        prober: Per-model prober shared by all workers.
        cache: Result cache, consulted only when ``config.use_cache`` is set.
        stagger_seconds: Start delay step between workers.
    """

    def __init__(
        self,
        config: RunConfig,
        prober: ModelProber,
        cache: ResultCache | None = None,
        stagger_seconds: float = WORKER_STAGGER_SECONDS,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self.config = config
        self.prober = prober
        self.cache = cache
        self.stagger_seconds = stagger_seconds
        self._sleep = sleep
        self._processed = 0
        self.results: list[ModelResult] = []

    @property
    def processed(self) -> int:
        """Jobs completed so far (equals the Completed events emitted)."""
        return self._processed

    @property
    def caching(self) -> bool:
        return self.config.use_cache and self.cache is not None

    async def run(self, models: Sequence[str], events: EventStream) -> None:
        """Process every model once, emitting events into ``events``.

        Does not close the stream; the caller owns it.
        """
        queue: asyncio.Queue[str] = asyncio.Queue()
        for model in models:
            queue.put_nowait(model)

        workers = min(self.config.concurrency, len(models))
        _logger.info("pool.starting", models=len(models), workers=workers)

        context = get_current_context() or ScanContext(component="pool")
        async with asyncio.TaskGroup() as tg:
            for index in range(workers):
                tg.create_task(
                    self._worker(index, queue, events, context),
                    name=f"llm-radar-worker-{index}",
                )

        _logger.info("pool.finished", processed=self._processed)

    async def _worker(
        self,
        index: int,
        queue: asyncio.Queue[str],
        events: EventStream,
        context: ScanContext,
    ) -> None:
        if index and self.stagger_seconds > 0:
            await self._sleep(index * self.stagger_seconds)

        handled = 0
        while True:
            try:
                model = queue.get_nowait()
            except asyncio.QueueEmpty:
                break

            with with_context(context.with_model(model)):
                await events.put(Started(model=model, started_at=utc_now()))
                result = await self._process(model)
                self._processed += 1
                self.results.append(result)
                await events.put(Completed(result=result))
            handled += 1

        _logger.debug("pool.worker_done", worker=index, handled=handled)

    async def _process(self, model: str) -> ModelResult:
        """Produce the result for one model, never raising."""
        try:
            if self.caching:
                assert self.cache is not None
                cached = self.cache.get(model)
                if cached is not None:
                    _logger.debug("pool.cache_hit", model=model)
                    return cached.model_copy(update={"from_cache": True})

            result = await self.prober.test_model(model)

            if self.caching:
                assert self.cache is not None
                self.cache.set(model, result)
            return result
        except Exception as e:
            _logger.exception("pool.job_failed", model=model, error=str(e))
            return ModelResult.from_classification(
                model,
                ClassificationResult.of(Category.ERROR, f"Internal error: {e}"),
                exit_code=1,
                output="",
                duration_seconds=0.0,
            )
