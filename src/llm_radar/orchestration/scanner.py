"""One complete scan: discover, order, probe, report.

The scanner is the only producer-side owner of the event stream. It always
closes the stream, whether the run succeeded, failed discovery or was
cancelled, so a consumer iterating the stream never hangs.
"""

from __future__ import annotations

from llm_radar.core.config import RunConfig
from llm_radar.core.errors import DiscoveryError
from llm_radar.core.logging import ScanContext, get_logger, with_context
from llm_radar.execution.probe import ModelProber
from llm_radar.execution.process import ProbeExecutor
from llm_radar.knowledge import CompiledKnowledgeBase
from llm_radar.orchestration.discovery import discover_models
from llm_radar.orchestration.events import Discovered, EventStream, Failed
from llm_radar.orchestration.pool import WorkerPool
from llm_radar.orchestration.priority import prioritize_models
from llm_radar.state.cache import ResultCache

_logger = get_logger("scanner")


class Scanner:
    """Drives a full scan and publishes its events.

    Args:
        config: Run configuration.
        kb: Compiled knowledge base.
        executor: Subprocess executor for discovery and probes.
        cache: Result cache; loaded before and saved after the pool when
            ``config.use_cache`` is set.
        refresh: Refresh the probe's model catalogue before discovery.
    """

    def __init__(
        self,
        config: RunConfig,
        kb: CompiledKnowledgeBase,
        executor: ProbeExecutor | None = None,
        cache: ResultCache | None = None,
        refresh: bool = False,
    ) -> None:
        self.config = config
        self.kb = kb
        self.executor = executor or ProbeExecutor()
        if cache is None and config.use_cache:
            cache = ResultCache(config.cache_path)
        self.cache = cache
        self.refresh = refresh
        self.pool = WorkerPool(
            config,
            ModelProber(config, kb, executor=self.executor),
            cache=self.cache,
        )
        self.context = ScanContext(component="scanner")

    def new_stream(self) -> EventStream:
        """Event stream sized from the run configuration."""
        return EventStream(maxsize=self.config.event_buffer_size)

    async def run(self, events: EventStream) -> None:
        """Run the scan, publishing into ``events`` and closing it at the end."""
        with with_context(self.context):
            try:
                await self._run(events)
            finally:
                await events.close()

    async def _run(self, events: EventStream) -> None:
        try:
            models = await discover_models(
                self.executor, self.config.probe_command, refresh=self.refresh
            )
        except DiscoveryError as e:
            _logger.error("scanner.discovery_failed", error=str(e))
            await events.put(Failed(error=e))
            return

        ordered = prioritize_models(models, self.kb.free_model_ids)
        await events.put(Discovered(models=tuple(ordered)))

        if self.pool.caching:
            assert self.cache is not None
            self.cache.load()

        await self.pool.run(ordered, events)

        if self.pool.caching:
            assert self.cache is not None
            self.cache.save_results(self.pool.results)

        _logger.info("scanner.completed", models=len(ordered), processed=self.pool.processed)
