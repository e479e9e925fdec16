"""Scan lifecycle events and the bounded stream that carries them.

Events form a closed union. Consumers dispatch with an exhaustive ``match``:

    match event:
        case Discovered(models=models): ...
        case Started(model=model): ...
        case Completed(result=result): ...
        case Failed(error=error): ...
        case _:
            assert_never(event)
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from dataclasses import dataclass
from datetime import datetime

from llm_radar.core.constants import DEFAULT_EVENT_BUFFER_SIZE
from llm_radar.core.errors import RadarError
from llm_radar.core.results import ModelResult


@dataclass(frozen=True)
class Discovered:
    """Candidate models found, in the order they will be dispatched."""

    models: tuple[str, ...]


@dataclass(frozen=True)
class Started:
    """A worker picked up a model."""

    model: str
    started_at: datetime


@dataclass(frozen=True)
class Completed:
    """A model finished (probed or served from the cache)."""

    result: ModelResult


@dataclass(frozen=True)
class Failed:
    """The run could not proceed; no further events follow."""

    error: RadarError


ScanEvent = Discovered | Started | Completed | Failed


class EventStream:
    """Bounded single-consumer event channel.

    ``put`` waits while the buffer is full, so a slow consumer slows the
    producers down instead of growing memory. Iteration ends after ``close``
    once every buffered event has been delivered.
    """

    def __init__(self, maxsize: int = DEFAULT_EVENT_BUFFER_SIZE) -> None:
        self._queue: asyncio.Queue[ScanEvent | None] = asyncio.Queue(maxsize=maxsize)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def put(self, event: ScanEvent) -> None:
        if self._closed:
            raise RuntimeError("event stream is closed")
        await self._queue.put(event)

    async def close(self) -> None:
        """Signal end of stream. Calling it again has no effect."""
        if self._closed:
            return
        self._closed = True
        await self._queue.put(None)

    def __aiter__(self) -> AsyncIterator[ScanEvent]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[ScanEvent]:
        while True:
            event = await self._queue.get()
            if event is None:
                return
            yield event
