"""TTL cache of model results, optionally persisted to a JSON file.

The file maps each model identifier to ``{result, cached_at, expires_at}``.
Loading is best effort: a missing, unreadable or corrupt file means a cold
start. Saving writes a temp file and renames it over the target so a crash
never leaves a half-written cache behind.

Workers share one ResultCache; every access goes through a single lock.
"""

from __future__ import annotations

import json
import threading
from collections.abc import Iterable
from datetime import timedelta
from pathlib import Path

from llm_radar.core.constants import CACHE_TTL_HOURS
from llm_radar.core.logging import get_logger
from llm_radar.core.results import CachedEntry, ModelResult
from llm_radar.utils.time import utc_now

_logger = get_logger("cache")


class ResultCache:
    """Thread-safe result cache with a fixed time-to-live.

    Args:
        path: JSON file backing the cache, or None for memory only.
        ttl: How long an entry stays fresh after it is stored.
    """

    def __init__(
        self,
        path: Path | None = None,
        ttl: timedelta = timedelta(hours=CACHE_TTL_HOURS),
    ) -> None:
        self.path = Path(path) if path is not None else None
        self.ttl = ttl
        self._entries: dict[str, CachedEntry] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, model: str) -> ModelResult | None:
        """Fresh cached result for ``model``, or None when absent or expired."""
        with self._lock:
            entry = self._entries.get(model)
            if entry is None or entry.is_expired():
                return None
            return entry.result

    def set(self, model: str, result: ModelResult) -> None:
        """Store ``result`` for ``model``, fresh for one TTL from now."""
        with self._lock:
            self._entries[model] = CachedEntry.fresh(_stored(result), self.ttl)

    def load(self) -> int:
        """Replace the in-memory entries with the file's contents.

        Expired entries are dropped while loading.

        Returns:
            Number of live entries loaded (0 on a cold start).
        """
        if self.path is None or not self.path.exists():
            return 0

        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError("cache file must contain a JSON object")
            entries = {
                model: CachedEntry.model_validate(entry) for model, entry in data.items()
            }
        except (OSError, ValueError) as e:
            _logger.warning("cache.load_failed", path=str(self.path), error=str(e))
            return 0

        now = utc_now()
        live = {model: entry for model, entry in entries.items() if not entry.is_expired(now)}
        with self._lock:
            self._entries = live
        _logger.debug(
            "cache.loaded",
            path=str(self.path),
            entries=len(live),
            expired=len(entries) - len(live),
        )
        return len(live)

    def save_results(self, results: Iterable[ModelResult]) -> None:
        """Overwrite the cache file with one entry per result.

        A result that was served from a live entry keeps that entry's
        timestamps; everything else is stamped fresh.
        """
        now = utc_now()
        with self._lock:
            entries: dict[str, CachedEntry] = {}
            for result in results:
                previous = self._entries.get(result.model)
                if result.from_cache and previous is not None and not previous.is_expired(now):
                    entries[result.model] = previous
                else:
                    entries[result.model] = CachedEntry(
                        result=_stored(result),
                        cached_at=now,
                        expires_at=now + self.ttl,
                    )
            self._entries = entries
            payload = {model: entry.model_dump(mode="json") for model, entry in entries.items()}

        if self.path is None:
            return

        # Write atomically using temp file + rename
        temp_file = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(temp_file, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2)
            temp_file.replace(self.path)
        except OSError as e:
            _logger.warning("cache.save_failed", path=str(self.path), error=str(e))
            return
        _logger.debug("cache.saved", path=str(self.path), entries=len(entries))


def _stored(result: ModelResult) -> ModelResult:
    """The form a result is cached in: never flagged as a cache hit."""
    if result.from_cache:
        return result.model_copy(update={"from_cache": False})
    return result
