"""Export of a finished scan to a timestamped JSON file."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, Field

from llm_radar.core.logging import get_logger
from llm_radar.core.results import ModelResult
from llm_radar.utils.time import utc_now

_logger = get_logger("export")

EXPORT_FILE_PREFIX = "llm-radar-"
EXPORT_TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"


class ResultsExport(BaseModel):
    """Document written by save_results."""

    timestamp: datetime = Field(default_factory=utc_now, description="When the export was written")
    version: str = Field(description="llm-radar version that produced the results")
    total: int = Field(ge=0, description="Number of results")
    results: list[ModelResult] = Field(default_factory=list)


def export_filename(when: datetime) -> str:
    """``llm-radar-YYYYMMDD-HHMMSS.json`` for the given time."""
    return f"{EXPORT_FILE_PREFIX}{when.strftime(EXPORT_TIMESTAMP_FORMAT)}.json"


def save_results(results: Sequence[ModelResult], directory: Path, version: str) -> Path:
    """Write ``results`` to a new export file in ``directory``.

    Unlike the cache, an export failure is the user's explicit request
    failing, so OSError propagates to the caller.

    Returns:
        Path of the written file.
    """
    document = ResultsExport(version=version, total=len(results), results=list(results))
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / export_filename(document.timestamp.astimezone())
    path.write_text(document.model_dump_json(indent=2), encoding="utf-8")
    _logger.info("export.saved", path=str(path), total=document.total)
    return path
