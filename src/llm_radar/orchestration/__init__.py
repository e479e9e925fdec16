"""Scan orchestration: discovery, ordering, the worker pool and its events."""

from llm_radar.orchestration.discovery import discover_models, parse_model_list, refresh_models
from llm_radar.orchestration.events import (
    Completed,
    Discovered,
    EventStream,
    Failed,
    ScanEvent,
    Started,
)
from llm_radar.orchestration.pool import WorkerPool
from llm_radar.orchestration.priority import prioritize_models
from llm_radar.orchestration.report import ScanReport
from llm_radar.orchestration.scanner import Scanner

__all__ = [
    "Completed",
    "Discovered",
    "EventStream",
    "Failed",
    "ScanEvent",
    "ScanReport",
    "Scanner",
    "Started",
    "WorkerPool",
    "discover_models",
    "parse_model_list",
    "prioritize_models",
    "refresh_models",
]
