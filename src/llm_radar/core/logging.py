"""Structured logging infrastructure for LLM Radar.

Provides structured logging using structlog with radar-specific context
such as run_id, model and component names. Supports console and JSON output,
optionally to a rotating log file.

Example usage:
    from llm_radar.core.logging import get_logger, configure_logging, with_context

    # Configure once at startup
    configure_logging(level="DEBUG", format="console")

    # Get a component-specific logger
    logger = get_logger("pool")

    # Log with auto-context
    logger.info("worker_started", worker=3)

    # Use a scan context for automatic correlation
    ctx = ScanContext(component="pool")
    with with_context(ctx.with_model("groq/llama-3.1")):
        logger.info("probe_started")  # Includes run_id, model
"""

from __future__ import annotations

import logging
import sys
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Literal

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

# Sensitive field patterns that should never be logged
SENSITIVE_PATTERNS = frozenset({
    "api_key",
    "apikey",
    "api-key",
    "token",
    "secret",
    "password",
    "credential",
    "bearer",
    "authorization",
})

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console", "both"]


@dataclass(frozen=True)
class ScanContext:
    """Immutable correlation context for log entries of one scan.

    Attributes:
        run_id: Unique id of the scan (one per `llm-radar scan` invocation).
        component: Component currently doing the work.
        model: Model identifier being probed, if any.
    """

    run_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    component: str = "unknown"
    model: str | None = None

    def with_model(self, model: str) -> ScanContext:
        """Return a copy scoped to one model."""
        return replace(self, model=model)

    def to_dict(self) -> dict[str, Any]:
        """Context fields for a log entry (None values omitted)."""
        result: dict[str, Any] = {"run_id": self.run_id, "component": self.component}
        if self.model is not None:
            result["model"] = self.model
        return result


# Task-safe context variable; every asyncio task gets its own copy
_current_context: ContextVar[ScanContext | None] = ContextVar(
    "llm_radar_context", default=None
)


def get_current_context() -> ScanContext | None:
    """Get the current ScanContext if set."""
    return _current_context.get()


@contextmanager
def with_context(ctx: ScanContext) -> Iterator[ScanContext]:
    """Set the ScanContext for the duration of a block.

    Args:
        ctx: The ScanContext to use for the block.

    Yields:
        The ScanContext that was set.
    """
    token = _current_context.set(ctx)
    try:
        yield ctx
    finally:
        _current_context.reset(token)


def _sanitize_value(key: str, value: Any) -> Any:
    key_lower = key.lower()
    for pattern in SENSITIVE_PATTERNS:
        if pattern in key_lower:
            return "[REDACTED]"
    return value


def _sanitize_event_dict(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Structlog processor that redacts sensitive fields, one level deep."""
    sanitized: EventDict = {}
    for key, value in event_dict.items():
        if isinstance(value, dict):
            sanitized[key] = {k: _sanitize_value(k, v) for k, v in value.items()}
        else:
            sanitized[key] = _sanitize_value(key, value)
    return sanitized


def _add_timestamp(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Structlog processor that adds an ISO8601 UTC timestamp."""
    event_dict["timestamp"] = datetime.now(UTC).isoformat()
    return event_dict


def _add_context(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Structlog processor that adds ScanContext fields.

    Explicitly bound keys take precedence over context fields.
    """
    ctx = get_current_context()
    if ctx is not None:
        for key, value in ctx.to_dict().items():
            event_dict.setdefault(key, value)
    return event_dict


class RadarLogger:
    """Component logger wrapping structlog.

    The underlying structlog logger is fetched on every call so loggers
    created at import time still respect a later configure_logging().
    """

    def __init__(self, component: str, **initial_context: Any) -> None:
        self._context: dict[str, Any] = {"component": component, **initial_context}

    def _get_logger(self) -> structlog.stdlib.BoundLogger:
        logger: structlog.stdlib.BoundLogger = structlog.get_logger().bind(**self._context)
        return logger

    def bind(self, **context: Any) -> RadarLogger:
        """Create a new logger with additional bound context."""
        new_logger = RadarLogger.__new__(RadarLogger)
        new_logger._context = {**self._context, **context}
        return new_logger

    def debug(self, event: str, **kw: Any) -> None:
        self._get_logger().debug(event, **kw)

    def info(self, event: str, **kw: Any) -> None:
        self._get_logger().info(event, **kw)

    def warning(self, event: str, **kw: Any) -> None:
        self._get_logger().warning(event, **kw)

    def error(self, event: str, **kw: Any) -> None:
        self._get_logger().error(event, **kw)

    def exception(self, event: str, **kw: Any) -> None:
        """Log an error with traceback; call from inside an exception handler."""
        self._get_logger().exception(event, **kw)


def _build_processors(include_timestamps: bool) -> list[Processor]:
    """Shared chain; rendering happens per handler in ProcessorFormatter."""
    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        _sanitize_event_dict,
        _add_context,
    ]
    if include_timestamps:
        processors.append(_add_timestamp)
    processors.extend([
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ])
    return processors


def _formatter(renderer: Processor) -> logging.Formatter:
    return structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )


def configure_logging(
    level: LogLevel = "WARNING",
    format: LogFormat = "console",  # noqa: A002
    file_path: Path | None = None,
    max_file_size_mb: int = 10,
    backup_count: int = 3,
    include_timestamps: bool = True,
) -> None:
    """Configure structured logging.

    Call once at startup, before any logging occurs.

    Args:
        level: Minimum log level to capture.
        format: "console" for human-readable stderr output, "json" for
            structured output (to file_path if given, else stdout), "both"
            for console on stderr plus JSON lines in file_path.
        file_path: Optional log file, rotated at max_file_size_mb.
        max_file_size_mb: Maximum log file size before rotation (MB).
        backup_count: Number of rotated log files to keep.
        include_timestamps: Whether to include ISO8601 timestamps.

    Raises:
        ValueError: If format="both" but file_path is not provided.
    """
    if format == "both" and file_path is None:
        raise ValueError("file_path is required when format='both'")

    log_level = getattr(logging, level)
    json_renderer: Processor = structlog.processors.JSONRenderer()
    # (handler, renderer) pairs; each handler formats independently
    handlers: list[tuple[logging.Handler, Processor]] = []

    if format in ("console", "both"):
        handlers.append(
            (logging.StreamHandler(sys.stderr), structlog.dev.ConsoleRenderer(colors=True))
        )

    if format in ("json", "both"):
        if file_path is not None:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            rotating = RotatingFileHandler(
                file_path,
                maxBytes=max_file_size_mb * 1024 * 1024,
                backupCount=backup_count,
                encoding="utf-8",
            )
            handlers.append((rotating, json_renderer))
        else:
            handlers.append((logging.StreamHandler(sys.stdout), json_renderer))
    elif file_path is not None:
        # console format redirected to a file: plain text, no colors
        file_path.parent.mkdir(parents=True, exist_ok=True)
        handlers = [
            (
                logging.FileHandler(file_path, encoding="utf-8"),
                structlog.dev.ConsoleRenderer(colors=False),
            )
        ]

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    for handler, renderer in handlers:
        handler.setLevel(log_level)
        handler.setFormatter(_formatter(renderer))
        root_logger.addHandler(handler)

    # cache_logger_on_first_use=False keeps import-time loggers in sync with
    # later reconfiguration
    structlog.configure(
        processors=_build_processors(include_timestamps),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(component: str, **initial_context: Any) -> RadarLogger:
    """Get a logger for a component.

    Args:
        component: The component name (e.g., "pool", "probe", "cache").
        **initial_context: Additional context to bind.
    """
    return RadarLogger(component, **initial_context)


__all__ = [
    "LogFormat",
    "LogLevel",
    "RadarLogger",
    "SENSITIVE_PATTERNS",
    "ScanContext",
    "configure_logging",
    "get_current_context",
    "get_logger",
    "with_context",
]
