"""Shared utilities for the LLM Radar CLI commands.

Holds the logging options collected by the global callbacks and applies them
once per invocation, before any command runs.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

import typer
from rich.console import Console

from llm_radar.core.logging import configure_logging


# =============================================================================
# Error message constants
# =============================================================================


class ErrorMessages:
    """Constants for CLI error messages."""

    KB_LOAD_ERROR = "Error loading knowledge base"
    SCAN_ERROR = "Scan aborted"
    EXPORT_ERROR = "Error saving results"


# =============================================================================
# Logging configuration
# =============================================================================


@dataclass
class CliLoggingConfig:
    """Logging options gathered from the global CLI flags."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"
    file: Path | None = None
    format: Literal["json", "console", "both"] = "console"
    configured: bool = False


_log_config = CliLoggingConfig()


def set_log_level(level: str) -> None:
    """Set the log level (DEBUG, INFO, WARNING, ERROR)."""
    _log_config.level = level.upper()  # type: ignore[assignment]


def set_log_file(path: Path | None) -> None:
    """Send logs to ``path`` instead of stderr."""
    _log_config.file = path


def set_log_format(fmt: str) -> None:
    """Set the log format (json, console, both)."""
    _log_config.format = fmt  # type: ignore[assignment]


def configure_global_logging(console: Console) -> None:
    """Apply the collected logging options. Only configures once per session.

    Raises:
        typer.Exit: If the options are inconsistent (e.g. ``both`` without a file).
    """
    if _log_config.configured:
        return

    try:
        configure_logging(
            level=_log_config.level,
            format=_log_config.format,
            file_path=_log_config.file,
        )
        _log_config.configured = True
    except ValueError as e:
        console.print(f"[red]Logging configuration error:[/red] {e}")
        raise typer.Exit(1) from None


def reset_logging_state() -> None:
    """Reset the logging options (primarily for testing)."""
    global _log_config
    _log_config = CliLoggingConfig()


__all__ = [
    "CliLoggingConfig",
    "ErrorMessages",
    "configure_global_logging",
    "reset_logging_state",
    "set_log_file",
    "set_log_format",
    "set_log_level",
]
