"""LLM Radar CLI.

The app is assembled here: global options are handled by the callback,
commands live in ``commands/``.

Package structure:
    cli/
    ├── __init__.py       # app assembly and global options
    ├── helpers.py        # logging option state
    ├── output.py         # rich console, colors, tables, progress
    └── commands/
        ├── scan.py       # scan command
        └── kb.py         # kb command
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from llm_radar import APP_NAME, __version__

from . import helpers as helpers
from .commands import kb, scan
from .helpers import configure_global_logging, set_log_file, set_log_format, set_log_level
from .output import console

app = typer.Typer(
    name="llm-radar",
    help="Find out which LLM models your opencode setup can actually use",
    add_completion=False,
)


# =============================================================================
# Global option callbacks
# =============================================================================


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"{APP_NAME} v{__version__}")
        raise typer.Exit()


def log_level_callback(value: str | None) -> str | None:
    if value:
        set_log_level(value)
    return value


def log_file_callback(value: Path | None) -> Path | None:
    if value:
        set_log_file(value)
    return value


def log_format_callback(value: str | None) -> str | None:
    if value:
        set_log_format(value)
    return value


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level",
            "-L",
            callback=log_level_callback,
            help="Logging level (DEBUG, INFO, WARNING, ERROR)",
            envvar="LLM_RADAR_LOG_LEVEL",
        ),
    ] = None,
    log_file: Annotated[
        Path | None,
        typer.Option(
            "--log-file",
            callback=log_file_callback,
            help="Path for log file output",
            envvar="LLM_RADAR_LOG_FILE",
        ),
    ] = None,
    log_format: Annotated[
        str | None,
        typer.Option(
            "--log-format",
            callback=log_format_callback,
            help="Log format: json, console, or both",
            envvar="LLM_RADAR_LOG_FORMAT",
        ),
    ] = None,
) -> None:
    """LLM Radar - probe and classify the models available to opencode."""
    configure_global_logging(console)


app.command()(scan)
app.command()(kb)


__all__ = ["app", "console", "helpers", "main"]
