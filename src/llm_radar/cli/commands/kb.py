"""Knowledge-base command for the LLM Radar CLI.

``llm-radar kb [PATH]`` loads and compiles a knowledge base (the built-in
defaults merged with PATH) and prints it. Useful to check an override file
before a scan.

Exit codes:
  0: Knowledge base is valid
  1: Knowledge base cannot be read, validated or compiled
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.markup import escape

from llm_radar.core.errors import ConfigurationError
from llm_radar.knowledge import PATTERN_FIELDS, load_and_compile

from ..helpers import ErrorMessages, configure_global_logging
from ..output import console, create_kb_tables


def kb(
    kb_file: Path | None = typer.Argument(
        None,
        help="JSON file extending the built-in knowledge base",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Print the merged knowledge base as JSON",
    ),
) -> None:
    """Show the knowledge base used to classify models."""
    configure_global_logging(console)

    try:
        compiled = load_and_compile(kb_file)
    except ConfigurationError as e:
        if json_output:
            console.print_json(data={"valid": False, "error": str(e), "field": e.field})
        else:
            field = f" [dim](field: {escape(e.field)})[/dim]" if e.field else ""
            console.print(f"[red]{ErrorMessages.KB_LOAD_ERROR}:[/red] {escape(str(e))}{field}")
        raise typer.Exit(1) from None

    if json_output:
        console.print_json(data={"valid": True, **compiled.config.model_dump(mode="json")})
        return

    for table in create_kb_tables(compiled):
        console.print(table)
    console.print(
        f"[green]✓[/green] {len(compiled.config.free_models)} free models, "
        f"{len(compiled.config.free_tier_providers)} free-tier providers, "
        f"{len(PATTERN_FIELDS)} patterns compiled"
    )
