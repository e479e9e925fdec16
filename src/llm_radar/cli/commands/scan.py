"""Scan command for the LLM Radar CLI.

Implements ``llm-radar scan``: discover the models known to the probe,
test each one concurrently and render the classified results.

Exit codes:
  0: Scan finished (whatever the individual results)
  1: Knowledge base, configuration or discovery error
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import assert_never

import typer
from pydantic import ValidationError
from rich.live import Live
from rich.markup import escape
from rich.progress import Progress, TaskID

from llm_radar import __version__
from llm_radar.core.config import RunConfig, default_cache_path, default_results_dir
from llm_radar.core.constants import (
    DEFAULT_MAX_OUTPUT_KB,
    DEFAULT_PROBE_COMMAND,
    DEFAULT_PROMPT,
    DEFAULT_RETRIES,
    DEFAULT_TIMEOUT_SECONDS,
)
from llm_radar.core.errors import ConfigurationError
from llm_radar.core.logging import get_logger
from llm_radar.knowledge import CompiledKnowledgeBase, load_and_compile
from llm_radar.orchestration import (
    Completed,
    Discovered,
    Failed,
    ScanEvent,
    ScanReport,
    Scanner,
    Started,
)
from llm_radar.state import save_results

from ..helpers import ErrorMessages, configure_global_logging
from ..output import (
    ScanDisplay,
    console,
    create_results_table,
    create_scan_progress,
    create_summary_table,
    format_result_line,
    limits_for,
)

_logger = get_logger("cli.scan")


def scan(
    concurrency: int | None = typer.Option(
        None,
        "--concurrency",
        "-c",
        min=1,
        max=64,
        help="Parallel workers (default: CPU count clamped to 2-8)",
    ),
    timeout: float = typer.Option(
        DEFAULT_TIMEOUT_SECONDS,
        "--timeout",
        "-t",
        help="Timeout per probe attempt, in seconds",
    ),
    retries: int = typer.Option(
        DEFAULT_RETRIES,
        "--retries",
        min=0,
        max=10,
        help="Extra attempts after the first one",
    ),
    refresh: bool = typer.Option(
        False,
        "--refresh",
        help="Refresh the probe's model list before discovery",
    ),
    kb_file: Path | None = typer.Option(
        None,
        "--kb",
        help="JSON file extending the built-in knowledge base",
    ),
    use_cache: bool = typer.Option(
        False,
        "--cache",
        help="Reuse results younger than 24h and store new ones",
    ),
    cache_file: Path | None = typer.Option(
        None,
        "--cache-file",
        help="Cache location (default: ~/.config/opencode/cache/results.json)",
    ),
    prompt: str = typer.Option(
        DEFAULT_PROMPT,
        "--prompt",
        help="Prompt sent to every model",
    ),
    probe: str = typer.Option(
        DEFAULT_PROBE_COMMAND,
        "--probe",
        help="Probe executable",
    ),
    max_output_kb: int = typer.Option(
        DEFAULT_MAX_OUTPUT_KB,
        "--max-output-kb",
        min=1,
        help="Output kept per result, in KiB",
    ),
    save: bool = typer.Option(
        False,
        "--save",
        help="Export results to ~/.config/opencode/results/",
    ),
    save_dir: Path | None = typer.Option(
        None,
        "--save-dir",
        help="Directory for --save (default: ~/.config/opencode/results)",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Print results as JSON instead of the live display",
    ),
) -> None:
    """Discover models and classify each one by testing it."""
    configure_global_logging(console)

    try:
        kb = load_and_compile(kb_file)
    except ConfigurationError as e:
        _print_error(ErrorMessages.KB_LOAD_ERROR, e, json_output, field=e.field)
        raise typer.Exit(1) from None

    settings: dict[str, object] = {
        "prompt": prompt,
        "timeout_seconds": timeout,
        "retries": retries,
        "max_output_kb": max_output_kb,
        "use_cache": use_cache,
        "cache_path": cache_file or default_cache_path(),
        "probe_command": probe,
    }
    if concurrency is not None:
        settings["concurrency"] = concurrency
    try:
        config = RunConfig.model_validate(settings)
    except ValidationError as e:
        _print_error("Invalid options", e, json_output)
        raise typer.Exit(1) from None

    if not json_output:
        console.print(
            f"[bold]LLM Radar v{__version__}[/bold] "
            f"[dim]({config.concurrency} workers, {config.timeout_seconds:g}s timeout"
            f"{', cache on' if config.use_cache else ''})[/dim]"
        )

    report = asyncio.run(_run_scan(config, kb, refresh, json_output))
    _logger.info(
        "cli.scan_finished",
        total=report.completed,
        usable=report.usable_count,
        failed=report.failed,
    )

    if report.error is not None:
        _print_error(ErrorMessages.SCAN_ERROR, report.error, json_output)
        raise typer.Exit(1)

    saved_path: Path | None = None
    if save:
        try:
            saved_path = save_results(report.results, save_dir or default_results_dir(), __version__)
        except OSError as e:
            _print_error(ErrorMessages.EXPORT_ERROR, e, json_output)
            raise typer.Exit(1) from None

    if json_output:
        payload: dict[str, object] = {
            "version": __version__,
            "total": report.completed,
            "usable": report.usable_count,
            "results": [r.model_dump(mode="json") for r in report.results],
        }
        if saved_path is not None:
            payload["saved_to"] = str(saved_path)
        console.print_json(data=payload)
        return

    console.print()
    console.print(create_results_table(report.results))
    console.print(create_summary_table(report))
    if saved_path is not None:
        console.print(f"\n[green]Results saved to[/green] {escape(str(saved_path))}")


async def _run_scan(
    config: RunConfig,
    kb: CompiledKnowledgeBase,
    refresh: bool,
    json_output: bool,
) -> ScanReport:
    scanner = Scanner(config, kb, refresh=refresh)
    events = scanner.new_stream()
    report = ScanReport()

    if json_output:
        producer = asyncio.create_task(scanner.run(events))
        await report.consume(events)
        await producer
        return report

    progress = create_scan_progress()
    task_id = progress.add_task("Discovering models...", total=None)

    def on_event(event: ScanEvent) -> None:
        _render_event(progress, task_id, kb, event)

    with Live(ScanDisplay(progress, report), console=console, transient=True):
        producer = asyncio.create_task(scanner.run(events))
        try:
            await report.consume(events, on_event=on_event)
        finally:
            await producer
    return report


def _render_event(
    progress: Progress,
    task_id: TaskID,
    kb: CompiledKnowledgeBase,
    event: ScanEvent,
) -> None:
    match event:
        case Discovered(models=models):
            progress.update(task_id, description="Testing models", total=len(models))
        case Started():
            # rendered by the active-jobs view from the report
            pass
        case Completed(result=result):
            progress.console.print(format_result_line(result, limits_for(result, kb)))
            progress.advance(task_id)
        case Failed():
            progress.update(task_id, description="[red]Failed[/red]")
        case _:
            assert_never(event)


def _print_error(
    title: str,
    error: Exception,
    json_output: bool,
    field: str | None = None,
) -> None:
    if json_output:
        data: dict[str, object] = {"error": str(error)}
        if field is not None:
            data["field"] = field
        console.print_json(data=data)
        return
    suffix = f" [dim](field: {escape(field)})[/dim]" if field else ""
    console.print(f"[red]{title}:[/red] {escape(str(error))}{suffix}")
