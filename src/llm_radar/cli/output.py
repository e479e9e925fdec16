"""Rich output formatting for the LLM Radar CLI.

Centralizes the console, the category color scheme, the progress bar,
the active-jobs view and the tables so every command renders results the
same way.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from rich.console import Console, Group
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table
from rich.text import Text

from llm_radar.core.categories import Category, require_total
from llm_radar.core.results import ModelResult
from llm_radar.knowledge import PATTERN_FIELDS, CompiledKnowledgeBase
from llm_radar.orchestration.report import ScanReport
from llm_radar.utils.text import truncate
from llm_radar.utils.time import format_duration

# =============================================================================
# Shared console instance
# =============================================================================

console = Console()

REASON_WIDTH = 60
MODEL_WIDTH = 40

ACTIVE_JOBS_SHOWN = 5
SLOW_JOB_SECONDS = 10.0
STALLED_JOB_SECONDS = 20.0


# =============================================================================
# Color scheme
# =============================================================================


class CategoryColors:
    """Display style per category: green usable, yellow transient, red failed."""

    STYLES: dict[Category, str] = {
        Category.FREE: "green",
        Category.FREE_LIMITED: "green",
        Category.PAID: "green",
        Category.AVAILABLE: "green",
        Category.TIMEOUT: "yellow",
        Category.NOT_FOUND: "yellow",
        Category.RATE_LIMITED: "yellow",
        Category.AUTH_FAILED: "red",
        Category.NO_QUOTA: "red",
        Category.FREE_ERROR: "red",
        Category.ERROR: "red",
    }

    @classmethod
    def get(cls, category: Category) -> str:
        return cls.STYLES[category]


require_total(CategoryColors.STYLES, "CategoryColors.STYLES")


def _category_cell(category: Category) -> Text:
    return Text(category.value, style=CategoryColors.get(category))


# =============================================================================
# Result rendering
# =============================================================================


def format_result_line(result: ModelResult, limits: str = "") -> Text:
    """One line per finished model: icon, id, category, reason, duration.

    Args:
        result: The finished result.
        limits: Free-tier limits to append for FREE_LIMITED results.
    """
    style = CategoryColors.get(result.category)
    line = Text()
    line.append(f"{result.icon} ")
    line.append(result.model, style="bold")
    line.append(f"  {result.category.value}", style=style)
    line.append(f"  {truncate(result.reason, REASON_WIDTH)}", style="dim")
    line.append(f"  {result.duration}", style="cyan")
    if result.category is Category.FREE_LIMITED and limits and limits != result.reason:
        line.append(f"  [{limits}]", style="dim")
    if result.from_cache:
        line.append("  (cached)", style="dim italic")
    return line


def limits_for(result: ModelResult, kb: CompiledKnowledgeBase) -> str:
    """Documented free-tier limits for the result's provider, if any."""
    provider = kb.get_free_tier_provider(result.provider)
    return provider.limits if provider is not None else ""


def create_scan_progress(console_instance: Console | None = None) -> Progress:
    """Progress bar for a running scan (not yet started)."""
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(bar_width=30),
        MofNCompleteColumn(),
        TextColumn("•"),
        TimeElapsedColumn(),
        console=console_instance or console,
        transient=True,
    )


def create_active_jobs(
    report: ScanReport,
    now: datetime | None = None,
    max_shown: int = ACTIVE_JOBS_SHOWN,
) -> Text:
    """Models being tested right now, with how long each has been running.

    Shows at most ``max_shown`` models (sorted by id) and counts the rest.
    Long-running jobs turn yellow after 10s and bold red after 20s.
    """
    jobs = report.active_jobs(now)
    if not jobs:
        return Text("Waiting for workers...", style="dim")

    text = Text("Testing now:\n", style="bold")
    for model, elapsed in jobs[:max_shown]:
        if elapsed > STALLED_JOB_SECONDS:
            style = "bold red"
        elif elapsed > SLOW_JOB_SECONDS:
            style = "yellow"
        else:
            style = "dim"
        text.append(f"  ⟳ {truncate(model, MODEL_WIDTH):<{MODEL_WIDTH + 2}} ", style=style)
        text.append(f"[{elapsed:.0f}s]\n", style=style)
    if len(jobs) > max_shown:
        text.append(f"  ... and {len(jobs) - max_shown} more\n", style="yellow")
    text.rstrip()
    return text


class ScanDisplay:
    """Live view of a running scan: progress bar above the active jobs.

    Re-rendered on every refresh so elapsed times keep moving between events.
    """

    def __init__(self, progress: Progress, report: ScanReport) -> None:
        self.progress = progress
        self.report = report

    def __rich__(self) -> Group:
        return Group(self.progress, create_active_jobs(self.report))


def create_results_table(results: Sequence[ModelResult], title: str = "Results") -> Table:
    """Table of finished results, ordered by category then model."""
    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("", width=2)
    table.add_column("Model", style="cyan", no_wrap=True)
    table.add_column("Category")
    table.add_column("Reason", style="dim", no_wrap=False)
    table.add_column("Time", justify="right")

    order = {category: index for index, category in enumerate(Category)}
    for result in sorted(results, key=lambda r: (order[r.category], r.model)):
        reason = result.reason + (" (cached)" if result.from_cache else "")
        table.add_row(
            Text(result.icon),
            Text(result.model),
            _category_cell(result.category),
            Text(reason),
            Text(result.duration),
        )
    return table


def create_summary_table(report: ScanReport) -> Table:
    """Per-category counts plus the usable share."""
    table = Table(title="Summary", show_header=True, header_style="bold")
    table.add_column("Category")
    table.add_column("Count", justify="right")

    stats = report.stats
    for category in Category:
        count = stats.get(category, 0)
        if not count:
            continue
        style = CategoryColors.get(category)
        table.add_row(f"{category.icon} [{style}]{category.value}[/{style}]", str(count))

    table.add_section()
    table.add_row(
        "[bold]Usable[/bold]",
        f"[green]{report.usable_count}[/green] ({report.usable_percent:.1f}%)",
    )
    table.add_row("[bold]Total[/bold]", str(report.completed))
    if report.cached_count:
        table.add_row("[dim]From cache[/dim]", str(report.cached_count))
    table.add_row("[bold]Elapsed[/bold]", format_duration(report.elapsed_seconds))
    return table


def create_kb_tables(kb: CompiledKnowledgeBase) -> list[Table]:
    """Tables describing a knowledge base: free models, providers, patterns."""
    models = Table(title="Known Free Models", show_header=True, header_style="bold")
    models.add_column("Model", style="cyan", no_wrap=True)
    models.add_column("Category")
    models.add_column("Description")
    models.add_column("Limits", style="dim")
    for model_id, info in sorted(kb.config.free_models.items()):
        models.add_row(
            Text(model_id),
            _category_cell(info.category),
            Text(info.description),
            Text(info.limits),
        )

    providers = Table(title="Free-Tier Providers", show_header=True, header_style="bold")
    providers.add_column("Provider", style="cyan", no_wrap=True)
    providers.add_column("Category")
    providers.add_column("Description")
    providers.add_column("Limits", style="dim")
    for name, provider in sorted(kb.config.free_tier_providers.items()):
        providers.add_row(
            Text(name),
            _category_cell(provider.category),
            Text(provider.description),
            Text(provider.limits),
        )

    patterns = Table(title="Patterns", show_header=True, header_style="bold")
    patterns.add_column("Field", style="cyan", no_wrap=True)
    patterns.add_column("Regex", overflow="fold")
    for name in PATTERN_FIELDS:
        patterns.add_row(name, Text(getattr(kb.config, name)))

    return [models, providers, patterns]
