"""habitlens record / ingest / trend / insights -- one-shot engine commands.

Each command loads persisted state, performs one operation, and flushes
state back to disk before exiting.
"""

from __future__ import annotations

import asyncio
import json
from datetime import datetime
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from habitlens.temporal.engine import TemporalEngine
from habitlens.temporal.models import CodingHabitChange, FeedbackRecord, TemporalInsights

console = Console()


async def _open_engine() -> TemporalEngine:
    from habitlens.cli.app import load_cli_config

    engine = TemporalEngine.from_config(load_cli_config())
    await engine.load()
    return engine


def record_command(
    pattern_id: str = typer.Argument(help="Pattern identifier (e.g. 'file_switch')."),  # noqa: B008
    value: float = typer.Argument(help="Signal value for this observation."),  # noqa: B008
    language: str = typer.Option("", "--language", "-l", help="Editor language id."),  # noqa: B008
    project_type: str = typer.Option("", "--project-type", "-p", help="Project type."),  # noqa: B008
) -> None:
    """Append a data point to a pattern's time series."""
    context: dict[str, Any] = {}
    if language:
        context["language"] = language
    if project_type:
        context["projectType"] = project_type

    async def _run() -> int:
        engine = await _open_engine()
        engine.record_data_point(pattern_id, value, context)
        await engine.flush()
        series = engine.series.get(pattern_id)
        return len(series.timeline_data) if series else 0

    count = asyncio.run(_run())
    console.print(f"[green]Recorded[/green] {pattern_id} = {value} ({count} points retained)")


def trend_command(
    pattern_id: str = typer.Argument(help="Pattern identifier."),  # noqa: B008
) -> None:
    """Print the current trend classification of one pattern."""

    async def _run() -> tuple[str, int]:
        engine = await _open_engine()
        series = engine.series.get(pattern_id)
        return str(engine.analyze_trend(pattern_id)), len(series.timeline_data) if series else 0

    trend, points = asyncio.run(_run())
    if points == 0:
        console.print(f"[dim]No data recorded for '{pattern_id}'.[/dim]")
    console.print(f"{pattern_id}: [bold]{trend}[/bold] ({points} points)")


def ingest_command(
    feedback_file: Path = typer.Argument(help="JSON array of feedback records."),  # noqa: B008
) -> None:
    """Run habit change detection over a feedback history file."""
    try:
        raw = json.loads(feedback_file.read_text(encoding="utf-8"))
        records = [FeedbackRecord.from_dict(item) for item in raw]
    except (OSError, json.JSONDecodeError, KeyError, TypeError, ValueError) as exc:
        console.print(f"[red]Cannot read feedback from {feedback_file}:[/red] {exc}")
        raise typer.Exit(1) from exc

    async def _run() -> list[CodingHabitChange]:
        engine = await _open_engine()
        changes = await engine.analyze_habit_evolution(records)
        await engine.flush()
        return changes

    changes = asyncio.run(_run())
    if not changes:
        console.print(f"[dim]No habit changes detected in {len(records)} feedback records.[/dim]")
        return
    console.print(_changes_table(changes, title=f"Detected Habit Changes ({len(changes)})"))


def insights_command(
    as_json: bool = typer.Option(False, "--json", help="Print the raw insight report."),  # noqa: B008
) -> None:
    """Show trending patterns, cyclical patterns and recent habit changes."""

    async def _run() -> TemporalInsights:
        engine = await _open_engine()
        return engine.get_temporal_insights()

    insights = asyncio.run(_run())
    if as_json:
        console.print_json(json.dumps(insights.to_dict()))
        return

    summary = "\n".join(insights.evolution_summary) or "No habit changes in the last month."
    console.print(Panel(summary, title="habitlens", border_style="cyan"))

    if insights.trending_patterns:
        table = Table(title="Trending Patterns")
        table.add_column("Pattern", style="cyan")
        table.add_column("Trend", style="green")
        table.add_column("Confidence", justify="right")
        for t in insights.trending_patterns:
            table.add_row(t.pattern_id, str(t.trend), f"{t.confidence:.2f}")
        console.print(table)
    else:
        console.print("[dim]All tracked patterns are stable.[/dim]")

    if insights.recent_changes:
        console.print(_changes_table(insights.recent_changes, title="Recent Habit Changes"))


def _changes_table(changes: list[CodingHabitChange], *, title: str) -> Table:
    table = Table(title=title)
    table.add_column("When", style="dim")
    table.add_column("Language", style="cyan")
    table.add_column("Change")
    table.add_column("Type", style="green")
    table.add_column("Confidence", justify="right")
    for c in changes:
        when = datetime.fromtimestamp(c.timestamp).strftime("%Y-%m-%d")
        table.add_row(
            when,
            c.language,
            f"{c.old_pattern} -> {c.new_pattern}",
            str(c.change_type),
            f"{c.confidence:.2f}",
        )
    return table
