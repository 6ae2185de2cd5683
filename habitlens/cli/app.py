"""Main CLI application: registers all subcommands and global options."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from habitlens.config import HabitLensConfig, get_log_dir, load_config
from habitlens.errors import ConfigError
from habitlens.logging import setup_logging

app = typer.Typer(
    name="habitlens",
    help="habitlens - temporal analysis of code-suggestion feedback.",
    no_args_is_help=True,
    pretty_exceptions_enable=False,
)

_console = Console(stderr=True)


class _GlobalState:
    """Shared state set by the top-level callback, consumed by subcommands."""

    config_path: Path | None = None
    verbose: bool = False
    quiet: bool = False


state = _GlobalState()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show DEBUG-level logs."),  # noqa: B008
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress logs below WARNING."),  # noqa: B008
    config: Path | None = typer.Option(None, "--config", "-c", help="Path to config.json."),  # noqa: B008
) -> None:
    """habitlens - temporal analysis of code-suggestion feedback."""
    state.verbose = verbose
    state.quiet = quiet
    state.config_path = config


def load_cli_config() -> HabitLensConfig:
    """Load config for a subcommand and start logging next to its state dir.

    A broken config file becomes a red message and exit code 1.
    """
    try:
        config = load_config(state.config_path)
    except ConfigError as exc:
        _console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1) from exc
    setup_logging(
        verbose=state.verbose,
        quiet=state.quiet,
        log_dir=get_log_dir(config),
        config=config.logging,
    )
    return config


# Register subcommands: import at bottom to avoid circular deps
from habitlens.cli.engine_cmd import (  # noqa: E402
    ingest_command,
    insights_command,
    record_command,
    trend_command,
)
from habitlens.cli.run_cmd import run_command  # noqa: E402

app.command(name="record", help="Record one data point for a pattern.")(record_command)
app.command(name="ingest", help="Detect habit changes in a feedback JSON file.")(ingest_command)
app.command(name="trend", help="Classify the trend of one pattern.")(trend_command)
app.command(name="insights", help="Show trending patterns and recent habit changes.")(
    insights_command
)
app.command(name="run", help="Run periodic analysis until interrupted.")(run_command)
