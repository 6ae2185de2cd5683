"""habitlens run -- long-running periodic analysis.

Start: habitlens run
Stop:  Ctrl+C (SIGINT) or SIGTERM for graceful shutdown
"""

from __future__ import annotations

import asyncio
import signal

from loguru import logger
from rich.console import Console

from habitlens import __version__
from habitlens.temporal.engine import TemporalEngine
from habitlens.temporal.scheduler import AnalysisScheduler

console = Console()


def run_command() -> None:
    """Load state, start the analysis scheduler, and block until a signal."""
    from habitlens.cli.app import load_cli_config

    config = load_cli_config()
    try:
        asyncio.run(_run(config))
    except KeyboardInterrupt:
        pass


async def _run(config) -> None:
    engine = TemporalEngine.from_config(config)
    await engine.load()

    scheduler = AnalysisScheduler(engine, config.scheduler)
    scheduler.start()
    console.print(
        f"[bold cyan]habitlens {__version__} running.[/bold cyan] Press Ctrl+C to stop."
    )

    shutdown_event = asyncio.Event()
    _install_signal_handlers(shutdown_event)
    await shutdown_event.wait()

    console.print("\n[dim]Shutting down...[/dim]")
    await scheduler.stop()
    await engine.flush()
    logger.info("habitlens shutdown complete")
    console.print("[green]Stopped.[/green]")


def _install_signal_handlers(shutdown_event: asyncio.Event) -> None:
    """Install SIGINT/SIGTERM handlers that trigger graceful shutdown."""
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, shutdown_event.set)
