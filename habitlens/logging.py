"""Logging configuration for habitlens using loguru.

Call `setup_logging()` once at startup. Provides:
- Console output with configurable verbosity
- Rotating file log beside the state directory (~/.habitlens/logs by default),
  sized and retained per the ``logging`` config section

Library modules never configure sinks themselves; they only import
``logger`` from loguru. When habitlens is embedded in a host process that
never calls setup_logging(), loguru's default stderr sink applies.
"""

from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger

from habitlens.config.schema import LoggingConfig

_CONSOLE_FORMAT = "<level>{level:<8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - {message}"
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | {name}:{function}:{line} - {message}"
_LOG_FILE = "habitlens.log"


def setup_logging(
    verbose: bool = False,
    quiet: bool = False,
    log_dir: Path | None = None,
    config: LoggingConfig | None = None,
) -> Path | None:
    """Configure loguru sinks for console and file output.

    Args:
        verbose: Show DEBUG-level messages on console.
        quiet: Suppress console output below WARNING.
        log_dir: Directory for log files. Defaults to ~/.habitlens/logs.
        config: File sink settings; defaults apply when omitted.

    Returns:
        Path of the log file, or None when the file sink is disabled.
    """
    config = config or LoggingConfig()
    logger.remove()

    if quiet:
        console_level = "WARNING"
    elif verbose:
        console_level = "DEBUG"
    else:
        console_level = "INFO"

    logger.add(sys.stderr, level=console_level, format=_CONSOLE_FORMAT, colorize=True)

    if not config.file_enabled:
        return None

    log_path = (log_dir or Path.home() / ".habitlens" / "logs") / _LOG_FILE
    log_path.parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_path,
        level="DEBUG",
        format=_FILE_FORMAT,
        rotation=config.rotation,
        retention=config.retention,
        encoding="utf-8",
        enqueue=True,
    )
    return log_path
