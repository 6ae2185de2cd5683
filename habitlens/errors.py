"""Exceptions raised by habitlens components.

The analysis engine itself never lets these escape to the editor: storage
faults are caught at the checkpoint layer and load paths fall back to an
empty state. They surface only where a caller can act on them (the CLI,
or code talking to a StateStore directly).
"""

from __future__ import annotations


class HabitLensError(Exception):
    """Base class for all habitlens errors."""


class StateStoreError(HabitLensError):
    """A durable state read or write failed."""

    def __init__(self, message: str, *, key: str = "") -> None:
        self.key = key
        super().__init__(message)


class ConfigError(HabitLensError):
    """The configuration file exists but cannot be parsed."""
