"""Durable key-value state for the analysis engine.

Two backends share the async ``StateStore`` protocol:

- ``JsonFileStateStore`` writes one JSON file per key under a state
  directory, using temp-file-then-rename so a crash never leaves a
  half-written blob behind. File I/O runs in a worker thread to keep the
  event loop free.
- ``MemoryStateStore`` keeps deep copies in a dict. Used in tests and when
  a host wants purely in-process state.

Values are whole snapshots: every ``set()`` overwrites the previous blob.
"""

from __future__ import annotations

import asyncio
import copy
import json
import re
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from loguru import logger

from habitlens.errors import StateStoreError

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


@runtime_checkable
class StateStore(Protocol):
    """Async get/set over JSON-compatible values."""

    async def get(self, key: str, default: Any = None) -> Any: ...

    async def set(self, key: str, value: Any) -> None: ...


class MemoryStateStore:
    """Dict-backed store. Values are copied on the way in and out."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = copy.deepcopy(initial) if initial else {}

    async def get(self, key: str, default: Any = None) -> Any:
        if key not in self._data:
            return default
        return copy.deepcopy(self._data[key])

    async def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    def keys(self) -> list[str]:
        return sorted(self._data)


class JsonFileStateStore:
    """One JSON file per key, stored at ``<state_dir>/<key>.json``."""

    def __init__(self, state_dir: Path) -> None:
        self._dir = state_dir

    @property
    def state_dir(self) -> Path:
        return self._dir

    def _path_for(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise StateStoreError(f"Invalid state key: {key!r}", key=key)
        return self._dir / f"{key}.json"

    async def get(self, key: str, default: Any = None) -> Any:
        path = self._path_for(key)
        return await asyncio.to_thread(self._read, key, path, default)

    async def set(self, key: str, value: Any) -> None:
        path = self._path_for(key)
        await asyncio.to_thread(self._write, key, path, value)

    @staticmethod
    def _read(key: str, path: Path, default: Any) -> Any:
        if not path.exists():
            return default
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise StateStoreError(f"Failed to read state '{key}': {exc}", key=key) from exc

    def _write(self, key: str, path: Path, value: Any) -> None:
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
            tmp = path.with_suffix(".tmp")
            tmp.write_text(json.dumps(value, ensure_ascii=False), encoding="utf-8")
            tmp.replace(path)
        except (OSError, TypeError, ValueError) as exc:
            raise StateStoreError(f"Failed to write state '{key}': {exc}", key=key) from exc
        logger.debug("Wrote state '{}' to {}", key, path)
