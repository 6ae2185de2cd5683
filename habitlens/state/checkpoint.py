"""Fire-and-forget checkpointing of in-memory state to a StateStore.

Callers mutate their in-memory state and call ``schedule()``; they never
wait for the write. The snapshot is always taken immediately. Inside a
running event loop it is written by a task on that loop. Outside one
(a synchronous or threaded host) it is handed to a writer loop running on
a daemon thread, so the write still happens without anyone awaiting it.

Every snapshot carries a sequence number. A write whose snapshot is older
than the last one stored is skipped, so a slow write can never replace
newer state.

Write failures are logged and counted, never raised and never retried:
the in-memory state stays authoritative until the next successful write.
"""

from __future__ import annotations

import asyncio
import itertools
import threading
from collections.abc import Callable
from concurrent.futures import Future
from typing import Any

from loguru import logger

from habitlens.observe.metrics import MetricsCollector, get_metrics
from habitlens.state.store import StateStore

_writer_loop: asyncio.AbstractEventLoop | None = None
_writer_loop_lock = threading.Lock()


def _background_loop() -> asyncio.AbstractEventLoop:
    """Event loop on a daemon thread for writes scheduled outside any loop."""
    global _writer_loop  # noqa: PLW0603
    with _writer_loop_lock:
        if _writer_loop is None or _writer_loop.is_closed():
            loop = asyncio.new_event_loop()
            thread = threading.Thread(
                target=loop.run_forever, name="habitlens-checkpoint", daemon=True
            )
            thread.start()
            _writer_loop = loop
        return _writer_loop


class Checkpointer:
    """Serializes whole-snapshot writes of one state key."""

    def __init__(
        self,
        store: StateStore,
        key: str,
        snapshot_fn: Callable[[], Any],
        metrics: MetricsCollector | None = None,
    ) -> None:
        self._store = store
        self._key = key
        self._snapshot_fn = snapshot_fn
        self._metrics = metrics or get_metrics()
        # One lock per loop that writes: the caller's loop and the writer loop.
        self._write_lock = asyncio.Lock()
        self._background_lock = asyncio.Lock()
        self._pending: set[asyncio.Task[bool]] = set()
        self._background: set[Future[bool]] = set()
        self._background_guard = threading.Lock()
        # Held across the store write; only the caller loop and the writer
        # loop ever contend for it, and each holds its own asyncio lock first.
        self._store_guard = threading.Lock()
        self._seq = itertools.count(1)
        self._stored_seq = 0

    @property
    def key(self) -> str:
        return self._key

    @property
    def pending(self) -> int:
        with self._background_guard:
            return len(self._pending) + len(self._background)

    def schedule(self) -> None:
        """Queue a write of the current snapshot without waiting for it."""
        snapshot = self._snapshot_fn()
        seq = next(self._seq)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._schedule_background(snapshot, seq)
            return

        task = loop.create_task(
            self._write(snapshot, seq, self._write_lock), name=f"checkpoint-{self._key}"
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def _schedule_background(self, snapshot: Any, seq: int) -> None:
        future = asyncio.run_coroutine_threadsafe(
            self._write(snapshot, seq, self._background_lock), _background_loop()
        )
        with self._background_guard:
            self._background.add(future)
        future.add_done_callback(self._discard_background)

    def _discard_background(self, future: Future[bool]) -> None:
        with self._background_guard:
            self._background.discard(future)

    async def flush(self) -> bool:
        """Wait for every queued write, wherever it was scheduled.

        Returns False if any awaited write failed.
        """
        ok = True
        if self._pending:
            results = await asyncio.gather(*list(self._pending))
            ok = all(results)
        with self._background_guard:
            background = list(self._background)
        if background:
            results = await asyncio.gather(*(asyncio.wrap_future(f) for f in background))
            ok = all(results) and ok
        return ok

    async def _write(self, snapshot: Any, seq: int, lock: asyncio.Lock) -> bool:
        async with lock:
            with self._store_guard:
                if seq < self._stored_seq:
                    logger.debug("Skipping stale snapshot of '{}' (#{})", self._key, seq)
                    return True
                try:
                    await self._store.set(self._key, snapshot)
                except Exception as exc:
                    self._metrics.record_persist_failure()
                    logger.error(
                        "Failed to persist '{}' (in-memory state kept): {}", self._key, exc
                    )
                    return False
                self._stored_seq = seq
        self._metrics.record_persist_write()
        return True
