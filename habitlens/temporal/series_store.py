"""Series store: pattern id -> bounded time series.

Owns the mapping exclusively. Series are created lazily on the first data
point, pruned to the retention window on every append, and checkpointed
to the durable state store after every mutation.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Iterator
from typing import Any

from loguru import logger

from habitlens.observe.metrics import MetricsCollector, get_metrics
from habitlens.state.checkpoint import Checkpointer
from habitlens.state.store import StateStore
from habitlens.temporal.models import (
    SECONDS_PER_DAY,
    DataPoint,
    TemporalSeries,
    hour_of,
    weekday_of,
)

STATE_KEY = "temporal-series"
STATE_VERSION = 1


class SeriesStore:
    """Per-pattern time series with append-and-prune semantics."""

    def __init__(
        self,
        state: StateStore,
        *,
        retention_days: int = 90,
        clock: Callable[[], float] = time.time,
        lock: threading.RLock | None = None,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self._series: dict[str, TemporalSeries] = {}
        self._retention_seconds = retention_days * SECONDS_PER_DAY
        self._clock = clock
        self._lock = lock or threading.RLock()
        self._metrics = metrics or get_metrics()
        self._state = state
        self._checkpoint = Checkpointer(state, STATE_KEY, self.snapshot, self._metrics)

    async def load(self) -> None:
        """Restore the persisted mapping. Any failure leaves the store empty."""
        try:
            blob = await self._state.get(STATE_KEY)
            series = _decode(blob)
        except Exception as exc:
            logger.warning("Could not load temporal series, starting empty: {}", exc)
            series = {}
        with self._lock:
            self._series = series
        logger.debug("Loaded {} temporal series", len(series))

    def record_data_point(
        self,
        pattern_id: str,
        value: float,
        context: dict[str, Any] | None = None,
    ) -> DataPoint:
        """Append a point stamped with the current time, weekday and hour."""
        now = self._clock()
        point = DataPoint(
            timestamp=now,
            value=float(value),
            context={**(context or {}), "weekday": weekday_of(now), "hour": hour_of(now)},
        )
        with self._lock:
            series = self._series.get(pattern_id)
            if series is None:
                series = TemporalSeries(pattern_id=pattern_id, last_analysis=now)
                self._series[pattern_id] = series
                logger.debug("Tracking new pattern '{}'", pattern_id)
            series.timeline_data.append(point)
            series.prune_before(now - self._retention_seconds)
            self._checkpoint.schedule()
        self._metrics.record_data_point()
        return point

    def get(self, pattern_id: str) -> TemporalSeries | None:
        with self._lock:
            return self._series.get(pattern_id)

    def pattern_ids(self) -> list[str]:
        with self._lock:
            return list(self._series)

    def items(self) -> Iterator[tuple[str, TemporalSeries]]:
        with self._lock:
            snapshot = list(self._series.items())
        return iter(snapshot)

    def checkpoint(self) -> None:
        """Schedule a write after an in-place update made by another component."""
        with self._lock:
            self._checkpoint.schedule()

    async def flush(self) -> bool:
        return await self._checkpoint.flush()

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            return {
                "version": STATE_VERSION,
                "series": {pid: s.to_dict() for pid, s in self._series.items()},
            }

    def __len__(self) -> int:
        return len(self._series)

    def __contains__(self, pattern_id: object) -> bool:
        return pattern_id in self._series


def _decode(blob: Any) -> dict[str, TemporalSeries]:
    if blob is None:
        return {}
    if not isinstance(blob, dict) or blob.get("version") != STATE_VERSION:
        logger.warning("Discarding temporal series state with unsupported layout")
        return {}
    return {pid: TemporalSeries.from_dict(raw) for pid, raw in blob.get("series", {}).items()}
