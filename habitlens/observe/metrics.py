"""In-memory metrics collection for habitlens.

Thread-safe counters for tracking engine activity. Persistence failures
are recorded here instead of being raised, so a host can surface them
without the feedback path ever breaking.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass


@dataclass
class MetricsSnapshot:
    """Point-in-time snapshot of all collected metrics."""

    data_points_recorded: int = 0
    habit_changes_detected: int = 0
    analysis_runs: int = 0
    analysis_failures: int = 0
    persist_writes: int = 0
    persist_failures: int = 0
    uptime_seconds: float = 0.0

    def to_dict(self) -> dict:
        return {
            "data_points_recorded": self.data_points_recorded,
            "habit_changes_detected": self.habit_changes_detected,
            "analysis_runs": self.analysis_runs,
            "analysis_failures": self.analysis_failures,
            "persist_writes": self.persist_writes,
            "persist_failures": self.persist_failures,
            "uptime_seconds": round(self.uptime_seconds, 1),
        }


class MetricsCollector:
    """Thread-safe in-memory metrics collector.

    All counter methods are safe to call from any thread or asyncio task.
    Use snapshot() to get a frozen copy of current values.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._start_time = time.monotonic()
        self._data_points = 0
        self._habit_changes = 0
        self._analysis_runs = 0
        self._analysis_failures = 0
        self._persist_writes = 0
        self._persist_failures = 0

    def record_data_point(self) -> None:
        with self._lock:
            self._data_points += 1

    def record_habit_changes(self, count: int) -> None:
        with self._lock:
            self._habit_changes += count

    def record_analysis_run(self) -> None:
        with self._lock:
            self._analysis_runs += 1

    def record_analysis_failure(self) -> None:
        with self._lock:
            self._analysis_failures += 1

    def record_persist_write(self) -> None:
        with self._lock:
            self._persist_writes += 1

    def record_persist_failure(self) -> None:
        with self._lock:
            self._persist_failures += 1

    def snapshot(self) -> MetricsSnapshot:
        """Return a frozen copy of current metrics."""
        with self._lock:
            return MetricsSnapshot(
                data_points_recorded=self._data_points,
                habit_changes_detected=self._habit_changes,
                analysis_runs=self._analysis_runs,
                analysis_failures=self._analysis_failures,
                persist_writes=self._persist_writes,
                persist_failures=self._persist_failures,
                uptime_seconds=time.monotonic() - self._start_time,
            )

    def reset(self) -> None:
        """Reset all counters (for testing)."""
        with self._lock:
            self._data_points = 0
            self._habit_changes = 0
            self._analysis_runs = 0
            self._analysis_failures = 0
            self._persist_writes = 0
            self._persist_failures = 0
            self._start_time = time.monotonic()


_global_metrics: MetricsCollector | None = None


def get_metrics() -> MetricsCollector:
    """Get or create the process-wide metrics collector."""
    global _global_metrics  # noqa: PLW0603
    if _global_metrics is None:
        _global_metrics = MetricsCollector()
    return _global_metrics
