"""Trend classification for a single time series.

Two signals, checked in order:

1. Periodicity. With enough points, values are bucketed by weekday and by
   hour of day. A large spread between weekday averages, or between the
   work-hour and off-hour averages, marks the series ``cyclical``.
2. Direction. An ordinary-least-squares slope against point index (not
   wall-clock time) over the most recent window decides between
   ``increasing``, ``decreasing`` and ``stable``.

Empty buckets count as an average of 0 unless ``exclude_empty_buckets``
is configured.
"""

from __future__ import annotations

from collections.abc import Sequence

from habitlens.config.schema import TrendConfig
from habitlens.temporal.models import DataPoint, Trend


class TrendAnalyzer:
    """Stateless classifier; all thresholds come from ``TrendConfig``."""

    def __init__(self, config: TrendConfig | None = None) -> None:
        self._config = config or TrendConfig()
        self._work_hours = frozenset(self._config.work_hours)

    def analyze(self, points: Sequence[DataPoint]) -> Trend:
        cfg = self._config
        if len(points) < cfg.min_data_points:
            return Trend.STABLE

        recent = list(points[-cfg.regression_window :])
        if self.is_cyclical(recent):
            return Trend.CYCLICAL

        slope = ols_slope([p.value for p in recent])
        if abs(slope) < cfg.stable_slope_threshold:
            return Trend.STABLE
        return Trend.INCREASING if slope > 0 else Trend.DECREASING

    def is_cyclical(self, points: Sequence[DataPoint]) -> bool:
        if len(points) < self._config.cyclical_min_points:
            return False
        return self._weekly_pattern(points) or self._daily_pattern(points)

    def _weekly_pattern(self, points: Sequence[DataPoint]) -> bool:
        averages = self._bucket_averages(points, 7, lambda p: p.weekday)
        if not averages:
            return False
        spread = max(averages) - min(averages)
        mean = sum(averages) / len(averages)
        return spread > mean * self._config.weekly_variation_ratio

    def _daily_pattern(self, points: Sequence[DataPoint]) -> bool:
        sums = [0.0] * 24
        counts = [0] * 24
        for p in points:
            hour = p.hour
            if hour is not None:
                sums[hour] += p.value
                counts[hour] += 1

        work: list[float] = []
        off: list[float] = []
        for hour in range(24):
            if counts[hour] == 0 and self._config.exclude_empty_buckets:
                continue
            avg = sums[hour] / counts[hour] if counts[hour] else 0.0
            (work if hour in self._work_hours else off).append(avg)

        if not work or not off:
            return False
        work_avg = sum(work) / len(work)
        off_avg = sum(off) / len(off)
        return abs(work_avg - off_avg) > (work_avg + off_avg) * self._config.daily_variation_ratio

    def _bucket_averages(self, points, size, key) -> list[float]:
        sums = [0.0] * size
        counts = [0] * size
        for p in points:
            idx = key(p)
            if idx is not None:
                sums[idx] += p.value
                counts[idx] += 1
        if self._config.exclude_empty_buckets:
            return [sums[i] / counts[i] for i in range(size) if counts[i]]
        return [sums[i] / counts[i] if counts[i] else 0.0 for i in range(size)]


def ols_slope(values: Sequence[float]) -> float:
    """Least-squares slope of ``values`` against their 0-based index.

    Returns 0.0 when the fit is degenerate (fewer than two points).
    """
    n = len(values)
    sum_x = sum_y = sum_xy = sum_xx = 0.0
    for x, y in enumerate(values):
        sum_x += x
        sum_y += y
        sum_xy += x * y
        sum_xx += x * x
    denominator = n * sum_xx - sum_x * sum_x
    if denominator == 0:
        return 0.0
    return (n * sum_xy - sum_x * sum_y) / denominator
