"""Insight aggregation: merges series trends and recent habit changes."""

from __future__ import annotations

import time
from collections import Counter
from collections.abc import Callable

from habitlens.config.schema import InsightsConfig
from habitlens.temporal.habits import HabitChangeDetector
from habitlens.temporal.models import (
    SECONDS_PER_DAY,
    CodingHabitChange,
    TemporalInsights,
    Trend,
    TrendingPattern,
)
from habitlens.temporal.series_store import SeriesStore
from habitlens.temporal.trend import TrendAnalyzer


class InsightAggregator:
    """Builds the editor-facing insight report.

    Building a report re-classifies every series and writes the fresh
    trend back onto it, keeping the store's cached trend current.
    """

    def __init__(
        self,
        series: SeriesStore,
        detector: HabitChangeDetector,
        analyzer: TrendAnalyzer,
        config: InsightsConfig | None = None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._series = series
        self._detector = detector
        self._analyzer = analyzer
        self._config = config or InsightsConfig()
        self._clock = clock

    def get_temporal_insights(self) -> TemporalInsights:
        trending: list[TrendingPattern] = []
        cyclical: list[str] = []
        for pattern_id, series in self._series.items():
            trend = self._analyzer.analyze(series.timeline_data)
            series.trend = trend
            if trend != Trend.STABLE:
                trending.append(TrendingPattern(pattern_id, trend, series.confidence))
            if trend == Trend.CYCLICAL:
                cyclical.append(pattern_id)

        recent = self.recent_changes()
        trending.sort(key=lambda t: t.confidence, reverse=True)
        return TemporalInsights(
            evolution_summary=_summarize(recent),
            trending_patterns=trending,
            recent_changes=recent[: self._config.max_recent_changes],
            cyclical_patterns=cyclical,
        )

    def recent_changes(self) -> list[CodingHabitChange]:
        """Changes inside the recent window, newest first."""
        cutoff = self._clock() - self._config.recent_days * SECONDS_PER_DAY
        recent = [c for c in self._detector.changes if c.timestamp > cutoff]
        recent.sort(key=lambda c: c.timestamp, reverse=True)
        return recent


def _summarize(recent: list[CodingHabitChange]) -> list[str]:
    if not recent:
        return []
    lines = [f"Detected {len(recent)} coding habit changes in the last month"]
    for language, count in Counter(c.language for c in recent).items():
        suffix = "s" if count > 1 else ""
        lines.append(f"{language}: {count} habit evolution{suffix}")
    return lines
