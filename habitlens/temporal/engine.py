"""TemporalEngine: single owner of the series store and habit changes.

This is the object an editor integration holds on to. It wires the
series store, trend analyzer, habit change detector and insight
aggregator around one shared re-entrant lock, so a multi-threaded host
never observes a half-updated store: feedback appends, periodic
re-classification and report building are serialized.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Iterable
from typing import Any

from loguru import logger

from habitlens.config.loader import get_state_dir
from habitlens.config.schema import HabitLensConfig
from habitlens.observe.metrics import MetricsCollector, get_metrics
from habitlens.state.store import JsonFileStateStore, StateStore
from habitlens.temporal.classifier import PatternClassifier
from habitlens.temporal.habits import HabitChangeDetector
from habitlens.temporal.insights import InsightAggregator
from habitlens.temporal.models import CodingHabitChange, FeedbackRecord, TemporalInsights, Trend
from habitlens.temporal.series_store import SeriesStore
from habitlens.temporal.trend import TrendAnalyzer


class TemporalEngine:
    """Facade over the temporal analysis components."""

    def __init__(
        self,
        state: StateStore,
        config: HabitLensConfig | None = None,
        *,
        classifier: PatternClassifier | None = None,
        clock: Callable[[], float] = time.time,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self._config = config or HabitLensConfig()
        self._clock = clock
        self._metrics = metrics or get_metrics()
        self._lock = threading.RLock()

        self.series = SeriesStore(
            state,
            retention_days=self._config.series.retention_days,
            clock=clock,
            lock=self._lock,
            metrics=self._metrics,
        )
        self.detector = HabitChangeDetector(
            state,
            self._config.habits,
            classifier=classifier,
            clock=clock,
            lock=self._lock,
            metrics=self._metrics,
        )
        self.analyzer = TrendAnalyzer(self._config.trend)
        self.insights = InsightAggregator(
            self.series,
            self.detector,
            self.analyzer,
            self._config.insights,
            clock=clock,
        )

    @classmethod
    def from_config(cls, config: HabitLensConfig, **kwargs: Any) -> TemporalEngine:
        """Build an engine persisting to the configured state directory."""
        state = JsonFileStateStore(get_state_dir(config))
        return cls(state, config, **kwargs)

    @property
    def config(self) -> HabitLensConfig:
        return self._config

    async def load(self) -> None:
        """Restore persisted state. Never raises."""
        await self.series.load()
        await self.detector.load()
        logger.info(
            "Loaded {} temporal patterns and {} habit changes",
            len(self.series),
            len(self.detector.changes),
        )

    def record_data_point(
        self,
        pattern_id: str,
        value: float,
        context: dict[str, Any] | None = None,
    ) -> None:
        self.series.record_data_point(pattern_id, value, context)

    async def analyze_habit_evolution(
        self,
        feedback_history: Iterable[FeedbackRecord],
    ) -> list[CodingHabitChange]:
        return await self.detector.analyze_habit_evolution(feedback_history)

    def analyze_trend(self, pattern_id: str) -> Trend:
        with self._lock:
            series = self.series.get(pattern_id)
            if series is None:
                return Trend.STABLE
            return self.analyzer.analyze(series.timeline_data)

    def get_temporal_insights(self) -> TemporalInsights:
        with self._lock:
            return self.insights.get_temporal_insights()

    async def perform_temporal_analysis(self) -> int:
        """Re-classify every series and persist. Returns the number analyzed."""
        logger.info("Running temporal pattern analysis")
        now = self._clock()
        with self._lock:
            analyzed = 0
            for _, series in self.series.items():
                series.trend = self.analyzer.analyze(series.timeline_data)
                series.last_analysis = now
                analyzed += 1
            self.series.checkpoint()
        await self.flush()
        self._metrics.record_analysis_run()
        logger.info("Temporal analysis complete: {} patterns analyzed", analyzed)
        return analyzed

    async def flush(self) -> bool:
        """Wait for all pending state writes. False if any write failed."""
        series_ok = await self.series.flush()
        habits_ok = await self.detector.flush()
        return series_ok and habits_ok
