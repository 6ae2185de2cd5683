"""Temporal pattern analysis: series trends and habit change detection."""

from habitlens.temporal.engine import TemporalEngine
from habitlens.temporal.models import (
    ChangeType,
    CodingHabitChange,
    DataPoint,
    FeedbackRecord,
    TemporalInsights,
    TemporalSeries,
    Trend,
)
from habitlens.temporal.scheduler import AnalysisScheduler

__all__ = [
    "AnalysisScheduler",
    "ChangeType",
    "CodingHabitChange",
    "DataPoint",
    "FeedbackRecord",
    "TemporalEngine",
    "TemporalInsights",
    "TemporalSeries",
    "Trend",
]
