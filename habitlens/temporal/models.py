"""Temporal analysis data models.

Time series of per-pattern signals, feedback records from the editor,
detected habit changes, and the aggregated insight report. Every record
that is persisted has ``to_dict()`` / ``from_dict()`` producing plain
JSON-compatible values. Timestamps are POSIX epoch seconds.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any

SECONDS_PER_DAY = 24 * 60 * 60


class Trend(StrEnum):
    """Classification of a series' recent behaviour."""

    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"
    CYCLICAL = "cyclical"


class ChangeType(StrEnum):
    """Kind of detected habit change."""

    PREFERENCE_SHIFT = "preference_shift"
    STYLE_EVOLUTION = "style_evolution"
    NEW_ADOPTION = "new_adoption"
    ABANDONMENT = "abandonment"


class FeedbackAction(StrEnum):
    ACCEPT = "accept"
    REJECT = "reject"
    IGNORE = "ignore"


def weekday_of(timestamp: float) -> int:
    """Local weekday with Sunday = 0 ... Saturday = 6."""
    return datetime.fromtimestamp(timestamp).isoweekday() % 7


def hour_of(timestamp: float) -> int:
    """Local hour of day, 0..23."""
    return datetime.fromtimestamp(timestamp).hour


# ---------------------------------------------------------------------------
# Time series
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class DataPoint:
    """One observation of a pattern's signal.

    ``context`` may carry ``weekday`` (0..6), ``hour`` (0..23),
    ``language`` and ``projectType``.
    """

    timestamp: float
    value: float
    context: dict[str, Any] = field(default_factory=dict)

    @property
    def weekday(self) -> int | None:
        return _bucket(self.context.get("weekday"), 7)

    @property
    def hour(self) -> int | None:
        return _bucket(self.context.get("hour"), 24)

    def to_dict(self) -> dict[str, Any]:
        return {"timestamp": self.timestamp, "value": self.value, "context": dict(self.context)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DataPoint:
        return cls(
            timestamp=float(data["timestamp"]),
            value=float(data["value"]),
            context=dict(data.get("context") or {}),
        )


@dataclass(slots=True)
class EvolutionStage:
    """A labelled span in a pattern's history. Append-only metadata."""

    start_time: float
    end_time: float
    pattern_type: str
    description: str
    confidence: float
    examples: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "start_time": self.start_time,
            "end_time": self.end_time,
            "pattern_type": self.pattern_type,
            "description": self.description,
            "confidence": self.confidence,
            "examples": list(self.examples),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EvolutionStage:
        return cls(
            start_time=float(data["start_time"]),
            end_time=float(data["end_time"]),
            pattern_type=data["pattern_type"],
            description=data.get("description", ""),
            confidence=float(data.get("confidence", 0.0)),
            examples=list(data.get("examples", [])),
        )


@dataclass(slots=True)
class TemporalSeries:
    """Bounded time series for one pattern id.

    ``timeline_data`` is kept in insertion order, which is chronological
    because points are stamped on append.
    """

    pattern_id: str
    timeline_data: list[DataPoint] = field(default_factory=list)
    trend: Trend = Trend.STABLE
    confidence: float = 0.5
    last_analysis: float = 0.0
    evolution_stages: list[EvolutionStage] = field(default_factory=list)

    def prune_before(self, cutoff: float) -> int:
        """Drop points older than ``cutoff``. Returns how many were removed."""
        before = len(self.timeline_data)
        self.timeline_data = [dp for dp in self.timeline_data if dp.timestamp >= cutoff]
        return before - len(self.timeline_data)

    def to_dict(self) -> dict[str, Any]:
        return {
            "pattern_id": self.pattern_id,
            "timeline_data": [dp.to_dict() for dp in self.timeline_data],
            "trend": str(self.trend),
            "confidence": self.confidence,
            "last_analysis": self.last_analysis,
            "evolution_stages": [s.to_dict() for s in self.evolution_stages],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TemporalSeries:
        return cls(
            pattern_id=data["pattern_id"],
            timeline_data=[DataPoint.from_dict(dp) for dp in data.get("timeline_data", [])],
            trend=Trend(data.get("trend", Trend.STABLE)),
            confidence=float(data.get("confidence", 0.5)),
            last_analysis=float(data.get("last_analysis", 0.0)),
            evolution_stages=[
                EvolutionStage.from_dict(s) for s in data.get("evolution_stages", [])
            ],
        )


# ---------------------------------------------------------------------------
# Feedback input
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FeedbackContext:
    language: str
    suggestion_text: str
    file_name: str = ""
    line_number: int = 0
    code_context: str = ""


@dataclass(frozen=True, slots=True)
class FeedbackRecord:
    """A single accept/reject/ignore event reported by the editor.

    ``action`` is kept as a plain string so actions this engine does not
    know about pass through untouched.
    """

    timestamp: float
    action: str
    context: FeedbackContext
    suggestion_id: str = ""
    suggestion_type: str = ""
    user_reason: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FeedbackRecord:
        """Build from either snake_case or the editor's camelCase keys."""
        ctx = data.get("context") or {}
        return cls(
            timestamp=float(data["timestamp"]),
            action=str(data["action"]),
            context=FeedbackContext(
                language=ctx.get("language", "unknown"),
                suggestion_text=ctx.get("suggestion_text", ctx.get("suggestionText", "")),
                file_name=ctx.get("file_name", ctx.get("fileName", "")),
                line_number=int(ctx.get("line_number", ctx.get("lineNumber", 0))),
                code_context=ctx.get("code_context", ctx.get("codeContext", "")),
            ),
            suggestion_id=data.get("suggestion_id", data.get("suggestionId", "")),
            suggestion_type=data.get("suggestion_type", data.get("suggestionType", "")),
            user_reason=data.get("user_reason", data.get("userReason")),
        )


@dataclass(frozen=True, slots=True)
class PatternObservation:
    """A feedback record reduced to the pattern label it exercised."""

    timestamp: float
    pattern: str
    action: str
    suggestion: str


# ---------------------------------------------------------------------------
# Habit changes
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Transition:
    """Candidate shift from one pattern label to another between windows."""

    from_pattern: str
    to_pattern: str
    confidence: float


@dataclass(frozen=True, slots=True)
class HabitEvidence:
    old_usage_count: int
    new_usage_count: int
    transition_period_days: float
    confirmation_events: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "old_usage_count": self.old_usage_count,
            "new_usage_count": self.new_usage_count,
            "transition_period_days": self.transition_period_days,
            "confirmation_events": self.confirmation_events,
        }

    def to_editor_dict(self) -> dict[str, Any]:
        return {
            "oldUsageCount": self.old_usage_count,
            "newUsageCount": self.new_usage_count,
            "transitionPeriodDays": self.transition_period_days,
            "confirmationEvents": self.confirmation_events,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HabitEvidence:
        return cls(
            old_usage_count=int(data.get("old_usage_count", 0)),
            new_usage_count=int(data.get("new_usage_count", 0)),
            transition_period_days=float(data.get("transition_period_days", 0.0)),
            confirmation_events=int(data.get("confirmation_events", 0)),
        )


@dataclass(frozen=True, slots=True)
class CodingHabitChange:
    """A detected, evidenced shift in which construct a developer prefers."""

    change_id: str
    timestamp: float
    change_type: ChangeType
    language: str
    old_pattern: str
    new_pattern: str
    confidence: float
    evidence: HabitEvidence

    def to_dict(self) -> dict[str, Any]:
        return {
            "change_id": self.change_id,
            "timestamp": self.timestamp,
            "change_type": str(self.change_type),
            "language": self.language,
            "old_pattern": self.old_pattern,
            "new_pattern": self.new_pattern,
            "confidence": self.confidence,
            "evidence": self.evidence.to_dict(),
        }

    def to_editor_dict(self) -> dict[str, Any]:
        """camelCase shape used in the editor-facing insight report."""
        return {
            "changeId": self.change_id,
            "timestamp": self.timestamp,
            "changeType": str(self.change_type),
            "language": self.language,
            "oldPattern": self.old_pattern,
            "newPattern": self.new_pattern,
            "confidence": self.confidence,
            "evidence": self.evidence.to_editor_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CodingHabitChange:
        return cls(
            change_id=data["change_id"],
            timestamp=float(data["timestamp"]),
            change_type=ChangeType(data["change_type"]),
            language=data["language"],
            old_pattern=data["old_pattern"],
            new_pattern=data["new_pattern"],
            confidence=float(data["confidence"]),
            evidence=HabitEvidence.from_dict(data.get("evidence") or {}),
        )


# ---------------------------------------------------------------------------
# Insight report
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class TrendingPattern:
    pattern_id: str
    trend: Trend
    confidence: float


@dataclass(slots=True)
class TemporalInsights:
    """Aggregated report handed back to the editor."""

    evolution_summary: list[str] = field(default_factory=list)
    trending_patterns: list[TrendingPattern] = field(default_factory=list)
    recent_changes: list[CodingHabitChange] = field(default_factory=list)
    cyclical_patterns: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Editor-facing shape. All keys are camelCase."""
        return {
            "evolutionSummary": list(self.evolution_summary),
            "trendingPatterns": [
                {"patternId": t.pattern_id, "trend": str(t.trend), "confidence": t.confidence}
                for t in self.trending_patterns
            ],
            "recentChanges": [c.to_editor_dict() for c in self.recent_changes],
            "cyclicalPatterns": list(self.cyclical_patterns),
        }


def _bucket(raw: Any, size: int) -> int | None:
    if isinstance(raw, bool) or not isinstance(raw, int | float):
        return None
    idx = int(raw)
    return idx if 0 <= idx < size else None
