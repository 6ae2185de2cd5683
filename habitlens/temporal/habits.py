"""Habit change detection over feedback history.

For every language and pattern type, relevant feedback is labelled,
windowed, and adjacent windows are compared. The strongest transition
between each window pair becomes a ``CodingHabitChange``. Detected
changes accumulate in memory, are pruned to a retention window on every
pass, and are checkpointed to the durable state store.
"""

from __future__ import annotations

import threading
import time
import uuid
from collections.abc import Callable, Iterable, Sequence
from typing import Any

from loguru import logger

from habitlens.config.schema import HabitsConfig
from habitlens.observe.metrics import MetricsCollector, get_metrics
from habitlens.state.checkpoint import Checkpointer
from habitlens.state.store import StateStore
from habitlens.temporal.classifier import (
    PATTERN_TYPES,
    UNKNOWN_PATTERN,
    KeywordPatternClassifier,
    PatternClassifier,
)
from habitlens.temporal.models import (
    SECONDS_PER_DAY,
    ChangeType,
    CodingHabitChange,
    FeedbackRecord,
    HabitEvidence,
    PatternObservation,
    Transition,
)
from habitlens.temporal.windows import (
    calculate_pattern_distribution,
    create_time_windows,
    find_significant_changes,
)

STATE_KEY = "habit-changes"
STATE_VERSION = 1


class HabitChangeDetector:
    """Produces and retains the collection of detected habit changes."""

    def __init__(
        self,
        state: StateStore,
        config: HabitsConfig | None = None,
        *,
        classifier: PatternClassifier | None = None,
        clock: Callable[[], float] = time.time,
        lock: threading.RLock | None = None,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self._config = config or HabitsConfig()
        self._classifier = classifier or KeywordPatternClassifier()
        self._clock = clock
        self._lock = lock or threading.RLock()
        self._metrics = metrics or get_metrics()
        self._state = state
        self._changes: list[CodingHabitChange] = []
        self._checkpoint = Checkpointer(state, STATE_KEY, self.snapshot, self._metrics)

    @property
    def changes(self) -> tuple[CodingHabitChange, ...]:
        with self._lock:
            return tuple(self._changes)

    async def load(self) -> None:
        """Restore persisted changes. Any failure leaves the collection empty."""
        try:
            blob = await self._state.get(STATE_KEY)
            changes = _decode(blob)
        except Exception as exc:
            logger.warning("Could not load habit changes, starting empty: {}", exc)
            changes = []
        with self._lock:
            self._changes = changes
        logger.debug("Loaded {} habit changes", len(changes))

    async def analyze_habit_evolution(
        self,
        feedback_history: Iterable[FeedbackRecord],
    ) -> list[CodingHabitChange]:
        """Detect habit changes in ``feedback_history`` and retain them."""
        detected: list[CodingHabitChange] = []
        for language, feedback in _group_by_language(feedback_history).items():
            feedback.sort(key=lambda f: f.timestamp)
            for pattern_type in PATTERN_TYPES:
                detected.extend(self._analyze_pattern_type(language, pattern_type, feedback))

        cutoff = self._clock() - self._config.retention_days * SECONDS_PER_DAY
        with self._lock:
            self._changes.extend(detected)
            self._changes = [c for c in self._changes if c.timestamp >= cutoff]
            self._checkpoint.schedule()

        self._metrics.record_habit_changes(len(detected))
        if detected:
            logger.info("Detected {} coding habit change(s)", len(detected))
        return detected

    async def flush(self) -> bool:
        return await self._checkpoint.flush()

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            return {
                "version": STATE_VERSION,
                "changes": [c.to_dict() for c in self._changes],
            }

    # -- Detection steps --

    def _analyze_pattern_type(
        self,
        language: str,
        pattern_type: str,
        feedback: Sequence[FeedbackRecord],
    ) -> list[CodingHabitChange]:
        observations = self.extract_observations(feedback, pattern_type)
        if len(observations) < self._config.min_data_points:
            return []

        windows = create_time_windows(observations, self._config.window_size_days)
        changes: list[CodingHabitChange] = []
        for prev_window, current_window in zip(windows, windows[1:]):
            change = self._detect_transition(language, prev_window, current_window)
            if change is not None:
                changes.append(change)
        return changes

    def extract_observations(
        self,
        feedback: Sequence[FeedbackRecord],
        pattern_type: str,
    ) -> list[PatternObservation]:
        """Reduce feedback relevant to ``pattern_type`` to labelled observations."""
        return [
            PatternObservation(
                timestamp=f.timestamp,
                pattern=self._classifier.classify(f.context.suggestion_text, pattern_type),
                action=f.action,
                suggestion=f.context.suggestion_text,
            )
            for f in feedback
            if self._classifier.is_relevant(f.context.suggestion_text, pattern_type)
        ]

    def _detect_transition(
        self,
        language: str,
        prev_window: Sequence[PatternObservation],
        current_window: Sequence[PatternObservation],
    ) -> CodingHabitChange | None:
        prev_dist = calculate_pattern_distribution(prev_window)
        current_dist = calculate_pattern_distribution(current_window)
        candidates = find_significant_changes(
            prev_dist,
            current_dist,
            threshold=self._config.significance_threshold,
            increase_ratio=self._config.increase_ratio,
        )
        if not candidates:
            return None

        top = candidates[0]
        return CodingHabitChange(
            change_id=f"change_{uuid.uuid4().hex[:12]}",
            timestamp=current_window[0].timestamp,
            change_type=self.determine_change_type(top),
            language=language,
            old_pattern=top.from_pattern,
            new_pattern=top.to_pattern,
            confidence=top.confidence,
            evidence=HabitEvidence(
                old_usage_count=prev_dist.get(top.from_pattern, 0),
                new_usage_count=current_dist.get(top.to_pattern, 0),
                transition_period_days=_transition_period_days(prev_window, current_window),
                confirmation_events=min(len(prev_window), len(current_window)),
            ),
        )

    def determine_change_type(self, transition: Transition) -> ChangeType:
        if transition.confidence > self._config.preference_shift_confidence:
            return ChangeType.PREFERENCE_SHIFT
        if transition.confidence > self._config.style_evolution_confidence:
            return ChangeType.STYLE_EVOLUTION
        if transition.from_pattern == UNKNOWN_PATTERN:
            return ChangeType.NEW_ADOPTION
        if transition.to_pattern == UNKNOWN_PATTERN:
            return ChangeType.ABANDONMENT
        return ChangeType.PREFERENCE_SHIFT


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _group_by_language(feedback: Iterable[FeedbackRecord]) -> dict[str, list[FeedbackRecord]]:
    groups: dict[str, list[FeedbackRecord]] = {}
    for record in feedback:
        groups.setdefault(record.context.language, []).append(record)
    return groups


def _transition_period_days(
    prev_window: Sequence[PatternObservation],
    current_window: Sequence[PatternObservation],
) -> float:
    if not prev_window or not current_window:
        return 0.0
    prev_end = max(o.timestamp for o in prev_window)
    current_start = min(o.timestamp for o in current_window)
    return max(0.0, current_start - prev_end) / SECONDS_PER_DAY


def _decode(blob: Any) -> list[CodingHabitChange]:
    if blob is None:
        return []
    if not isinstance(blob, dict) or blob.get("version") != STATE_VERSION:
        logger.warning("Discarding habit change state with unsupported layout")
        return []
    return [CodingHabitChange.from_dict(raw) for raw in blob.get("changes", [])]
