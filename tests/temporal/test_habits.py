"""Tests for habit change detection across languages and pattern types."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from habitlens.config.schema import HabitsConfig
from habitlens.state.store import MemoryStateStore
from habitlens.temporal.habits import STATE_KEY, HabitChangeDetector
from habitlens.temporal.models import (
    ChangeType,
    FeedbackContext,
    FeedbackRecord,
    Transition,
)

DAY = 24 * 60 * 60


def _feedback(ts: float, text: str, *, language="javascript", action="accept") -> FeedbackRecord:
    return FeedbackRecord(
        timestamp=ts,
        action=action,
        context=FeedbackContext(language=language, suggestion_text=text),
    )


def _var_to_let(start: float, language: str = "javascript") -> list[FeedbackRecord]:
    """Two 14-day windows: 8 accepted `var` suggestions, then 8 accepted `let`."""
    first = [_feedback(start + i * DAY, "var x = 1", language=language) for i in range(8)]
    second = [
        _feedback(start + (14 + i) * DAY, "let x = 1", language=language) for i in range(8)
    ]
    return first + second


@pytest.fixture
def detector(state, clock, metrics) -> HabitChangeDetector:
    return HabitChangeDetector(state, clock=clock, metrics=metrics)


class TestAnalyzeHabitEvolution:
    @pytest.mark.asyncio
    async def test_var_to_let_scenario(self, detector, clock):
        start = clock.now - 40 * DAY
        changes = await detector.analyze_habit_evolution(_var_to_let(start))

        assert len(changes) == 1
        change = changes[0]
        assert change.language == "javascript"
        assert change.old_pattern == "var"
        assert change.new_pattern == "let"
        assert change.change_type in {ChangeType.PREFERENCE_SHIFT, ChangeType.STYLE_EVOLUTION}
        assert change.confidence == pytest.approx(1.0)
        assert change.timestamp == start + 14 * DAY
        assert change.evidence.old_usage_count == 8
        assert change.evidence.new_usage_count == 8
        assert change.evidence.confirmation_events == 8
        assert change.evidence.transition_period_days == pytest.approx(7.0)
        assert change.change_id.startswith("change_")

    @pytest.mark.asyncio
    async def test_input_order_does_not_matter(self, detector, clock):
        feedback = list(reversed(_var_to_let(clock.now - 40 * DAY)))
        changes = await detector.analyze_habit_evolution(feedback)
        assert [(c.old_pattern, c.new_pattern) for c in changes] == [("var", "let")]

    @pytest.mark.asyncio
    async def test_languages_are_analyzed_separately(self, detector, clock):
        start = clock.now - 40 * DAY
        feedback = _var_to_let(start, "javascript") + _var_to_let(start, "typescript")
        changes = await detector.analyze_habit_evolution(feedback)
        assert sorted(c.language for c in changes) == ["javascript", "typescript"]

    @pytest.mark.asyncio
    async def test_too_few_relevant_records(self, detector, clock):
        start = clock.now - 40 * DAY
        feedback = [
            _feedback(start, "var a = 1"),
            _feedback(start + DAY, "var b = 1"),
            _feedback(start + 20 * DAY, "let c = 1"),
            _feedback(start + 21 * DAY, "let d = 1"),
        ]
        assert await detector.analyze_habit_evolution(feedback) == []

    @pytest.mark.asyncio
    async def test_rejections_do_not_count(self, detector, clock):
        start = clock.now - 40 * DAY
        feedback = [_feedback(start + i * DAY, "var x = 1") for i in range(8)]
        feedback += [
            _feedback(start + (14 + i) * DAY, "let x = 1", action="reject") for i in range(8)
        ]
        assert await detector.analyze_habit_evolution(feedback) == []

    @pytest.mark.asyncio
    async def test_stable_usage_yields_nothing(self, detector, clock):
        start = clock.now - 40 * DAY
        feedback = [_feedback(start + i * 2 * DAY, "const x = 1") for i in range(14)]
        assert await detector.analyze_habit_evolution(feedback) == []

    @pytest.mark.asyncio
    async def test_empty_history(self, detector):
        assert await detector.analyze_habit_evolution([]) == []
        assert detector.changes == ()

    @pytest.mark.asyncio
    async def test_changes_accumulate(self, detector, clock):
        await detector.analyze_habit_evolution(_var_to_let(clock.now - 40 * DAY))
        await detector.analyze_habit_evolution(_var_to_let(clock.now - 40 * DAY, "python"))
        assert len(detector.changes) == 2

    @pytest.mark.asyncio
    async def test_prunes_changes_older_than_retention(self, detector, clock):
        await detector.analyze_habit_evolution(_var_to_let(clock.now - 40 * DAY))
        clock.advance(200 * DAY)
        await detector.analyze_habit_evolution([])
        assert detector.changes == ()

    @pytest.mark.asyncio
    async def test_counts_detected_changes(self, detector, clock, metrics):
        await detector.analyze_habit_evolution(_var_to_let(clock.now - 40 * DAY))
        assert metrics.snapshot().habit_changes_detected == 1

    @pytest.mark.asyncio
    async def test_custom_classifier(self, state, clock, metrics):
        class EverythingIsTabs:
            def is_relevant(self, text, pattern_type):
                return pattern_type == "variable_declaration"

            def classify(self, text, pattern_type):
                return "tabs" if "\t" in text else "spaces"

        detector = HabitChangeDetector(
            state, classifier=EverythingIsTabs(), clock=clock, metrics=metrics
        )
        start = clock.now - 40 * DAY
        feedback = [_feedback(start + i * DAY, "  x") for i in range(6)]
        feedback += [_feedback(start + (14 + i) * DAY, "\tx") for i in range(6)]
        changes = await detector.analyze_habit_evolution(feedback)
        assert [(c.old_pattern, c.new_pattern) for c in changes] == [("spaces", "tabs")]


class TestDetermineChangeType:
    @pytest.fixture
    def detector(self, state) -> HabitChangeDetector:
        return HabitChangeDetector(state)

    @pytest.mark.parametrize(
        ("transition", "expected"),
        [
            (Transition("var", "let", 0.9), ChangeType.PREFERENCE_SHIFT),
            (Transition("var", "let", 0.6), ChangeType.STYLE_EVOLUTION),
            (Transition("unknown", "let", 0.4), ChangeType.NEW_ADOPTION),
            (Transition("var", "unknown", 0.4), ChangeType.ABANDONMENT),
            (Transition("var", "let", 0.4), ChangeType.PREFERENCE_SHIFT),
            (Transition("unknown", "let", 0.8), ChangeType.PREFERENCE_SHIFT),
        ],
    )
    def test_change_type(self, detector, transition, expected):
        assert detector.determine_change_type(transition) == expected


class TestHabitPersistence:
    @pytest.mark.asyncio
    async def test_checkpoint_and_reload(self, detector, state, clock, metrics):
        await detector.analyze_habit_evolution(_var_to_let(clock.now - 40 * DAY))
        await detector.flush()

        blob = await state.get(STATE_KEY)
        assert blob["version"] == 1
        assert len(blob["changes"]) == 1

        restored = HabitChangeDetector(state, clock=clock, metrics=metrics)
        await restored.load()
        assert restored.changes == detector.changes

    @pytest.mark.asyncio
    async def test_load_garbage_starts_empty(self, clock, metrics):
        state = MemoryStateStore({STATE_KEY: "not a mapping"})
        detector = HabitChangeDetector(state, clock=clock, metrics=metrics)
        await detector.load()
        assert detector.changes == ()

    @pytest.mark.asyncio
    async def test_write_failure_does_not_break_detection(self, clock, metrics):
        state = AsyncMock()
        state.set.side_effect = OSError("quota exceeded")
        detector = HabitChangeDetector(state, HabitsConfig(), clock=clock, metrics=metrics)
        changes = await detector.analyze_habit_evolution(_var_to_let(clock.now - 40 * DAY))
        assert len(changes) == 1
        assert await detector.flush() is False
        assert metrics.snapshot().persist_failures == 1
