"""Tests for the TemporalEngine facade."""

from __future__ import annotations

import asyncio
import threading

import pytest

from habitlens.config.schema import HabitLensConfig
from habitlens.state.store import JsonFileStateStore
from habitlens.temporal.engine import TemporalEngine
from habitlens.temporal.habits import STATE_KEY as HABITS_KEY
from habitlens.temporal.models import FeedbackContext, FeedbackRecord, Trend
from habitlens.temporal.series_store import STATE_KEY as SERIES_KEY

DAY = 24 * 60 * 60
HOUR = 60 * 60


def _tick(clock, start: float, i: int) -> None:
    """Move to day i, hour i % 24 so weekday and hour rotate evenly."""
    clock.now = start + i * DAY + (i % 24) * HOUR


def _feedback(ts: float, text: str) -> FeedbackRecord:
    return FeedbackRecord(
        timestamp=ts,
        action="accept",
        context=FeedbackContext(language="javascript", suggestion_text=text),
    )


class TestAnalyzeTrend:
    def test_unknown_pattern_is_stable(self, engine):
        assert engine.analyze_trend("never_seen") == Trend.STABLE

    def test_too_few_points_is_stable(self, engine, clock):
        start = clock.now
        for i in range(4):
            _tick(clock, start, i)
            engine.record_data_point("p", float(i * 10))
        assert engine.analyze_trend("p") == Trend.STABLE

    def test_increasing(self, engine, clock):
        start = clock.now
        for i in range(30):
            _tick(clock, start, i)
            engine.record_data_point("p", float(i))
        assert engine.analyze_trend("p") == Trend.INCREASING

    def test_does_not_touch_cached_trend(self, engine, clock):
        start = clock.now
        for i in range(30):
            _tick(clock, start, i)
            engine.record_data_point("p", float(i))
        engine.analyze_trend("p")
        assert engine.series.get("p").trend == Trend.STABLE


class TestPerformTemporalAnalysis:
    @pytest.mark.asyncio
    async def test_updates_every_series(self, engine, clock, metrics):
        start = clock.now
        for i in range(30):
            _tick(clock, start, i)
            engine.record_data_point("up", float(i))
            engine.record_data_point("down", float(29 - i))

        assert await engine.perform_temporal_analysis() == 2
        up = engine.series.get("up")
        down = engine.series.get("down")
        assert up.trend == Trend.INCREASING
        assert down.trend == Trend.DECREASING
        assert up.last_analysis == clock.now
        assert down.last_analysis == clock.now
        assert metrics.snapshot().analysis_runs == 1

    @pytest.mark.asyncio
    async def test_persists_reclassified_trends(self, engine, state, clock):
        start = clock.now
        for i in range(30):
            _tick(clock, start, i)
            engine.record_data_point("up", float(i))
        await engine.perform_temporal_analysis()

        blob = await state.get(SERIES_KEY)
        assert blob["series"]["up"]["trend"] == "increasing"
        assert blob["series"]["up"]["last_analysis"] == clock.now

    @pytest.mark.asyncio
    async def test_empty_store(self, engine, metrics):
        assert await engine.perform_temporal_analysis() == 0
        assert metrics.snapshot().analysis_runs == 1


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_state_survives_restart(self, state, config, clock, metrics):
        engine = TemporalEngine(state, config, clock=clock, metrics=metrics)
        engine.record_data_point("p", 1.0, {"language": "go"})
        start = clock.now - 40 * DAY
        feedback = [_feedback(start + i * DAY, "var x = 1") for i in range(8)]
        feedback += [_feedback(start + (14 + i) * DAY, "let x = 1") for i in range(8)]
        changes = await engine.analyze_habit_evolution(feedback)
        assert await engine.flush() is True

        restarted = TemporalEngine(state, config, clock=clock, metrics=metrics)
        await restarted.load()
        assert restarted.series.get("p").timeline_data[0].context["language"] == "go"
        assert list(restarted.detector.changes) == changes

    @pytest.mark.asyncio
    async def test_from_config_uses_state_dir(self, tmp_path, clock, metrics):
        config = HabitLensConfig(storage={"state_dir": str(tmp_path / "state")})
        engine = TemporalEngine.from_config(config, clock=clock, metrics=metrics)
        engine.record_data_point("p", 2.0)
        await engine.flush()

        assert (tmp_path / "state" / f"{SERIES_KEY}.json").exists()
        restarted = TemporalEngine(
            JsonFileStateStore(tmp_path / "state"), config, clock=clock, metrics=metrics
        )
        await restarted.load()
        assert len(restarted.series) == 1

    @pytest.mark.asyncio
    async def test_load_with_nothing_persisted(self, engine, state):
        await engine.load()
        assert len(engine.series) == 0
        assert engine.detector.changes == ()
        assert await state.get(HABITS_KEY) is None

    def test_concurrent_recording(self, engine):
        def record(pattern_id):
            for i in range(200):
                engine.record_data_point(pattern_id, float(i))

        threads = [threading.Thread(target=record, args=(f"p{n}",)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert engine.series.pattern_ids() == ["p0", "p1", "p2", "p3"]
        assert all(len(engine.series.get(f"p{n}").timeline_data) == 200 for n in range(4))


class TestSynchronousHost:
    def test_records_persist_without_event_loop(self, state, config, clock, metrics):
        engine = TemporalEngine(state, config, clock=clock, metrics=metrics)
        for i in range(50):
            engine.record_data_point("p", float(i))

        assert asyncio.run(engine.flush()) is True
        blob = asyncio.run(state.get(SERIES_KEY))
        assert len(blob["series"]["p"]["timeline_data"]) == 50
        assert metrics.snapshot().persist_failures == 0
