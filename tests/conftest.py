"""Shared test fixtures for the habitlens test suite.

The _isolate_config fixture (autouse) prevents HabitLensConfig from reading
the user's real ~/.habitlens/config.json during tests.

Time-dependent components take an injectable clock; the ``clock`` fixture
starts at local midnight on Sunday 2026-01-04 so weekday/hour stamping is
predictable.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest

from habitlens.config.schema import HabitLensConfig
from habitlens.observe.metrics import MetricsCollector
from habitlens.state.store import MemoryStateStore
from habitlens.temporal.engine import TemporalEngine


class FakeClock:
    """Manually advanced replacement for time.time."""

    def __init__(self, start: float) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def _isolate_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Point HabitLensConfig's json_file at an empty temp file for every test."""
    config_dir = tmp_path / "_config"
    config_dir.mkdir()
    empty_config = config_dir / "habitlens_test_config.json"
    empty_config.write_text("{}", encoding="utf-8")
    monkeypatch.setitem(HabitLensConfig.model_config, "json_file", empty_config)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 1, 4, 0, 0).timestamp())


@pytest.fixture
def state() -> MemoryStateStore:
    return MemoryStateStore()


@pytest.fixture
def metrics() -> MetricsCollector:
    return MetricsCollector()


@pytest.fixture
def config() -> HabitLensConfig:
    return HabitLensConfig()


@pytest.fixture
def engine(
    state: MemoryStateStore,
    config: HabitLensConfig,
    clock: FakeClock,
    metrics: MetricsCollector,
) -> TemporalEngine:
    return TemporalEngine(state, config, clock=clock, metrics=metrics)
