"""Tests for the in-memory metrics collector."""

from __future__ import annotations

import threading

from habitlens.observe.metrics import MetricsCollector, get_metrics


def test_fresh_collector_is_zero():
    snap = MetricsCollector().snapshot()
    assert snap.data_points_recorded == 0
    assert snap.habit_changes_detected == 0
    assert snap.analysis_runs == 0
    assert snap.persist_failures == 0


def test_counters():
    m = MetricsCollector()
    m.record_data_point()
    m.record_data_point()
    m.record_habit_changes(3)
    m.record_analysis_run()
    m.record_analysis_failure()
    m.record_persist_write()
    m.record_persist_failure()

    snap = m.snapshot()
    assert snap.data_points_recorded == 2
    assert snap.habit_changes_detected == 3
    assert snap.analysis_runs == 1
    assert snap.analysis_failures == 1
    assert snap.persist_writes == 1
    assert snap.persist_failures == 1


def test_snapshot_is_frozen_copy():
    m = MetricsCollector()
    snap = m.snapshot()
    m.record_data_point()
    assert snap.data_points_recorded == 0


def test_reset():
    m = MetricsCollector()
    m.record_persist_failure()
    m.reset()
    assert m.snapshot().persist_failures == 0


def test_to_dict_keys():
    data = MetricsCollector().snapshot().to_dict()
    assert set(data) == {
        "data_points_recorded",
        "habit_changes_detected",
        "analysis_runs",
        "analysis_failures",
        "persist_writes",
        "persist_failures",
        "uptime_seconds",
    }


def test_thread_safety():
    m = MetricsCollector()

    def bump():
        for _ in range(1000):
            m.record_data_point()

    threads = [threading.Thread(target=bump) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert m.snapshot().data_points_recorded == 8000


def test_global_collector_is_shared():
    assert get_metrics() is get_metrics()
