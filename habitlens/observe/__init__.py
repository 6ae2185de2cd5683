"""Observability counters for habitlens."""

from habitlens.observe.metrics import MetricsCollector, MetricsSnapshot, get_metrics

__all__ = ["MetricsCollector", "MetricsSnapshot", "get_metrics"]
