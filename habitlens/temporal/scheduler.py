"""Scheduler adapter: periodic trend recomputation.

Runs one analysis pass shortly after startup and then on a fixed
interval. The loop lives in a single asyncio task owned by the
scheduler; ``stop()`` cancels it so nothing touches engine state after
teardown.
"""

from __future__ import annotations

import asyncio
import contextlib

from loguru import logger

from habitlens.config.schema import SchedulerConfig
from habitlens.observe.metrics import MetricsCollector, get_metrics
from habitlens.temporal.engine import TemporalEngine


class AnalysisScheduler:
    """Owns the background task that drives ``perform_temporal_analysis``."""

    def __init__(
        self,
        engine: TemporalEngine,
        config: SchedulerConfig | None = None,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self._engine = engine
        self._config = config or SchedulerConfig()
        self._metrics = metrics or get_metrics()
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Spawn the analysis loop. Must be called from a running event loop."""
        if not self._config.enabled:
            logger.debug("Analysis scheduler disabled")
            return
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name="temporal-analysis")
        logger.info(
            "Analysis scheduler started (first run in {}s, then every {}h)",
            self._config.initial_delay_seconds,
            self._config.interval_hours,
        )

    async def stop(self) -> None:
        """Cancel the pending run and wait for the task to finish."""
        if self._task and not self._task.done():
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
        self._task = None
        logger.debug("Analysis scheduler stopped")

    async def run_once(self) -> bool:
        """Run a single pass. Failures are logged and counted, not raised."""
        try:
            await self._engine.perform_temporal_analysis()
        except Exception as exc:
            self._metrics.record_analysis_failure()
            logger.error("Temporal analysis pass failed: {}", exc)
            return False
        return True

    async def _loop(self) -> None:
        await asyncio.sleep(self._config.initial_delay_seconds)
        interval = self._config.interval_hours * 3600
        while True:
            await self.run_once()
            await asyncio.sleep(interval)
