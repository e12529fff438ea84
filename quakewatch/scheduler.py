"""Periodic driver for the ingestion pipeline.

Runs a tick as soon as the scheduler starts and then every polling
interval. Ticks never overlap: two overlapping ticks could both miss the
same earthquake in the store and insert it twice.
"""

import logging
import threading
from datetime import datetime, timezone

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.base import BaseScheduler
from apscheduler.triggers.interval import IntervalTrigger

from quakewatch.orchestrator import IngestionPipeline, TickResult


logger = logging.getLogger(__name__)


JOB_ID = "ingestion_tick"
DEFAULT_INTERVAL_SECONDS = 120


class TickScheduler:
    """Fires IngestionPipeline ticks on a fixed period, one at a time."""

    def __init__(
        self,
        pipeline: IngestionPipeline,
        interval_seconds: int = DEFAULT_INTERVAL_SECONDS,
        scheduler: BaseScheduler | None = None,
    ) -> None:
        """Initialize the scheduler.

        Args:
            pipeline: Pipeline to run on each tick
            interval_seconds: Seconds between scheduled ticks
            scheduler: APScheduler instance (BackgroundScheduler if not provided)
        """
        self.pipeline = pipeline
        self.interval_seconds = interval_seconds
        self.scheduler = scheduler or BackgroundScheduler(timezone=timezone.utc)
        self.skipped_ticks = 0
        self.last_result: TickResult | None = None
        self._gate = threading.Lock()

    @property
    def is_running_tick(self) -> bool:
        return self._gate.locked()

    def _run_tick(self) -> TickResult | None:
        try:
            result = self.pipeline.process()
        except Exception:
            # Keep the schedule alive; the next tick starts fresh
            logger.exception("Ingestion tick failed unexpectedly")
            return None

        self.last_result = result
        return result

    def tick(self) -> TickResult | None:
        """Run a scheduled tick unless one is already in flight.

        Returns:
            The tick result, or None if the tick was skipped or crashed
        """
        if not self._gate.acquire(blocking=False):
            self.skipped_ticks += 1
            logger.warning("Previous tick still running, skipping this one")
            return None

        try:
            return self._run_tick()
        finally:
            self._gate.release()

    def run_once(self) -> int:
        """Run a tick now and return the total number of stored earthquakes.

        Waits for any in-flight tick first.

        Raises:
            PersistError: If the count query fails
        """
        logger.info("Manual USGS check triggered")
        with self._gate:
            return self.pipeline.run_once()

    def start(self) -> None:
        """Schedule ticks: one immediately, then every interval.

        Blocks if the underlying scheduler is a BlockingScheduler.
        """
        self.scheduler.add_job(
            self.tick,
            trigger=IntervalTrigger(seconds=self.interval_seconds),
            id=JOB_ID,
            replace_existing=True,
            next_run_time=datetime.now(timezone.utc),
            max_instances=1,
            coalesce=True,
        )
        logger.info("USGS monitoring active, polling every %ds", self.interval_seconds)
        self.scheduler.start()

    def shutdown(self, wait: bool = True) -> None:
        """Stop scheduling new ticks."""
        self.scheduler.shutdown(wait=wait)
        logger.info("Scheduler stopped")
