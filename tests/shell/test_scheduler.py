"""Tests for the periodic tick scheduler.

The APScheduler instance is a mock; ticks are invoked directly.
"""

import threading
from unittest.mock import Mock

import pytest
from apscheduler.triggers.interval import IntervalTrigger

from quakewatch.orchestrator import TickResult
from quakewatch.scheduler import JOB_ID, TickScheduler


@pytest.fixture
def pipeline():
    mock = Mock()
    mock.process.return_value = TickResult(earthquakes_new=1)
    mock.run_once.return_value = 7
    return mock


@pytest.fixture
def scheduler(pipeline):
    return TickScheduler(pipeline, interval_seconds=120, scheduler=Mock())


def blocking_process(started: threading.Event, release: threading.Event):
    def process():
        started.set()
        release.wait(timeout=5)
        return TickResult()
    return process


class TestTick:
    """Tests for TickScheduler.tick()."""

    def test_runs_pipeline(self, scheduler, pipeline):
        result = scheduler.tick()

        assert result.earthquakes_new == 1
        assert scheduler.last_result is result
        pipeline.process.assert_called_once()

    def test_skips_while_tick_in_flight(self, scheduler, pipeline):
        started, release = threading.Event(), threading.Event()
        pipeline.process.side_effect = blocking_process(started, release)

        worker = threading.Thread(target=scheduler.tick)
        worker.start()
        assert started.wait(timeout=5)

        assert scheduler.is_running_tick
        assert scheduler.tick() is None
        assert scheduler.skipped_ticks == 1

        release.set()
        worker.join(timeout=5)

        assert pipeline.process.call_count == 1
        assert not scheduler.is_running_tick

    def test_exception_does_not_stop_schedule(self, scheduler, pipeline):
        pipeline.process.side_effect = [RuntimeError("boom"), TickResult(earthquakes_new=2)]

        assert scheduler.tick() is None
        assert not scheduler.is_running_tick
        assert scheduler.tick().earthquakes_new == 2


class TestManualRuns:
    """Tests for run_once()."""

    def test_run_once_waits_for_in_flight_tick(self, scheduler, pipeline):
        started, release = threading.Event(), threading.Event()
        pipeline.process.side_effect = blocking_process(started, release)

        worker = threading.Thread(target=scheduler.tick)
        worker.start()
        assert started.wait(timeout=5)

        manual_done = threading.Event()

        def manual():
            scheduler.run_once()
            manual_done.set()

        manual_thread = threading.Thread(target=manual)
        manual_thread.start()

        assert not manual_done.wait(timeout=0.2)

        release.set()
        worker.join(timeout=5)
        manual_thread.join(timeout=5)

        assert manual_done.is_set()
        assert pipeline.process.call_count == 1
        pipeline.run_once.assert_called_once()
        assert scheduler.skipped_ticks == 0

    def test_run_once_returns_total(self, scheduler, pipeline):
        assert scheduler.run_once() == 7
        pipeline.run_once.assert_called_once()


class TestStart:
    """Tests for start() and shutdown()."""

    def test_registers_single_instance_interval_job(self, scheduler):
        scheduler.start()

        aps = scheduler.scheduler
        aps.add_job.assert_called_once()
        args, kwargs = aps.add_job.call_args
        assert args[0] == scheduler.tick
        assert isinstance(kwargs["trigger"], IntervalTrigger)
        assert kwargs["trigger"].interval.total_seconds() == 120
        assert kwargs["id"] == JOB_ID
        assert kwargs["max_instances"] == 1
        assert kwargs["coalesce"] is True
        assert kwargs["next_run_time"] is not None
        aps.start.assert_called_once()

    def test_shutdown(self, scheduler):
        scheduler.shutdown(wait=False)

        scheduler.scheduler.shutdown.assert_called_once_with(wait=False)
