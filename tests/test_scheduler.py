"""
Tests for the periodic job scheduler.
"""
import asyncio
from datetime import datetime

import pytest

from leadscout.services.scheduler import Scheduler, next_weekly, next_monthly

NOW = datetime(2026, 10, 19, 10, 0)  # a Monday


class TestNextRun:
    def test_next_weekly(self):
        assert next_weekly(NOW, weekday=4, hour=9) == datetime(2026, 10, 23, 9, 0)
        assert next_weekly(datetime(2026, 10, 23, 8, 0), 4, 9) == datetime(2026, 10, 23, 9, 0)
        assert next_weekly(datetime(2026, 10, 23, 9, 0), 4, 9) == datetime(2026, 10, 30, 9, 0)

    def test_next_monthly(self):
        assert next_monthly(NOW, day=1) == datetime(2026, 11, 1, 0, 0)
        assert next_monthly(datetime(2026, 12, 15), 1) == datetime(2027, 1, 1, 0, 0)
        assert next_monthly(datetime(2026, 11, 1, 0, 0), 1) == datetime(2026, 12, 1, 0, 0)


class TestScheduler:
    async def test_add_job_computes_first_run(self):
        scheduler = Scheduler(clock=lambda: NOW)
        job = scheduler.add_job("payouts", _noop, lambda now: next_weekly(now, 4, 9))
        assert job.due_at == datetime(2026, 10, 23, 9, 0)

    async def test_run_job_swallows_errors(self):
        async def broken():
            raise RuntimeError("boom")

        scheduler = Scheduler(clock=lambda: NOW)
        scheduler.add_job("broken", broken, lambda now: now)
        assert await scheduler.run_job("broken") is None
        assert scheduler.jobs["broken"].last_run_at == NOW

    async def test_triggered_job_runs_on_worker(self):
        done = asyncio.Event()

        async def action():
            done.set()

        scheduler = Scheduler(clock=lambda: NOW)
        scheduler.add_job("renewal", action, lambda now: next_monthly(now, 1))
        scheduler.start()
        try:
            await scheduler.trigger("renewal")
            await asyncio.wait_for(done.wait(), timeout=2)
        finally:
            await scheduler.stop()

    async def test_due_job_is_queued_by_timer(self):
        done = asyncio.Event()

        async def action():
            done.set()

        scheduler = Scheduler(clock=lambda: NOW)
        scheduler.add_job("payouts", action, lambda now: now)
        scheduler.start()
        try:
            await asyncio.wait_for(done.wait(), timeout=2)
        finally:
            await scheduler.stop()

    async def test_unknown_job(self):
        with pytest.raises(KeyError):
            await Scheduler().trigger("nope")


async def _noop():
    return None
