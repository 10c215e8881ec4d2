"""
In-process scheduler for the periodic jobs.

A timer task puts due jobs on a queue; a worker task runs them one at a
time. Jobs are plain coroutine functions, so the processors stay callable
without the scheduler.
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Dict, Optional, List

logger = logging.getLogger(__name__)


def next_weekly(now: datetime, weekday: int, hour: int) -> datetime:
    """Next occurrence of weekday (Monday=0) at hour:00, strictly after now."""
    candidate = now.replace(hour=hour, minute=0, second=0, microsecond=0)
    candidate += timedelta(days=(weekday - now.weekday()) % 7)
    if candidate <= now:
        candidate += timedelta(days=7)
    return candidate


def next_monthly(now: datetime, day: int, hour: int = 0) -> datetime:
    """Next occurrence of the given day of month at hour:00, strictly after now."""
    candidate = now.replace(day=day, hour=hour, minute=0, second=0, microsecond=0)
    if candidate <= now:
        year, month = (now.year + 1, 1) if now.month == 12 else (now.year, now.month + 1)
        candidate = candidate.replace(year=year, month=month)
    return candidate


@dataclass
class Job:
    name: str
    action: Callable[[], Awaitable[object]]
    next_run: Callable[[datetime], datetime]
    due_at: Optional[datetime] = None
    last_run_at: Optional[datetime] = None


class Scheduler:
    """Timer plus job queue."""

    def __init__(self, clock: Callable[[], datetime] = datetime.utcnow):
        self.clock = clock
        self.jobs: Dict[str, Job] = {}
        self.queue: "asyncio.Queue[str]" = asyncio.Queue()
        self._tasks: List[asyncio.Task] = []

    def add_job(self, name: str, action: Callable[[], Awaitable[object]], next_run: Callable[[datetime], datetime]) -> Job:
        job = Job(name=name, action=action, next_run=next_run)
        job.due_at = next_run(self.clock())
        self.jobs[name] = job
        logger.info(f"Scheduled job '{name}', first run at {job.due_at:%Y-%m-%d %H:%M} UTC")
        return job

    async def trigger(self, name: str) -> None:
        """Queue a job to run now."""
        if name not in self.jobs:
            raise KeyError(name)
        await self.queue.put(name)

    async def run_job(self, name: str) -> object:
        """Run one job inline; errors are logged and swallowed."""
        job = self.jobs[name]
        started = self.clock()
        logger.info(f"Running job '{name}'")
        try:
            result = await job.action()
        except Exception:
            logger.exception(f"Job '{name}' failed")
            result = None
        job.last_run_at = started
        return result

    def start(self) -> None:
        if self._tasks:
            return
        self._tasks = [
            asyncio.create_task(self._timer(), name="scheduler-timer"),
            asyncio.create_task(self._worker(), name="scheduler-worker"),
        ]

    async def stop(self) -> None:
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []

    async def _timer(self) -> None:
        while True:
            now = self.clock()
            due = [job for job in self.jobs.values() if job.due_at and job.due_at <= now]
            for job in due:
                await self.queue.put(job.name)
                job.due_at = job.next_run(now)

            upcoming = [job.due_at for job in self.jobs.values() if job.due_at]
            delay = min((d - now).total_seconds() for d in upcoming) if upcoming else 60.0
            # Wake at least once a minute so clock changes are noticed
            await asyncio.sleep(max(1.0, min(delay, 60.0)))

    async def _worker(self) -> None:
        while True:
            name = await self.queue.get()
            try:
                await self.run_job(name)
            finally:
                self.queue.task_done()
