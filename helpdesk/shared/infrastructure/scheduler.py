"""
Background Scheduling
=====================

Wrappers around APScheduler for periodic work:
- AppScheduler: owns the AsyncIOScheduler for the lifetime of the process
- PeriodicTask: one cancellable interval job with an explicit start/stop
  lifecycle (SLA countdowns, notification polling)
"""

from datetime import datetime, timezone
from typing import Any, Callable, Optional
from uuid import uuid4

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from helpdesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class AppScheduler:
    """
    Wrapper for APScheduler's AsyncIOScheduler.

    Manages the lifecycle of the scheduler; jobs are added through
    PeriodicTask so each owner can cancel its own job.
    """

    def __init__(self):
        self._scheduler: Optional[AsyncIOScheduler] = None
        self._running = False

    async def start(self) -> None:
        """Start the scheduler on the running event loop."""
        if self._running:
            logger.warning("Scheduler already running")
            return

        self._scheduler = AsyncIOScheduler(timezone=timezone.utc)
        self._scheduler.start()
        self._running = True
        logger.info("Scheduler started")

    async def stop(self) -> None:
        """Stop the scheduler and drop every pending job."""
        if not self._running:
            return

        if self._scheduler:
            self._scheduler.shutdown(wait=False)

        self._scheduler = None
        self._running = False
        logger.info("Scheduler stopped")

    @property
    def scheduler(self) -> AsyncIOScheduler:
        """The underlying APScheduler instance."""
        if self._scheduler is None:
            raise RuntimeError("Scheduler not started. Call start() first.")
        return self._scheduler

    @property
    def is_running(self) -> bool:
        """Check if scheduler is running."""
        return self._running


class PeriodicTask:
    """
    A single interval job that can be started and stopped explicitly.

    Stopping removes the job from the scheduler, so a torn-down owner
    never leaves a timer behind. Safe to stop more than once, and safe to
    stop from inside the job itself.
    """

    def __init__(
        self,
        scheduler: Any,
        job_func: Callable[..., Any],
        interval_seconds: float,
        name: str = "periodic-task",
    ):
        self._scheduler = scheduler
        self._job_func = job_func
        self.interval_seconds = interval_seconds
        self.name = name
        self.job_id = f"{name}-{uuid4().hex[:12]}"
        self._running = False

    def start(self, run_immediately: bool = True) -> None:
        """Register the interval job."""
        if self._running:
            logger.warning("Periodic task already running", extra={"job_id": self.job_id})
            return

        options = {}
        if run_immediately:
            options["next_run_time"] = datetime.now(timezone.utc)

        self._scheduler.add_job(
            self._job_func,
            "interval",
            seconds=self.interval_seconds,
            id=self.job_id,
            name=self.name,
            max_instances=1,
            coalesce=True,
            replace_existing=True,
            **options,
        )
        self._running = True
        logger.debug(
            "Periodic task started",
            extra={"job_id": self.job_id, "interval_seconds": self.interval_seconds}
        )

    def stop(self) -> None:
        """Remove the job; a no-op when it is not running."""
        if not self._running:
            return

        try:
            self._scheduler.remove_job(self.job_id)
        except JobLookupError:
            logger.debug("Periodic task already removed", extra={"job_id": self.job_id})

        self._running = False
        logger.debug("Periodic task stopped", extra={"job_id": self.job_id})

    @property
    def is_running(self) -> bool:
        """Check if the job is registered."""
        return self._running
