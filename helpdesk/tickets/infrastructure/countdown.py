"""
SLA Countdown
=============

Cancellable periodic recomputation of an SLA reading.

Wraps a PeriodicTask: start() registers the interval job, stop()
removes it. The countdown stops itself once the reading is terminal
(Breached, NoDeadline, InvalidDeadline), so no timer outlives the
information it can still change.
"""

import inspect
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from helpdesk.shared.infrastructure.logging import get_logger
from helpdesk.shared.infrastructure.scheduler import PeriodicTask
from helpdesk.tickets.domain import SLAClock, SLAReading

logger = get_logger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SLACountdown:
    """
    Live SLA countdown for one deadline.

    Usage:
        countdown = SLACountdown(app_scheduler.scheduler, ticket_deadline, on_tick=render)
        countdown.start()
        ...
        countdown.stop()   # when the owning view goes away
    """

    def __init__(
        self,
        scheduler: Any,
        deadline: Any,
        on_tick: Optional[Callable[[SLAReading], Any]] = None,
        sla_clock: Optional[SLAClock] = None,
        clock: Optional[Clock] = None,
        interval_seconds: Optional[float] = None
    ):
        self.deadline = deadline
        self._on_tick = on_tick
        self._sla = sla_clock or SLAClock()
        self._clock = clock or _utcnow
        self._task = PeriodicTask(
            scheduler,
            self._run,
            interval_seconds or self._sla.config.poll_interval_seconds,
            name="sla-countdown",
        )
        self.last_reading: Optional[SLAReading] = None

    def start(self) -> None:
        """Begin recomputing; the first reading is taken immediately."""
        self._task.start(run_immediately=True)

    def stop(self) -> None:
        """Cancel the countdown. Idempotent."""
        self._task.stop()

    @property
    def is_running(self) -> bool:
        return self._task.is_running

    async def _run(self) -> None:
        reading = self.tick()
        if self._on_tick is None:
            return
        result = self._on_tick(reading)
        if inspect.isawaitable(result):
            await result

    def tick(self) -> SLAReading:
        """
        Take one reading from the injected clock.

        Stops the countdown when the reading is terminal.
        """
        reading = self._sla.remaining(self.deadline, self._clock())
        self.last_reading = reading
        if reading.is_terminal and self._task.is_running:
            logger.debug("SLA countdown reached terminal state", extra={"state": reading.state.value})
            self.stop()
        return reading
