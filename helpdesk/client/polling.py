"""
Client Background Refresh
=========================

Periodic jobs a long-running client keeps alive while a view is open:
- NotificationPoller: refreshes the notification feed
- watch_sla: live SLA countdown for a ticket
"""

import inspect
from typing import Any, Callable, Dict, Optional

from helpdesk.client.api import HelpdeskClient
from helpdesk.config import settings
from helpdesk.core import (
    ExternalServiceException,
    InvalidDeadlineException,
    NoDeadlineException,
    UnauthenticatedException,
)
from helpdesk.shared.infrastructure.logging import get_logger
from helpdesk.shared.infrastructure.scheduler import PeriodicTask
from helpdesk.tickets.domain import SLAClock, SLAReading
from helpdesk.tickets.infrastructure import SLACountdown

logger = get_logger(__name__)


class NotificationPoller:
    """
    Refreshes the signed-in user's notifications on an interval.

    A failed read keeps the previous feed and tries again next tick.
    Losing the session stops the poller.
    """

    def __init__(
        self,
        scheduler: Any,
        client: HelpdeskClient,
        on_update: Optional[Callable[[Dict[str, Any]], Any]] = None,
        interval_seconds: Optional[float] = None
    ):
        self._client = client
        self._on_update = on_update
        self._task = PeriodicTask(
            scheduler,
            self.poll,
            interval_seconds or settings.notification_poll_interval_seconds,
            name="notification-poller",
        )
        self.feed: Optional[Dict[str, Any]] = None

    def start(self) -> None:
        self._task.start(run_immediately=True)

    def stop(self) -> None:
        self._task.stop()

    @property
    def is_running(self) -> bool:
        return self._task.is_running

    @property
    def unread_count(self) -> int:
        return (self.feed or {}).get("unread_count", 0)

    async def poll(self) -> Optional[Dict[str, Any]]:
        """Fetch the feed once."""
        try:
            feed = await self._client.list_notifications()
        except UnauthenticatedException:
            logger.info("Session ended, stopping notification poller")
            self.stop()
            return None
        except ExternalServiceException as e:
            logger.warning("Notification refresh failed", extra={"error": e.message})
            return self.feed

        self.feed = feed
        if self._on_update is not None:
            result = self._on_update(feed)
            if inspect.isawaitable(result):
                await result
        return feed


def watch_sla(
    scheduler: Any,
    ticket: Dict[str, Any],
    on_tick: Optional[Callable[[SLAReading], Any]] = None,
    sla_clock: Optional[SLAClock] = None
) -> SLACountdown:
    """
    Start a countdown for a ticket payload.

    Uses the server's deadline when the payload carries an SLA reading,
    else derives it from created_at.
    """
    sla_clock = sla_clock or SLAClock()
    deadline = (ticket.get("sla") or {}).get("deadline")
    if deadline is None and ticket.get("created_at"):
        try:
            deadline = sla_clock.deadline_for(ticket["created_at"])
        except (NoDeadlineException, InvalidDeadlineException):
            deadline = ticket["created_at"]
    countdown = SLACountdown(scheduler, deadline, on_tick=on_tick, sla_clock=sla_clock)
    countdown.start()
    return countdown
