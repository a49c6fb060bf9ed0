"""
Notification Application Services
=================================

- NotificationDispatcher: ticket event sink that writes notifications
- NotificationService: per-user feed and mark-read
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional
from uuid import uuid4

from helpdesk.access.domain import SessionContext
from helpdesk.core import ResourceNotFoundException
from helpdesk.notifications.domain import Notification, NotificationFeed, NotificationRules
from helpdesk.shared.infrastructure.logging import get_logger
from helpdesk.tickets.application import ITicketEventSink
from helpdesk.tickets.domain import TicketEvent
from helpdesk.users.application import IUserRepository

logger = get_logger(__name__)


# ========== Repository Interfaces (Dependency Inversion) ==========

class INotificationRepository(ABC):
    """Interface for notification data access."""

    @abstractmethod
    async def create_many(self, notifications: List[Notification]) -> None:
        """Persist new notifications."""

    @abstractmethod
    async def get_by_id(self, notification_id: str) -> Optional[Notification]:
        """Get notification by ID."""

    @abstractmethod
    async def list_for_recipient(self, recipient_id: str, limit: int = 100) -> List[Notification]:
        """A recipient's notifications, newest first."""

    @abstractmethod
    async def count_unread(self, recipient_id: str) -> int:
        """Number of unread notifications across the whole feed."""

    @abstractmethod
    async def mark_read(self, notification: Notification) -> None:
        """Persist the read state of a notification."""


# ========== Application Services ==========

class NotificationDispatcher(ITicketEventSink):
    """
    Event sink turning ticket events into notification records.

    Looks up candidate recipients' roles so internal notes never reach
    a Customer.
    """

    def __init__(
        self,
        notification_repository: INotificationRepository,
        user_repository: IUserRepository
    ):
        self._notifications = notification_repository
        self._users = user_repository

    async def publish(self, events: List[TicketEvent]) -> None:
        created = []
        for event in events:
            roles = await self._roles_for(NotificationRules.candidates(event))
            for planned in NotificationRules.plan(event, roles):
                created.append(Notification(
                    id=str(uuid4()),
                    recipient_id=planned.recipient_id,
                    message=planned.message,
                    ticket_id=planned.ticket_id,
                    created_at=event.created_at,
                ))

        if created:
            await self._notifications.create_many(created)
            logger.info("Notifications created", extra={"count": len(created)})

    async def _roles_for(self, user_ids: List[str]) -> Dict[str, object]:
        roles = {}
        for user_id in user_ids:
            user = await self._users.get_by_id(user_id)
            if user:
                roles[user_id] = user.role
        return roles


class NotificationService:
    """Service for the signed-in user's notification feed."""

    def __init__(self, notification_repository: INotificationRepository):
        self._notifications = notification_repository

    async def list_for(self, session: SessionContext, limit: int = 100) -> List[Notification]:
        """The caller's feed, newest first."""
        items = await self._notifications.list_for_recipient(session.user_id, limit=limit)
        return NotificationFeed.newest_first(items)

    async def unread_count(self, session: SessionContext) -> int:
        """Unread total for the caller, not limited to one page of the feed."""
        return await self._notifications.count_unread(session.user_id)

    async def mark_read(self, session: SessionContext, notification_id: str) -> Notification:
        """
        Mark one of the caller's notifications read.

        Idempotent: an already-read notification is returned unchanged.

        Raises:
            ResourceNotFoundException: If missing or addressed to someone else
        """
        notification = await self._notifications.get_by_id(notification_id)
        if not notification or notification.recipient_id != session.user_id:
            raise ResourceNotFoundException("Notification", notification_id)

        if notification.mark_read():
            await self._notifications.mark_read(notification)
        return notification
