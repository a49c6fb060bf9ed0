"""
Notification Infrastructure Repositories
========================================
"""

from typing import List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.notifications.application import INotificationRepository
from helpdesk.notifications.domain import Notification
from helpdesk.notifications.infrastructure.models import NotificationModel


def _to_entity(model: NotificationModel) -> Notification:
    return Notification(
        id=model.id,
        recipient_id=model.recipient_id,
        message=model.message,
        ticket_id=model.ticket_id,
        is_read=model.is_read,
        created_at=model.created_at,
        read_at=model.read_at,
    )


class SQLAlchemyNotificationRepository(INotificationRepository):
    """SQLAlchemy implementation of notification repository."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def create_many(self, notifications: List[Notification]) -> None:
        """
        Insert inside a SAVEPOINT so a failed insert is rolled back on
        its own and the enclosing ticket change can still commit.
        """
        async with self._session.begin_nested():
            self._session.add_all([
                NotificationModel(
                    id=n.id,
                    recipient_id=n.recipient_id,
                    message=n.message,
                    ticket_id=n.ticket_id,
                    is_read=n.is_read,
                    created_at=n.created_at,
                    read_at=n.read_at,
                )
                for n in notifications
            ])

    async def get_by_id(self, notification_id: str) -> Optional[Notification]:
        model = await self._session.get(NotificationModel, notification_id)
        return _to_entity(model) if model else None

    async def list_for_recipient(self, recipient_id: str, limit: int = 100) -> List[Notification]:
        stmt = (
            select(NotificationModel)
            .where(NotificationModel.recipient_id == recipient_id)
            .order_by(NotificationModel.created_at.desc())
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [_to_entity(model) for model in result.scalars().all()]

    async def count_unread(self, recipient_id: str) -> int:
        stmt = select(func.count(NotificationModel.id)).where(
            NotificationModel.recipient_id == recipient_id,
            NotificationModel.is_read.is_(False),
        )
        result = await self._session.execute(stmt)
        return result.scalar_one()

    async def mark_read(self, notification: Notification) -> None:
        # Only unread rows change, so a read row is never reopened
        stmt = (
            update(NotificationModel)
            .where(NotificationModel.id == notification.id, NotificationModel.is_read.is_(False))
            .values(is_read=True, read_at=notification.read_at)
        )
        await self._session.execute(stmt)
