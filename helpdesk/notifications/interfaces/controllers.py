"""
Notification Controllers (API Routes)
=====================================

FastAPI routes for the signed-in user's notification feed.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.access.domain import SessionContext
from helpdesk.infrastructure.database import get_session
from helpdesk.notifications.application import (
    NotificationFeedResponse,
    NotificationResponse,
    NotificationService,
)
from helpdesk.notifications.infrastructure import SQLAlchemyNotificationRepository
from helpdesk.users.interfaces import get_current_session

router = APIRouter(prefix="/notifications", tags=["Notifications"])


async def get_notification_service(
    session: AsyncSession = Depends(get_session)
) -> NotificationService:
    """Get notification service instance."""
    return NotificationService(SQLAlchemyNotificationRepository(session))


@router.get(
    "",
    response_model=NotificationFeedResponse,
    summary="Current user's notifications, newest first"
)
async def list_notifications(
    limit: int = Query(100, ge=1, le=500),
    session: SessionContext = Depends(get_current_session),
    service: NotificationService = Depends(get_notification_service)
) -> NotificationFeedResponse:
    items = await service.list_for(session, limit=limit)
    return NotificationFeedResponse(
        notifications=[NotificationResponse.model_validate(n) for n in items],
        unread_count=await service.unread_count(session)
    )


@router.patch(
    "/{notification_id}/read",
    response_model=NotificationResponse,
    summary="Mark a notification read (idempotent)"
)
async def mark_notification_read(
    notification_id: str,
    session: SessionContext = Depends(get_current_session),
    service: NotificationService = Depends(get_notification_service)
) -> NotificationResponse:
    return NotificationResponse.model_validate(await service.mark_read(session, notification_id))
