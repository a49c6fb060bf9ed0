"""
Notification Application Layer
==============================

Contains:
- Services: NotificationDispatcher (event sink), NotificationService (feed)
- Repository interface
- DTOs
"""

from helpdesk.notifications.application.dto import NotificationResponse, NotificationFeedResponse
from helpdesk.notifications.application.services import (
    INotificationRepository,
    NotificationDispatcher,
    NotificationService,
)

__all__ = [
    "NotificationResponse",
    "NotificationFeedResponse",
    "INotificationRepository",
    "NotificationDispatcher",
    "NotificationService",
]
