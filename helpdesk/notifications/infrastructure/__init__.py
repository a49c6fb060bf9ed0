"""
Notification Infrastructure Layer
=================================
"""

from helpdesk.notifications.infrastructure.repositories import SQLAlchemyNotificationRepository

__all__ = ["SQLAlchemyNotificationRepository"]
