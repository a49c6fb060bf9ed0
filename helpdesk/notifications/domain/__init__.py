"""
Notification Domain Layer
=========================

Contains:
- Notification: Per-recipient record with idempotent mark_read
- NotificationFeed: Ordering and unread queries
- NotificationRules: Ticket event → recipients mapping
"""

from helpdesk.notifications.domain.entities import Notification, NotificationFeed
from helpdesk.notifications.domain.fanout import NotificationRules, PlannedNotification

__all__ = [
    "Notification",
    "NotificationFeed",
    "NotificationRules",
    "PlannedNotification",
]
