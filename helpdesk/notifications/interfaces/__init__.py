"""
Notification Interfaces Layer
=============================
"""

from helpdesk.notifications.interfaces.controllers import router, get_notification_service

__all__ = ["router", "get_notification_service"]
