"""
Helpdesk API Client
===================

Async httpx client for the helpdesk REST API.

Contains:
- HelpdeskClient: One method per endpoint
- SessionStore: Bearer token and signed-in user record
- NotificationPoller: Periodic refresh of the notification feed
- watch_sla: Live SLA countdown for a ticket
"""

from helpdesk.client.api import HelpdeskClient
from helpdesk.client.polling import NotificationPoller, watch_sla
from helpdesk.client.session import SessionStore

__all__ = ["HelpdeskClient", "SessionStore", "NotificationPoller", "watch_sla"]
