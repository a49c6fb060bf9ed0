"""
Ticket Interfaces Layer
=======================

FastAPI routers for tickets and attachments.
"""

from helpdesk.tickets.interfaces.controllers import (
    router,
    attachments_router,
    get_ticket_service,
    get_attachment_service,
    get_sla_clock,
)

__all__ = [
    "router",
    "attachments_router",
    "get_ticket_service",
    "get_attachment_service",
    "get_sla_clock",
]
