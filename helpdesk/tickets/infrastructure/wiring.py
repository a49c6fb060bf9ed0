"""
Ticket service composition for one database session.

Lives below the interfaces layer so any router (tickets, users,
analytics) can build a TicketService without importing another
router module.
"""

from functools import lru_cache

from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.notifications.application import NotificationDispatcher
from helpdesk.notifications.infrastructure import SQLAlchemyNotificationRepository
from helpdesk.tickets.application import TicketService
from helpdesk.tickets.domain import SLAClock
from helpdesk.tickets.infrastructure.config import YAMLSLAConfigProvider
from helpdesk.tickets.infrastructure.repositories import (
    SQLAlchemyHistoryRepository,
    SQLAlchemyReplyRepository,
    SQLAlchemyTicketRepository,
)
from helpdesk.users.infrastructure import SQLAlchemyUserRepository


@lru_cache()
def get_sla_clock() -> SLAClock:
    """Process-wide SLA clock built from the YAML policy (or settings)."""
    return SLAClock(YAMLSLAConfigProvider().get_config())


def build_ticket_service(session: AsyncSession) -> TicketService:
    """TicketService with notification fan-out on the same session."""
    user_repo = SQLAlchemyUserRepository(session)
    return TicketService(
        SQLAlchemyTicketRepository(session),
        SQLAlchemyReplyRepository(session),
        SQLAlchemyHistoryRepository(session),
        user_repo,
        event_sink=NotificationDispatcher(SQLAlchemyNotificationRepository(session), user_repo),
        sla_clock=get_sla_clock()
    )
