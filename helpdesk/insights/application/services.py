"""
Insight Application Services
============================

Produces advisory insights for a ticket using an LLM strategy when one
is configured and the deterministic keyword strategy otherwise.

Insights are never written back to the ticket.
"""

import copy
from abc import ABC, abstractmethod
from typing import Optional

from helpdesk.access.domain import Action, RolePolicy, SessionContext
from helpdesk.config import settings
from helpdesk.core import (
    ApplicationException,
    ForbiddenException,
    InsightUnavailableException,
    LLMException,
)
from helpdesk.insights.domain import Insight, KeywordClassifier
from helpdesk.shared.infrastructure.logging import get_logger, log_latency
from helpdesk.tickets.application import TicketService
from helpdesk.tickets.domain import Ticket

logger = get_logger(__name__)


# ========== Strategy Interface ==========

class IInsightStrategy(ABC):
    """Interface for a ticket analysis strategy."""

    @abstractmethod
    async def analyze(self, ticket: Ticket) -> Insight:
        """Analyze a ticket snapshot."""


class KeywordInsightStrategy(IInsightStrategy):
    """Offline strategy backed by KeywordClassifier."""

    async def analyze(self, ticket: Ticket) -> Insight:
        return KeywordClassifier.analyze(ticket.id, ticket.subject, ticket.description)


# ========== Application Service ==========

class InsightService:
    """
    Service for ticket insights.

    Staff-only. The LLM strategy is tried first when present; an LLM
    failure falls back to keywords when `fallback` is enabled.
    """

    def __init__(
        self,
        ticket_service: TicketService,
        llm_strategy: Optional[IInsightStrategy] = None,
        keyword_strategy: Optional[IInsightStrategy] = None,
        fallback: Optional[bool] = None
    ):
        self._tickets = ticket_service
        self._llm = llm_strategy
        self._keywords = keyword_strategy or KeywordInsightStrategy()
        self._fallback = settings.insight_fallback_to_keywords if fallback is None else fallback

    async def analyze_ticket(self, session: SessionContext, ticket_id: str) -> Insight:
        """
        Generate an insight for a ticket.

        Raises:
            ForbiddenException: If the caller is not staff
            ResourceNotFoundException: If the ticket does not exist
            InsightUnavailableException: If no strategy produced an insight
        """
        if not RolePolicy.is_allowed(session.role, Action.VIEW_INSIGHTS):
            raise ForbiddenException(Action.VIEW_INSIGHTS.value, session.role)

        ticket = await self._tickets.get_ticket(session, ticket_id)
        snapshot = copy.deepcopy(ticket)
        with log_latency(logger, "insight_analysis", ticket_id=ticket.id):
            return await self.analyze(snapshot)

    async def analyze(self, ticket: Ticket) -> Insight:
        """Run the strategies against a ticket snapshot."""
        if self._llm is not None:
            try:
                return await self._llm.analyze(ticket)
            except LLMException as e:
                if not self._fallback:
                    raise InsightUnavailableException(str(e.message), {"ticket_id": ticket.id})
                logger.warning(
                    "LLM insight failed, using keyword analysis",
                    extra={"ticket_id": ticket.id, "error": e.message}
                )

        try:
            return await self._keywords.analyze(ticket)
        except ApplicationException:
            raise
        except Exception as e:
            logger.error(
                "Keyword insight failed",
                extra={"ticket_id": ticket.id, "error": str(e)},
                exc_info=True
            )
            raise InsightUnavailableException(details={"ticket_id": ticket.id})
