"""
Insight Controllers (API Routes)
================================

Staff-only advisory analysis of a ticket.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request

from helpdesk.access.domain import SessionContext
from helpdesk.infrastructure.llm import ILLMClient
from helpdesk.insights.application import InsightResponse, InsightService
from helpdesk.insights.infrastructure import LLMInsightStrategy
from helpdesk.tickets.application import TicketService
from helpdesk.tickets.interfaces import get_ticket_service
from helpdesk.users.interfaces import get_current_session

router = APIRouter(prefix="/tickets", tags=["Insights"])


def get_llm_client(request: Request) -> Optional[ILLMClient]:
    """LLM client created at startup, or None when not configured."""
    return getattr(request.app.state, "llm_client", None)


async def get_insight_service(
    ticket_service: TicketService = Depends(get_ticket_service),
    llm_client: Optional[ILLMClient] = Depends(get_llm_client)
) -> InsightService:
    llm_strategy = LLMInsightStrategy(llm_client) if llm_client is not None else None
    return InsightService(ticket_service, llm_strategy=llm_strategy)


@router.get(
    "/{ticket_id}/insights",
    response_model=InsightResponse,
    summary="Advisory insights for a ticket",
    description="Sentiment, suggested priority and resolution hints. Staff only; nothing is saved."
)
async def get_insights(
    ticket_id: str,
    session: SessionContext = Depends(get_current_session),
    service: InsightService = Depends(get_insight_service)
) -> InsightResponse:
    insight = await service.analyze_ticket(session, ticket_id)
    return InsightResponse.from_domain(insight)
