"""
Analytics Controllers (API Routes)
==================================
"""

from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.access.domain import SessionContext
from helpdesk.analytics.application import AnalyticsService, AnalyticsSummaryResponse
from helpdesk.infrastructure.database import get_session
from helpdesk.tickets.infrastructure import SQLAlchemyTicketRepository
from helpdesk.tickets.infrastructure.wiring import get_sla_clock
from helpdesk.users.infrastructure import SQLAlchemyUserRepository
from helpdesk.users.interfaces import get_current_session

router = APIRouter(prefix="/reports", tags=["Analytics"])


SUMMARY_RESPONSE_EXAMPLE = {
    "range": "weekly",
    "since": "2024-01-08T10:00:00Z",
    "total_tickets": 42,
    "status_counts": {"Open": 10, "In-Progress": 8, "Resolved": 20, "Closed": 4},
    "priority_counts": {"Low": 6, "Medium": 22, "High": 11, "Critical": 3},
    "resolved_tickets": 24,
    "breached_open_tickets": 3,
    "sla_compliance": 87.5,
    "avg_resolution_hours": 1.42,
    "agent_performance": [
        {"agent_id": "6d1c2a8e-1b7f-4a51-8a4f-1f2e3d4c5b6a", "agent_name": "Dana", "resolved_count": 14}
    ],
    "generated_at": "2024-01-15T10:00:00Z"
}


async def get_analytics_service(
    session: AsyncSession = Depends(get_session)
) -> AnalyticsService:
    """Get analytics service instance."""
    return AnalyticsService(
        SQLAlchemyTicketRepository(session),
        SQLAlchemyUserRepository(session),
        sla_clock=get_sla_clock()
    )


@router.get(
    "/summary",
    response_model=AnalyticsSummaryResponse,
    summary="Reporting summary",
    description="Manager, Admin and Super Admin only.",
    responses={200: {"content": {"application/json": {"example": SUMMARY_RESPONSE_EXAMPLE}}}}
)
async def get_summary(
    range_value: Optional[str] = Query("all", alias="range", description="daily, weekly, monthly or all"),
    session: SessionContext = Depends(get_current_session),
    service: AnalyticsService = Depends(get_analytics_service)
) -> AnalyticsSummaryResponse:
    summary = await service.summary(session, range_value)
    return AnalyticsSummaryResponse(**asdict(summary))
