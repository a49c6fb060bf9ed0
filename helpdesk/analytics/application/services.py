"""
Analytics Application Services
==============================
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from helpdesk.access.domain import RolePolicy, SessionContext
from helpdesk.config import AnalyticsRange, Priority, RouteId, TicketStatus
from helpdesk.core import ForbiddenException, ValidationException
from helpdesk.tickets.application import ITicketRepository
from helpdesk.tickets.domain import SLAClock, Ticket
from helpdesk.users.application import IUserRepository

RANGE_WINDOWS: Dict[AnalyticsRange, Optional[timedelta]] = {
    AnalyticsRange.DAILY: timedelta(days=1),
    AnalyticsRange.WEEKLY: timedelta(days=7),
    AnalyticsRange.MONTHLY: timedelta(days=30),
    AnalyticsRange.ALL: None,
}

PAGE_SIZE = 500


@dataclass
class AnalyticsSummary:
    range: AnalyticsRange
    since: Optional[datetime]
    total_tickets: int
    status_counts: Dict[str, int]
    priority_counts: Dict[str, int]
    resolved_tickets: int
    breached_open_tickets: int
    sla_compliance: float
    avg_resolution_hours: float
    agent_performance: List[dict] = field(default_factory=list)
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class AnalyticsService:
    """
    Service for the reporting summary.

    Reads every ticket in the window page by page; nothing is cached.
    """

    def __init__(
        self,
        ticket_repository: ITicketRepository,
        user_repository: IUserRepository,
        sla_clock: Optional[SLAClock] = None
    ):
        self._tickets = ticket_repository
        self._users = user_repository
        self._sla = sla_clock or SLAClock()

    @staticmethod
    def parse_range(value: Optional[str]) -> AnalyticsRange:
        if not value:
            return AnalyticsRange.ALL
        try:
            return AnalyticsRange(value.strip().lower())
        except ValueError:
            allowed = ", ".join(r.value for r in AnalyticsRange)
            raise ValidationException(f"range must be one of {allowed}", {"range": value})

    async def summary(
        self,
        session: SessionContext,
        range_value: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> AnalyticsSummary:
        """
        Build the summary for a reporting window.

        Raises:
            ForbiddenException: If the caller cannot view analytics
            ValidationException: If the range is unknown
        """
        if not RolePolicy.can_view_route(session.role, RouteId.ANALYTICS):
            raise ForbiddenException("view analytics", session.role)

        report_range = self.parse_range(range_value)
        now = now or datetime.now(timezone.utc)
        window = RANGE_WINDOWS[report_range]
        since = now - window if window else None

        tickets = await self._load(since)
        return await self.summarize(tickets, report_range, since, now)

    async def _load(self, since: Optional[datetime]) -> List[Ticket]:
        filters = {"created_since": since} if since else {}
        tickets: List[Ticket] = []
        offset = 0
        while True:
            page = await self._tickets.list(filters, limit=PAGE_SIZE, offset=offset)
            tickets.extend(page)
            if len(page) < PAGE_SIZE:
                return tickets
            offset += PAGE_SIZE

    async def summarize(
        self,
        tickets: List[Ticket],
        report_range: AnalyticsRange,
        since: Optional[datetime],
        now: datetime
    ) -> AnalyticsSummary:
        status_counts = {s.value: 0 for s in TicketStatus}
        priority_counts = {p.value: 0 for p in Priority}
        resolved: List[Ticket] = []
        breached_open = 0
        per_agent: Dict[str, int] = {}

        for ticket in tickets:
            status_counts[ticket.status.value] += 1
            priority_counts[ticket.priority.value] += 1
            if ticket.is_resolved:
                resolved.append(ticket)
                if ticket.assigned_agent_id:
                    per_agent[ticket.assigned_agent_id] = per_agent.get(ticket.assigned_agent_id, 0) + 1
            elif self._sla.reading_for(ticket.created_at, now).is_breached:
                breached_open += 1

        # Tickets resolved before resolved_at was tracked count as resolved but not timed
        timed = [t for t in resolved if t.resolved_at is not None]
        if resolved:
            met = sum(1 for t in timed if self._sla.met(t.created_at, t.resolved_at))
            compliance = round(met / len(resolved) * 100, 1)
        else:
            compliance = 100.0

        if timed:
            hours = [
                (self._sla.parse_deadline(t.resolved_at) - self._sla.parse_deadline(t.created_at)).total_seconds() / 3600
                for t in timed
            ]
            avg_hours = round(sum(hours) / len(hours), 2)
        else:
            avg_hours = 0.0

        return AnalyticsSummary(
            range=report_range,
            since=since,
            total_tickets=len(tickets),
            status_counts=status_counts,
            priority_counts=priority_counts,
            resolved_tickets=len(resolved),
            breached_open_tickets=breached_open,
            sla_compliance=compliance,
            avg_resolution_hours=avg_hours,
            agent_performance=await self._agent_rows(per_agent),
            generated_at=now,
        )

    async def _agent_rows(self, per_agent: Dict[str, int]) -> List[dict]:
        rows = []
        for agent_id, count in per_agent.items():
            user = await self._users.get_by_id(agent_id)
            rows.append({
                "agent_id": agent_id,
                "agent_name": user.display_name if user else "Unknown agent",
                "resolved_count": count,
            })
        rows.sort(key=lambda row: (-row["resolved_count"], row["agent_name"]))
        return rows
