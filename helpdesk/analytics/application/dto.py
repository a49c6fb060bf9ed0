"""
Analytics DTOs
==============
"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from helpdesk.config import AnalyticsRange


class AgentPerformance(BaseModel):
    agent_id: str
    agent_name: str
    resolved_count: int


class AnalyticsSummaryResponse(BaseModel):
    """Response model for GET /reports/summary."""
    range: AnalyticsRange
    since: Optional[datetime] = Field(None, description="Start of the window; null for all time")
    total_tickets: int
    status_counts: Dict[str, int]
    priority_counts: Dict[str, int]
    resolved_tickets: int
    breached_open_tickets: int = Field(..., description="Unresolved tickets already past their deadline")
    sla_compliance: float = Field(..., description="Percent of resolved tickets resolved within SLA")
    avg_resolution_hours: float
    agent_performance: List[AgentPerformance]
    generated_at: datetime
