"""
Analytics Application Layer
===========================
"""

from helpdesk.analytics.application.dto import AgentPerformance, AnalyticsSummaryResponse
from helpdesk.analytics.application.services import (
    RANGE_WINDOWS,
    AnalyticsService,
    AnalyticsSummary,
)

__all__ = [
    "AgentPerformance",
    "AnalyticsSummaryResponse",
    "RANGE_WINDOWS",
    "AnalyticsService",
    "AnalyticsSummary",
]
