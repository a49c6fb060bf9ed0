"""
Insight Application Layer
=========================

Contains:
- InsightService: Strategy selection and access check
- IInsightStrategy, KeywordInsightStrategy
- DTOs for the insight API
"""

from helpdesk.insights.application.dto import (
    InsightResponse,
    PrioritySuggestionResponse,
    SentimentResponse,
)
from helpdesk.insights.application.services import (
    IInsightStrategy,
    InsightService,
    KeywordInsightStrategy,
)

__all__ = [
    "InsightResponse",
    "PrioritySuggestionResponse",
    "SentimentResponse",
    "IInsightStrategy",
    "InsightService",
    "KeywordInsightStrategy",
]
