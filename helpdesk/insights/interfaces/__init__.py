"""
Insight Interfaces Layer
========================
"""

from helpdesk.insights.interfaces.controllers import (
    get_insight_service,
    get_llm_client,
    router,
)

__all__ = ["router", "get_insight_service", "get_llm_client"]
