"""
Analytics Interfaces Layer
==========================
"""

from helpdesk.analytics.interfaces.controllers import get_analytics_service, router

__all__ = ["router", "get_analytics_service"]
