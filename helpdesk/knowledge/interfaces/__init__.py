"""
Knowledge Base Interfaces Layer
===============================
"""

from helpdesk.knowledge.interfaces.controllers import get_kb_service, router

__all__ = ["router", "get_kb_service"]
