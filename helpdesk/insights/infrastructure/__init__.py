"""
Insight Infrastructure Layer
============================

Contains:
- LLMInsightStrategy: Chat model adapter
"""

from helpdesk.insights.infrastructure.external import LLMInsightStrategy, extract_json

__all__ = ["LLMInsightStrategy", "extract_json"]
