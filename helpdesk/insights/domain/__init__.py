"""
Insight Domain Layer
====================

Contains:
- Insight and its value objects (sentiment, priority suggestion)
- KeywordClassifier: Deterministic offline strategy
- InsightPromptBuilder: Prompts for the LLM strategy
"""

from helpdesk.insights.domain.entities import (
    Insight,
    InsightSource,
    PrioritySuggestion,
    SentimentAssessment,
)
from helpdesk.insights.domain.keywords import KeywordClassifier
from helpdesk.insights.domain.prompts import InsightPromptBuilder

__all__ = [
    "Insight",
    "InsightSource",
    "PrioritySuggestion",
    "SentimentAssessment",
    "KeywordClassifier",
    "InsightPromptBuilder",
]
