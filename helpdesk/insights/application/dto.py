"""
Insight Application DTOs
========================
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from helpdesk.insights.domain import Insight


class SentimentResponse(BaseModel):
    label: str = Field(..., description="Positive, Neutral or Negative")
    confidence: int = Field(..., ge=0, le=100)


class PrioritySuggestionResponse(BaseModel):
    level: str
    reasoning: str


class InsightResponse(BaseModel):
    """Advisory insight; never applied to the ticket automatically."""
    ticket_id: str
    sentiment: SentimentResponse
    priority: PrioritySuggestionResponse
    category: Optional[str] = None
    root_cause: Optional[str] = None
    resolution_steps: List[str] = Field(default_factory=list)
    observations: List[str] = Field(default_factory=list)
    source: str = Field(..., description="keyword or llm")
    generated_at: datetime

    @classmethod
    def from_domain(cls, insight: Insight) -> "InsightResponse":
        return cls(
            ticket_id=insight.ticket_id,
            sentiment=SentimentResponse(
                label=insight.sentiment.label.value,
                confidence=insight.sentiment.confidence
            ),
            priority=PrioritySuggestionResponse(
                level=insight.priority.level.value,
                reasoning=insight.priority.reasoning
            ),
            category=insight.category,
            root_cause=insight.root_cause,
            resolution_steps=list(insight.resolution_steps),
            observations=list(insight.observations),
            source=insight.source,
            generated_at=insight.generated_at
        )
