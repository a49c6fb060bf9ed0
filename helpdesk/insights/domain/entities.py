"""
Insight Domain Entities
=======================

Derived, non-persistent analysis of a ticket.

Contains pure Python value objects; nothing here writes back to the
ticket.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional

from helpdesk.config import Priority, Sentiment


class InsightSource:
    """Which strategy produced an insight."""
    KEYWORD = "keyword"
    LLM = "llm"


@dataclass(frozen=True)
class SentimentAssessment:
    label: Sentiment
    confidence: int  # 0 to 100

    def __post_init__(self):
        """Validate confidence."""
        if not 0 <= self.confidence <= 100:
            raise ValueError("Confidence must be between 0 and 100")


@dataclass(frozen=True)
class PrioritySuggestion:
    level: Priority
    reasoning: str


@dataclass(frozen=True)
class Insight:
    """
    Advisory metadata for a ticket.

    Presented alongside the ticket for a human to accept or ignore.
    """
    ticket_id: str
    sentiment: SentimentAssessment
    priority: PrioritySuggestion
    source: str
    category: Optional[str] = None
    root_cause: Optional[str] = None
    resolution_steps: List[str] = field(default_factory=list)
    observations: List[str] = field(default_factory=list)
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_payload(cls, ticket_id: str, data: Mapping[str, Any], source: str) -> "Insight":
        """
        Build an insight from a loosely-typed mapping (e.g. parsed LLM JSON).

        Unknown labels fall back to Neutral/Medium; confidences given as
        fractions are scaled to percentages.

        Raises:
            ValueError: If data is not a mapping
        """
        if not isinstance(data, Mapping):
            raise ValueError("Insight payload must be a JSON object")

        sentiment = data.get("sentiment") or {}
        priority = data.get("priority") or {}
        if not isinstance(sentiment, Mapping):
            sentiment = {"label": sentiment}
        if not isinstance(priority, Mapping):
            priority = {"level": priority}

        return cls(
            ticket_id=ticket_id,
            sentiment=SentimentAssessment(
                label=_parse_enum(Sentiment, sentiment.get("label"), Sentiment.NEUTRAL),
                confidence=_parse_confidence(sentiment.get("confidence")),
            ),
            priority=PrioritySuggestion(
                level=_parse_enum(Priority, priority.get("level"), Priority.MEDIUM),
                reasoning=str(priority.get("reasoning") or ""),
            ),
            source=source,
            category=_optional_text(data.get("category")),
            root_cause=_optional_text(data.get("rootCause", data.get("root_cause"))),
            resolution_steps=_text_list(data.get("resolutionSteps", data.get("resolution_steps"))),
            observations=_text_list(data.get("observations")),
        )


def _parse_enum(enum_cls, value: Any, default):
    if isinstance(value, str):
        for member in enum_cls:
            if member.value.lower() == value.strip().lower():
                return member
    return default


def _parse_confidence(value: Any) -> int:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 50
    if 0 < number <= 1:
        number *= 100
    return int(max(0, min(100, round(number))))


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _text_list(value: Any) -> List[str]:
    if value is None or isinstance(value, Mapping):
        return []
    if not isinstance(value, (list, tuple)):
        value = [value]
    return [str(item).strip() for item in value if str(item).strip()]
