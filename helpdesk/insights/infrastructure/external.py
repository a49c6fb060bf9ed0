"""
Insight External Service Adapters
=================================

LLM-backed insight strategy. Implements IInsightStrategy on top of the
infrastructure ILLMClient.
"""

import json

from helpdesk.config import settings
from helpdesk.core import LLMException
from helpdesk.infrastructure.llm import ILLMClient
from helpdesk.insights.application import IInsightStrategy
from helpdesk.insights.domain import Insight, InsightPromptBuilder, InsightSource
from helpdesk.shared.infrastructure.logging import get_logger
from helpdesk.tickets.domain import Ticket

logger = get_logger(__name__)


def extract_json(content: str) -> str:
    """Strip a markdown code fence around a JSON reply, if any."""
    if "```json" in content:
        return content.split("```json")[1].split("```")[0].strip()
    if "```" in content:
        return content.split("```")[1].split("```")[0].strip()
    return content.strip()


class LLMInsightStrategy(IInsightStrategy):
    """
    Insight strategy that asks a chat model for a JSON analysis.

    Any failure (transport, empty reply, malformed JSON) surfaces as
    LLMException so the service can fall back.
    """

    def __init__(self, llm_client: ILLMClient):
        self._llm = llm_client

    async def analyze(self, ticket: Ticket) -> Insight:
        messages = [
            {"role": "system", "content": InsightPromptBuilder.get_system_prompt()},
            {
                "role": "user",
                "content": InsightPromptBuilder.build_prompt(
                    ticket.subject,
                    ticket.description,
                    ticket.category,
                    ticket.priority.value
                )
            }
        ]

        response = await self._llm.chat_completion(
            messages=messages,
            temperature=settings.llm_temperature,
            max_tokens=settings.llm_max_tokens,
            operation="insight"
        )

        try:
            data = json.loads(extract_json(response.content))
            insight = Insight.from_payload(ticket.id, data, InsightSource.LLM)
        except json.JSONDecodeError as e:
            raise LLMException(f"Failed to parse insight response: {e}", {"ticket_id": ticket.id})
        except (TypeError, ValueError) as e:
            raise LLMException(f"Invalid insight response: {e}", {"ticket_id": ticket.id})

        logger.info(
            "LLM insight generated",
            extra={
                "ticket_id": ticket.id,
                "model": response.model,
                "latency_ms": response.latency_ms,
                "total_tokens": response.total_tokens
            }
        )
        return insight
