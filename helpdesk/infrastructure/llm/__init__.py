"""
Chat Model Clients
==================

Thin async wrapper over a chat-completion provider, used only by the
advisory insight strategy. Insights depend on ILLMClient, so tests and
offline deployments can swap in MockLLMClient or no client at all.
"""

import json
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

from openai import AsyncOpenAI

from helpdesk.config import settings
from helpdesk.core import ConfigurationException, LLMException


@dataclass
class ChatCompletionResult:
    content: str
    model: str
    prompt_tokens: int
    completion_tokens: int
    latency_ms: int

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens


class ILLMClient(ABC):
    """A chat model that answers a list of role/content messages."""

    @abstractmethod
    async def chat_completion(
        self,
        messages: List[dict],
        temperature: float = 0.3,
        max_tokens: int = 1000,
        operation: str = "chat_completion"
    ) -> ChatCompletionResult:
        """Return the model's reply. Failures raise LLMException."""


class OpenAILLMClient(ILLMClient):
    """OpenAI chat completions through the official async SDK."""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        key = api_key or settings.openai_api_key
        if not key:
            raise ConfigurationException("OpenAI API key not configured")

        self._client = AsyncOpenAI(api_key=key)
        self._model = model or settings.llm_model

    async def chat_completion(
        self,
        messages: List[dict],
        temperature: float = 0.3,
        max_tokens: int = 1000,
        operation: str = "chat_completion"
    ) -> ChatCompletionResult:
        started = time.perf_counter()
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens
            )
        except Exception as e:
            raise LLMException(f"{operation} request failed: {e}", {"operation": operation})

        if not response.choices:
            raise LLMException(f"{operation} returned no choices", {"operation": operation})

        usage = response.usage
        return ChatCompletionResult(
            content=response.choices[0].message.content or "",
            model=self._model,
            prompt_tokens=getattr(usage, "prompt_tokens", 0) or 0,
            completion_tokens=getattr(usage, "completion_tokens", 0) or 0,
            latency_ms=int((time.perf_counter() - started) * 1000)
        )

    async def close(self) -> None:
        await self._client.close()


# Canned insight returned for every "insight" operation in mock mode.
MOCK_INSIGHT = {
    "sentiment": {"label": "Negative", "confidence": 82},
    "priority": {
        "level": "High",
        "reasoning": "Mock: customer reports a failure blocking their work."
    },
    "category": "Software",
    "rootCause": "Mock: a recent update likely broke the affected feature.",
    "resolutionSteps": [
        "Confirm the application version in use",
        "Reproduce the failure with the customer's steps",
        "Roll back or patch the faulty update"
    ],
    "observations": ["Mock: customer has already retried the action"]
}


class MockLLMClient(ILLMClient):
    """Deterministic stand-in that never leaves the process."""

    async def chat_completion(
        self,
        messages: List[dict],
        temperature: float = 0.3,
        max_tokens: int = 1000,
        operation: str = "chat_completion"
    ) -> ChatCompletionResult:
        if "insight" in operation.lower():
            content = f"```json\n{json.dumps(MOCK_INSIGHT, indent=2)}\n```"
        else:
            content = "Mock reply."

        return ChatCompletionResult(
            content=content,
            model="mock-model",
            prompt_tokens=sum(len(m.get("content", "").split()) for m in messages),
            completion_tokens=len(content.split()),
            latency_ms=0
        )


def build_llm_client() -> Optional[ILLMClient]:
    """
    Pick a client from settings: mock mode first, then OpenAI when a key
    is present. None means insights run on keywords only.
    """
    if settings.mock_llm:
        return MockLLMClient()
    if settings.openai_api_key:
        return OpenAILLMClient(settings.openai_api_key)
    return None
