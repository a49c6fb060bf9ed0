"""
Insight Prompt Builder
======================

Builds prompts for LLM-based ticket analysis.
"""


class InsightPromptBuilder:
    """
    Builds prompts for ticket insight generation.

    Following DRY principle - all prompt logic in one place.
    """

    SYSTEM_PROMPT = """You are a helpdesk analyst assisting support agents.

Analyze the support ticket and return advisory insights for a human agent.
Never invent facts that are not implied by the ticket.

SENTIMENT: Positive, Neutral or Negative, with confidence 0-100.

PRIORITY LEVELS:
- Critical: Outage, data loss, security incident, many users blocked
- High: Core feature broken for the requester, no workaround
- Medium: Degraded behaviour, workaround available
- Low: Questions, how-to and feature requests

Respond ONLY in JSON format:
{
    "sentiment": {"label": "Negative", "confidence": 80},
    "priority": {"level": "High", "reasoning": "brief explanation"},
    "category": "Network",
    "rootCause": "most likely cause",
    "resolutionSteps": ["step 1", "step 2"],
    "observations": ["notable detail"]
}"""

    @classmethod
    def build_prompt(cls, subject: str, description: str, category: str, priority: str) -> str:
        """Build analysis prompt from ticket content."""
        return f"""Subject: {subject}
Current category: {category}
Current priority: {priority}

Description:
{description}

Analyze this ticket (respond with JSON only):"""

    @classmethod
    def get_system_prompt(cls) -> str:
        """Get the system prompt for insight generation."""
        return cls.SYSTEM_PROMPT
