"""
Keyword Classifier
==================

Deterministic, offline insight generation from ticket text.

Every rule is a static table lookup, so the same ticket always yields
the same insight.
"""

import re
from typing import Dict, List, Optional, Tuple

from helpdesk.config import Priority, Sentiment
from helpdesk.insights.domain.entities import (
    Insight,
    InsightSource,
    PrioritySuggestion,
    SentimentAssessment,
)

NEGATIVE_TERMS = (
    "angry", "annoyed", "frustrated", "frustrating", "terrible", "awful",
    "worst", "unacceptable", "disappointed", "useless", "broken",
    "not working", "still not", "again", "ridiculous", "fed up",
)
POSITIVE_TERMS = (
    "thank", "thanks", "appreciate", "great", "awesome", "excellent",
    "love", "helpful", "working now", "perfect",
)

PRIORITY_TERMS: Tuple[Tuple[Priority, Tuple[str, ...]], ...] = (
    (Priority.CRITICAL, (
        "outage", "down for everyone", "all users", "data loss", "security",
        "breach", "hacked", "production down", "system down", "cannot access anything",
    )),
    (Priority.HIGH, (
        "urgent", "asap", "immediately", "not working", "crash", "crashes",
        "error", "failed", "fails", "blocked", "cannot", "can't", "unable",
    )),
    (Priority.LOW, (
        "question", "how to", "how do i", "feature request", "suggestion",
        "documentation", "when possible", "no rush",
    )),
)

CATEGORY_TERMS: Dict[str, Tuple[str, ...]] = {
    "Network": ("vpn", "wifi", "wi-fi", "network", "internet", "connection", "dns", "firewall"),
    "Hardware": ("laptop", "printer", "monitor", "keyboard", "mouse", "device", "screen", "battery"),
    "Software": ("install", "update", "upgrade", "application", "software", "bug", "crash", "app"),
    "Account": ("password", "login", "log in", "sign in", "account", "locked", "permission", "access"),
    "Billing": ("invoice", "billing", "payment", "refund", "charge", "subscription"),
    "Email": ("email", "e-mail", "outlook", "mailbox", "inbox", "attachment"),
}

ROOT_CAUSES: Dict[str, str] = {
    "Network": "Connectivity problem between the user's device and the network or VPN gateway.",
    "Hardware": "Faulty or misconfigured device or peripheral.",
    "Software": "Application defect or a recent install/update left the software in a bad state.",
    "Account": "Credential, lockout or permission problem on the user's account.",
    "Billing": "Mismatch between the account's billing records and the expected charges.",
    "Email": "Mail client configuration or mailbox problem.",
}

RESOLUTION_STEPS: Dict[str, List[str]] = {
    "Network": [
        "Confirm the user's network connection and location",
        "Check VPN/gateway status for known incidents",
        "Reset the network adapter or reconnect the VPN client",
    ],
    "Hardware": [
        "Collect device model and asset tag",
        "Run the vendor's hardware diagnostics",
        "Arrange a repair or replacement if diagnostics fail",
    ],
    "Software": [
        "Record the application version and exact error message",
        "Reproduce the issue on a test machine",
        "Reinstall or roll back the latest update",
    ],
    "Account": [
        "Verify the user's identity",
        "Check for lockout and reset credentials if needed",
        "Review group memberships and permissions",
    ],
    "Billing": [
        "Pull the relevant invoices and payment records",
        "Compare charges with the subscription plan",
        "Issue a correction or refund if a discrepancy is confirmed",
    ],
    "Email": [
        "Check mailbox quota and service status",
        "Verify mail client account settings",
        "Recreate the mail profile if the problem persists",
    ],
}

GENERIC_STEPS = [
    "Acknowledge the ticket and confirm the details with the requester",
    "Reproduce or verify the reported behaviour",
    "Apply a fix or escalate to the responsible team",
]


def _matches(text: str, terms) -> List[str]:
    """Terms present in text as whole words/phrases, in table order."""
    return [term for term in terms if re.search(rf"(?<!\w){re.escape(term)}(?!\w)", text)]


class KeywordClassifier:
    """
    Rule-based insight generation.

    Stateless utility class - all keyword tables in one place.
    """

    @staticmethod
    def sentiment(text: str) -> SentimentAssessment:
        negative = len(_matches(text, NEGATIVE_TERMS))
        positive = len(_matches(text, POSITIVE_TERMS))
        score = positive - negative
        if score == 0:
            return SentimentAssessment(Sentiment.NEUTRAL, 60)
        label = Sentiment.POSITIVE if score > 0 else Sentiment.NEGATIVE
        return SentimentAssessment(label, min(95, 60 + 10 * abs(score)))

    @staticmethod
    def priority(text: str) -> PrioritySuggestion:
        for level, terms in PRIORITY_TERMS:
            found = _matches(text, terms)
            if found:
                quoted = ", ".join(f"'{term}'" for term in found[:3])
                return PrioritySuggestion(level, f"Ticket mentions {quoted}.")
        return PrioritySuggestion(Priority.MEDIUM, "No urgency indicators found.")

    @staticmethod
    def category(text: str) -> Optional[str]:
        best, best_hits = None, 0
        for name, terms in CATEGORY_TERMS.items():
            hits = len(_matches(text, terms))
            if hits > best_hits:
                best, best_hits = name, hits
        return best

    @staticmethod
    def observations(text: str) -> List[str]:
        notes = []
        if _matches(text, ("again", "still", "keeps", "repeatedly", "second time")):
            notes.append("Requester indicates the problem is recurring.")
        if _matches(text, ("everyone", "all users", "whole team", "entire office", "nobody")):
            notes.append("Issue may affect multiple users.")
        if _matches(text, ("deadline", "today", "meeting", "client", "customer demo")):
            notes.append("Requester has a time-sensitive dependency.")
        if _matches(text, ("tried", "restarted", "rebooted", "reinstalled", "cleared")):
            notes.append("Requester has already attempted basic troubleshooting.")
        return notes

    @classmethod
    def analyze(cls, ticket_id: str, subject: str, description: str) -> Insight:
        """Build an insight from the ticket's subject and description."""
        text = f"{subject}\n{description}".lower()
        category = cls.category(text)
        return Insight(
            ticket_id=ticket_id,
            sentiment=cls.sentiment(text),
            priority=cls.priority(text),
            source=InsightSource.KEYWORD,
            category=category,
            root_cause=ROOT_CAUSES.get(category),
            resolution_steps=list(RESOLUTION_STEPS.get(category, GENERIC_STEPS)),
            observations=cls.observations(text),
        )
