"""
Visibility Filter
=================

Given a role and a collection of replies, knowledge base articles or
ticket projections, return what that role may see.

Pure and total: never raises for an empty list or a malformed role.
Unknown roles get Customer treatment, and items missing the flag that
decides their visibility are treated as hidden.
"""

from typing import Any, Dict, FrozenSet, Iterable, List, Mapping

from helpdesk.access.domain.policy import RolePolicy
from helpdesk.config import ArticleVisibility


_MISSING = object()


def _read(item: Any, name: str) -> Any:
    """Read a field from either a mapping or an object."""
    if isinstance(item, Mapping):
        return item.get(name, _MISSING)
    return getattr(item, name, _MISSING)


class VisibilityFilter:
    """Role-based filtering for every list/detail view."""

    # Ticket columns never shown to a Customer
    STAFF_ONLY_TICKET_FIELDS: FrozenSet[str] = frozenset({
        "assigned_agent_id",
        "assigned_agent_name",
        "time_spent_minutes",
    })

    @staticmethod
    def replies(role: Any, items: Iterable[Any]) -> List[Any]:
        """Drop internal notes unless the role is staff."""
        items = list(items or [])
        if RolePolicy.is_staff(role):
            return items
        return [item for item in items if _read(item, "is_internal") is False]

    @staticmethod
    def articles(role: Any, items: Iterable[Any]) -> List[Any]:
        """Drop non-public articles unless the role is staff."""
        items = list(items or [])
        if RolePolicy.is_staff(role):
            return items

        visible = []
        for item in items:
            value = _read(item, "visibility")
            value = getattr(value, "value", value)
            if isinstance(value, str) and value.upper() == ArticleVisibility.PUBLIC.value:
                visible.append(item)
        return visible

    @classmethod
    def ticket_fields(cls, role: Any) -> FrozenSet[str]:
        """Ticket columns hidden from the role."""
        if RolePolicy.is_staff(role):
            return frozenset()
        return cls.STAFF_ONLY_TICKET_FIELDS

    @classmethod
    def project_ticket(cls, role: Any, ticket: Mapping[str, Any]) -> Dict[str, Any]:
        """Copy of a ticket mapping with the role's hidden columns removed."""
        hidden = cls.ticket_fields(role)
        return {key: value for key, value in dict(ticket or {}).items() if key not in hidden}

    @classmethod
    def project_tickets(cls, role: Any, tickets: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
        return [cls.project_ticket(role, ticket) for ticket in (tickets or [])]
