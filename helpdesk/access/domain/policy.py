"""
Role Policy
===========

Static mapping of role → permitted actions and navigational areas.

Every permission question in the application is answered here; views,
services and the state machine never carry their own allow-lists.
All queries are pure functions of static tables. Anything that does not
resolve to a known role is treated as a Customer (fail closed).
"""

from enum import Enum
from typing import Any, Dict, FrozenSet

from helpdesk.config import Role, RouteId


class Action(str, Enum):
    """Actions gated by role."""
    VIEW_TICKETS = "view tickets"
    CREATE_TICKET = "create tickets"
    CHANGE_STATUS = "change ticket status"
    ASSIGN_AGENT = "assign tickets"
    POST_REPLY = "reply to tickets"
    POST_INTERNAL_NOTE = "post internal notes"
    VIEW_INTERNAL = "view internal content"
    LOG_TIME = "log time on tickets"
    RATE_TICKET = "rate tickets"
    VIEW_INSIGHTS = "view ticket insights"
    CREATE_ARTICLE = "create knowledge base articles"
    MANAGE_USERS = "manage users"
    VIEW_ANALYTICS = "view analytics"


_ALL_ROLES: FrozenSet[Role] = frozenset(Role)
_STAFF: FrozenSet[Role] = frozenset({Role.AGENT, Role.MANAGER, Role.ADMIN, Role.SUPER_ADMIN})
_ADMINS: FrozenSet[Role] = frozenset({Role.ADMIN, Role.SUPER_ADMIN})
_REPORTING: FrozenSet[Role] = frozenset({Role.MANAGER, Role.ADMIN, Role.SUPER_ADMIN})


class RolePolicy:
    """
    Centralized role policy.

    Stateless utility class - all permission tables in one place.
    """

    RANKS: Dict[Role, int] = {
        Role.CUSTOMER: 0,
        Role.AGENT: 1,
        Role.MANAGER: 2,
        Role.ADMIN: 3,
        Role.SUPER_ADMIN: 4,
    }

    ACTIONS: Dict[Action, FrozenSet[Role]] = {
        Action.VIEW_TICKETS: _ALL_ROLES,
        Action.CREATE_TICKET: _ALL_ROLES,
        Action.CHANGE_STATUS: _STAFF,
        Action.ASSIGN_AGENT: _ADMINS,
        Action.POST_REPLY: _ALL_ROLES,
        Action.POST_INTERNAL_NOTE: _STAFF,
        Action.VIEW_INTERNAL: _STAFF,
        Action.LOG_TIME: _STAFF,
        Action.RATE_TICKET: _ALL_ROLES,
        Action.VIEW_INSIGHTS: _STAFF,
        Action.CREATE_ARTICLE: _STAFF,
        Action.MANAGE_USERS: _ADMINS,
        Action.VIEW_ANALYTICS: _REPORTING,
    }

    ROUTES: Dict[RouteId, FrozenSet[Role]] = {
        RouteId.DASHBOARD: _REPORTING,
        RouteId.ANALYTICS: _REPORTING,
        RouteId.TICKETS: _ALL_ROLES,
        RouteId.USERS: _ADMINS,
        RouteId.KNOWLEDGE_BASE: _ALL_ROLES,
        RouteId.NOTIFICATIONS: _ALL_ROLES,
    }

    @staticmethod
    def resolve_role(value: Any) -> Role:
        """
        Coerce any input to a Role.

        Accepts Role members or their string values ("Super Admin").
        Missing or unrecognized input resolves to Customer.
        """
        if isinstance(value, Role):
            return value
        if isinstance(value, str):
            try:
                return Role(value.strip())
            except ValueError:
                return Role.CUSTOMER
        return Role.CUSTOMER

    @classmethod
    def rank(cls, role: Any) -> int:
        """Position of the role in the total order (Customer = 0)."""
        return cls.RANKS[cls.resolve_role(role)]

    @classmethod
    def is_staff(cls, role: Any) -> bool:
        """Any role other than Customer."""
        return cls.resolve_role(role) in _STAFF

    @classmethod
    def is_allowed(cls, role: Any, action: Any) -> bool:
        """Whether the role may perform the action; unknown actions are denied."""
        try:
            action = Action(action)
        except ValueError:
            return False
        return cls.resolve_role(role) in cls.ACTIONS[action]

    @classmethod
    def can_view_route(cls, role: Any, route: Any) -> bool:
        """Static allow-list per navigational area; unknown routes are denied."""
        try:
            route = RouteId(route)
        except ValueError:
            return False
        return cls.resolve_role(role) in cls.ROUTES[route]

    @classmethod
    def can_change_status(cls, role: Any) -> bool:
        return cls.is_allowed(role, Action.CHANGE_STATUS)

    @classmethod
    def can_assign_agent(cls, role: Any) -> bool:
        return cls.is_allowed(role, Action.ASSIGN_AGENT)

    @classmethod
    def can_manage_user(cls, actor_role: Any, target_role: Any) -> bool:
        """
        True iff the actor strictly outranks the target.

        A role can never manage a peer, a superior, or itself.
        """
        return cls.rank(actor_role) > cls.rank(target_role)
