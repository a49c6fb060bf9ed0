"""
Access Domain Layer
===================

Contains:
- RolePolicy: Static role → action/route tables and rank comparisons
- VisibilityFilter: Role-based filtering of list and detail views
- SessionContext: The authenticated actor passed into both

Pure Python, no infrastructure dependencies.
"""

from helpdesk.access.domain.policy import Action, RolePolicy
from helpdesk.access.domain.visibility import VisibilityFilter
from helpdesk.access.domain.session import SessionContext

__all__ = [
    "Action",
    "RolePolicy",
    "VisibilityFilter",
    "SessionContext",
]
