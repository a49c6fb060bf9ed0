"""
User Domain Layer
=================

Contains:
- User: Directory entry with role and activity status
"""

from helpdesk.users.domain.entities import User

__all__ = ["User"]
