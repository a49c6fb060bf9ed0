"""
User Interfaces Layer
=====================

FastAPI routers (auth, users) and the shared auth dependencies.
"""

from helpdesk.users.interfaces.controllers import auth_router, users_router
from helpdesk.users.interfaces.dependencies import (
    get_auth_service,
    get_current_session,
    get_user_service,
)

__all__ = [
    "auth_router",
    "users_router",
    "get_auth_service",
    "get_current_session",
    "get_user_service",
]
