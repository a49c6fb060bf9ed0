"""
User Application Layer
======================

Contains:
- Services: AuthService (credentials), UserService (directory)
- Repository/hasher interfaces they depend on
- DTOs: Request and response models
"""

from helpdesk.users.application.dto import (
    RegisterRequest,
    LoginRequest,
    ChangePasswordRequest,
    ResetPasswordRequest,
    ProfileUpdateRequest,
    UserCreateRequest,
    UserUpdateRequest,
    UserResponse,
    AuthResponse,
    PasswordResetResponse,
    MessageResponse,
)
from helpdesk.users.application.services import (
    AuthService,
    AuthResult,
    PasswordResetGrant,
    UserService,
    IUserRepository,
    ISessionTokenRepository,
    IPasswordResetRepository,
    IPasswordHasher,
    IAssignmentReleaser,
)

__all__ = [
    # DTOs
    "RegisterRequest",
    "LoginRequest",
    "ChangePasswordRequest",
    "ResetPasswordRequest",
    "ProfileUpdateRequest",
    "UserCreateRequest",
    "UserUpdateRequest",
    "UserResponse",
    "AuthResponse",
    "PasswordResetResponse",
    "MessageResponse",
    # Services
    "AuthService",
    "AuthResult",
    "PasswordResetGrant",
    "UserService",
    # Interfaces
    "IUserRepository",
    "ISessionTokenRepository",
    "IPasswordResetRepository",
    "IPasswordHasher",
    "IAssignmentReleaser",
]
