"""
User Application DTOs
=====================

Pydantic request/response models for auth and user administration.
"""

from datetime import datetime
from typing import Annotated, Optional

from pydantic import AfterValidator, AliasChoices, BaseModel, ConfigDict, Field

from helpdesk.config import Role, UserStatus


def _normalize_email(value: str) -> str:
    value = value.strip().lower()
    local, _, domain = value.partition("@")
    if not local or "." not in domain:
        raise ValueError("Invalid email address")
    return value


EmailAddress = Annotated[str, AfterValidator(_normalize_email)]


# ========== Request DTOs ==========

class RegisterRequest(BaseModel):
    """Self-service sign-up. Always creates a Customer account."""
    email: EmailAddress = Field(..., max_length=255, description="Login email")
    password: str = Field(..., min_length=1, description="Plain-text password")
    name: Optional[str] = Field(None, max_length=255)
    department: Optional[str] = Field(None, max_length=255)


class LoginRequest(BaseModel):
    """Credentials for POST /auth/login."""
    email: str
    password: str


class ChangePasswordRequest(BaseModel):
    """Password change for the signed-in user."""
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=1)


class ResetPasswordRequest(BaseModel):
    """Body of POST /auth/reset-password; `newPassword` is accepted too."""
    email: str
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=1, validation_alias=AliasChoices("new_password", "newPassword"))


class ProfileUpdateRequest(BaseModel):
    """Fields a user may change on their own record."""
    name: Optional[str] = Field(None, max_length=255)
    department: Optional[str] = Field(None, max_length=255)


class UserCreateRequest(BaseModel):
    """Admin-created account with an explicit role."""
    email: EmailAddress = Field(..., max_length=255)
    password: str = Field(..., min_length=1)
    role: Role = Role.AGENT
    name: Optional[str] = Field(None, max_length=255)
    department: Optional[str] = Field(None, max_length=255)


class UserUpdateRequest(BaseModel):
    """Admin update of another user's record."""
    role: Optional[Role] = None
    name: Optional[str] = Field(None, max_length=255)
    department: Optional[str] = Field(None, max_length=255)


# ========== Response DTOs ==========

class UserResponse(BaseModel):
    """Public user record."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    role: Role
    name: Optional[str] = None
    department: Optional[str] = None
    status: UserStatus
    created_at: datetime


class AuthResponse(BaseModel):
    """Issued bearer credential plus the user record it belongs to."""
    token: str = Field(..., description="Opaque bearer token")
    token_type: str = "bearer"
    expires_at: datetime
    user: UserResponse


class PasswordResetResponse(BaseModel):
    """Admin-issued reset link; shown once, only its digest is stored."""
    user_id: str
    token: str
    expires_at: datetime
    reset_path: str = Field(..., description="Relative link carrying token and email")


class MessageResponse(BaseModel):
    message: str
