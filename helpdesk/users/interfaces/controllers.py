"""
User Controllers (API Routes)
=============================

FastAPI routes for authentication and the user directory.

Controllers are thin - they delegate to application services.
"""

from typing import List
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Query, status

from helpdesk.access.domain import SessionContext
from helpdesk.users.application import (
    AuthResult,
    AuthService,
    UserService,
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
from helpdesk.users.interfaces.dependencies import (
    get_auth_service,
    get_current_session,
    get_user_service,
)
from helpdesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)
auth_router = APIRouter(prefix="/auth", tags=["Auth"])
users_router = APIRouter(prefix="/users", tags=["Users"])


def _auth_response(result: AuthResult) -> AuthResponse:
    return AuthResponse(
        token=result.token,
        expires_at=result.expires_at,
        user=UserResponse.model_validate(result.user)
    )


# ========== Auth ==========

@auth_router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a customer account"
)
async def register(
    request: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> AuthResponse:
    return _auth_response(await auth_service.register(request))


@auth_router.post(
    "/login",
    response_model=AuthResponse,
    summary="Exchange credentials for a bearer token"
)
async def login(
    request: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> AuthResponse:
    return _auth_response(await auth_service.login(request.email, request.password))


@auth_router.post(
    "/change-password",
    response_model=MessageResponse,
    summary="Change the signed-in user's password"
)
async def change_password(
    request: ChangePasswordRequest,
    session: SessionContext = Depends(get_current_session),
    auth_service: AuthService = Depends(get_auth_service)
) -> MessageResponse:
    await auth_service.change_password(session, request.current_password, request.new_password)
    return MessageResponse(message="Password updated")


@auth_router.post(
    "/reset-password",
    response_model=MessageResponse,
    summary="Set a new password with a reset link"
)
async def reset_password(
    request: ResetPasswordRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> MessageResponse:
    await auth_service.reset_password(request.email, request.token, request.new_password)
    return MessageResponse(message="Password has been reset. Please sign in.")


# ========== Users ==========

@users_router.get(
    "",
    response_model=List[UserResponse],
    summary="List users",
    description="Full directory for Admin/Super Admin; `staff_only=true` lists staff for any staff role."
)
async def list_users(
    staff_only: bool = Query(False, description="Only Agent/Manager/Admin/Super Admin users"),
    session: SessionContext = Depends(get_current_session),
    user_service: UserService = Depends(get_user_service)
) -> List[UserResponse]:
    users = await user_service.list_users(session, staff_only=staff_only)
    return [UserResponse.model_validate(user) for user in users]


@users_router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a user with an explicit role"
)
async def create_user(
    request: UserCreateRequest,
    session: SessionContext = Depends(get_current_session),
    user_service: UserService = Depends(get_user_service)
) -> UserResponse:
    return UserResponse.model_validate(await user_service.create_user(session, request))


@users_router.get("/me", response_model=UserResponse, summary="Signed-in user's record")
async def get_me(
    session: SessionContext = Depends(get_current_session),
    user_service: UserService = Depends(get_user_service)
) -> UserResponse:
    return UserResponse.model_validate(await user_service.get(session.user_id))


@users_router.patch("/me", response_model=UserResponse, summary="Update own profile")
async def update_me(
    request: ProfileUpdateRequest,
    session: SessionContext = Depends(get_current_session),
    user_service: UserService = Depends(get_user_service)
) -> UserResponse:
    return UserResponse.model_validate(await user_service.update_profile(session, request))


@users_router.patch("/{user_id}", response_model=UserResponse, summary="Update another user")
async def update_user(
    user_id: str,
    request: UserUpdateRequest,
    session: SessionContext = Depends(get_current_session),
    user_service: UserService = Depends(get_user_service)
) -> UserResponse:
    return UserResponse.model_validate(await user_service.update_user(session, user_id, request))


@users_router.patch(
    "/{user_id}/status",
    response_model=UserResponse,
    summary="Toggle a user between Active and Inactive"
)
async def toggle_user_status(
    user_id: str,
    session: SessionContext = Depends(get_current_session),
    user_service: UserService = Depends(get_user_service)
) -> UserResponse:
    return UserResponse.model_validate(await user_service.toggle_status(session, user_id))


@users_router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a user"
)
async def delete_user(
    user_id: str,
    session: SessionContext = Depends(get_current_session),
    user_service: UserService = Depends(get_user_service)
) -> None:
    await user_service.delete_user(session, user_id)


@users_router.post(
    "/{user_id}/password-reset",
    response_model=PasswordResetResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Issue a one-time password reset link for a user"
)
async def issue_password_reset(
    user_id: str,
    session: SessionContext = Depends(get_current_session),
    user_service: UserService = Depends(get_user_service),
    auth_service: AuthService = Depends(get_auth_service)
) -> PasswordResetResponse:
    user = await user_service.authorize_password_reset(session, user_id)
    grant = await auth_service.issue_password_reset(user)
    return PasswordResetResponse(
        user_id=user.id,
        token=grant.token,
        expires_at=grant.expires_at,
        reset_path="/reset-password?" + urlencode({"token": grant.token, "email": user.email})
    )
