"""Authentication endpoints."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Header, status

from inventory_auth.api.deps import (
    CurrentUserDep,
    DispatcherDep,
    IdentityDep,
    SessionDep,
)
from inventory_auth.core.config import get_settings
from inventory_auth.models.user import UserRole
from inventory_auth.schemas.auth import (
    ChangePasswordRequest,
    LoginRequest,
    LoginResponse,
    LogoutResponse,
    MessageResponse,
    PasswordResetConfirm,
    PasswordResetRequest,
    PasswordResetRequestResponse,
    RegistrationRequest,
    RegistrationResponse,
    TokenRefreshResponse,
)
from inventory_auth.security.permissions import get_optional_identity
from inventory_auth.security.rate_limit import parse_rate, rate_dependency
from inventory_auth.services import auth_service, notification_service, password_reset_service

router = APIRouter()

_settings = get_settings()

_LOGIN_RATE_DEP = rate_dependency(
    parse_rate(_settings.rate_limit_login, fallback=(5, 15 * 60))
)

_RESET_REQUESTED_MESSAGE = (
    "If the email exists in our system, you will receive a recovery link shortly."
)


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Obtain access token",
    dependencies=[_LOGIN_RATE_DEP],
)
async def login(payload: LoginRequest, session: SessionDep) -> LoginResponse:
    """Validate credentials and issue a bearer token."""
    result = await auth_service.login(
        session, email=payload.email, password=payload.password
    )
    return LoginResponse(
        message="Login successful",
        token=result.token,
        expires_at=result.expires_at,
        usuario=result.user,
    )


@router.post(
    "/registro",
    response_model=RegistrationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register user",
)
async def register(
    payload: RegistrationRequest,
    session: SessionDep,
    authorization: Annotated[str | None, Header()] = None,
) -> RegistrationResponse:
    role = UserRole.from_id(payload.role_id) if payload.role_id is not None else None
    # the bearer only matters when it has to vouch for an elevated role
    caller = None
    if role not in (None, UserRole.SELLER):
        caller = get_optional_identity(authorization)
    user = await auth_service.register(
        session,
        email=payload.email,
        password=payload.password,
        name=payload.name,
        phone_number=payload.phone_number,
        role=role,
        caller=caller,
    )
    return RegistrationResponse(
        message="User registered successfully",
        id=user.id,
        name=user.name,
        email=user.email,
        phone_number=user.phone_number,
        role_id=user.role.id,
    )


@router.post(
    "/forgot-password",
    response_model=PasswordResetRequestResponse,
    response_model_exclude_none=True,
    summary="Request password reset",
)
async def forgot_password(
    payload: PasswordResetRequest,
    session: SessionDep,
    dispatcher: DispatcherDep,
    background_tasks: BackgroundTasks,
) -> PasswordResetRequestResponse:
    token_info = await password_reset_service.request_reset(
        session, email=payload.email
    )
    if token_info is None:
        return PasswordResetRequestResponse(message=_RESET_REQUESTED_MESSAGE)

    raw_token, _, user = token_info
    notification_service.schedule(
        background_tasks,
        dispatcher.send_password_reset,
        email=user.email,
        name=user.name,
        token=raw_token,
    )
    debug = {"token": raw_token} if _settings.app_env == "development" else None
    return PasswordResetRequestResponse(message=_RESET_REQUESTED_MESSAGE, debug=debug)


@router.post(
    "/reset-password",
    response_model=MessageResponse,
    summary="Confirm password reset",
)
async def reset_password(
    payload: PasswordResetConfirm,
    session: SessionDep,
    dispatcher: DispatcherDep,
    background_tasks: BackgroundTasks,
) -> MessageResponse:
    user = await password_reset_service.complete_reset(
        session, token=payload.token, new_password=payload.new_password
    )
    notification_service.schedule(
        background_tasks,
        dispatcher.send_password_changed,
        email=user.email,
        name=user.name,
    )
    return MessageResponse(
        message="Password reset successfully. You can now log in with your new password."
    )


@router.post("/refresh", response_model=TokenRefreshResponse, summary="Renew token")
async def refresh_token(
    identity: IdentityDep, session: SessionDep
) -> TokenRefreshResponse:
    token, expires_at = await auth_service.refresh(session, identity)
    return TokenRefreshResponse(
        message="Token renewed successfully", token=token, expires_at=expires_at
    )


@router.post(
    "/cambiar-contraseña", response_model=MessageResponse, summary="Change own password"
)
async def change_password(
    payload: ChangePasswordRequest,
    current_user: CurrentUserDep,
    session: SessionDep,
    dispatcher: DispatcherDep,
    background_tasks: BackgroundTasks,
) -> MessageResponse:
    user = await auth_service.change_password(
        session,
        current_user,
        current_password=payload.current_password,
        new_password=payload.new_password,
    )
    notification_service.schedule(
        background_tasks,
        dispatcher.send_password_changed,
        email=user.email,
        name=user.name,
    )
    return MessageResponse(message="Password changed successfully")


@router.patch("/logout", response_model=LogoutResponse, summary="End session")
async def logout(identity: IdentityDep, session: SessionDep) -> LogoutResponse:
    await auth_service.logout(session, identity.user_id)
    return LogoutResponse(message="Session closed successfully", timestamp=datetime.now(UTC))
