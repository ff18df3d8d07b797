"""Authentication service helpers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from inventory_auth.core.errors import AccountDisabled, Forbidden, InvalidCredentials
from inventory_auth.core.security import (
    TokenIdentity,
    issue_session_token,
    verify_password_async,
)
from inventory_auth.models.user import User, UserRole
from inventory_auth.schemas.user import UserRead
from inventory_auth.services import user_service

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoginResult:
    token: str
    expires_at: datetime
    user: UserRead


async def authenticate_user(session: AsyncSession, email: str, password: str) -> User:
    """Validate credentials and return the matching active user."""
    user = await user_service.get_user_by_email(session, email=email)
    if user is None:
        raise InvalidCredentials()
    if not user.is_active:
        raise AccountDisabled()
    if not await verify_password_async(password, user.hashed_password):
        raise InvalidCredentials()
    return user


def create_access_token_for_user(user: User) -> tuple[str, datetime]:
    """Generate a JWT for a user."""
    return issue_session_token(user.id, user.role)


async def login(session: AsyncSession, *, email: str, password: str) -> LoginResult:
    """Authenticate, mint a bearer token and flag the user as in session."""
    user = await authenticate_user(session, email=email, password=password)
    token, expires_at = create_access_token_for_user(user)
    snapshot = UserRead.from_user(user).model_copy(update={"in_session": True})
    # a failed flag write rolls back and expires `user`; only the snapshot is safe now
    await user_service.mark_in_session(session, user, True)
    logger.info("User %s logged in", snapshot.id)
    return LoginResult(token=token, expires_at=expires_at, user=snapshot)


async def register(
    session: AsyncSession,
    *,
    email: str,
    password: str,
    name: str,
    phone_number: str | None,
    role: UserRole | None,
    caller: TokenIdentity | None,
) -> User:
    """Create a new account; only administrators may pick a non-default role."""
    requested = role or UserRole.SELLER
    if requested is not UserRole.SELLER and (
        caller is None or caller.role is not UserRole.ADMINISTRATOR
    ):
        raise Forbidden("Only administrators can assign elevated roles")
    user = await user_service.create_user(
        session,
        email=email,
        password=password,
        name=name,
        phone_number=phone_number,
        role=requested,
    )
    logger.info("Registered user %s with role %s", user.id, user.role.value)
    return user


async def refresh(session: AsyncSession, identity: TokenIdentity) -> tuple[str, datetime]:
    """Re-issue a session token for a still-active user."""
    user = await user_service.get_user(session, identity.user_id)
    if user is None or not user.is_active:
        raise AccountDisabled("Account is disabled or no longer exists")
    return create_access_token_for_user(user)


async def change_password(
    session: AsyncSession, user: User, *, current_password: str, new_password: str
) -> User:
    if not await verify_password_async(current_password, user.hashed_password):
        raise InvalidCredentials("Current password is incorrect")
    await user_service.set_password(session, user, new_password)
    logger.info("User %s changed their password", user.id)
    return user


async def logout(session: AsyncSession, user_id: int) -> None:
    """Clear the presence flag; the bearer token stays valid until it expires."""
    user = await user_service.require_user(session, user_id)
    await user_service.mark_in_session(session, user, False)
    logger.info("User %s logged out", user_id)
