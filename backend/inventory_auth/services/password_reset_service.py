"""Password reset services."""
from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from inventory_auth.core.config import get_settings
from inventory_auth.core.errors import ExpiredResetToken, InvalidResetToken
from inventory_auth.core.security import (
    generate_reset_token,
    get_password_hash_async,
    hash_reset_token,
)
from inventory_auth.models.user import User
from inventory_auth.services import user_service

logger = logging.getLogger(__name__)


def _reset_token_ttl() -> timedelta:
    return timedelta(minutes=get_settings().reset_token_ttl_minutes)


def _as_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


async def issue_reset_token(session: AsyncSession, user: User) -> tuple[str, datetime]:
    """Store a fresh reset grant on ``user``, replacing any outstanding one."""
    raw_token = generate_reset_token()
    expires_at = datetime.now(UTC) + _reset_token_ttl()
    user.set_reset_token(hash_reset_token(raw_token), expires_at)
    await session.commit()
    return raw_token, expires_at


async def request_reset(
    session: AsyncSession, *, email: str
) -> tuple[str, datetime, User] | None:
    """Issue a reset token for a known email; unknown emails are a silent no-op."""
    user = await user_service.get_user_by_email(session, email=email)
    if user is None:
        logger.info("Password reset requested for unknown email")
        return None
    raw_token, expires_at = await issue_reset_token(session, user)
    logger.info("Password reset token issued for user %s", user.id)
    return raw_token, expires_at, user


async def complete_reset(
    session: AsyncSession, *, token: str, new_password: str
) -> User:
    """Consume a reset token and set the new password."""
    user = await user_service.get_user_by_reset_token_hash(
        session, hash_reset_token(token)
    )
    if user is None or user.reset_token_expires_at is None:
        raise InvalidResetToken()

    if _as_aware(user.reset_token_expires_at) <= datetime.now(UTC):
        # an expired grant is spent; asking again requires a new token
        user.clear_reset_token()
        await session.commit()
        logger.info("Expired password reset token presented for user %s", user.id)
        raise ExpiredResetToken()

    user.hashed_password = await get_password_hash_async(new_password)
    user.clear_reset_token()
    await session.commit()
    logger.info("Password reset completed for user %s", user.id)
    return user
