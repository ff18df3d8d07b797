"""User data access helpers."""
from __future__ import annotations

import logging
from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_auth.core.errors import DuplicateEmail, EmptyProfileUpdate, UserNotFound
from inventory_auth.core.security import get_password_hash_async
from inventory_auth.models.user import User, UserRole
from inventory_auth.schemas.user import ProfileUpdate

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    """Return a user by email address, ignoring case."""
    result = await session.execute(
        select(User).where(User.email == normalize_email(email))
    )
    return result.scalar_one_or_none()


async def get_user(session: AsyncSession, user_id: int) -> User | None:
    """Return a user by ID."""
    result = await session.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def require_user(session: AsyncSession, user_id: int) -> User:
    user = await get_user(session, user_id)
    if user is None:
        raise UserNotFound()
    return user


async def get_user_by_reset_token_hash(
    session: AsyncSession, token_hash: str
) -> User | None:
    result = await session.execute(
        select(User).where(User.reset_token_hash == token_hash)
    )
    return result.scalar_one_or_none()


async def list_users(
    session: AsyncSession,
    *,
    active: bool | None = None,
    role: UserRole | None = None,
) -> list[User]:
    """Return users, newest first, optionally filtered by state and role."""
    stmt = select(User)
    if active is not None:
        stmt = stmt.where(User.is_active == active)
    if role is not None:
        stmt = stmt.where(User.role == role)
    result = await session.execute(stmt.order_by(User.created_at.desc(), User.id.desc()))
    return list(result.scalars().all())


async def create_user(
    session: AsyncSession,
    *,
    email: str,
    password: str,
    name: str,
    phone_number: str | None = None,
    role: UserRole = UserRole.SELLER,
) -> User:
    """Persist a new user with hashed password."""
    email = normalize_email(email)
    if await get_user_by_email(session, email) is not None:
        raise DuplicateEmail()
    user = User(
        email=email,
        hashed_password=await get_password_hash_async(password),
        name=name,
        full_name=name,
        phone_number=phone_number,
        role=role,
        is_active=True,
        in_session=False,
    )
    session.add(user)
    try:
        await session.commit()
    except IntegrityError as exc:
        # concurrent registration of the same address
        await session.rollback()
        raise DuplicateEmail() from exc
    await session.refresh(user)
    return user


async def update_profile(
    session: AsyncSession, user: User, payload: ProfileUpdate
) -> User:
    """Apply the provided profile fields."""
    changes = payload.changes()
    if not changes:
        raise EmptyProfileUpdate()
    for field, value in changes.items():
        setattr(user, field, value)
    if "name" in changes:
        user.full_name = changes["name"]  # type: ignore[assignment]
    await session.commit()
    await session.refresh(user)
    return user


async def set_password(session: AsyncSession, user: User, password: str) -> User:
    user.hashed_password = await get_password_hash_async(password)
    await session.commit()
    return user


async def set_role(session: AsyncSession, user: User, role: UserRole) -> User:
    user.role = role
    await session.commit()
    await session.refresh(user)
    return user


async def set_active(session: AsyncSession, user: User, active: bool) -> User:
    user.is_active = active
    await session.commit()
    await session.refresh(user)
    return user


async def delete_user(session: AsyncSession, user: User) -> None:
    await session.delete(user)
    await session.commit()


async def mark_in_session(session: AsyncSession, user: User, in_session: bool) -> bool:
    """Update the presence flag; failures are logged and reported, not raised."""
    user_id = user.id
    user.in_session = in_session
    if not in_session:
        user.session_ended_at = datetime.now(UTC)
    try:
        await session.commit()
    except SQLAlchemyError:
        logger.exception("Could not update session flag for user %s", user_id)
        await session.rollback()
        return False
    return True
