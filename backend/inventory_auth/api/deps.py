"""Common API dependencies."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_auth.core.security import TokenIdentity
from inventory_auth.db.session import get_session
from inventory_auth.models.user import User
from inventory_auth.security.permissions import get_token_identity
from inventory_auth.services import user_service
from inventory_auth.services.notification_service import (
    Dispatcher,
    get_notification_dispatcher,
)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide an async database session."""
    async for session in get_session():
        yield session


async def get_current_user(
    identity: Annotated[TokenIdentity, Depends(get_token_identity)],
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> User:
    """Load the account behind a verified token."""
    return await user_service.require_user(session, identity.user_id)


SessionDep = Annotated[AsyncSession, Depends(get_db_session)]
IdentityDep = Annotated[TokenIdentity, Depends(get_token_identity)]
CurrentUserDep = Annotated[User, Depends(get_current_user)]
DispatcherDep = Annotated[Dispatcher, Depends(get_notification_dispatcher)]
