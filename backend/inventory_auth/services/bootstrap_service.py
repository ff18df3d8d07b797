"""Bootstrap helpers for default data."""

from __future__ import annotations

import logging

from inventory_auth.core.config import get_settings
from inventory_auth.db.session import get_sessionmaker
from inventory_auth.models import UserRole
from inventory_auth.services.user_service import create_user, get_user_by_email

logger = logging.getLogger(__name__)


async def ensure_default_admin() -> bool:
    """Create the configured default administrator if it does not yet exist."""

    settings = get_settings()
    if not settings.default_admin_email or not settings.default_admin_password:
        logger.debug("No default administrator configured")
        return False

    sessionmaker = get_sessionmaker(settings.database_url)
    async with sessionmaker() as session:
        existing = await get_user_by_email(session, settings.default_admin_email)
        if existing is not None:
            return False
        user = await create_user(
            session,
            email=settings.default_admin_email,
            password=settings.default_admin_password,
            name=settings.default_admin_name,
            role=UserRole.ADMINISTRATOR,
        )
    logger.info("Created default administrator %s", user.id)
    return True
