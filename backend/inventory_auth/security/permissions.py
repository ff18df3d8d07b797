"""Bearer token verification and role guards as FastAPI dependencies."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable
from typing import Annotated

from fastapi import Depends, Header

from inventory_auth.core.errors import Forbidden
from inventory_auth.core.security import TokenIdentity, verify_authorization_header
from inventory_auth.models.user import UserRole


def get_token_identity(
    authorization: Annotated[str | None, Header()] = None,
) -> TokenIdentity:
    """Authenticate the request from its bearer token alone."""
    return verify_authorization_header(authorization)


def get_optional_identity(authorization: str | None) -> TokenIdentity | None:
    """Like ``get_token_identity`` but an absent or blank header yields ``None``."""
    if authorization is None or not authorization.strip():
        return None
    return verify_authorization_header(authorization)


def ensure_role(identity: TokenIdentity, allowed: Iterable[UserRole]) -> TokenIdentity:
    """Raise ``Forbidden`` if the verified identity's role is not allowed."""

    if identity.role not in set(allowed):
        raise Forbidden()
    return identity


def require_role(*allowed: UserRole) -> Callable[..., Awaitable[TokenIdentity]]:
    """Build a dependency that authorizes a verified identity by role."""

    allowed_roles = frozenset(allowed)

    async def _guard(
        identity: Annotated[TokenIdentity, Depends(get_token_identity)],
    ) -> TokenIdentity:
        return ensure_role(identity, allowed_roles)

    return _guard


AdminIdentityDep = Annotated[
    TokenIdentity, Depends(require_role(UserRole.ADMINISTRATOR))
]


__all__ = [
    "AdminIdentityDep",
    "ensure_role",
    "get_optional_identity",
    "get_token_identity",
    "require_role",
]
