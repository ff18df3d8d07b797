"""User profile and administration endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Query

from inventory_auth.api.deps import CurrentUserDep, SessionDep
from inventory_auth.core.errors import SelfModification
from inventory_auth.models.user import UserRole
from inventory_auth.schemas.auth import MessageResponse
from inventory_auth.schemas.user import (
    ProfileUpdate,
    RoleUpdate,
    StatusUpdate,
    UserEnvelope,
    UserListResponse,
    UserRead,
    UserUpdateResponse,
)
from inventory_auth.security.permissions import AdminIdentityDep
from inventory_auth.services import user_service

router = APIRouter()

logger = logging.getLogger(__name__)


@router.get("/me", response_model=UserEnvelope, summary="Current user profile")
async def read_current_user(current_user: CurrentUserDep) -> UserEnvelope:
    """Return the authenticated user's profile."""
    return UserEnvelope(usuario=UserRead.from_user(current_user))


@router.get("/perfil", response_model=UserEnvelope, summary="Current user profile")
async def read_profile(current_user: CurrentUserDep) -> UserEnvelope:
    return UserEnvelope(usuario=UserRead.from_user(current_user))


@router.put("/perfil", response_model=UserUpdateResponse, summary="Update own profile")
async def update_profile(
    payload: ProfileUpdate, current_user: CurrentUserDep, session: SessionDep
) -> UserUpdateResponse:
    user = await user_service.update_profile(session, current_user, payload)
    return UserUpdateResponse(
        message="Profile updated successfully", usuario=UserRead.from_user(user)
    )


@router.get("", response_model=UserListResponse, summary="List users")
async def list_users(
    admin: AdminIdentityDep,
    session: SessionDep,
    estado: bool | None = Query(default=None),
    rol: int | None = Query(default=None, ge=1, le=len(UserRole)),
) -> UserListResponse:
    """Return users, newest first; ``estado`` and ``rol`` filter the listing."""
    role = UserRole.from_id(rol) if rol is not None else None
    users = await user_service.list_users(session, active=estado, role=role)
    return UserListResponse(usuarios=[UserRead.from_user(obj) for obj in users])


@router.get("/{user_id}", response_model=UserEnvelope, summary="Get user by ID")
async def read_user(
    user_id: int, admin: AdminIdentityDep, session: SessionDep
) -> UserEnvelope:
    user = await user_service.require_user(session, user_id)
    return UserEnvelope(usuario=UserRead.from_user(user))


@router.patch("/{user_id}/rol", response_model=UserUpdateResponse, summary="Change role")
async def update_role(
    user_id: int, payload: RoleUpdate, admin: AdminIdentityDep, session: SessionDep
) -> UserUpdateResponse:
    if user_id == admin.user_id:
        raise SelfModification("You cannot change your own role")
    user = await user_service.require_user(session, user_id)
    user = await user_service.set_role(session, user, payload.role)
    logger.info("Administrator %s set role of user %s to %s", admin.user_id, user_id, payload.role.value)
    return UserUpdateResponse(
        message="Role updated successfully", usuario=UserRead.from_user(user)
    )


@router.patch("/{user_id}/estado", response_model=MessageResponse, summary="Enable or disable")
async def update_status(
    user_id: int, payload: StatusUpdate, admin: AdminIdentityDep, session: SessionDep
) -> MessageResponse:
    if user_id == admin.user_id:
        raise SelfModification("You cannot change your own status")
    user = await user_service.require_user(session, user_id)
    await user_service.set_active(session, user, payload.active)
    logger.info("Administrator %s set active=%s for user %s", admin.user_id, payload.active, user_id)
    verb = "activated" if payload.active else "deactivated"
    return MessageResponse(message=f"User {verb} successfully")


@router.delete("/{user_id}", response_model=MessageResponse, summary="Delete user")
async def delete_user(
    user_id: int, admin: AdminIdentityDep, session: SessionDep
) -> MessageResponse:
    if user_id == admin.user_id:
        raise SelfModification("You cannot delete your own account")
    user = await user_service.require_user(session, user_id)
    await user_service.delete_user(session, user)
    logger.info("Administrator %s deleted user %s", admin.user_id, user_id)
    return MessageResponse(message="User deleted successfully")
