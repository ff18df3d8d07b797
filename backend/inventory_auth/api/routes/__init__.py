"""Routed API modules."""

from fastapi import APIRouter

from . import auth, health, roles, users

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/usuarios", tags=["auth"])
router.include_router(users.router, prefix="/usuarios", tags=["users"])
router.include_router(roles.router, prefix="/roles", tags=["roles"])
