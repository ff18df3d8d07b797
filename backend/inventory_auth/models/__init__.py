"""ORM models."""

from inventory_auth.models.user import User, UserRole

__all__ = ["User", "UserRole"]
