"""User model backing the credential store."""
from __future__ import annotations

import enum
from datetime import UTC, date, datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from inventory_auth.db.base import Base


class UserRole(str, enum.Enum):
    """Role enumeration for platform permissions."""

    ADMINISTRATOR = "administrator"
    SELLER = "seller"

    @property
    def id(self) -> int:
        """Stable numeric id used on the wire as ``idRol``."""
        return _ROLE_IDS[self]

    @property
    def display_name(self) -> str:
        return _ROLE_NAMES[self]

    @classmethod
    def from_id(cls, role_id: int) -> UserRole:
        for role, value in _ROLE_IDS.items():
            if value == role_id:
                return role
        raise ValueError(f"Unknown role id {role_id}")


_ROLE_IDS: dict[UserRole, int] = {
    UserRole.ADMINISTRATOR: 1,
    UserRole.SELLER: 2,
}

_ROLE_NAMES: dict[UserRole, str] = {
    UserRole.ADMINISTRATOR: "Administrador",
    UserRole.SELLER: "Vendedor",
}


def _utcnow() -> datetime:
    return datetime.now(UTC)


class User(Base):
    """User entity for authentication and authorization."""

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            "(reset_token_hash IS NULL AND reset_token_expires_at IS NULL) OR "
            "(reset_token_hash IS NOT NULL AND reset_token_expires_at IS NOT NULL)",
            name="ck_users_reset_token_pair",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    full_name: Mapped[str | None] = mapped_column(String(255))
    phone_number: Mapped[str | None] = mapped_column(String(32))
    address: Mapped[str | None] = mapped_column(String(255))
    birth_date: Mapped[date | None] = mapped_column(Date)
    job_title: Mapped[str | None] = mapped_column(String(120))
    biography: Mapped[str | None] = mapped_column(Text)
    photo: Mapped[str | None] = mapped_column(Text)
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole), default=UserRole.SELLER, nullable=False
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    in_session: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    session_ended_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    reset_token_hash: Mapped[str | None] = mapped_column(String(64), unique=True)
    reset_token_expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True)
    )
    # newest-first listings order by this
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    def set_reset_token(self, token_hash: str, expires_at: datetime) -> None:
        """Record an outstanding reset grant, replacing any previous one."""
        self.reset_token_hash = token_hash
        self.reset_token_expires_at = expires_at

    def clear_reset_token(self) -> None:
        self.reset_token_hash = None
        self.reset_token_expires_at = None
