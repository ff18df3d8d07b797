"""Authentication schemas."""
from __future__ import annotations

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from inventory_auth.models.user import UserRole
from inventory_auth.schemas.user import UserRead

_PASSWORD_COMPLEXITY = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)")


class MessageResponse(BaseModel):
    message: str


class LoginRequest(BaseModel):
    """Login payload."""

    email: EmailStr
    password: str = Field(alias="contraseña", min_length=1)

    model_config = ConfigDict(populate_by_name=True)


class LoginResponse(BaseModel):
    message: str
    token: str
    expires_at: datetime = Field(alias="expiresAt")
    usuario: UserRead

    model_config = ConfigDict(populate_by_name=True)


class TokenRefreshResponse(BaseModel):
    message: str
    token: str
    expires_at: datetime = Field(alias="expiresAt")

    model_config = ConfigDict(populate_by_name=True)


class RegistrationRequest(BaseModel):
    """Self-service registration payload."""

    name: str = Field(alias="nombre", min_length=3, max_length=120)
    email: EmailStr
    password: str = Field(alias="contraseña", min_length=6)
    phone_number: str | None = Field(default=None, alias="telefono", max_length=32)
    role_id: int | None = Field(default=None, alias="idRol")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value

    @field_validator("role_id")
    @classmethod
    def _known_role(cls, value: int | None) -> int | None:
        if value is not None:
            UserRole.from_id(value)
        return value


class RegistrationResponse(BaseModel):
    message: str
    id: int = Field(alias="idUsuario")
    name: str = Field(alias="nombre")
    email: str
    phone_number: str | None = Field(default=None, alias="telefono")
    role_id: int = Field(alias="idRol")

    model_config = ConfigDict(populate_by_name=True)


class PasswordResetRequest(BaseModel):
    """Request body to initiate a password reset."""

    email: EmailStr


class PasswordResetRequestResponse(BaseModel):
    """Generic response; ``debug`` is only populated in development."""

    message: str
    debug: dict[str, str] | None = None


class PasswordResetConfirm(BaseModel):
    """Payload to finalize a password reset."""

    token: str = Field(min_length=1)
    new_password: str = Field(alias="contraseña", min_length=6)

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("new_password")
    @classmethod
    def _complexity(cls, value: str) -> str:
        if not _PASSWORD_COMPLEXITY.match(value):
            raise ValueError(
                "Password must contain upper-case, lower-case letters and digits"
            )
        return value


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(alias="contraseñaActual", min_length=1)
    new_password: str = Field(alias="contraseñaNueva", min_length=6)

    model_config = ConfigDict(populate_by_name=True)


class LogoutResponse(BaseModel):
    message: str
    timestamp: datetime
