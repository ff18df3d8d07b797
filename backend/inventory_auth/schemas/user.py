"""User-related schemas."""

from __future__ import annotations

import base64
import binascii
from datetime import date, datetime

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
)

from inventory_auth.models.user import UserRole

_MAX_PHOTO_BYTES = 3 * 1024 * 1024


class UserRead(BaseModel):
    """Sanitized user representation; never carries the password hash."""

    id: int = Field(alias="idUsuario")
    name: str = Field(alias="nombre")
    full_name: str | None = Field(default=None, alias="nombreCompleto")
    email: str
    phone_number: str | None = Field(default=None, alias="telefono")
    photo: str | None = Field(default=None, alias="fotoPerfil")
    address: str | None = Field(default=None, alias="direccion")
    birth_date: date | None = Field(default=None, alias="fechaNacimiento")
    job_title: str | None = Field(default=None, alias="cargo")
    biography: str | None = Field(default=None, alias="biografia")
    is_active: bool = Field(alias="estado")
    in_session: bool = Field(alias="enSesion")
    session_ended_at: datetime | None = Field(
        default=None, alias="fechaFinSesion"
    )
    created_at: datetime = Field(alias="fechaCreacion")
    role: UserRole = Field(alias="rol")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_user(cls, user: object) -> UserRead:
        """Build the public view of an ORM user."""
        return cls.model_validate(
            {name: getattr(user, name) for name in cls.model_fields}
        )

    @computed_field(alias="idRol")  # type: ignore[prop-decorator]
    @property
    def role_id(self) -> int:
        return self.role.id

    @computed_field(alias="nombreRol")  # type: ignore[prop-decorator]
    @property
    def role_name(self) -> str:
        return self.role.display_name


class UserEnvelope(BaseModel):
    usuario: UserRead


class UserUpdateResponse(BaseModel):
    message: str
    usuario: UserRead


class UserListResponse(BaseModel):
    usuarios: list[UserRead]


class ProfileUpdate(BaseModel):
    """Partial update of the caller's own profile."""

    name: str | None = Field(default=None, alias="nombre", max_length=120)
    phone_number: str | None = Field(default=None, alias="telefono", max_length=32)
    photo: str | None = Field(default=None, alias="fotoPerfil")
    address: str | None = Field(default=None, alias="direccion", max_length=255)
    birth_date: date | None = Field(default=None, alias="fechaNacimiento")
    job_title: str | None = Field(default=None, alias="cargo", max_length=120)
    biography: str | None = Field(default=None, alias="biografia")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("name")
    @classmethod
    def _blank_name_is_unset(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            return None
        return value.strip() if value else value

    @field_validator("birth_date", mode="before")
    @classmethod
    def _accept_day_first(cls, value: object) -> object:
        # the frontend sends either YYYY-MM-DD or DD/MM/YYYY
        if isinstance(value, str) and value.count("/") == 2:
            day, month, year = value.split("/")
            return f"{year}-{month.zfill(2)}-{day.zfill(2)}"
        return value

    @field_validator("photo")
    @classmethod
    def _limit_photo_size(cls, value: str | None) -> str | None:
        if value is None or not value.startswith("data:"):
            return value
        _, _, encoded = value.partition(",")
        try:
            size = len(base64.b64decode(encoded, validate=False))
        except (binascii.Error, ValueError) as exc:
            raise ValueError("Photo is not valid base64 data") from exc
        if size > _MAX_PHOTO_BYTES:
            raise ValueError("Photo exceeds the 3MB size limit")
        return value

    def changes(self) -> dict[str, object]:
        """Fields explicitly provided with a non-null value."""
        return {
            field: value
            for field, value in self.model_dump(exclude_unset=True).items()
            if value is not None
        }


class RoleUpdate(BaseModel):
    """Administrator payload for changing a user's role."""

    role_id: int = Field(alias="idRol")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("role_id")
    @classmethod
    def _known_role(cls, value: int) -> int:
        UserRole.from_id(value)
        return value

    @property
    def role(self) -> UserRole:
        return UserRole.from_id(self.role_id)


class StatusUpdate(BaseModel):
    """Administrator payload for enabling or disabling an account."""

    active: bool = Field(alias="estado")

    model_config = ConfigDict(populate_by_name=True)


class RoleRead(BaseModel):
    role_id: int = Field(alias="idRol")
    name: str = Field(alias="nombreRol")
    key: UserRole = Field(alias="clave")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_role(cls, role: UserRole) -> RoleRead:
        return cls(role_id=role.id, name=role.display_name, key=role)


class RoleListResponse(BaseModel):
    roles: list[RoleRead]
