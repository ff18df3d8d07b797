"""Login, registration and session lifecycle tests."""

from __future__ import annotations

import asyncio
import time
from typing import Any

import bcrypt
import pytest
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import bearer, login
from inventory_auth.core.security import decode_access_token, verify_password
from inventory_auth.db.session import get_sessionmaker
from inventory_auth.models.user import User

pytestmark = pytest.mark.asyncio


async def _fetch_user(db_url: str, user_id: int) -> User:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        user = await session.get(User, user_id)
        assert user is not None
        return user


async def test_login_returns_token_and_profile(app_context: dict[str, Any], db_url: str) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]

    response = await client.post(
        "/api/usuarios/login",
        json={"email": "Admin@Example.com", "contraseña": app_context["admin_password"]},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Login successful"
    assert body["expiresAt"]

    usuario = body["usuario"]
    assert usuario["idUsuario"] == app_context["admin_id"]
    assert usuario["email"] == "admin@example.com"
    assert usuario["idRol"] == 1
    assert usuario["nombreRol"] == "Administrador"
    assert usuario["enSesion"] is True
    assert "hashed_password" not in usuario
    assert "contraseña" not in usuario

    claims = decode_access_token(body["token"])
    assert claims["sub"] == str(app_context["admin_id"])
    assert claims["role"] == "administrator"

    stored = await _fetch_user(db_url, app_context["admin_id"])
    assert stored.in_session is True


async def test_login_survives_session_flag_write_failure(
    app_context: dict[str, Any], db_url: str, monkeypatch: pytest.MonkeyPatch
) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]

    async def failing_commit(self: AsyncSession) -> None:
        raise OperationalError("UPDATE users", {}, Exception("database unavailable"))

    monkeypatch.setattr(AsyncSession, "commit", failing_commit)
    response = await client.post(
        "/api/usuarios/login",
        json={
            "email": app_context["seller_email"],
            "contraseña": app_context["seller_password"],
        },
    )
    assert response.status_code == 200
    body = response.json()
    assert decode_access_token(body["token"])["sub"] == str(app_context["seller_id"])
    assert body["usuario"]["idUsuario"] == app_context["seller_id"]
    assert body["usuario"]["enSesion"] is True

    monkeypatch.undo()
    stored = await _fetch_user(db_url, app_context["seller_id"])
    assert stored.in_session is False


async def test_wrong_password_and_unknown_email_look_identical(
    app_context: dict[str, Any],
) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]

    wrong_password = await client.post(
        "/api/usuarios/login",
        json={"email": app_context["seller_email"], "contraseña": "nope"},
    )
    unknown_email = await client.post(
        "/api/usuarios/login",
        json={"email": "ghost@example.com", "contraseña": "nope"},
    )

    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json()
    assert wrong_password.json()["code"] == "InvalidCredentials"


async def test_disabled_account_cannot_login(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]

    response = await client.post(
        "/api/usuarios/login",
        json={
            "email": app_context["disabled_email"],
            "contraseña": app_context["disabled_password"],
        },
    )
    assert response.status_code == 403
    assert response.json()["code"] == "AccountDisabled"


async def test_disabled_account_is_reported_before_password_check(
    app_context: dict[str, Any],
) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]

    response = await client.post(
        "/api/usuarios/login",
        json={"email": app_context["disabled_email"], "contraseña": "wrong"},
    )
    assert response.status_code == 403
    assert response.json()["code"] == "AccountDisabled"


async def test_login_payload_is_validated(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]

    response = await client.post(
        "/api/usuarios/login", json={"email": "not-an-email", "contraseña": "x"}
    )
    assert response.status_code == 422


async def test_logout_clears_session_flag(app_context: dict[str, Any], db_url: str) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    token = await login(
        client, app_context["seller_email"], app_context["seller_password"]
    )

    response = await client.patch("/api/usuarios/logout", headers=bearer(token))
    assert response.status_code == 200
    assert response.json()["timestamp"]

    stored = await _fetch_user(db_url, app_context["seller_id"])
    assert stored.in_session is False
    assert stored.session_ended_at is not None

    # tokens are stateless; logout only flips the presence flag
    me = await client.get("/api/usuarios/me", headers=bearer(token))
    assert me.status_code == 200
    assert me.json()["usuario"]["enSesion"] is False


async def test_logout_requires_token(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    response = await client.patch("/api/usuarios/logout")
    assert response.status_code == 401
    assert response.json()["code"] == "MissingToken"


async def test_refresh_issues_new_token(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    token = await login(
        client, app_context["seller_email"], app_context["seller_password"]
    )

    response = await client.post("/api/usuarios/refresh", headers=bearer(token))
    assert response.status_code == 200
    body = response.json()
    claims = decode_access_token(body["token"])
    assert claims["sub"] == str(app_context["seller_id"])
    assert claims["role"] == "seller"
    assert body["expiresAt"]


async def test_refresh_rejected_once_account_is_disabled(
    app_context: dict[str, Any],
) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    admin_token = await login(
        client, app_context["admin_email"], app_context["admin_password"]
    )
    seller_token = await login(
        client, app_context["seller_email"], app_context["seller_password"]
    )

    disable = await client.patch(
        f"/api/usuarios/{app_context['seller_id']}/estado",
        json={"estado": False},
        headers=bearer(admin_token),
    )
    assert disable.status_code == 200

    response = await client.post("/api/usuarios/refresh", headers=bearer(seller_token))
    assert response.status_code == 403
    assert response.json()["code"] == "AccountDisabled"


async def test_change_password(app_context: dict[str, Any], db_url: str) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    dispatcher = app_context["dispatcher"]
    token = await login(
        client, app_context["seller_email"], app_context["seller_password"]
    )

    wrong = await client.post(
        "/api/usuarios/cambiar-contraseña",
        json={"contraseñaActual": "incorrect", "contraseñaNueva": "Brand3New"},
        headers=bearer(token),
    )
    assert wrong.status_code == 401
    assert wrong.json()["code"] == "InvalidCredentials"

    response = await client.post(
        "/api/usuarios/cambiar-contraseña",
        json={
            "contraseñaActual": app_context["seller_password"],
            "contraseñaNueva": "Brand3New",
        },
        headers=bearer(token),
    )
    assert response.status_code == 200

    stored = await _fetch_user(db_url, app_context["seller_id"])
    assert verify_password("Brand3New", stored.hashed_password)
    assert dispatcher.password_changes == [
        {"email": app_context["seller_email"], "name": "Sam Seller"}
    ]
    await login(client, app_context["seller_email"], "Brand3New")


async def test_registration_defaults_to_seller(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]

    response = await client.post(
        "/api/usuarios/registro",
        json={
            "nombre": "  Nina Nueva ",
            "email": "Nina@Example.com",
            "contraseña": "Secret1",
            "telefono": "555-0100",
        },
    )
    assert response.status_code == 201
    body = response.json()
    assert body["nombre"] == "Nina Nueva"
    assert body["email"] == "nina@example.com"
    assert body["idRol"] == 2
    assert body["idUsuario"]

    token = await login(client, "nina@example.com", "Secret1")
    assert decode_access_token(token)["role"] == "seller"


async def test_registration_rejects_duplicate_email(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]

    response = await client.post(
        "/api/usuarios/registro",
        json={
            "nombre": "Copy Cat",
            "email": app_context["seller_email"].upper(),
            "contraseña": "Secret1",
        },
    )
    assert response.status_code == 409
    assert response.json()["code"] == "DuplicateEmail"


async def test_registration_validates_payload(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]

    short_name = await client.post(
        "/api/usuarios/registro",
        json={"nombre": "Al", "email": "al@example.com", "contraseña": "Secret1"},
    )
    assert short_name.status_code == 422

    short_password = await client.post(
        "/api/usuarios/registro",
        json={"nombre": "Alan", "email": "al@example.com", "contraseña": "123"},
    )
    assert short_password.status_code == 422

    unknown_role = await client.post(
        "/api/usuarios/registro",
        json={
            "nombre": "Alan",
            "email": "al@example.com",
            "contraseña": "Secret1",
            "idRol": 7,
        },
    )
    assert unknown_role.status_code == 422


async def test_registering_administrator_requires_admin_token(
    app_context: dict[str, Any],
) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    payload = {
        "nombre": "Boss Person",
        "email": "boss@example.com",
        "contraseña": "Secret1",
        "idRol": 1,
    }

    anonymous = await client.post("/api/usuarios/registro", json=payload)
    assert anonymous.status_code == 403
    assert anonymous.json()["code"] == "Forbidden"

    seller_token = await login(
        client, app_context["seller_email"], app_context["seller_password"]
    )
    as_seller = await client.post(
        "/api/usuarios/registro", json=payload, headers=bearer(seller_token)
    )
    assert as_seller.status_code == 403

    admin_token = await login(
        client, app_context["admin_email"], app_context["admin_password"]
    )
    as_admin = await client.post(
        "/api/usuarios/registro", json=payload, headers=bearer(admin_token)
    )
    assert as_admin.status_code == 201
    assert as_admin.json()["idRol"] == 1

    token = await login(client, "boss@example.com", "Secret1")
    assert decode_access_token(token)["role"] == "administrator"


async def test_stale_token_does_not_block_seller_registration(
    app_context: dict[str, Any],
) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    stale = {"Authorization": "Bearer garbage"}

    plain = await client.post(
        "/api/usuarios/registro",
        json={"nombre": "Lola Nueva", "email": "lola@example.com", "contraseña": "Secret1"},
        headers=stale,
    )
    assert plain.status_code == 201
    assert plain.json()["idRol"] == 2

    explicit_seller = await client.post(
        "/api/usuarios/registro",
        json={
            "nombre": "Rita Nueva",
            "email": "rita@example.com",
            "contraseña": "Secret1",
            "idRol": 2,
        },
        headers=stale,
    )
    assert explicit_seller.status_code == 201

    elevated = await client.post(
        "/api/usuarios/registro",
        json={
            "nombre": "Boss Person",
            "email": "boss@example.com",
            "contraseña": "Secret1",
            "idRol": 1,
        },
        headers=stale,
    )
    assert elevated.status_code == 401
    assert elevated.json()["code"] == "MalformedToken"


async def test_password_hashing_does_not_stall_the_event_loop(
    app_context: dict[str, Any], monkeypatch: pytest.MonkeyPatch
) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    real_hashpw = bcrypt.hashpw

    def slow_hashpw(password: bytes, salt: bytes) -> bytes:
        time.sleep(0.3)
        return real_hashpw(password, salt)

    monkeypatch.setattr(bcrypt, "hashpw", slow_hashpw)
    gaps: list[float] = []
    stop = asyncio.Event()

    async def ticker() -> None:
        last = time.perf_counter()
        while not stop.is_set():
            await asyncio.sleep(0.005)
            now = time.perf_counter()
            gaps.append(now - last)
            last = now

    task = asyncio.create_task(ticker())
    try:
        response = await client.post(
            "/api/usuarios/registro",
            json={"nombre": "Tina Nueva", "email": "tina@example.com", "contraseña": "Secret1"},
        )
    finally:
        stop.set()
        await task

    assert response.status_code == 201
    assert gaps
    assert max(gaps) < 0.15
