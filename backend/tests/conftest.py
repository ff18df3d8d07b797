"""Test fixtures for the inventory auth backend."""
from __future__ import annotations

import os
from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine

os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("APP_ENV", "test")

from inventory_auth.core.config import get_settings
from inventory_auth.core.security import get_password_hash
from inventory_auth.db.base import Base
from inventory_auth.db.session import dispose_engine, get_sessionmaker
from inventory_auth.main import app
from inventory_auth.models import User, UserRole
from inventory_auth.services.notification_service import get_notification_dispatcher


class RecordingDispatcher:
    """Dispatcher double that keeps every notification in memory."""

    def __init__(self) -> None:
        self.reset_requests: list[dict[str, str]] = []
        self.password_changes: list[dict[str, str]] = []
        self.fail = False

    def send_password_reset(self, *, email: str, name: str, token: str) -> None:
        if self.fail:
            raise RuntimeError("smtp unavailable")
        self.reset_requests.append({"email": email, "name": name, "token": token})

    def send_password_changed(self, *, email: str, name: str) -> None:
        if self.fail:
            raise RuntimeError("smtp unavailable")
        self.password_changes.append({"email": email, "name": name})


@pytest.fixture(scope="session")
def db_url(tmp_path_factory: pytest.TempPathFactory) -> str:
    """Provide a temporary SQLite database URL for the test session."""
    db_path = tmp_path_factory.mktemp("db") / "test.db"
    return f"sqlite+aiosqlite:///{db_path}"


@pytest_asyncio.fixture()
async def reset_database(db_url: str) -> AsyncIterator[None]:
    """Drop and recreate the database schema for an isolated test."""
    os.environ["DATABASE_URL"] = db_url
    get_settings.cache_clear()
    get_settings()

    await dispose_engine(db_url)
    engine = create_async_engine(db_url, future=True)
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.drop_all)
        await connection.run_sync(Base.metadata.create_all)
    await engine.dispose()
    yield
    await dispose_engine(db_url)


@pytest_asyncio.fixture()
async def app_context(
    reset_database: AsyncIterator[None], db_url: str
) -> AsyncIterator[dict[str, object]]:
    """Yield an async client, a recording dispatcher and seeded accounts."""
    sessionmaker = get_sessionmaker(db_url)
    admin_password = "AdminPass1"
    seller_password = "SellerPass1"
    disabled_password = "Disabled1"

    async with sessionmaker() as session:
        admin = User(
            email="admin@example.com",
            hashed_password=get_password_hash(admin_password),
            name="Ada Admin",
            full_name="Ada Admin",
            role=UserRole.ADMINISTRATOR,
        )
        seller = User(
            email="seller@example.com",
            hashed_password=get_password_hash(seller_password),
            name="Sam Seller",
            full_name="Sam Seller",
            role=UserRole.SELLER,
        )
        disabled = User(
            email="disabled@example.com",
            hashed_password=get_password_hash(disabled_password),
            name="Dana Disabled",
            role=UserRole.SELLER,
            is_active=False,
        )
        session.add_all([admin, seller, disabled])
        await session.commit()

        context: dict[str, object] = {
            "admin_id": admin.id,
            "admin_email": admin.email,
            "admin_password": admin_password,
            "seller_id": seller.id,
            "seller_email": seller.email,
            "seller_password": seller_password,
            "disabled_id": disabled.id,
            "disabled_email": disabled.email,
            "disabled_password": disabled_password,
        }

    dispatcher = RecordingDispatcher()
    app.dependency_overrides[get_notification_dispatcher] = lambda: dispatcher
    context["dispatcher"] = dispatcher

    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            context["client"] = client
            yield context
    finally:
        app.dependency_overrides.pop(get_notification_dispatcher, None)


async def login(client: AsyncClient, email: str, password: str) -> str:
    """Log in through the API and return the bearer token."""
    response = await client.post(
        "/api/usuarios/login", json={"email": email, "contraseña": password}
    )
    assert response.status_code == 200, response.text
    return response.json()["token"]


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
