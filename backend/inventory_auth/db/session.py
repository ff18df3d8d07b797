"""Per-URL engine registry and the request-scoped session dependency."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import NamedTuple

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from inventory_auth.core.config import get_settings


class _Database(NamedTuple):
    engine: AsyncEngine
    sessionmaker: async_sessionmaker[AsyncSession]


_databases: dict[str, _Database] = {}


def _open(url: str) -> _Database:
    engine = create_async_engine(url, pool_pre_ping=True)
    return _Database(engine, async_sessionmaker(engine, expire_on_commit=False))


def get_sessionmaker(
    database_url: str | None = None,
) -> async_sessionmaker[AsyncSession]:
    """Sessionmaker bound to ``database_url`` or the configured database."""
    url = database_url or get_settings().database_url
    if url not in _databases:
        _databases[url] = _open(url)
    return _databases[url].sessionmaker


async def get_session() -> AsyncIterator[AsyncSession]:
    async with get_sessionmaker()() as session:
        yield session


async def dispose_engine(database_url: str | None = None) -> None:
    """Close the pool for ``database_url`` and forget it."""
    database = _databases.pop(database_url or get_settings().database_url, None)
    if database is not None:
        await database.engine.dispose()
