"""
Async SQLAlchemy engine, session factory, and DB lifecycle helpers.

All database access goes through ``get_session()`` which yields an
``AsyncSession`` that auto-commits on clean exit and rolls back on error.
The store is versioned with SQLite's ``PRAGMA user_version``; opening a
database stamped with another version discards the old tables instead of
failing.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from sqlalchemy import make_url, text
from sqlalchemy.ext.asyncio import (
    AsyncConnection,
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from voicecheck.core.config import get_settings

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 2

# Tables from earlier layouts (the v1 store kept raw audio in "assessments").
_LEGACY_TABLES = ("assessments",)


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


# Module-level singletons (reset via ``reset_engine`` in tests).
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def _ensure_parent_dir(db_url: str) -> None:
    """Create the directory of a file-backed SQLite database."""
    url = make_url(db_url)
    database = url.database
    if url.get_backend_name() == "sqlite" and database and database != ":memory:":
        Path(database).parent.mkdir(parents=True, exist_ok=True)


def get_engine(url: str | None = None) -> AsyncEngine:
    """Return the cached async engine, creating it on first call.

    Args:
        url: Optional database URL override. Uses settings if not provided.

    Returns:
        The singleton ``AsyncEngine`` instance.
    """
    global _engine
    if _engine is None:
        db_url = url or get_settings().database_url
        _ensure_parent_dir(db_url)
        _engine = create_async_engine(db_url, echo=False)
    return _engine


def get_session_factory(
    engine: AsyncEngine | None = None,
) -> async_sessionmaker[AsyncSession]:
    """Return the cached session factory, creating it on first call.

    Args:
        engine: Optional engine override (used in tests).

    Returns:
        The singleton ``async_sessionmaker`` bound to the engine.
    """
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(
            engine or get_engine(),
            expire_on_commit=False,
        )
    return _session_factory


@asynccontextmanager
async def get_session() -> AsyncIterator[AsyncSession]:
    """Yield an ``AsyncSession`` that commits on success, rolls back on error."""
    factory = get_session_factory()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_schema_version(conn: AsyncConnection) -> int:
    """Read the version stamp of the open database."""
    result = await conn.execute(text("PRAGMA user_version"))
    return int(result.scalar() or 0)


async def _upgrade_schema(conn: AsyncConnection) -> None:
    """Drop tables from any other schema version, then stamp the current one.

    A fresh database reports version 0, so this also stamps new files.
    """
    version = await get_schema_version(conn)
    if version == SCHEMA_VERSION:
        return

    logger.warning(
        "Log store schema v%s does not match v%s; discarding old tables",
        version,
        SCHEMA_VERSION,
    )
    for table in (*_LEGACY_TABLES, *Base.metadata.tables):
        await conn.execute(text(f'DROP TABLE IF EXISTS "{table}"'))
    await conn.execute(text(f"PRAGMA user_version = {SCHEMA_VERSION}"))


async def init_db(engine: AsyncEngine | None = None) -> None:
    """Upgrade or discard an incompatible store, then create all tables.

    Args:
        engine: Optional engine override (used in tests with in-memory SQLite).
    """
    # Register ORM tables on Base.metadata before the upgrade inspects it
    from voicecheck.services.storage import models_db  # noqa: F401

    eng = engine or get_engine()
    async with eng.begin() as conn:
        await _upgrade_schema(conn)
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Dispose the engine and reset module globals."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None


def reset_engine() -> None:
    """Reset module globals without disposing (test helper)."""
    global _engine, _session_factory
    _engine = None
    _session_factory = None
