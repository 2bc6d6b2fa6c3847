"""
Database connection and session management.

Provides the async SQLAlchemy engine, session factories, and a read-only
snapshot session used by keyset pagination.

PostgreSQL (asyncpg) is the production store. SQLite (aiosqlite) is
accepted for local development and tests.
"""

import logging

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from hoopers.core.config import settings

logger = logging.getLogger(__name__)

_async_engine: AsyncEngine | None = None
_async_sessionmaker: async_sessionmaker[AsyncSession] | None = None
_snapshot_sessionmaker: async_sessionmaker[AsyncSession] | None = None

# Snapshot reads: MVCC-consistent, never take row locks, never block writers.
SNAPSHOT_ISOLATION_LEVEL = "REPEATABLE READ"


def create_fresh_async_engine(url: str | None = None) -> AsyncEngine:
    """Create a new async engine without caching.

    Used for tests to ensure each test gets its own engine bound to its event loop.
    """
    url = url or settings.async_url
    if not url:
        raise RuntimeError("DATABASE_URL_APP is required")

    if url.startswith("sqlite"):
        return create_async_engine(url, echo=False)

    engine = create_async_engine(
        url,
        pool_size=20,
        max_overflow=10,
        pool_timeout=30,
        pool_recycle=3600,
        pool_pre_ping=True,
        echo=False,
        connect_args={
            "server_settings": {"timezone": "UTC"},
            "timeout": 30,
        },
    )

    from hoopers.core.telemetry import instrument_sqlalchemy

    instrument_sqlalchemy(engine.sync_engine)
    return engine


def get_async_engine() -> AsyncEngine:
    """
    Create (once) and return the async SQLAlchemy engine.

    Returns:
        Configured async SQLAlchemy engine
    """
    global _async_engine

    if _async_engine is None:
        _async_engine = create_fresh_async_engine()
        logger.info("Database engine created", extra={"dialect": _async_engine.dialect.name})
    return _async_engine


def get_async_sessionmaker() -> async_sessionmaker[AsyncSession]:
    """Get or create the read/write async sessionmaker."""
    global _async_sessionmaker
    if _async_sessionmaker is None:
        _async_sessionmaker = async_sessionmaker(
            bind=get_async_engine(),
            class_=AsyncSession,
            autoflush=False,
            expire_on_commit=False,
        )
    return _async_sessionmaker


def snapshot_engine(engine: AsyncEngine) -> AsyncEngine:
    """Return a view of the engine whose transactions are read-only snapshots.

    SQLite serialises writers itself and ignores these options, so the engine
    is returned unchanged there.
    """
    if engine.dialect.name != "postgresql":
        return engine
    return engine.execution_options(
        isolation_level=SNAPSHOT_ISOLATION_LEVEL,
        postgresql_readonly=True,
    )


def get_snapshot_sessionmaker() -> async_sessionmaker[AsyncSession]:
    """Get or create the sessionmaker used for paginated list reads."""
    global _snapshot_sessionmaker
    if _snapshot_sessionmaker is None:
        _snapshot_sessionmaker = async_sessionmaker(
            bind=snapshot_engine(get_async_engine()),
            class_=AsyncSession,
            autoflush=False,
            expire_on_commit=False,
        )
    return _snapshot_sessionmaker


async def reset_async_engine() -> None:
    """Dispose the cached engine and forget all sessionmakers.

    Useful for tests to ensure fresh connections on new event loops.
    """
    global _async_engine, _async_sessionmaker, _snapshot_sessionmaker

    if _async_engine is not None:
        await _async_engine.dispose()
    _async_engine = None
    _async_sessionmaker = None
    _snapshot_sessionmaker = None
