"""
Pytest configuration and shared fixtures.

Provides:
- Test environment defaults (in-memory SQLite, plain-text logs)
- AnyIO backend selection
- Async SQLAlchemy engine/session against a throwaway SQLite file
- Row factories for profiles, runs, games and clients
- httpx.AsyncClient over the ASGI app with the database dependencies overridden
"""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator
from datetime import datetime
from pathlib import Path
from typing import Any

# Set test environment variables before importing the app
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DATABASE_URL_APP", "sqlite+aiosqlite://")
os.environ.setdefault("OBSERVABILITY_STRUCTURED_LOGS", "false")
os.environ.setdefault("OTEL_ENABLED", "false")

import httpx  # noqa: E402 (import after env setup)
import pytest  # noqa: E402 (import after env setup)
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker  # noqa: E402

from hoopers.core.db import create_fresh_async_engine  # noqa: E402
from hoopers.db.models import Base, Client, Game, Profile, Run  # noqa: E402


# Per AnyIO testing docs: https://anyio.readthedocs.io/en/stable/testing.html
@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def reset_async_engine_before_test():
    """Drop the cached engine so the test binds it to its own event loop."""
    from hoopers.core.db import reset_async_engine

    await reset_async_engine()
    yield
    await reset_async_engine()


# ============================================================================
# Async SQLAlchemy Fixtures
# ============================================================================


@pytest.fixture
async def async_engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine]:
    """Fresh SQLite database file with the schema created."""
    engine = create_fresh_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'hoopers.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def async_db_session(async_engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Session with real commits; the database file is discarded after the test."""
    session_maker = async_sessionmaker(
        bind=async_engine, class_=AsyncSession, autoflush=False, expire_on_commit=False
    )
    async with session_maker() as session:
        yield session


# ============================================================================
# Row Factories
# ============================================================================


async def create_profiles_in_db(session: AsyncSession, rows: list[dict[str, Any]]) -> list[Profile]:
    """Insert profiles from plain dicts and commit."""
    profiles = [Profile(**row) for row in rows]
    session.add_all(profiles)
    await session.commit()
    return profiles


async def create_runs_in_db(session: AsyncSession, rows: list[dict[str, Any]]) -> list[Run]:
    runs = [Run(**row) for row in rows]
    session.add_all(runs)
    await session.commit()
    return runs


async def create_games_in_db(session: AsyncSession, rows: list[dict[str, Any]]) -> list[Game]:
    games = [Game(**row) for row in rows]
    session.add_all(games)
    await session.commit()
    return games


async def create_clients_in_db(session: AsyncSession, rows: list[dict[str, Any]]) -> list[Client]:
    clients = [Client(**row) for row in rows]
    session.add_all(clients)
    await session.commit()
    return clients


def leaderboard_rows(count: int, *, null_every: int = 0) -> list[dict[str, Any]]:
    """Profiles with repeating point totals so ties need the id tie-break.

    With `null_every`, every n-th profile has no points recorded.
    """
    rows = []
    for i in range(count):
        points = None if null_every and i % null_every == 0 else (i % 7) * 100
        rows.append(
            {
                "profile_id": f"p-{i:03d}",
                "user_name": f"player{(i * 37) % count:03d}",
                "player_number": f"{(i * 11) % 100:02d}",
                "status": ("active", "inactive", "injured")[i % 3],
                "points": points,
                "created_date": datetime(2024, 1, 1, 12, 0, 0),
            }
        )
    return rows


# ============================================================================
# HTTP Client Fixtures
# ============================================================================


@pytest.fixture
async def client(async_db_session: AsyncSession) -> AsyncGenerator[httpx.AsyncClient]:
    """AsyncClient whose request sessions are the test session."""
    from hoopers.core.dependencies import get_async_db_session, get_snapshot_db_session
    from hoopers.main import create_app

    app = create_app()

    def override_db():
        yield async_db_session

    app.dependency_overrides[get_async_db_session] = override_db
    app.dependency_overrides[get_snapshot_db_session] = override_db

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
