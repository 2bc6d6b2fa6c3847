"""
FastAPI dependency injection utilities.

Provides reusable dependencies for database sessions.
"""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from hoopers.core.db import get_async_sessionmaker, get_snapshot_sessionmaker


async def get_async_db_session() -> AsyncGenerator[AsyncSession]:
    """
    Async database session dependency for FastAPI endpoints.

    Usage:
        @router.get("/profiles/{profile_id}")
        async def get_profile(profile_id: str, db: AsyncDbSession):
            ...

    Yields:
        Async SQLAlchemy database session
    """
    session_maker = get_async_sessionmaker()
    async with session_maker() as session:
        yield session


async def get_snapshot_db_session() -> AsyncGenerator[AsyncSession]:
    """
    Read-only snapshot session for paginated list endpoints.

    Yields:
        Async SQLAlchemy session whose transaction never takes row locks
    """
    session_maker = get_snapshot_sessionmaker()
    async with session_maker() as session:
        yield session


AsyncDbSession = Annotated[AsyncSession, Depends(get_async_db_session)]
SnapshotDbSession = Annotated[AsyncSession, Depends(get_snapshot_db_session)]
