"""
Repository functions for player profiles.

Profiles page by leaderboard points by default (highest first).
"""

from collections.abc import AsyncIterator

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hoopers.api.schemas.keyset_pagination import CursorDirection, SortOrder
from hoopers.core.errors import NotFoundError
from hoopers.db.models import Profile
from hoopers.repos.cursor import ValueKind
from hoopers.repos.entity_source import SqlAlchemyEntitySource
from hoopers.repos.pagination import KeysetPaginator, PageRequest, PageResult
from hoopers.repos.sort_spec import SortField, SortSpec

PROFILE_SORT_SPEC = SortSpec(
    "profile",
    id_attribute="profile_id",
    fields=[
        SortField("points", "points", ValueKind.INTEGER, SortOrder.DESC),
        SortField("playernumber", "player_number", ValueKind.STRING),
        SortField("username", "user_name", ValueKind.STRING),
        SortField("status", "status", ValueKind.STRING),
    ],
    default_field="points",
)

profile_paginator: KeysetPaginator[Profile] = KeysetPaginator(PROFILE_SORT_SPEC)


async def list_profiles_with_cursor(
    db: AsyncSession,
    *,
    cursor: str | None = None,
    limit: int = 20,
    direction: CursorDirection = CursorDirection.NEXT,
    sort_by: str | None = "points",
    order: SortOrder | None = None,
) -> PageResult[Profile]:
    """List profiles with keyset/cursor-based pagination.

    Args:
        db: Database session
        cursor: Opaque cursor from a previous page
        limit: Number of items per page
        direction: NEXT for forward pagination, PREVIOUS for backward
        sort_by: points, playernumber, username or status
        order: Overrides the sort field's natural order

    Returns:
        PageResult of profiles in display order
    """
    return await profile_paginator.get_page(
        SqlAlchemyEntitySource(db, Profile),
        PageRequest(cursor=cursor, limit=limit, direction=direction, sort_by=sort_by, order=order),
    )


async def stream_all_profiles(
    db: AsyncSession, *, batch_size: int = 100, sort_by: str | None = None
) -> AsyncIterator[Profile]:
    """Iterate over every profile, fetching `batch_size` rows at a time."""
    request = PageRequest(limit=batch_size, sort_by=sort_by)
    async for profile in profile_paginator.stream(SqlAlchemyEntitySource(db, Profile), request):
        yield profile


async def get_profile(db: AsyncSession, profile_id: str) -> Profile:
    stmt = select(Profile).where(Profile.profile_id == profile_id)
    result = await db.execute(stmt)
    profile = result.scalar_one_or_none()
    if not profile:
        raise NotFoundError("Profile not found", details={"profile_id": profile_id})
    return profile
