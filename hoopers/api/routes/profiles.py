from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Query

from hoopers.api.schemas.keyset_pagination import (
    CursorDirection,
    KeysetPaginatedResponse,
    SortOrder,
)
from hoopers.api.schemas.profile import ProfileResponse
from hoopers.core.dependencies import AsyncDbSession, SnapshotDbSession
from hoopers.repos.profile_repo import get_profile as repo_get_profile
from hoopers.repos.profile_repo import list_profiles_with_cursor

router = APIRouter(tags=["profiles"])


@router.get("/profiles/cursor")
async def get_profiles_with_cursor(
    db: SnapshotDbSession,
    cursor: Annotated[
        str | None, Query(description="Opaque cursor from a previous page")
    ] = None,
    limit: Annotated[
        int, Query(description="Items per page; out-of-range values are clamped")
    ] = 20,
    direction: Annotated[
        CursorDirection, Query(description="Pagination direction")
    ] = CursorDirection.NEXT,
    sort_by: Annotated[
        str,
        Query(alias="sortBy", description="points, playernumber, username or status"),
    ] = "points",
    order: Annotated[
        SortOrder | None, Query(description="Override the sort field's natural order")
    ] = None,
) -> KeysetPaginatedResponse[ProfileResponse]:
    """List player profiles with keyset pagination.

    Unknown `sortBy` values fall back to points; an unreadable cursor returns
    the first page.
    """
    page = await list_profiles_with_cursor(
        db,
        cursor=cursor,
        limit=limit,
        direction=direction,
        sort_by=sort_by,
        order=order,
    )

    return KeysetPaginatedResponse[ProfileResponse](
        items=[ProfileResponse.model_validate(p) for p in page.items],
        next_cursor=page.next_cursor,
        prev_cursor=page.prev_cursor,
        has_more=page.has_more,
        direction=page.direction,
        sort_by=page.sort_by,
        order=page.order,
        limit=page.limit,
    )


@router.get("/profiles/{profile_id}", response_model=ProfileResponse)
async def get_profile(profile_id: str, db: AsyncDbSession):
    """Get a specific profile by ID."""
    return await repo_get_profile(db, profile_id)
