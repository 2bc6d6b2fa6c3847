from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Query

from hoopers.api.schemas.keyset_pagination import (
    CursorDirection,
    KeysetPaginatedResponse,
    SortOrder,
)
from hoopers.api.schemas.run import RunResponse
from hoopers.core.dependencies import AsyncDbSession, SnapshotDbSession
from hoopers.repos.run_repo import get_run as repo_get_run
from hoopers.repos.run_repo import list_runs_with_cursor

router = APIRouter(tags=["runs"])


@router.get("/runs/cursor")
async def get_runs_with_cursor(
    db: SnapshotDbSession,
    cursor: Annotated[str | None, Query(description="Opaque cursor from a previous page")] = None,
    limit: Annotated[int, Query(description="Items per page; clamped to 1..max")] = 20,
    direction: Annotated[CursorDirection, Query()] = CursorDirection.NEXT,
    sort_by: Annotated[
        str, Query(alias="sortBy", description="rundate, name, status, playerlimit or cost")
    ] = "rundate",
    order: Annotated[SortOrder | None, Query()] = None,
    court_id: Annotated[str | None, Query(alias="courtId")] = None,
    public_only: Annotated[bool, Query(alias="publicOnly")] = False,
) -> KeysetPaginatedResponse[RunResponse]:
    """List runs with keyset pagination, optionally for one court."""
    page = await list_runs_with_cursor(
        db,
        cursor=cursor,
        limit=limit,
        direction=direction,
        sort_by=sort_by,
        order=order,
        court_id=court_id,
        public_only=public_only,
    )

    return KeysetPaginatedResponse[RunResponse](
        items=[RunResponse.model_validate(r) for r in page.items],
        next_cursor=page.next_cursor,
        prev_cursor=page.prev_cursor,
        has_more=page.has_more,
        direction=page.direction,
        sort_by=page.sort_by,
        order=page.order,
        limit=page.limit,
    )


@router.get("/runs/{run_id}", response_model=RunResponse)
async def get_run(run_id: str, db: AsyncDbSession):
    return await repo_get_run(db, run_id)
