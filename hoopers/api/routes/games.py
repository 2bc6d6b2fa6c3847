from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Query

from hoopers.api.schemas.game import GameResponse
from hoopers.api.schemas.keyset_pagination import (
    CursorDirection,
    KeysetPaginatedResponse,
    SortOrder,
)
from hoopers.core.dependencies import AsyncDbSession, SnapshotDbSession
from hoopers.repos.game_repo import get_game as repo_get_game
from hoopers.repos.game_repo import list_games_with_cursor

router = APIRouter(tags=["games"])


@router.get("/games/cursor")
async def get_games_with_cursor(
    db: SnapshotDbSession,
    cursor: Annotated[str | None, Query(description="Opaque cursor from a previous page")] = None,
    limit: Annotated[int, Query(description="Items per page; clamped to 1..max")] = 20,
    direction: Annotated[CursorDirection, Query()] = CursorDirection.NEXT,
    sort_by: Annotated[
        str, Query(alias="sortBy", description="createddate or gamenumber")
    ] = "createddate",
    order: Annotated[SortOrder | None, Query()] = None,
    run_id: Annotated[str | None, Query(alias="runId")] = None,
    court_id: Annotated[str | None, Query(alias="courtId")] = None,
) -> KeysetPaginatedResponse[GameResponse]:
    """List games with keyset pagination, optionally for one run or court."""
    page = await list_games_with_cursor(
        db,
        cursor=cursor,
        limit=limit,
        direction=direction,
        sort_by=sort_by,
        order=order,
        run_id=run_id,
        court_id=court_id,
    )

    return KeysetPaginatedResponse[GameResponse](
        items=[GameResponse.model_validate(g) for g in page.items],
        next_cursor=page.next_cursor,
        prev_cursor=page.prev_cursor,
        has_more=page.has_more,
        direction=page.direction,
        sort_by=page.sort_by,
        order=page.order,
        limit=page.limit,
    )


@router.get("/games/{game_id}", response_model=GameResponse)
async def get_game(game_id: str, db: AsyncDbSession):
    return await repo_get_game(db, game_id)
