"""Repository functions for games."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hoopers.api.schemas.keyset_pagination import CursorDirection, SortOrder
from hoopers.core.errors import NotFoundError
from hoopers.db.models import Game
from hoopers.repos.cursor import ValueKind
from hoopers.repos.entity_source import SqlAlchemyEntitySource
from hoopers.repos.pagination import KeysetPaginator, PageRequest, PageResult
from hoopers.repos.sort_spec import SortField, SortSpec

GAME_SORT_SPEC = SortSpec(
    "game",
    id_attribute="game_id",
    fields=[
        SortField("createddate", "created_date", ValueKind.DATETIME, SortOrder.DESC),
        SortField("gamenumber", "game_number", ValueKind.STRING),
    ],
    default_field="createddate",
)

game_paginator: KeysetPaginator[Game] = KeysetPaginator(GAME_SORT_SPEC)


async def list_games_with_cursor(
    db: AsyncSession,
    *,
    cursor: str | None = None,
    limit: int = 20,
    direction: CursorDirection = CursorDirection.NEXT,
    sort_by: str | None = "createddate",
    order: SortOrder | None = None,
    run_id: str | None = None,
    court_id: str | None = None,
) -> PageResult[Game]:
    """List games with keyset pagination.

    Args:
        db: Database session
        cursor: Opaque cursor from a previous page
        limit: Number of items per page
        direction: NEXT or PREVIOUS
        sort_by: createddate or gamenumber
        order: Overrides the sort field's natural order
        run_id: Only games played during this run
        court_id: Only games played at this court

    Returns:
        PageResult of games in display order
    """
    source = SqlAlchemyEntitySource(db, Game)
    if run_id is not None:
        source = source.where(Game.run_id == run_id)
    if court_id is not None:
        source = source.where(Game.court_id == court_id)

    return await game_paginator.get_page(
        source,
        PageRequest(cursor=cursor, limit=limit, direction=direction, sort_by=sort_by, order=order),
    )


async def get_game(db: AsyncSession, game_id: str) -> Game:
    result = await db.execute(select(Game).where(Game.game_id == game_id))
    game = result.scalar_one_or_none()
    if not game:
        raise NotFoundError("Game not found", details={"game_id": game_id})
    return game
