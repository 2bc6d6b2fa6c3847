"""
Repository functions for pickup runs.

Runs page by run date, most recent first. Runs without a date sort last.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hoopers.api.schemas.keyset_pagination import CursorDirection, SortOrder
from hoopers.core.errors import NotFoundError
from hoopers.db.models import Run
from hoopers.repos.cursor import ValueKind
from hoopers.repos.entity_source import SqlAlchemyEntitySource
from hoopers.repos.pagination import KeysetPaginator, PageRequest, PageResult
from hoopers.repos.sort_spec import SortField, SortSpec

RUN_SORT_SPEC = SortSpec(
    "run",
    id_attribute="run_id",
    fields=[
        SortField("rundate", "run_date", ValueKind.DATETIME, SortOrder.DESC),
        SortField("name", "name", ValueKind.STRING),
        SortField("status", "status", ValueKind.STRING),
        SortField("playerlimit", "player_limit", ValueKind.INTEGER, SortOrder.DESC),
        SortField("cost", "cost", ValueKind.DECIMAL),
    ],
    default_field="rundate",
)

run_paginator: KeysetPaginator[Run] = KeysetPaginator(RUN_SORT_SPEC)


async def list_runs_with_cursor(
    db: AsyncSession,
    *,
    cursor: str | None = None,
    limit: int = 20,
    direction: CursorDirection = CursorDirection.NEXT,
    sort_by: str | None = "rundate",
    order: SortOrder | None = None,
    court_id: str | None = None,
    public_only: bool = False,
) -> PageResult[Run]:
    """List runs with keyset pagination, optionally scoped to one court.

    Returns:
        PageResult of runs in display order
    """
    source = SqlAlchemyEntitySource(db, Run)
    if court_id is not None:
        source = source.where(Run.court_id == court_id)
    if public_only:
        source = source.where(Run.is_public.is_(True))

    return await run_paginator.get_page(
        source,
        PageRequest(cursor=cursor, limit=limit, direction=direction, sort_by=sort_by, order=order),
    )


async def get_run(db: AsyncSession, run_id: str) -> Run:
    result = await db.execute(select(Run).where(Run.run_id == run_id))
    run = result.scalar_one_or_none()
    if not run:
        raise NotFoundError("Run not found", details={"run_id": run_id})
    return run
