from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Query

from hoopers.api.schemas.client import ClientResponse
from hoopers.api.schemas.keyset_pagination import (
    CursorDirection,
    KeysetPaginatedResponse,
    SortOrder,
)
from hoopers.core.dependencies import AsyncDbSession, SnapshotDbSession
from hoopers.repos.client_repo import get_client as repo_get_client
from hoopers.repos.client_repo import list_clients_with_cursor

router = APIRouter(tags=["clients"])


@router.get("/clients/cursor")
async def get_clients_with_cursor(
    db: SnapshotDbSession,
    cursor: Annotated[str | None, Query(description="Opaque cursor from a previous page")] = None,
    limit: Annotated[int, Query(description="Items per page; clamped to 1..max")] = 20,
    direction: Annotated[CursorDirection, Query()] = CursorDirection.NEXT,
    sort_by: Annotated[
        str, Query(alias="sortBy", description="name, city, zip or createddate")
    ] = "name",
    order: Annotated[SortOrder | None, Query()] = None,
) -> KeysetPaginatedResponse[ClientResponse]:
    """List clients with keyset pagination."""
    page = await list_clients_with_cursor(
        db,
        cursor=cursor,
        limit=limit,
        direction=direction,
        sort_by=sort_by,
        order=order,
    )

    return KeysetPaginatedResponse[ClientResponse](
        items=[ClientResponse.model_validate(c) for c in page.items],
        next_cursor=page.next_cursor,
        prev_cursor=page.prev_cursor,
        has_more=page.has_more,
        direction=page.direction,
        sort_by=page.sort_by,
        order=page.order,
        limit=page.limit,
    )


@router.get("/clients/{client_id}", response_model=ClientResponse)
async def get_client(client_id: str, db: AsyncDbSession):
    return await repo_get_client(db, client_id)
