"""Repository functions for clients (gyms and league operators)."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hoopers.api.schemas.keyset_pagination import CursorDirection, SortOrder
from hoopers.core.errors import NotFoundError
from hoopers.db.models import Client
from hoopers.repos.cursor import ValueKind
from hoopers.repos.entity_source import SqlAlchemyEntitySource
from hoopers.repos.pagination import KeysetPaginator, PageRequest, PageResult
from hoopers.repos.sort_spec import SortField, SortSpec

CLIENT_SORT_SPEC = SortSpec(
    "client",
    id_attribute="client_id",
    fields=[
        SortField("name", "name", ValueKind.STRING),
        SortField("city", "city", ValueKind.STRING),
        SortField("zip", "zip", ValueKind.STRING),
        SortField("createddate", "created_date", ValueKind.DATETIME, SortOrder.DESC),
    ],
    default_field="name",
)

client_paginator: KeysetPaginator[Client] = KeysetPaginator(CLIENT_SORT_SPEC)


async def list_clients_with_cursor(
    db: AsyncSession,
    *,
    cursor: str | None = None,
    limit: int = 20,
    direction: CursorDirection = CursorDirection.NEXT,
    sort_by: str | None = "name",
    order: SortOrder | None = None,
) -> PageResult[Client]:
    """List clients with keyset pagination."""
    return await client_paginator.get_page(
        SqlAlchemyEntitySource(db, Client),
        PageRequest(cursor=cursor, limit=limit, direction=direction, sort_by=sort_by, order=order),
    )


async def get_client(db: AsyncSession, client_id: str) -> Client:
    result = await db.execute(select(Client).where(Client.client_id == client_id))
    client = result.scalar_one_or_none()
    if not client:
        raise NotFoundError("Client not found", details={"client_id": client_id})
    return client
