"""Keyset/cursor-based pagination schemas."""

from __future__ import annotations

from enum import Enum
from typing import TypeVar

from pydantic import BaseModel, computed_field

T = TypeVar("T")


class CursorDirection(str, Enum):
    """Direction for cursor-based pagination."""

    NEXT = "next"
    PREVIOUS = "previous"

    @property
    def opposite(self) -> CursorDirection:
        return CursorDirection.PREVIOUS if self is CursorDirection.NEXT else CursorDirection.NEXT


class SortOrder(str, Enum):
    """Display order of the primary sort field."""

    ASC = "asc"
    DESC = "desc"

    @property
    def inverse(self) -> SortOrder:
        return SortOrder.DESC if self is SortOrder.ASC else SortOrder.ASC


class KeysetPaginatedResponse[T](BaseModel):
    """Response model for keyset-paginated data."""

    items: list[T]
    next_cursor: str | None = None
    prev_cursor: str | None = None
    has_more: bool
    direction: CursorDirection
    sort_by: str
    order: SortOrder
    limit: int

    @computed_field
    @property
    def count(self) -> int:
        return len(self.items)
