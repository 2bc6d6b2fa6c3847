"""Generic keyset/cursor-based pagination engine.

One `KeysetPaginator` per entity type, parameterised by that entity's
`SortSpec`. A page fetch is:

    decode cursor -> build ordering + predicate -> fetch limit + 1
    -> trim sentinel -> encode next cursor -> reverse for PREVIOUS

The paginator holds no per-request state, so a single instance is shared by
all concurrent requests. Consistency is that of keyset pagination: against a
static snapshot a forward traversal visits every row exactly once, but a row
whose sort value changes (or that is inserted/deleted) between two calls may
be skipped or seen twice. No locking is attempted to prevent that.
"""

import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass, replace

from hoopers.api.schemas.keyset_pagination import CursorDirection, SortOrder
from hoopers.core.config import settings
from hoopers.core.errors import CursorDecodeError
from hoopers.core.observability import pagination_metrics
from hoopers.core.telemetry import get_tracer
from hoopers.repos.cursor import CursorState, decode_cursor, encode_cursor
from hoopers.repos.entity_source import EntitySource
from hoopers.repos.sort_spec import SortField, SortSpec

logger = logging.getLogger(__name__)
tracer = get_tracer(__name__)


@dataclass(frozen=True)
class PageRequest:
    """Caller-supplied page parameters.

    `limit` is clamped, not validated: values below 1 fall back to the
    default page size and values above the maximum are capped.
    """

    cursor: str | None = None
    limit: int = 20
    direction: CursorDirection = CursorDirection.NEXT
    sort_by: str | None = None
    order: SortOrder | None = None


@dataclass(frozen=True)
class PageResult[E]:
    """One page of items in display order.

    Attributes:
        items: At most `limit` entities, always in display order
        next_cursor: Continues in the requested direction; None at the end
        prev_cursor: Returns the way the caller came (pass it with the
            opposite direction); None on a first page or an empty page
    """

    items: list[E]
    next_cursor: str | None
    prev_cursor: str | None
    direction: CursorDirection
    sort_by: str
    order: SortOrder
    limit: int

    @property
    def has_more(self) -> bool:
        return self.next_cursor is not None


def clamp_limit(limit: int | None, default: int, maximum: int) -> int:
    """Coerce a requested page size into 1..maximum."""
    if limit is None or limit <= 0:
        return default
    return min(limit, maximum)


class KeysetPaginator[E]:
    """Keyset pagination over any EntitySource, driven by a SortSpec."""

    def __init__(
        self,
        spec: SortSpec,
        *,
        default_limit: int | None = None,
        max_limit: int | None = None,
        fetch_timeout: float | None = None,
    ) -> None:
        self.spec = spec
        self.default_limit = default_limit or settings.pagination_default_limit
        self.max_limit = max_limit or settings.pagination_max_limit
        self.fetch_timeout = (
            fetch_timeout
            if fetch_timeout is not None
            else settings.pagination_fetch_timeout_seconds
        )

    def _decode(self, token: str | None, field: SortField) -> CursorState | None:
        if not token:
            return None
        try:
            return decode_cursor(token, field)
        except CursorDecodeError as exc:
            logger.warning(
                "Invalid cursor format, starting from the first page",
                extra={"entity": self.spec.entity, "sort_by": field.name, "reason": exc.message},
            )
            pagination_metrics.cursor_rejected(self.spec.entity)
            return None

    def _encode(self, entity: E, field: SortField) -> str:
        return encode_cursor(self.spec.cursor_for(entity, field), field.kind)

    async def get_page(self, source: EntitySource[E], request: PageRequest) -> PageResult[E]:
        """Fetch one page.

        Args:
            source: Unfiltered, unordered entity source
            request: Page parameters

        Returns:
            PageResult with items in display order

        Raises:
            SourceTimeoutError: If the fetch exceeds the deadline
            SourceUnavailableError: If the source fails
        """
        limit = clamp_limit(request.limit, self.default_limit, self.max_limit)
        field = self.spec.resolve_or_default(request.sort_by)
        order = request.order or field.default_order
        cursor = self._decode(request.cursor, field)

        query = self.spec.build(field, order, request.direction, cursor)
        scoped = source
        if query.predicate is not None:
            scoped = scoped.filter(query.predicate)
        # One extra row detects "has more" without a count query
        scoped = scoped.order_by(query.order_keys).take(limit + 1)

        with (
            tracer.start_as_current_span(
                "keyset.fetch",
                attributes={
                    "keyset.entity": self.spec.entity,
                    "keyset.sort_by": field.name,
                    "keyset.direction": request.direction.value,
                    "keyset.limit": limit,
                    "keyset.has_cursor": cursor is not None,
                },
            ),
            pagination_metrics.track_fetch(self.spec.entity),
        ):
            rows = list(await scoped.execute(timeout=self.fetch_timeout))

        has_more = len(rows) > limit
        rows = rows[:limit]

        # Cursors come from scan order, before the display reversal
        next_cursor = self._encode(rows[-1], field) if has_more else None
        prev_cursor = self._encode(rows[0], field) if cursor is not None and rows else None

        if request.direction is CursorDirection.PREVIOUS:
            rows.reverse()

        pagination_metrics.page_served(self.spec.entity, request.direction.value)
        logger.debug(
            "Served keyset page",
            extra={
                "entity": self.spec.entity,
                "sort_by": field.name,
                "direction": request.direction.value,
                "count": len(rows),
                "has_more": has_more,
            },
        )

        return PageResult(
            items=rows,
            next_cursor=next_cursor,
            prev_cursor=prev_cursor,
            direction=request.direction,
            sort_by=field.name,
            order=order,
            limit=limit,
        )

    async def stream(self, source: EntitySource[E], request: PageRequest) -> AsyncIterator[E]:
        """Yield every entity from the request's position onwards, in scan order.

        Pages are fetched lazily by following `next_cursor`.
        """
        current = request
        while True:
            page = await self.get_page(source, current)
            items = page.items
            if current.direction is CursorDirection.PREVIOUS:
                items = list(reversed(items))
            for item in items:
                yield item
            if page.next_cursor is None:
                return
            current = replace(current, cursor=page.next_cursor)
