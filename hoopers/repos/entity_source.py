"""Entity sources consumed by the keyset paginator.

A source is an immutable query builder: `filter`, `order_by` and `take`
return a new source, and `execute` materialises the rows. `execute` is the
only await point of a page fetch and honours a deadline.
"""

import asyncio
import logging
from collections.abc import Iterable, Sequence
from typing import Any, Protocol, Self

from sqlalchemy import Select, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from hoopers.core.errors import SourceTimeoutError, SourceUnavailableError
from hoopers.repos.sort_spec import KeysetPredicate, OrderKey, sort_key

logger = logging.getLogger(__name__)


class EntitySource[E](Protocol):
    """Ordered-query collaborator required by KeysetPaginator."""

    def filter(self, predicate: KeysetPredicate) -> Self: ...

    def order_by(self, keys: Sequence[OrderKey]) -> Self: ...

    def take(self, n: int) -> Self: ...

    async def execute(self, timeout: float | None = None) -> list[E]: ...


class SqlAlchemyEntitySource[E]:
    """Entity source over a mapped model and an async session."""

    def __init__(self, session: AsyncSession, model: type[E], stmt: Select | None = None):
        self.session = session
        self.model = model
        self.stmt = stmt if stmt is not None else select(model)

    def _with(self, stmt: Select) -> "SqlAlchemyEntitySource[E]":
        return SqlAlchemyEntitySource(self.session, self.model, stmt)

    def where(self, *criteria: Any) -> "SqlAlchemyEntitySource[E]":
        """Restrict the base collection (e.g. games of one run) before paging."""
        return self._with(self.stmt.where(*criteria))

    def filter(self, predicate: KeysetPredicate) -> "SqlAlchemyEntitySource[E]":
        return self._with(self.stmt.where(predicate.to_clause(self.model)))

    def order_by(self, keys: Sequence[OrderKey]) -> "SqlAlchemyEntitySource[E]":
        return self._with(self.stmt.order_by(*(key.to_clause(self.model) for key in keys)))

    def take(self, n: int) -> "SqlAlchemyEntitySource[E]":
        return self._with(self.stmt.limit(n))

    async def execute(self, timeout: float | None = None) -> list[E]:
        """Run the statement.

        Raises:
            SourceTimeoutError: If the query exceeds `timeout` seconds
            SourceUnavailableError: If the database rejects or drops the query
        """
        try:
            async with asyncio.timeout(timeout):
                result = await self.session.execute(self.stmt)
                return list(result.scalars().all())
        except TimeoutError as e:
            logger.error(
                "Entity source fetch timed out",
                extra={"entity": self.model.__name__, "timeout_seconds": timeout},
            )
            raise SourceTimeoutError(
                "Entity source fetch timed out", details={"timeout_seconds": timeout}
            ) from e
        except SQLAlchemyError as e:
            logger.error(
                "Entity source fetch failed",
                extra={"entity": self.model.__name__, "error_type": type(e).__name__},
                exc_info=True,
            )
            raise SourceUnavailableError("Entity source fetch failed") from e


class InMemoryEntitySource[E]:
    """Entity source over an in-memory sequence of objects or mappings.

    `latency` simulates I/O time per execute, which makes deadlines testable.
    """

    def __init__(
        self,
        rows: Iterable[E],
        *,
        latency: float = 0.0,
        predicates: tuple[KeysetPredicate, ...] = (),
        keys: tuple[OrderKey, ...] = (),
        limit: int | None = None,
    ):
        self.rows = list(rows)
        self.latency = latency
        self.predicates = predicates
        self.keys = keys
        self.limit = limit

    def _with(self, **changes: Any) -> "InMemoryEntitySource[E]":
        state = {
            "latency": self.latency,
            "predicates": self.predicates,
            "keys": self.keys,
            "limit": self.limit,
        }
        state.update(changes)
        return InMemoryEntitySource(self.rows, **state)

    def filter(self, predicate: KeysetPredicate) -> "InMemoryEntitySource[E]":
        return self._with(predicates=(*self.predicates, predicate))

    def order_by(self, keys: Sequence[OrderKey]) -> "InMemoryEntitySource[E]":
        return self._with(keys=tuple(keys))

    def take(self, n: int) -> "InMemoryEntitySource[E]":
        return self._with(limit=n)

    async def execute(self, timeout: float | None = None) -> list[E]:
        try:
            async with asyncio.timeout(timeout):
                await asyncio.sleep(self.latency)
        except TimeoutError as e:
            raise SourceTimeoutError(
                "Entity source fetch timed out", details={"timeout_seconds": timeout}
            ) from e

        rows = [row for row in self.rows if all(p.matches(row) for p in self.predicates)]
        if self.keys:
            rows.sort(key=sort_key(self.keys))
        if self.limit is not None:
            rows = rows[: self.limit]
        return rows
