from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable, Iterable
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from .compiler import FilterSpecification, QueryFilterCompiler
from .pagination import Page, PageRequest, as_page_request

if TYPE_CHECKING:
    from sqlalchemy import ColumnElement
    from sqlalchemy.ext.asyncio import AsyncSession

    from .sorting import Sort, SortOrder

T = TypeVar("T")
SessionFactory = Callable[[], "AsyncSession"]

logger = logging.getLogger("query_filter.repository")


class QueryFilterRepository(Generic[T]):
    """
    Find and count entities matching a filter object.

    Compiles the filter with a :class:`QueryFilterCompiler` and executes
    the resulting :class:`FilterSpecification` on an ``AsyncSession``.

    Supports two session patterns:

    1. **Per-call session**:
       ``await repo.find_by_query(flt, session=session)``

    2. **Factory-injected session** (an ``async_sessionmaker``):
       ``QueryFilterRepository(Employee, session_factory=factory)``

    A session passed to the constructor is used for every call.
    """

    def __init__(
        self,
        entity: type[T],
        session: AsyncSession | None = None,
        *,
        session_factory: SessionFactory | None = None,
        compiler: QueryFilterCompiler | None = None,
    ) -> None:
        self.entity = entity
        self._session = session
        self._session_factory = session_factory
        self.compiler = compiler or QueryFilterCompiler()

    # -- session helpers ----------------------------------------------------

    @asynccontextmanager
    async def _session_scope(
        self, session: AsyncSession | None = None
    ) -> AsyncIterator[AsyncSession]:
        active = session if session is not None else self._session
        if active is not None:
            yield active
            return
        if self._session_factory is None:
            raise ValueError("No AsyncSession provided or configured.")
        async with self._session_factory() as owned:
            yield owned

    def compile(
        self,
        filter_obj: Any,
        *,
        sort: Sort | Iterable[SortOrder | str] | str | None = None,
        extra_predicates: Iterable[ColumnElement[bool]] = (),
    ) -> FilterSpecification:
        return self.compiler.compile(
            filter_obj,
            self.entity,
            extra_predicates=extra_predicates,
            sort=sort,
        )

    # -- queries ------------------------------------------------------------

    async def find_by_query(
        self,
        filter_obj: Any,
        pageable: PageRequest | tuple[int, int] | None = None,
        sort: Sort | Iterable[SortOrder | str] | str | None = None,
        extra_predicates: Iterable[ColumnElement[bool]] = (),
        *,
        session: AsyncSession | None = None,
    ) -> Page[T]:
        """
        Return one page of entities matching ``filter_obj``.

        Args:
            filter_obj: Filter criteria object.
            pageable: ``PageRequest`` or ``(page, size)``; first page by default.
            sort: ``Sort``, ``SortOrder`` items or ``"-field"`` shorthands.
            extra_predicates: Additional clauses AND-ed with the filter.
        """
        request = as_page_request(pageable)
        logger.info(
            "Start repository: multi criteria search by query %s "
            "with page %d and size %d",
            filter_obj,
            request.page,
            request.size,
        )
        spec = self.compile(filter_obj, sort=sort, extra_predicates=extra_predicates)

        async with self._session_scope(session) as active:
            total = (await active.execute(spec.to_count_select())).scalar_one()
            items: list[T] = []
            if request.offset < total:
                stmt = spec.to_select().offset(request.offset).limit(request.limit)
                items = list((await active.execute(stmt)).scalars().all())

        logger.info(
            "End repository: multi criteria search by query %s "
            "with page %d and size %d",
            filter_obj,
            request.page,
            request.size,
        )
        return Page(items=items, total=total, page=request.page, size=request.size)

    async def find_all_by_query(
        self,
        filter_obj: Any,
        sort: Sort | Iterable[SortOrder | str] | str | None = None,
        extra_predicates: Iterable[ColumnElement[bool]] = (),
        *,
        session: AsyncSession | None = None,
    ) -> list[T]:
        """Return every entity matching ``filter_obj``, unpaged."""
        logger.info("Start repository: find all by query %s", filter_obj)
        spec = self.compile(filter_obj, sort=sort, extra_predicates=extra_predicates)
        async with self._session_scope(session) as active:
            result = await active.execute(spec.to_select())
            items = list(result.scalars().all())
        logger.info("End repository: find all by query %s", filter_obj)
        return items

    async def count_by_query(
        self,
        filter_obj: Any,
        extra_predicates: Iterable[ColumnElement[bool]] = (),
        *,
        session: AsyncSession | None = None,
    ) -> int:
        logger.info("Start repository: Get count by query : %s", filter_obj)
        spec = self.compile(filter_obj, extra_predicates=extra_predicates)
        async with self._session_scope(session) as active:
            output = (await active.execute(spec.to_count_select())).scalar_one()
        logger.info("End repository: Get count by query : %s", filter_obj)
        return int(output)
