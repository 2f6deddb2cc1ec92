"""
Compile a filter object into a SQLAlchemy filter specification.

For every field of the filter that holds a value, the compiler:

1. resolves the field's path against the target entity
   (:mod:`query_filter.schema`),
2. plans the inner joins the path needs, reusing joins already created
   for earlier fields (:mod:`query_filter.joins`),
3. builds the comparison for the field's operator
   (:mod:`query_filter.operators`).

The predicates are combined into a flat conjunction, together with any
caller-supplied extra predicates and an optional sort. Sort paths join
with left outer joins unless a filter already joined the same hop, so
sorting never drops rows. The result is a
:class:`FilterSpecification`: an immutable, storage-free description that
can be applied to any ``Select`` over the entity.

Operator precedence for a field
-------------------------------
1. the filter instance's override map (``operations`` carrier),
2. the operator registered for the field,
3. ``CompilerSettings.default_operator`` (``EQUAL``).
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from sqlalchemy import and_, asc, desc, func, select, true

from .enums import JoinKind
from .exceptions import QueryFilterError
from .hooks import (
    COMPILATION_COMPLETED,
    COMPILATION_FAILED,
    FIELD_COMPILED,
    FIELD_SKIPPED,
    CompilationEvent,
    CompilationObserver,
)
from .joins import JoinNode, JoinPlanner
from .metadata import DEFAULT_FILTER_REGISTRY, FieldSpec, FilterRegistry
from .operators import DEFAULT_REGISTRY
from .schema import SchemaNavigator, SchemaProvider, SQLAlchemySchemaProvider
from .settings import DEFAULT_SETTINGS, CompilerSettings
from .sorting import Sort, SortOrder, as_sort

if TYPE_CHECKING:
    from sqlalchemy import ColumnElement, Select

    from .enums import Operator
    from .metadata import OperatorOverrideMap
    from .strategy import OperatorRegistry

logger = logging.getLogger("query_filter.compiler")


@dataclass(frozen=True, eq=False)
class FilterSpecification:
    """
    Compiled filter: joins, a flat conjunction of predicates, and ordering.

    Building it never touches storage. Apply it to a statement with
    :meth:`apply`, or build ready-made selects with :meth:`to_select` and
    :meth:`to_count_select`.
    """

    entity: type[Any]
    joins: tuple[JoinNode, ...] = ()
    predicates: tuple[ColumnElement[bool], ...] = ()
    order_by: tuple[Any, ...] = ()

    @property
    def where_clause(self) -> ColumnElement[bool]:
        if not self.predicates:
            return true()
        return and_(*self.predicates)

    @property
    def has_collection_joins(self) -> bool:
        return any(node.multi_valued for node in self.joins)

    def _joins_for(self, ordered: bool) -> tuple[JoinNode, ...]:
        # outer joins only ever serve the ordering
        if ordered:
            return self.joins
        return tuple(node for node in self.joins if not node.is_outer)

    def apply(self, stmt: Select[Any], *, ordered: bool = True) -> Select[Any]:
        """
        Add the joins, the where clause and (optionally) the ordering to ``stmt``.

        Left outer joins planned for sort paths are left out when
        ``ordered`` is false.
        """
        for node in self._joins_for(ordered):
            stmt = stmt.join(node.onclause(self.entity), isouter=node.is_outer)
        if self.predicates:
            stmt = stmt.where(self.where_clause)
        if ordered and self.order_by:
            stmt = stmt.order_by(*self.order_by)
        return stmt

    def to_select(self) -> Select[Any]:
        """
        ``SELECT entity`` with the filter applied.

        Joins across collection associations can repeat root rows, so the
        select is made ``DISTINCT`` when any such join is present.
        """
        stmt = self.apply(select(self.entity))
        if self.has_collection_joins:
            stmt = stmt.distinct()
        return stmt

    def to_count_select(self) -> Select[Any]:
        """``SELECT count(*)`` over the matching (distinct) root rows."""
        inner = self.apply(select(self.entity), ordered=False)
        if any(node.multi_valued for node in self._joins_for(False)):
            inner = inner.distinct()
        return select(func.count()).select_from(inner.subquery())


class QueryFilterCompiler:
    """
    Turns filter objects into :class:`FilterSpecification` instances.

    The compiler itself is stateless between calls: every ``compile``
    gets its own join planner, so one instance may be shared across
    threads.

    Args:
        registry: Filter metadata registry. Defaults to the process-wide one.
        schema: Schema provider for target entities. Defaults to a
            :class:`SQLAlchemySchemaProvider` accepting every mapped class.
        operators: Operator strategy registry.
        settings: Path separator, default operator, LIKE wildcard.
        observers: Callables receiving :class:`CompilationEvent` objects.
    """

    def __init__(
        self,
        *,
        registry: FilterRegistry | None = None,
        schema: SchemaProvider | None = None,
        operators: OperatorRegistry | None = None,
        settings: CompilerSettings | None = None,
        observers: Sequence[CompilationObserver] = (),
    ) -> None:
        self.registry = registry or DEFAULT_FILTER_REGISTRY
        self.schema = schema or SQLAlchemySchemaProvider()
        self.operators = operators or DEFAULT_REGISTRY
        self.settings = settings or DEFAULT_SETTINGS
        self.observers = tuple(observers)

    def compile(
        self,
        filter_obj: Any,
        entity: type[Any],
        *,
        extra_predicates: Iterable[ColumnElement[bool]] = (),
        sort: Sort | Iterable[SortOrder | str] | str | None = None,
    ) -> FilterSpecification:
        """
        Compile ``filter_obj`` against ``entity``.

        Raises:
            MetadataError: The filter type's declarations are invalid.
            SchemaPathError: A field path does not resolve on ``entity``.
            OperatorTypeMismatchError: A value does not suit its operator.
        """
        filter_name = type(filter_obj).__qualname__
        navigator = SchemaNavigator(self.schema, self.settings.path_separator)
        planner = JoinPlanner(
            entity,
            on_event=lambda name, node: self._emit(
                name, filter_name, entity, path=".".join(node.path)
            ),
        )

        try:
            definition = self.registry.definition_for(type(filter_obj))
            field_specs, overrides = definition.extract(filter_obj)
            predicates: list[ColumnElement[bool]] = []
            for spec in field_specs:
                predicate = self._compile_field(
                    spec, overrides, entity, navigator, planner, filter_name
                )
                if predicate is not None:
                    predicates.append(predicate)
            predicates.extend(extra_predicates)
            order_by = self._compile_sort(as_sort(sort), navigator, planner)
        except QueryFilterError as exc:
            self._emit(
                COMPILATION_FAILED,
                filter_name,
                entity,
                error=exc.__class__.__name__,
                message=str(exc),
            )
            raise

        specification = FilterSpecification(
            entity=entity,
            joins=planner.joins,
            predicates=tuple(predicates),
            order_by=tuple(order_by),
        )
        logger.debug(
            "Compiled %s against %s: %d predicate(s), %d join(s)",
            filter_name,
            entity.__name__,
            len(specification.predicates),
            len(specification.joins),
        )
        self._emit(
            COMPILATION_COMPLETED,
            filter_name,
            entity,
            predicates=len(specification.predicates),
            joins=len(specification.joins),
        )
        return specification

    def resolve_operator(
        self, spec: FieldSpec, overrides: OperatorOverrideMap
    ) -> Operator:
        override = overrides.get(spec.name)
        if override is not None:
            return override
        if spec.operator is not None:
            return spec.operator
        return self.settings.default_operator

    # -- internals ------------------------------------------------------------

    def _compile_field(
        self,
        spec: FieldSpec,
        overrides: OperatorOverrideMap,
        entity: type[Any],
        navigator: SchemaNavigator,
        planner: JoinPlanner,
        filter_name: str,
    ) -> ColumnElement[bool] | None:
        if spec.ignored or spec.operations:
            return None
        if spec.value is None:
            logger.debug("Skipping %s.%s: no value", filter_name, spec.name)
            self._emit(FIELD_SKIPPED, filter_name, entity, field=spec.name)
            return None

        segments = navigator.segments_for(spec.name, spec.path)
        resolved = navigator.resolve(entity, segments)
        node = planner.plan(resolved.steps)
        column = planner.column(node, resolved.terminal_name)
        operator = self.resolve_operator(spec, overrides)

        predicate = self.operators.apply(
            operator,
            column,
            spec.value,
            resolved.terminal_type,
            settings=self.settings,
        )
        logger.debug(
            "Compiled %s.%s as %s on %s",
            filter_name,
            spec.name,
            operator.name,
            resolved.dotted,
        )
        self._emit(
            FIELD_COMPILED,
            filter_name,
            entity,
            field=spec.name,
            operator=operator.name,
            path=resolved.dotted,
        )
        return predicate

    def _compile_sort(
        self,
        sort: Sort,
        navigator: SchemaNavigator,
        planner: JoinPlanner,
    ) -> list[Any]:
        clauses: list[Any] = []
        for order in sort:
            resolved = navigator.resolve(planner.root, order.segments)
            node = planner.plan(resolved.steps, JoinKind.LEFT_OUTER)
            column = planner.column(node, resolved.terminal_name)
            clauses.append(asc(column) if order.is_ascending else desc(column))
        return clauses

    def _emit(
        self, name: str, filter_name: str, entity: type[Any], **attributes: Any
    ) -> None:
        if not self.observers:
            return
        event = CompilationEvent(
            name=name,
            filter_type=filter_name,
            entity=entity.__name__,
            attributes=attributes,
        )
        for observer in self.observers:
            observer(event)


_DEFAULT_COMPILER = QueryFilterCompiler()


def compile_filter(
    filter_obj: Any,
    entity: type[Any],
    *,
    extra_predicates: Iterable[ColumnElement[bool]] = (),
    sort: Sort | Iterable[SortOrder | str] | str | None = None,
) -> FilterSpecification:
    """Compile with a default :class:`QueryFilterCompiler`."""
    return _DEFAULT_COMPILER.compile(
        filter_obj, entity, extra_predicates=extra_predicates, sort=sort
    )
