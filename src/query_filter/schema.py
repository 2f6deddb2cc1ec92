"""
Schema navigation: resolve a field path against a mapped entity.

The navigator asks a :class:`SchemaProvider` what each segment of a path
is. Every segment but the last must be an association to another entity
of the provider's type universe; the last must be a column. The default
provider reads SQLAlchemy's mapper metamodel.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from sqlalchemy import inspect
from sqlalchemy.orm import ColumnProperty, RelationshipProperty

from .exceptions import SchemaPathError

if TYPE_CHECKING:
    from sqlalchemy.orm import Mapper

logger = logging.getLogger("query_filter.schema")


class FieldKind(str, Enum):
    COLUMN = "column"
    ASSOCIATION = "association"
    OTHER = "other"


@dataclass(frozen=True)
class EntityField:
    """
    What the schema knows about one field of an entity.

    Attributes:
        name: Attribute name on the entity.
        kind: Column, association, or neither.
        declaring_type: Class that declares the attribute (an ancestor
            when the attribute is inherited).
        target_type: Entity reached through an association. For
            collection-valued associations this is the element type.
        multi_valued: Association holds a collection.
        sql_type: SQL type of a column.
        python_type: Python type of a column, when the SQL type knows it.
    """

    name: str
    kind: FieldKind
    declaring_type: type[Any]
    target_type: type[Any] | None = None
    multi_valued: bool = False
    sql_type: Any = None
    python_type: type[Any] | None = None

    @property
    def is_column(self) -> bool:
        return self.kind is FieldKind.COLUMN

    @property
    def is_association(self) -> bool:
        return self.kind is FieldKind.ASSOCIATION


@runtime_checkable
class SchemaProvider(Protocol):
    """Answers structural questions about entity types."""

    def get_field(self, entity: type[Any], name: str) -> EntityField | None:
        """Return the field ``name`` of ``entity`` (ancestors included), or None."""
        ...

    def field_names(self, entity: type[Any]) -> list[str]: ...


class SQLAlchemySchemaProvider:
    """
    Schema provider backed by SQLAlchemy mappers.

    ``entities`` is the type universe: a relationship counts as an
    association only when its target belongs to it. ``None`` accepts
    every mapped class.
    """

    def __init__(self, entities: Iterable[type[Any]] | None = None) -> None:
        self._universe = frozenset(entities) if entities is not None else None

    @classmethod
    def from_base(cls, base: Any) -> SQLAlchemySchemaProvider:
        """Use every class mapped by a declarative base (or ``registry``)."""
        registry = getattr(base, "registry", base)
        return cls(mapper.class_ for mapper in registry.mappers)

    def get_field(self, entity: type[Any], name: str) -> EntityField | None:
        prop = self._mapper(entity).attrs.get(name)
        if prop is None:
            return None

        declaring_type = prop.parent.class_
        if isinstance(prop, RelationshipProperty):
            target = prop.mapper.class_
            if self._universe is not None and target not in self._universe:
                return EntityField(name, FieldKind.OTHER, declaring_type, target)
            return EntityField(
                name,
                FieldKind.ASSOCIATION,
                declaring_type,
                target_type=target,
                multi_valued=bool(prop.uselist),
            )
        if isinstance(prop, ColumnProperty):
            sql_type = prop.columns[0].type
            return EntityField(
                name,
                FieldKind.COLUMN,
                declaring_type,
                sql_type=sql_type,
                python_type=_python_type(sql_type),
            )
        return EntityField(name, FieldKind.OTHER, declaring_type)

    def field_names(self, entity: type[Any]) -> list[str]:
        return list(self._mapper(entity).attrs.keys())

    @staticmethod
    def _mapper(entity: type[Any]) -> Mapper[Any]:
        mapper = inspect(entity, raiseerr=False)
        if mapper is None:
            raise TypeError(f"{entity!r} is not a mapped class")
        return mapper  # type: ignore[no-any-return]


def _python_type(sql_type: Any) -> type[Any] | None:
    try:
        return sql_type.python_type  # type: ignore[no-any-return]
    except NotImplementedError:
        return None


@dataclass(frozen=True)
class AssociationStep:
    """One association hop of a resolved path."""

    field: EntityField

    @property
    def name(self) -> str:
        return self.field.name

    @property
    def owning_type(self) -> type[Any]:
        return self.field.declaring_type

    @property
    def target_type(self) -> type[Any]:
        assert self.field.target_type is not None
        return self.field.target_type

    @property
    def multi_valued(self) -> bool:
        return self.field.multi_valued


@dataclass(frozen=True)
class ResolvedPath:
    """Association hops followed by the terminal column."""

    segments: tuple[str, ...]
    steps: tuple[AssociationStep, ...]
    terminal: EntityField

    @property
    def terminal_name(self) -> str:
        return self.terminal.name

    @property
    def terminal_type(self) -> Any:
        return self.terminal.sql_type

    @property
    def dotted(self) -> str:
        return ".".join(self.segments)


class SchemaNavigator:
    """Turns filter field names into validated entity paths."""

    def __init__(
        self,
        provider: SchemaProvider | None = None,
        separator: str = "_",
    ) -> None:
        self.provider = provider or SQLAlchemySchemaProvider()
        self.separator = separator

    def segments_for(
        self,
        field_name: str,
        explicit_path: Sequence[str] = (),
    ) -> tuple[str, ...]:
        """Explicit path when declared, else the field name split on the separator."""
        if explicit_path:
            return tuple(explicit_path)
        return tuple(field_name.split(self.separator))

    def resolve(self, entity: type[Any], segments: Sequence[str]) -> ResolvedPath:
        if not segments:
            raise ValueError("Cannot resolve an empty path")

        full_path = ".".join(segments)
        *hops, terminal_name = segments
        current = entity
        steps: list[AssociationStep] = []

        for segment in hops:
            entity_field = self._lookup(current, segment, full_path)
            if not entity_field.is_association:
                raise SchemaPathError(
                    segment,
                    current.__name__,
                    full_path,
                    SchemaPathError.EXPECTED_ASSOCIATION
                    if entity_field.is_column
                    else SchemaPathError.NOT_IN_SCHEMA,
                )
            steps.append(AssociationStep(entity_field))
            current = entity_field.target_type  # type: ignore[assignment]

        terminal = self._lookup(current, terminal_name, full_path)
        if terminal.is_association:
            raise SchemaPathError(
                terminal_name,
                current.__name__,
                full_path,
                SchemaPathError.EXPECTED_COLUMN,
            )
        if not terminal.is_column:
            raise SchemaPathError(
                terminal_name,
                current.__name__,
                full_path,
                SchemaPathError.NOT_IN_SCHEMA,
            )

        logger.debug(
            "Resolved %s on %s: %d hop(s), terminal %s",
            full_path,
            entity.__name__,
            len(steps),
            terminal.name,
        )
        return ResolvedPath(tuple(segments), tuple(steps), terminal)

    def _lookup(self, entity: type[Any], segment: str, full_path: str) -> EntityField:
        entity_field = self.provider.get_field(entity, segment)
        if entity_field is None:
            raise SchemaPathError(
                segment,
                entity.__name__,
                full_path,
                SchemaPathError.UNKNOWN_FIELD,
                self.provider.field_names(entity),
            )
        return entity_field


def resolve_path(
    entity: type[Any],
    segments: Sequence[str],
    provider: SchemaProvider | None = None,
) -> ResolvedPath:
    """Resolve ``segments`` against ``entity`` with a one-off navigator."""
    return SchemaNavigator(provider).resolve(entity, segments)
