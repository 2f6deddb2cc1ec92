"""
Filter metadata: registration and extraction.

A filter type is a pydantic model or a dataclass whose fields hold
search criteria. How each field is matched is declared once per filter
type through :class:`FilterRegistry` (or the :func:`filter_config`
decorator) instead of per-field markers::

    @filter_config(
        name=FieldConfig(operator=Operator.LIKE),
        city=FieldConfig(path=("address", "city")),
        operations=FieldConfig(operations=True),
        page_hint=FieldConfig(ignored=True),
    )
    class EmployeeFilter(BaseModel):
        name: str | None = None
        city: str | None = None
        department_name: str | None = None
        operations: dict[str, Operator] | None = None
        page_hint: int | None = None

The registry turns that declaration into an immutable
:class:`FilterDefinition`, memoized per filter type. Extraction zips the
definition with an instance's values and never mutates the instance.
"""

from __future__ import annotations

import collections.abc
import dataclasses
import logging
import threading
import types
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Union, get_args, get_origin, get_type_hints

from pydantic import BaseModel

from .enums import Operator
from .exceptions import (
    ConflictingMetadataError,
    InvalidMetadataTypeError,
    UnknownFilterFieldError,
)

logger = logging.getLogger("query_filter.metadata")

OperatorOverrideMap = Mapping[str, Operator]

_MAPPING_TYPES: tuple[Any, ...] = (
    dict,
    collections.abc.Mapping,
    collections.abc.MutableMapping,
)
_EXPECTED_OPERATIONS_TYPE = dict[str, Operator]


@dataclass(frozen=True)
class FieldConfig:
    """
    Matching rules declared for one filter field.

    Attributes:
        ignored: Never turn this field into a predicate.
        path: Explicit association path ending in the target column.
            Accepts a dotted string (``"department.manager.email"``) or a
            sequence of segments. Empty means "derive from the field name".
        operator: Default operator for the field.
        operations: The field carries the per-instance operator overrides
            (``dict[str, Operator]``). At most one field may set this.
    """

    ignored: bool = False
    path: tuple[str, ...] = ()
    operator: Operator | None = None
    operations: bool = False

    def __post_init__(self) -> None:
        path: Any = self.path
        if isinstance(path, str):
            path = tuple(s for s in path.split(".") if s)
        object.__setattr__(self, "path", tuple(path))
        if self.operator is not None:
            object.__setattr__(self, "operator", Operator(self.operator))


@dataclass(frozen=True)
class FilterField:
    """Schema-level description of a filter field."""

    name: str
    annotation: Any
    ignored: bool = False
    path: tuple[str, ...] = ()
    operator: Operator | None = None
    operations: bool = False


@dataclass(frozen=True)
class FieldSpec:
    """A filter field paired with the value held by one filter instance."""

    name: str
    value: Any
    ignored: bool = False
    path: tuple[str, ...] = ()
    operator: Operator | None = None
    operations: bool = False

    @property
    def is_set(self) -> bool:
        return self.value is not None


@dataclass(frozen=True)
class FilterDefinition:
    """Immutable, per-type result of metadata validation."""

    filter_type: type[Any]
    fields: tuple[FilterField, ...]
    operations_field: str | None = None

    @property
    def name(self) -> str:
        return self.filter_type.__qualname__

    def extract(self, instance: Any) -> tuple[list[FieldSpec], OperatorOverrideMap]:
        """Read the instance's values into field specs plus the override map."""
        specs = [
            FieldSpec(
                name=f.name,
                value=getattr(instance, f.name, None),
                ignored=f.ignored,
                path=f.path,
                operator=f.operator,
                operations=f.operations,
            )
            for f in self.fields
        ]
        return specs, self._operations_of(instance)

    def _operations_of(self, instance: Any) -> OperatorOverrideMap:
        if self.operations_field is None:
            return types.MappingProxyType({})
        raw = getattr(instance, self.operations_field, None)
        if raw is None:
            return types.MappingProxyType({})
        if not isinstance(raw, Mapping):
            raise InvalidMetadataTypeError(
                self.operations_field,
                type(raw),
                _EXPECTED_OPERATIONS_TYPE,
                "value is not a mapping",
            )
        try:
            overrides = {str(k): Operator(v) for k, v in raw.items()}
        except ValueError as exc:
            raise InvalidMetadataTypeError(
                self.operations_field,
                type(raw),
                _EXPECTED_OPERATIONS_TYPE,
                str(exc),
            ) from exc
        return types.MappingProxyType(overrides)


class FilterRegistry:
    """
    Process-wide store of filter definitions, keyed by filter type.

    ``register`` validates eagerly. ``definition_for`` builds a
    definition lazily for unregistered types (every field with default
    rules). A definition is computed at most once per type; reads after
    the first population take no lock.
    """

    def __init__(self) -> None:
        self._configs: dict[type[Any], dict[str, FieldConfig]] = {}
        self._definitions: dict[type[Any], FilterDefinition] = {}
        self._lock = threading.Lock()

    def register(
        self,
        filter_type: type[Any],
        fields: Mapping[str, FieldConfig] | None = None,
        **field_configs: FieldConfig,
    ) -> FilterDefinition:
        config = {**(fields or {}), **field_configs}
        with self._lock:
            previous = self._configs.get(filter_type)
            self._configs[filter_type] = config
            try:
                definition = build_definition(
                    filter_type, self._merged_config(filter_type)
                )
            except Exception:
                if previous is None:
                    del self._configs[filter_type]
                else:
                    self._configs[filter_type] = previous
                raise
            # subclasses may have cached a definition built from the old config
            for cached in [t for t in self._definitions if issubclass(t, filter_type)]:
                del self._definitions[cached]
            self._definitions[filter_type] = definition
        logger.debug(
            "Registered filter %s with %d field(s)",
            definition.name,
            len(definition.fields),
        )
        return definition

    def definition_for(self, filter_type: type[Any]) -> FilterDefinition:
        definition = self._definitions.get(filter_type)
        if definition is not None:
            return definition
        with self._lock:
            definition = self._definitions.get(filter_type)
            if definition is None:
                definition = build_definition(
                    filter_type, self._merged_config(filter_type)
                )
                self._definitions[filter_type] = definition
        return definition

    def is_registered(self, filter_type: type[Any]) -> bool:
        return filter_type in self._configs

    def clear(self) -> None:
        with self._lock:
            self._configs.clear()
            self._definitions.clear()

    def _merged_config(self, filter_type: type[Any]) -> dict[str, FieldConfig]:
        """Ancestor configuration first, overridden by the subclass's own."""
        merged: dict[str, FieldConfig] = {}
        for klass in reversed(filter_type.__mro__):
            merged.update(self._configs.get(klass, {}))
        return merged


DEFAULT_FILTER_REGISTRY = FilterRegistry()


def filter_config(
    *,
    registry: FilterRegistry | None = None,
    **field_configs: FieldConfig,
) -> Any:
    """Class decorator registering a filter type with its field rules."""

    def decorator(cls: type[Any]) -> type[Any]:
        (registry or DEFAULT_FILTER_REGISTRY).register(cls, **field_configs)
        return cls

    return decorator


def extract(
    filter_instance: Any,
    registry: FilterRegistry | None = None,
) -> tuple[list[FieldSpec], OperatorOverrideMap]:
    """Return the instance's field specs and its operator override map."""
    definition = (registry or DEFAULT_FILTER_REGISTRY).definition_for(
        type(filter_instance)
    )
    return definition.extract(filter_instance)


def build_definition(
    filter_type: type[Any],
    config: Mapping[str, FieldConfig],
) -> FilterDefinition:
    declared = _declared_fields(filter_type)
    names = [name for name, _ in declared]

    for name in config:
        if name not in names:
            raise UnknownFilterFieldError(filter_type.__qualname__, name, names)

    carriers = [name for name in names if config.get(name, _NO_CONFIG).operations]
    if len(carriers) > 1:
        raise ConflictingMetadataError(filter_type.__qualname__, carriers)

    fields: list[FilterField] = []
    for name, annotation in declared:
        cfg = config.get(name, _NO_CONFIG)
        if cfg.operations:
            _validate_operations_annotation(name, annotation)
        fields.append(
            FilterField(
                name=name,
                annotation=annotation,
                ignored=cfg.ignored,
                path=cfg.path,
                operator=cfg.operator,
                operations=cfg.operations,
            )
        )

    return FilterDefinition(
        filter_type=filter_type,
        fields=tuple(fields),
        operations_field=carriers[0] if carriers else None,
    )


_NO_CONFIG = FieldConfig()


def _declared_fields(filter_type: type[Any]) -> list[tuple[str, Any]]:
    """Fields of the type and its ancestors, ancestors first."""
    if isinstance(filter_type, type) and issubclass(filter_type, BaseModel):
        return [
            (name, info.annotation)
            for name, info in filter_type.model_fields.items()
        ]
    if isinstance(filter_type, type) and dataclasses.is_dataclass(filter_type):
        hints = get_type_hints(filter_type)
        return [
            (f.name, hints.get(f.name, f.type))
            for f in dataclasses.fields(filter_type)
        ]
    raise InvalidMetadataTypeError(
        getattr(filter_type, "__qualname__", repr(filter_type)),
        filter_type,
        "pydantic.BaseModel | dataclass",
        "filter types must be pydantic models or dataclasses",
    )


def _unwrap_optional(annotation: Any) -> Any:
    if get_origin(annotation) in (Union, types.UnionType):
        args = [a for a in get_args(annotation) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def _validate_operations_annotation(name: str, annotation: Any) -> None:
    tp = _unwrap_optional(annotation)
    origin = get_origin(tp)

    if tp in _MAPPING_TYPES or (origin in _MAPPING_TYPES and not get_args(tp)):
        raise InvalidMetadataTypeError(
            name, annotation, _EXPECTED_OPERATIONS_TYPE, "raw types are not supported"
        )
    if origin not in _MAPPING_TYPES:
        raise InvalidMetadataTypeError(
            name, annotation, _EXPECTED_OPERATIONS_TYPE, "not a mapping"
        )

    key, value = get_args(tp)
    if key is not str:
        raise InvalidMetadataTypeError(
            name, annotation, _EXPECTED_OPERATIONS_TYPE, f"key type is {key!r}"
        )
    if value is not Operator:
        raise InvalidMetadataTypeError(
            name, annotation, _EXPECTED_OPERATIONS_TYPE, f"value type is {value!r}"
        )
