"""Declarative filter objects compiled to SQLAlchemy joins and predicates."""

from __future__ import annotations

from .compiler import FilterSpecification, QueryFilterCompiler, compile_filter
from .enums import JoinKind, Operator, SortDirection
from .exceptions import (
    ConflictingMetadataError,
    InvalidMetadataTypeError,
    MetadataError,
    OperatorTypeMismatchError,
    PaginationError,
    QueryFilterError,
    SchemaPathError,
    UnknownFilterFieldError,
    UnsupportedOperatorError,
)
from .hooks import (
    CompilationEvent,
    CompilationObserver,
    LoggingObserver,
    RecordingObserver,
)
from .joins import JoinNode, JoinPlanner
from .metadata import (
    DEFAULT_FILTER_REGISTRY,
    FieldConfig,
    FieldSpec,
    FilterDefinition,
    FilterRegistry,
    extract,
    filter_config,
)
from .operators import DEFAULT_REGISTRY, build_default_registry, build_predicate
from .pagination import Page, PageRequest
from .repository import QueryFilterRepository
from .schema import (
    AssociationStep,
    EntityField,
    FieldKind,
    ResolvedPath,
    SchemaNavigator,
    SchemaProvider,
    SQLAlchemySchemaProvider,
    resolve_path,
)
from .settings import CompilerSettings
from .sorting import Sort, SortOrder
from .strategy import OperatorRegistry, OperatorStrategy

__all__ = [
    # Compilation
    "QueryFilterCompiler",
    "FilterSpecification",
    "compile_filter",
    "CompilerSettings",
    # Metadata
    "FieldConfig",
    "FieldSpec",
    "FilterDefinition",
    "FilterRegistry",
    "DEFAULT_FILTER_REGISTRY",
    "filter_config",
    "extract",
    # Schema / joins
    "SchemaProvider",
    "SQLAlchemySchemaProvider",
    "SchemaNavigator",
    "EntityField",
    "FieldKind",
    "AssociationStep",
    "ResolvedPath",
    "resolve_path",
    "JoinNode",
    "JoinPlanner",
    # Operators
    "Operator",
    "OperatorStrategy",
    "OperatorRegistry",
    "DEFAULT_REGISTRY",
    "build_default_registry",
    "build_predicate",
    # Sorting / pagination / repository
    "Sort",
    "SortOrder",
    "SortDirection",
    "JoinKind",
    "Page",
    "PageRequest",
    "QueryFilterRepository",
    # Hooks
    "CompilationEvent",
    "CompilationObserver",
    "LoggingObserver",
    "RecordingObserver",
    # Exceptions
    "QueryFilterError",
    "MetadataError",
    "ConflictingMetadataError",
    "InvalidMetadataTypeError",
    "UnknownFilterFieldError",
    "SchemaPathError",
    "OperatorTypeMismatchError",
    "UnsupportedOperatorError",
    "PaginationError",
]
