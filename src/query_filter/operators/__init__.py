"""
Operator implementations and default registry.

Usage::

    from query_filter.operators import DEFAULT_REGISTRY

    expr = DEFAULT_REGISTRY.apply(Operator.LIKE, Employee.name, "ann")
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ..settings import DEFAULT_SETTINGS, CompilerSettings
from ..strategy import OperatorRegistry, OperatorStrategy
from .set import InOperator
from .standard import (
    EqualOperator,
    GreaterThanOperator,
    LessThanOperator,
    NotEqualOperator,
)
from .string import LikeOperator

if TYPE_CHECKING:
    from sqlalchemy import ColumnElement

    from ..enums import Operator


def build_default_registry() -> OperatorRegistry:
    """Create a registry with all built-in operators."""
    registry = OperatorRegistry()
    registry.register_all(
        EqualOperator(),
        NotEqualOperator(),
        LikeOperator(),
        InOperator(),
        LessThanOperator(),
        GreaterThanOperator(),
    )
    return registry


DEFAULT_REGISTRY: OperatorRegistry = build_default_registry()


def build_predicate(
    operator: Operator,
    value: Any,
    column: Any,
    column_type: Any = None,
    *,
    registry: OperatorRegistry | None = None,
    settings: CompilerSettings = DEFAULT_SETTINGS,
) -> ColumnElement[bool]:
    """Compile one comparison between ``column`` and ``value``."""
    reg = registry or DEFAULT_REGISTRY
    return reg.apply(operator, column, value, column_type, settings=settings)


__all__ = [
    "DEFAULT_REGISTRY",
    "EqualOperator",
    "GreaterThanOperator",
    "InOperator",
    "LessThanOperator",
    "LikeOperator",
    "NotEqualOperator",
    "OperatorRegistry",
    "OperatorStrategy",
    "build_default_registry",
    "build_predicate",
]
