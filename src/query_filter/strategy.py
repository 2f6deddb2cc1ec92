"""
Predicate compilation strategy.

Provides the ``OperatorStrategy`` interface and a registry keyed by
:class:`~query_filter.enums.Operator`. Each strategy validates the filter
value it receives before building a SQLAlchemy boolean clause, so an
operator applied to an incompatible value fails with
``OperatorTypeMismatchError`` instead of producing broken SQL.
"""

from __future__ import annotations

import numbers
from abc import ABC, abstractmethod
from collections.abc import Collection
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from sqlalchemy import Enum, Float, Integer, Numeric, String
from sqlalchemy import cast as sql_cast

from .exceptions import UnsupportedOperatorError
from .settings import DEFAULT_SETTINGS, CompilerSettings

if TYPE_CHECKING:
    from sqlalchemy import ColumnElement

    from .enums import Operator


class OperatorStrategy(ABC):
    """
    Strategy interface for compiling one :class:`Operator`
    into a SQLAlchemy ``ColumnElement[bool]``.
    """

    @property
    @abstractmethod
    def name(self) -> Operator:
        """The operator this strategy handles."""
        ...

    @abstractmethod
    def apply(
        self,
        column: Any,
        value: Any,
        column_type: Any = None,
        *,
        settings: CompilerSettings = DEFAULT_SETTINGS,
    ) -> ColumnElement[bool]:
        """
        Build a SQLAlchemy filter clause.

        Args:
            column: A SQLAlchemy column or (aliased) instrumented attribute.
            value: The filter field's value. Never ``None``.
            column_type: SQL type of the terminal column, when known.
            settings: Compiler settings in effect.

        Raises:
            OperatorTypeMismatchError: ``value`` cannot be used with
                this operator.
        """
        ...


class OperatorRegistry:
    """Registry of ``OperatorStrategy`` instances keyed by :class:`Operator`."""

    def __init__(self) -> None:
        self._operators: dict[Operator, OperatorStrategy] = {}

    def register(self, operator: OperatorStrategy) -> None:
        self._operators[operator.name] = operator

    def register_all(self, *operators: OperatorStrategy) -> None:
        for op in operators:
            self.register(op)

    def unregister(self, name: Operator) -> None:
        self._operators.pop(name, None)

    def get(self, name: Operator) -> OperatorStrategy | None:
        return self._operators.get(name)

    def has(self, name: Operator) -> bool:
        return name in self._operators

    @property
    def supported_operators(self) -> set[Operator]:
        return set(self._operators.keys())

    def apply(
        self,
        name: Operator,
        column: Any,
        value: Any,
        column_type: Any = None,
        *,
        settings: CompilerSettings = DEFAULT_SETTINGS,
    ) -> ColumnElement[bool]:
        """
        Look up the operator and apply.

        Raises:
            UnsupportedOperatorError: If the operator is not registered.
        """
        op = self.get(name)
        if op is None:
            raise UnsupportedOperatorError(
                name, [o.name for o in self.supported_operators]
            )
        return op.apply(column, value, column_type, settings=settings)


# -- value / column type helpers ---------------------------------------------


def is_text_or_number(value: Any) -> bool:
    return isinstance(value, str) or is_number(value, allow_complex=True)


def is_number(value: Any, *, allow_complex: bool = False) -> bool:
    """True for ints, floats, decimals (and complex when allowed); never for bools."""
    if isinstance(value, bool):
        return False
    if isinstance(value, (numbers.Real, Decimal)):
        return True
    return allow_complex and isinstance(value, numbers.Number)


def is_collection(value: Any) -> bool:
    return isinstance(value, Collection) and not isinstance(
        value, (str, bytes, bytearray)
    )


def is_text_column(column_type: Any) -> bool:
    return isinstance(column_type, String) and not isinstance(column_type, Enum)


def is_numeric_column(column_type: Any) -> bool:
    return isinstance(column_type, (Integer, Numeric))


def numeric_type_for(value: Any) -> Any:
    if isinstance(value, int):
        return Integer()
    if isinstance(value, float):
        return Float()
    return Numeric()


def as_text(column: Any, column_type: Any) -> Any:
    """The column itself when it is textual (or untyped), otherwise cast to text."""
    if column_type is None or is_text_column(column_type):
        return column
    return sql_cast(column, String())


def as_numeric(column: Any, column_type: Any, value: Any) -> Any:
    """The column when numeric or untyped, otherwise cast to the value's type."""
    if column_type is None or is_numeric_column(column_type):
        return column
    return sql_cast(column, numeric_type_for(value))
