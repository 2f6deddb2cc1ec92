"""Comparison operators: equal, not equal, less than, greater than."""

from __future__ import annotations

import operator as op_module
from typing import TYPE_CHECKING, Any, cast

from ..enums import Operator
from ..exceptions import OperatorTypeMismatchError
from ..settings import DEFAULT_SETTINGS, CompilerSettings
from ..strategy import OperatorStrategy, as_numeric, is_number

if TYPE_CHECKING:
    from sqlalchemy.sql.elements import ColumnElement


class EqualOperator(OperatorStrategy):
    @property
    def name(self) -> Operator:
        return Operator.EQUAL

    def apply(
        self,
        column: Any,
        value: Any,
        column_type: Any = None,
        *,
        settings: CompilerSettings = DEFAULT_SETTINGS,
    ) -> ColumnElement[bool]:
        return cast("ColumnElement[bool]", op_module.eq(column, value))


class NotEqualOperator(OperatorStrategy):
    @property
    def name(self) -> Operator:
        return Operator.NOT_EQUAL

    def apply(
        self,
        column: Any,
        value: Any,
        column_type: Any = None,
        *,
        settings: CompilerSettings = DEFAULT_SETTINGS,
    ) -> ColumnElement[bool]:
        return cast("ColumnElement[bool]", op_module.ne(column, value))


class _NumericComparison(OperatorStrategy):
    """Strict inequality against a numeric value."""

    _compare: Any = None

    def apply(
        self,
        column: Any,
        value: Any,
        column_type: Any = None,
        *,
        settings: CompilerSettings = DEFAULT_SETTINGS,
    ) -> ColumnElement[bool]:
        if not is_number(value):
            raise OperatorTypeMismatchError(self.name, value, "a number")
        target = as_numeric(column, column_type, value)
        return cast("ColumnElement[bool]", type(self)._compare(target, value))


class LessThanOperator(_NumericComparison):
    _compare = op_module.lt

    @property
    def name(self) -> Operator:
        return Operator.LESS_THAN


class GreaterThanOperator(_NumericComparison):
    _compare = op_module.gt

    @property
    def name(self) -> Operator:
        return Operator.GREATER_THAN
