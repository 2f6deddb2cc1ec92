"""Membership operator: in."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from ..enums import Operator
from ..exceptions import OperatorTypeMismatchError
from ..settings import DEFAULT_SETTINGS, CompilerSettings
from ..strategy import OperatorStrategy, is_collection

if TYPE_CHECKING:
    from sqlalchemy.sql.elements import ColumnElement


class InOperator(OperatorStrategy):
    @property
    def name(self) -> Operator:
        return Operator.IN

    def apply(
        self,
        column: Any,
        value: Any,
        column_type: Any = None,
        *,
        settings: CompilerSettings = DEFAULT_SETTINGS,
    ) -> ColumnElement[bool]:
        if not is_collection(value):
            raise OperatorTypeMismatchError(self.name, value, "a collection")
        return cast("ColumnElement[bool]", column.in_(list(value)))
