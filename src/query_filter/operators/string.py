"""Substring operator: like."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from ..enums import Operator
from ..exceptions import OperatorTypeMismatchError
from ..settings import DEFAULT_SETTINGS, CompilerSettings
from ..strategy import OperatorStrategy, as_text, is_text_or_number

if TYPE_CHECKING:
    from sqlalchemy.sql.elements import ColumnElement


LIKE_ESCAPE = "/"


def escape_like(text: str, escape: str = LIKE_ESCAPE) -> str:
    """Escape LIKE metacharacters in ``text`` so they match literally."""
    for char in (escape, "%", "_"):
        text = text.replace(char, escape + char)
    return text


class LikeOperator(OperatorStrategy):
    """Match any column value containing the text form of the filter value."""

    @property
    def name(self) -> Operator:
        return Operator.LIKE

    def apply(
        self,
        column: Any,
        value: Any,
        column_type: Any = None,
        *,
        settings: CompilerSettings = DEFAULT_SETTINGS,
    ) -> ColumnElement[bool]:
        if not is_text_or_number(value):
            raise OperatorTypeMismatchError(self.name, value, "a string or a number")
        wildcard = settings.like_wildcard
        pattern = f"{wildcard}{escape_like(str(value))}{wildcard}"
        return cast(
            "ColumnElement[bool]",
            as_text(column, column_type).like(pattern, escape=LIKE_ESCAPE),
        )
