"""Compiler configuration."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from .enums import Operator


@dataclass(frozen=True)
class CompilerSettings:
    """
    Immutable knobs of a :class:`~query_filter.compiler.QueryFilterCompiler`.

    Attributes:
        path_separator: Splits a filter field name into path segments when
            no explicit path is registered (``department_name`` ->
            ``department`` / ``name``).
        default_operator: Operator used when neither an instance override
            nor a per-field operator is declared.
        like_wildcard: Wildcard wrapped around ``LIKE`` values.
    """

    path_separator: str = "_"
    default_operator: Operator = Operator.EQUAL
    like_wildcard: str = "%"

    def __post_init__(self) -> None:
        if not self.path_separator:
            raise ValueError("path_separator must not be empty")

    def with_overrides(self, **changes: Any) -> CompilerSettings:
        """Return a copy with the given attributes replaced."""
        return replace(self, **changes)


DEFAULT_SETTINGS = CompilerSettings()
