"""
Query filter exception hierarchy.

All exceptions inherit from ``QueryFilterError`` and provide
``to_dict()`` for API-friendly error responses. Every error aborts
the compilation that raised it; nothing is retried or corrected.
"""

from __future__ import annotations

from difflib import get_close_matches
from typing import Any, get_origin


class QueryFilterError(Exception):
    """Base exception for all query filter errors."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.__class__.__name__,
            "message": str(self),
        }


class MetadataError(QueryFilterError):
    """A filter type's declared metadata is unusable."""


class ConflictingMetadataError(MetadataError):
    """More than one field is declared as the operations carrier."""

    def __init__(self, filter_type: str, fields: list[str]) -> None:
        self.filter_type = filter_type
        self.fields = fields
        super().__init__(
            f"Conflicting fields {fields} declared as field operations "
            f"on '{filter_type}'"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "CONFLICTING_METADATA",
            "message": str(self),
            "filter_type": self.filter_type,
            "fields": list(self.fields),
        }


class InvalidMetadataTypeError(MetadataError):
    """A declared field (or the filter type itself) has the wrong shape."""

    def __init__(
        self,
        field: str,
        declared_type: Any,
        expected_type: Any,
        reason: str | None = None,
    ) -> None:
        self.field = field
        self.declared_type = declared_type
        self.expected_type = expected_type
        self.reason = reason

        message = (
            f"Field '{field}' is declared as '{_type_name(declared_type)}' "
            f"but '{_type_name(expected_type)}' is expected"
        )
        if reason:
            message += f": {reason}"
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "INVALID_METADATA_TYPE",
            "message": str(self),
            "field": self.field,
            "declared_type": _type_name(self.declared_type),
            "expected_type": _type_name(self.expected_type),
        }


class UnknownFilterFieldError(MetadataError):
    """Configuration was registered for a field the filter does not declare."""

    def __init__(self, filter_type: str, field: str, declared: list[str]) -> None:
        self.filter_type = filter_type
        self.field = field
        self.declared = declared
        self.suggestions = get_close_matches(field, declared, n=3, cutoff=0.6)

        message = f"Filter '{filter_type}' declares no field '{field}'."
        if self.suggestions:
            message += f" Did you mean: {', '.join(self.suggestions)}?"
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "UNKNOWN_FILTER_FIELD",
            "message": str(self),
            "filter_type": self.filter_type,
            "field": self.field,
            "suggestions": self.suggestions,
        }


class SchemaPathError(QueryFilterError):
    """
    A path segment cannot be resolved against the target entity.

    Raised for unknown segments and for a column found where an
    association is required (or the reverse for the terminal segment).

    Example error message::

        Cannot resolve 'departmnt' on 'Employee' (path 'departmnt.name'):
        unknown field. Did you mean: department?
    """

    UNKNOWN_FIELD = "unknown field"
    EXPECTED_ASSOCIATION = "expected association, found column"
    EXPECTED_COLUMN = "expected column, found association"
    NOT_IN_SCHEMA = "not a column or association of the schema"

    def __init__(
        self,
        segment: str,
        entity_name: str,
        full_path: str,
        reason: str,
        available_fields: list[str] | None = None,
    ) -> None:
        self.segment = segment
        self.entity_name = entity_name
        self.full_path = full_path
        self.reason = reason
        self.available_fields = available_fields or []
        self.suggestions = (
            get_close_matches(segment, self.available_fields, n=3, cutoff=0.6)
            if reason == self.UNKNOWN_FIELD
            else []
        )

        message = (
            f"Cannot resolve '{segment}' on '{entity_name}' "
            f"(path '{full_path}'): {reason}."
        )
        if self.suggestions:
            message += f" Did you mean: {', '.join(self.suggestions)}?"
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "SCHEMA_PATH_ERROR",
            "message": str(self),
            "segment": self.segment,
            "entity": self.entity_name,
            "full_path": self.full_path,
            "reason": self.reason,
            "suggestions": self.suggestions,
        }


class OperatorTypeMismatchError(QueryFilterError):
    """The operator cannot be applied to a value of this type."""

    def __init__(self, operator: Any, value: Any, expected: str) -> None:
        self.operator = operator
        self.value_type = type(value).__name__
        self.expected = expected
        name = getattr(operator, "name", operator)
        super().__init__(
            f"Operation is {name}, but value of type '{self.value_type}' "
            f"is not {expected}"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "OPERATOR_TYPE_MISMATCH",
            "message": str(self),
            "operator": getattr(self.operator, "name", str(self.operator)),
            "value_type": self.value_type,
            "expected": self.expected,
        }


class UnsupportedOperatorError(QueryFilterError):
    """No strategy is registered for the operator."""

    def __init__(self, operator: Any, supported: list[str]) -> None:
        self.operator = operator
        self.supported = supported
        super().__init__(
            f"Unsupported operator: {operator!s}. "
            f"Supported operators: {', '.join(sorted(supported))}"
        )


class PaginationError(QueryFilterError):
    """Invalid page request."""


def _type_name(tp: Any) -> str:
    if isinstance(tp, type) and get_origin(tp) is None:
        return tp.__qualname__
    return str(tp).replace("typing.", "")
