from enum import Enum


class Operator(str, Enum):
    """Comparison applied between a filter value and its target column."""

    EQUAL = "="
    NOT_EQUAL = "!="
    LIKE = "like"
    IN = "in"
    LESS_THAN = "<"
    GREATER_THAN = ">"


class JoinKind(str, Enum):
    """Join kinds the planner can emit. Filters only ever use inner joins."""

    INNER = "inner"
    LEFT_OUTER = "left_outer"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"
