"""
Sort descriptor applied alongside a compiled filter.

Ordering is resolved independently of the predicates: the same sort
produces the same ``ORDER BY`` clause whatever the filter contains.
Shorthand strings follow the ``QueryOptions.order_by`` convention:
``"name"`` sorts ascending, ``"-name"`` descending.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from .enums import SortDirection


@dataclass(frozen=True)
class SortOrder:
    """A single ordering term: a (possibly dotted) column path and a direction."""

    path: str
    direction: SortDirection = SortDirection.ASC

    def __post_init__(self) -> None:
        if not self.path:
            raise ValueError("Sort path must not be empty")

    @property
    def is_ascending(self) -> bool:
        return self.direction is SortDirection.ASC

    @property
    def segments(self) -> list[str]:
        return self.path.split(".")

    @classmethod
    def asc(cls, path: str) -> SortOrder:
        return cls(path, SortDirection.ASC)

    @classmethod
    def desc(cls, path: str) -> SortOrder:
        return cls(path, SortDirection.DESC)

    @classmethod
    def parse(cls, expr: str) -> SortOrder:
        """Parse ``"field"`` / ``"-field"`` shorthand."""
        expr = expr.strip()
        if expr.startswith("-"):
            return cls.desc(expr[1:])
        return cls.asc(expr.lstrip("+"))


@dataclass(frozen=True)
class Sort:
    """Ordered collection of :class:`SortOrder` terms."""

    orders: tuple[SortOrder, ...] = ()

    @classmethod
    def by(cls, *items: SortOrder | str) -> Sort:
        return cls(
            tuple(
                item if isinstance(item, SortOrder) else SortOrder.parse(item)
                for item in items
            )
        )

    @classmethod
    def unsorted(cls) -> Sort:
        return cls()

    def and_(self, other: Sort | Iterable[SortOrder | str]) -> Sort:
        """Return a sort with ``other``'s terms appended."""
        extra = other if isinstance(other, Sort) else Sort.by(*other)
        return Sort(self.orders + extra.orders)

    def __iter__(self) -> Iterator[SortOrder]:
        return iter(self.orders)

    def __len__(self) -> int:
        return len(self.orders)

    def __bool__(self) -> bool:
        return bool(self.orders)


def as_sort(value: Sort | Iterable[SortOrder | str] | str | None) -> Sort:
    """Normalise the accepted sort inputs into a :class:`Sort`."""
    if value is None:
        return Sort.unsorted()
    if isinstance(value, Sort):
        return value
    if isinstance(value, (str, SortOrder)):
        return Sort.by(value)
    return Sort.by(*value)
