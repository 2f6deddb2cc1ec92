"""Page requests and page results for paginated filter queries."""

from __future__ import annotations

import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

from .exceptions import PaginationError

T = TypeVar("T")
R = TypeVar("R")

DEFAULT_PAGE_SIZE = 20


@dataclass(frozen=True)
class PageRequest:
    """Zero-based page number and page size."""

    page: int = 0
    size: int = DEFAULT_PAGE_SIZE

    def __post_init__(self) -> None:
        if self.page < 0:
            raise PaginationError(f"Page index must not be negative, got {self.page}")
        if self.size < 1:
            raise PaginationError(f"Page size must be at least 1, got {self.size}")

    @classmethod
    def of(cls, page: int, size: int = DEFAULT_PAGE_SIZE) -> PageRequest:
        return cls(page=page, size=size)

    @property
    def offset(self) -> int:
        return self.page * self.size

    @property
    def limit(self) -> int:
        return self.size

    def next(self) -> PageRequest:
        return PageRequest(self.page + 1, self.size)


def as_page_request(value: PageRequest | tuple[int, int] | None) -> PageRequest:
    if value is None:
        return PageRequest()
    if isinstance(value, PageRequest):
        return value
    page, size = value
    return PageRequest.of(page, size)


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of results plus the total number of matching rows."""

    items: Sequence[T]
    total: int
    page: int
    size: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.size) if self.size else 0

    @property
    def has_next(self) -> bool:
        return self.page + 1 < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page > 0

    @property
    def is_first(self) -> bool:
        return not self.has_previous

    @property
    def is_last(self) -> bool:
        return not self.has_next

    def map(self, fn: Callable[[T], R]) -> Page[R]:
        return Page(
            items=[fn(item) for item in self.items],
            total=self.total,
            page=self.page,
            size=self.size,
        )

    def __len__(self) -> int:
        return len(self.items)
