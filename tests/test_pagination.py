from __future__ import annotations

import pytest

from query_filter import Page, PageRequest, PaginationError
from query_filter.pagination import as_page_request


def test_page_request_offsets():
    request = PageRequest.of(2, 10)
    assert request.offset == 20
    assert request.limit == 10
    assert request.next() == PageRequest(3, 10)


def test_defaults():
    assert PageRequest() == PageRequest(0, 20)
    assert as_page_request(None) == PageRequest()
    assert as_page_request((1, 5)) == PageRequest(1, 5)


@pytest.mark.parametrize(("page", "size"), [(-1, 10), (0, 0), (0, -5)])
def test_invalid_requests(page, size):
    with pytest.raises(PaginationError):
        PageRequest(page, size)


def test_page_navigation():
    first = Page(items=["a", "b"], total=5, page=0, size=2)
    last = Page(items=["e"], total=5, page=2, size=2)

    assert first.total_pages == 3
    assert first.is_first and first.has_next and not first.has_previous
    assert last.is_last and last.has_previous and not last.has_next
    assert len(last) == 1


def test_empty_page():
    page = Page(items=[], total=0, page=0, size=10)
    assert page.total_pages == 0
    assert page.is_first and page.is_last


def test_map_keeps_paging_info():
    page = Page(items=[1, 2], total=4, page=1, size=2).map(str)
    assert page.items == ["1", "2"]
    assert (page.total, page.page, page.size) == (4, 1, 2)
