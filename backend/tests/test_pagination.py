"""Pagination metadata and offsets."""

import pytest

from sharedtodo.schemas.common import build_pagination, page_offset


class TestBuildPagination:

    def test_middle_page(self):
        meta = build_pagination(page=2, limit=10, total=35)

        assert meta.total_pages == 4
        assert meta.has_next is True
        assert meta.has_prev is True

    def test_last_page(self):
        meta = build_pagination(page=4, limit=10, total=35)

        assert meta.has_next is False
        assert meta.has_prev is True

    def test_single_page(self):
        meta = build_pagination(page=1, limit=20, total=3)

        assert meta.total_pages == 1
        assert meta.has_next is False
        assert meta.has_prev is False

    def test_empty_result(self):
        meta = build_pagination(page=1, limit=20, total=0)

        assert meta.total_pages == 0
        assert meta.has_next is False
        assert meta.has_prev is False

    def test_page_past_the_end(self):
        meta = build_pagination(page=9, limit=10, total=15)

        assert meta.total_pages == 2
        assert meta.has_next is False
        assert meta.has_prev is True

    def test_serialized_in_camel_case(self):
        dumped = build_pagination(page=1, limit=5, total=5).model_dump(by_alias=True)

        assert dumped == {
            "page": 1,
            "limit": 5,
            "totalCount": 5,
            "totalPages": 1,
            "hasNext": False,
            "hasPrev": False,
        }


@pytest.mark.parametrize("page,limit,offset", [(1, 20, 0), (2, 20, 20), (3, 7, 14)])
def test_page_offset(page, limit, offset):
    assert page_offset(page, limit) == offset
