# tests/schemas/test_pagination.py
"""
Tests for offset (PaginationMeta) and page-number (PageMeta) pagination.
"""

import pytest
from pydantic import ValidationError

from app.schemas.pagination import PageMeta, PaginationMeta


class TestPaginationMeta:
    """Tests for skip/limit pagination metadata."""

    @pytest.mark.parametrize("skip,expected_page", [(0, 1), (10, 2), (50, 6), (95, 10)])
    def test_page_from_skip(self, skip, expected_page):
        assert PaginationMeta.create(total=100, skip=skip, limit=10).page == expected_page

    @pytest.mark.parametrize("total,expected_pages", [(100, 10), (101, 11), (5, 1), (0, 1)])
    def test_pages(self, total, expected_pages):
        assert PaginationMeta.create(total=total, skip=0, limit=10).pages == expected_pages

    def test_navigation_flags(self):
        first = PaginationMeta.create(total=100, skip=0, limit=10)
        last = PaginationMeta.create(total=100, skip=90, limit=10)

        assert (first.has_previous, first.has_next) == (False, True)
        assert (last.has_previous, last.has_next) == (True, False)

    @pytest.mark.parametrize("kwargs", [
        {"total": -1, "skip": 0, "limit": 10},
        {"total": 100, "skip": -1, "limit": 10},
        {"total": 100, "skip": 0, "limit": 0},
    ])
    def test_rejects_invalid(self, kwargs):
        with pytest.raises(ValidationError):
            PaginationMeta(**kwargs)

    def test_serialization_includes_computed_fields(self):
        data = PaginationMeta.create(total=100, skip=20, limit=10).model_dump()

        assert data == {
            "total": 100, "skip": 20, "limit": 10,
            "page": 3, "pages": 10, "has_next": True, "has_previous": True,
        }


class TestPageMeta:
    """Tests for page-number pagination metadata."""

    def test_middle_page(self):
        meta = PageMeta(total=45, page=2, page_size=20)

        assert meta.pages == 3
        assert meta.has_next is True
        assert meta.has_previous is True

    def test_last_page(self):
        meta = PageMeta(total=45, page=3, page_size=20)

        assert meta.has_next is False

    def test_empty_result_is_one_page(self):
        meta = PageMeta(total=0, page=1, page_size=20)

        assert meta.pages == 1
        assert meta.has_next is False

    def test_page_size_zero_means_all(self):
        """Should report a single page when everything is returned at once."""
        meta = PageMeta(total=500, page=1, page_size=0)

        assert meta.pages == 1

    def test_page_past_end(self):
        meta = PageMeta(total=10, page=4, page_size=5)

        assert meta.has_next is False
        assert meta.has_previous is True

    def test_rejects_page_zero(self):
        with pytest.raises(ValidationError):
            PageMeta(total=10, page=0, page_size=5)
