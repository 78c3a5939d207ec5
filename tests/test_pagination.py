"""
Page clamping and pagination metadata.
"""

import pytest

from app.core.pagination import clamp_page, page_meta


class TestClampPage:
    @pytest.mark.parametrize("page,limit,expected", [
        (1, 20, (1, 20, 0)),
        (3, 20, (3, 20, 40)),
        (0, 20, (1, 20, 0)),
        (2, 500, (2, 100, 100)),
        (1, 0, (1, 1, 0)),
    ])
    def test_clamp(self, page, limit, expected):
        assert clamp_page(page, limit, 100) == expected


class TestPageMeta:
    def test_partial_last_page(self):
        assert page_meta(2, 20, 45) == {
            "page": 2, "limit": 20, "total": 45, "total_pages": 3, "has_next": True, "has_prev": True,
        }

    def test_exact_multiple(self):
        meta = page_meta(2, 10, 20)
        assert meta["total_pages"] == 2
        assert meta["has_next"] is False

    def test_empty(self):
        meta = page_meta(1, 20, 0)
        assert meta["total_pages"] == 0
        assert meta["has_next"] is False and meta["has_prev"] is False
