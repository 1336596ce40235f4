"""
Unit Tests for pagination helpers
"""
import pytest

from app.utils.pagination import create_pagination_meta, normalize_page_params, parse_bool_filter


class TestPagination:

    def test_meta_for_middle_page(self):
        meta = create_pagination_meta(page=2, limit=10, total=35)

        assert meta == {
            "page": 2,
            "limit": 10,
            "total": 35,
            "totalPages": 4,
            "hasNext": True,
            "hasPrev": True,
        }

    def test_meta_for_last_page(self):
        meta = create_pagination_meta(page=4, limit=10, total=35)
        assert meta["hasNext"] is False

    def test_meta_for_empty_result(self):
        meta = create_pagination_meta(page=1, limit=10, total=0)

        assert meta["totalPages"] == 0
        assert meta["hasNext"] is False
        assert meta["hasPrev"] is False

    def test_limit_is_capped(self):
        assert normalize_page_params(0, 500) == (1, 100)


@pytest.mark.parametrize("raw, expected", [
    ("true", True),
    ("TRUE", True),
    ("false", False),
    (None, None),
    ("", None),
])
def test_parse_bool_filter(raw, expected):
    assert parse_bool_filter(raw) is expected
