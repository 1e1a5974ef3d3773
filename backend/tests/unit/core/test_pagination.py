"""
Tests for pagination helpers.
"""

from backoffice.core.config import settings
from backoffice.core.pagination import PaginatedResult, normalize_pagination


class TestNormalizePagination:
    def test_valid_values_unchanged(self):
        assert normalize_pagination(3, 25) == (3, 25)

    def test_page_below_one_becomes_one(self):
        assert normalize_pagination(0, 10) == (1, 10)
        assert normalize_pagination(-5, 10) == (1, 10)

    def test_limit_below_one_uses_default(self):
        page, limit = normalize_pagination(1, 0)
        assert limit == settings.ORGANIZATIONS_DEFAULT_PAGE_SIZE

    def test_limit_capped_at_maximum(self):
        page, limit = normalize_pagination(1, 10_000)
        assert limit == settings.ORGANIZATIONS_MAX_PAGE_SIZE


class TestPaginatedResult:
    def test_total_pages_rounds_up(self):
        assert PaginatedResult(total=21, limit=10).total_pages == 3

    def test_total_pages_empty(self):
        assert PaginatedResult(total=0, limit=10).total_pages == 0

    def test_skip(self):
        assert PaginatedResult(page=3, limit=20).skip == 40
