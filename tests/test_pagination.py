"""
Tests for pagination math and the paginate() helper.
"""

import math

import pytest
from sqlalchemy import select

from bookstore.errors import ValidationFailed
from bookstore.models import Book
from bookstore.services.pagination import Page, PageRequest, paginate


class TestPageRequest:
    def test_defaults(self):
        request = PageRequest()
        assert request.page == 1
        assert request.limit == 12
        assert request.skip == 0

    @pytest.mark.parametrize("page,limit,skip", [(1, 10, 0), (2, 10, 10), (5, 12, 48)])
    def test_skip(self, page, limit, skip):
        assert PageRequest(page, limit).skip == skip

    @pytest.mark.parametrize("page", [0, -1])
    def test_page_below_one_rejected(self, page):
        with pytest.raises(ValidationFailed) as exc_info:
            PageRequest(page, 10)
        assert exc_info.value.field == "page"

    @pytest.mark.parametrize("limit", [0, -5])
    def test_non_positive_limit_rejected(self, limit):
        with pytest.raises(ValidationFailed) as exc_info:
            PageRequest(1, limit)
        assert exc_info.value.field == "limit"


class TestPage:
    @pytest.mark.parametrize(
        "total,limit,page",
        [(0, 10, 1), (1, 10, 1), (10, 10, 1), (11, 10, 2), (25, 12, 3), (100, 7, 4)],
    )
    def test_page_math(self, total, limit, page):
        result = Page(items=[], total_count=total, current_page=page, limit=limit)

        expected_pages = math.ceil(total / limit)
        assert result.total_pages == expected_pages
        assert result.has_next_page == (page < expected_pages)
        assert result.has_previous_page == (page > 1)

    def test_empty_result(self):
        result = Page(items=[], total_count=0, current_page=1, limit=12)
        assert result.total_pages == 0
        assert result.has_next_page is False
        assert result.has_previous_page is False


class TestPaginate:
    def test_first_page(self, db_session, multiple_books):
        stmt = select(Book)
        page = paginate(db_session, stmt, PageRequest(1, 5), [Book.id.asc()])

        assert page.total_count == 15
        assert page.total_pages == 3
        assert [b.id for b in page.items] == [b.id for b in multiple_books[:5]]
        assert page.has_next_page is True
        assert page.has_previous_page is False

    def test_last_page(self, db_session, multiple_books):
        page = paginate(db_session, select(Book), PageRequest(3, 5), [Book.id.asc()])

        assert len(page.items) == 5
        assert page.has_next_page is False
        assert page.has_previous_page is True

    def test_page_past_the_end(self, db_session, multiple_books):
        page = paginate(db_session, select(Book), PageRequest(10, 5), [Book.id.asc()])

        assert page.items == []
        assert page.total_count == 15
        assert page.current_page == 10
