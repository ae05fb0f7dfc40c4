"""
Pagination helpers shared by every listing.

    request = PageRequest(page=2, limit=12)
    page = paginate(db, select(Book), request, order_by=[Book.created_at.desc()])
    page.total_pages, page.has_next_page
"""

import math
from dataclasses import dataclass
from typing import Generic, Sequence, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from bookstore.errors import ValidationFailed

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 12
ADMIN_PAGE_SIZE = 20


@dataclass(frozen=True)
class PageRequest:
    """1-based page number and page size."""

    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE

    def __post_init__(self):
        if self.page < 1:
            raise ValidationFailed("Page must be at least 1", field="page")
        if self.limit <= 0:
            raise ValidationFailed("Limit must be greater than 0", field="limit")

    @property
    def skip(self) -> int:
        """Number of rows to skip for this page."""
        return (self.page - 1) * self.limit


@dataclass
class Page(Generic[T]):
    """One page of results plus the page-boundary flags."""

    items: list[T]
    total_count: int
    current_page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.limit) if self.total_count > 0 else 0

    @property
    def has_next_page(self) -> bool:
        return self.current_page < self.total_pages

    @property
    def has_previous_page(self) -> bool:
        return self.current_page > 1


def count_rows(db: Session, stmt: Select) -> int:
    """Count the rows a statement would return, ignoring ordering."""
    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    return db.execute(count_stmt).scalar() or 0


def paginate(
    db: Session,
    stmt: Select,
    request: PageRequest,
    order_by: Sequence = (),
) -> Page:
    """
    Execute stmt for one page.

    The count runs on the unordered statement; ordering and offset/limit
    are applied only to the page query.
    """
    total = count_rows(db, stmt)
    page_stmt = stmt.order_by(*order_by).offset(request.skip).limit(request.limit)
    items = list(db.execute(page_stmt).scalars().all())
    return Page(
        items=items,
        total_count=total,
        current_page=request.page,
        limit=request.limit,
    )
