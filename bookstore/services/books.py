"""
Book Service

Customer listings, admin listings and every book mutation.

Side effects kept in sync here:
- category book_count: +1 on create, -1 on delete, -1/+1 on a move
- view_count: bumped on single-book reads (best effort, never fails the read)
- stock/sold: adjusted by update_book_stock
"""

import logging
from dataclasses import dataclass

from sqlalchemy import case, func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bookstore.errors import InvalidOperation, NotFound, ValidationFailed, operation
from bookstore.models import Book, BookTag
from bookstore.schemas.book import BookCreate, BookFilter, BookUpdate
from bookstore.services.auth import Identity, require_admin
from bookstore.services.categories import change_book_count, load_category
from bookstore.services.filters import (
    BOOK_SORT_FIELDS,
    apply_book_filters,
    book_substring_search,
    book_text_search,
    resolve_sort,
)
from bookstore.services.pagination import (
    ADMIN_PAGE_SIZE,
    DEFAULT_PAGE_SIZE,
    Page,
    PageRequest,
    paginate,
)
from bookstore.services.payloads import coerce, column_values

logger = logging.getLogger(__name__)

STOCK_OPERATIONS = ("add", "subtract")


@dataclass(frozen=True)
class BookStats:
    total_books: int
    active_books: int
    inactive_books: int
    total_stock: int
    total_sold: int
    average_rating: float
    featured_books: int
    out_of_stock_books: int


# =============================================================================
# Shared helpers
# =============================================================================

def load_book(db: Session, book_id: int) -> Book:
    book = db.get(Book, book_id)
    if book is None:
        raise NotFound("Book")
    return book


def bump_view_count(db: Session, book_id: int) -> None:
    """Increment view_count; failures are logged and swallowed."""
    try:
        db.execute(
            update(Book)
            .where(Book.id == book_id)
            .values(view_count=Book.view_count + 1)
            .execution_options(synchronize_session=False)
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning(f"Could not increment view count for book {book_id}: {exc}")


def _dialect(db: Session) -> str:
    return db.get_bind().dialect.name


def _book_order(sort_by: str | None, sort_order: str | None) -> list:
    return resolve_sort(BOOK_SORT_FIELDS, sort_by, sort_order, Book.created_at, Book.id)


def _apply_fields(book: Book, data: dict) -> None:
    tags = data.pop("tags", None)
    for key, value in data.items():
        setattr(book, key, value)
    if tags is not None:
        book.set_tags(tags)


def _move_to_category(db: Session, book: Book, new_category_id: int | None) -> None:
    """Validate the new category first, then shift the counters."""
    if new_category_id is None or new_category_id == book.category_id:
        return
    load_category(db, new_category_id, "New category")
    change_book_count(db, book.category_id, -1)
    change_book_count(db, new_category_id, 1)
    book.category_id = new_category_id


def _apply_update(db: Session, book: Book, data: dict) -> None:
    if "category_id" in data:
        _move_to_category(db, book, data.pop("category_id"))
    _apply_fields(book, data)


# =============================================================================
# Customer Queries
# =============================================================================

@operation("Error fetching books")
def list_books(
    db: Session,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
    filters: BookFilter | dict | None = None,
    search: str | None = None,
    sort_by: str = "CREATED_AT",
    sort_order: str = "DESC",
) -> Page[Book]:
    """
    Active books narrowed by filters and an optional relevance search.

    With a search term the relevance score is the primary sort key and the
    requested sort breaks ties.
    """
    request = PageRequest(page, limit)
    stmt = apply_book_filters(select(Book), coerce(BookFilter, filters))
    order = _book_order(sort_by, sort_order)

    if search and search.strip():
        condition, score = book_text_search(_dialect(db), search.strip())
        stmt = stmt.where(condition)
        order = [score.desc(), *order]

    return paginate(db, stmt, request, order)


@operation("Error fetching book")
def get_book(db: Session, book_id: int) -> Book:
    book = load_book(db, book_id)
    bump_view_count(db, book.id)
    return book


@operation("Error fetching book")
def get_book_by_slug(db: Session, slug: str) -> Book:
    stmt = select(Book).where(Book.slug == slug, Book.is_active.is_(True))
    book = db.execute(stmt).scalar_one_or_none()
    if book is None:
        raise NotFound("Book")
    bump_view_count(db, book.id)
    return book


@operation("Error fetching featured books")
def featured_books(db: Session, limit: int = 8) -> list[Book]:
    stmt = (
        select(Book)
        .where(Book.is_featured.is_(True), Book.is_active.is_(True))
        .order_by(Book.created_at.desc(), Book.id.desc())
        .limit(limit)
    )
    return list(db.execute(stmt).scalars().all())


@operation("Error fetching books by category")
def books_by_category(
    db: Session,
    category_id: int,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
    sort_by: str = "CREATED_AT",
    sort_order: str = "DESC",
) -> Page[Book]:
    request = PageRequest(page, limit)
    stmt = select(Book).where(Book.category_id == category_id, Book.is_active.is_(True))
    return paginate(db, stmt, request, _book_order(sort_by, sort_order))


@operation("Error searching books")
def search_books(
    db: Session,
    query: str,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
    filters: BookFilter | dict | None = None,
) -> Page[Book]:
    """Relevance-ranked search over active books."""
    request = PageRequest(page, limit)
    if not query or not query.strip():
        raise ValidationFailed("Search query is required", field="query")

    condition, score = book_text_search(_dialect(db), query.strip())
    stmt = apply_book_filters(select(Book), coerce(BookFilter, filters)).where(condition)
    return paginate(db, stmt, request, [score.desc(), Book.id.desc()])


@operation("Error fetching related books")
def related_books(db: Session, book_id: int, limit: int = 4) -> list[Book]:
    """Active books in the same category or sharing a tag, best rated first."""
    book = load_book(db, book_id)
    related = [Book.category_id == book.category_id]
    if book.tags:
        shares_tag = select(BookTag.book_id).where(BookTag.name.in_(list(book.tags)))
        related.append(Book.id.in_(shares_tag))

    stmt = (
        select(Book)
        .where(Book.id != book.id, Book.is_active.is_(True), or_(*related))
        .order_by(Book.rating.desc(), Book.sold.desc(), Book.id.desc())
        .limit(limit)
    )
    return list(db.execute(stmt).scalars().all())


# =============================================================================
# Admin Queries
# =============================================================================

@operation("Error fetching all books")
def list_all_books(
    db: Session,
    identity: Identity | None,
    page: int = 1,
    limit: int = ADMIN_PAGE_SIZE,
    filters: BookFilter | dict | None = None,
    search: str | None = None,
    sort_by: str = "CREATED_AT",
    sort_order: str = "DESC",
) -> Page[Book]:
    """Every book, inactive included, with substring search."""
    require_admin(identity)
    request = PageRequest(page, limit)
    stmt = apply_book_filters(select(Book), coerce(BookFilter, filters), include_inactive=True)
    condition = book_substring_search(search)
    if condition is not None:
        stmt = stmt.where(condition)
    return paginate(db, stmt, request, _book_order(sort_by, sort_order))


@operation("Error fetching book stats")
def book_stats(db: Session) -> BookStats:
    row = db.execute(
        select(
            func.count(Book.id),
            func.count(case((Book.is_active.is_(True), 1))),
            func.coalesce(func.sum(Book.stock), 0),
            func.coalesce(func.sum(Book.sold), 0),
            func.avg(Book.rating),
            func.count(case((Book.is_featured.is_(True), 1))),
            func.count(case((Book.stock == 0, 1))),
        )
    ).one()
    total, active, stock, sold, average, featured, out_of_stock = row
    return BookStats(
        total_books=total or 0,
        active_books=active or 0,
        inactive_books=(total or 0) - (active or 0),
        total_stock=int(stock or 0),
        total_sold=int(sold or 0),
        average_rating=round(float(average or 0), 2),
        featured_books=featured or 0,
        out_of_stock_books=out_of_stock or 0,
    )


# =============================================================================
# Mutations
# =============================================================================

@operation("Error creating book")
def create_book(db: Session, identity: Identity | None, payload: BookCreate | dict) -> Book:
    require_admin(identity)
    data = column_values(coerce(BookCreate, payload))
    load_category(db, data["category_id"])

    book = Book()
    _apply_fields(book, data)
    db.add(book)
    db.flush()
    change_book_count(db, book.category_id, 1)
    db.commit()
    logger.info(f"Book created: {book.title} (id={book.id})")
    return book


@operation("Error updating book")
def update_book(
    db: Session,
    identity: Identity | None,
    book_id: int,
    payload: BookUpdate | dict,
) -> Book:
    require_admin(identity)
    book = load_book(db, book_id)
    data = column_values(coerce(BookUpdate, payload), exclude_unset=True)
    _apply_update(db, book, data)
    db.commit()
    return book


@operation("Error deleting book")
def delete_book(db: Session, identity: Identity | None, book_id: int) -> bool:
    require_admin(identity)
    book = load_book(db, book_id)
    change_book_count(db, book.category_id, -1)
    db.delete(book)
    db.commit()
    logger.info(f"Book deleted: id={book_id}")
    return True


@operation("Error toggling book status")
def toggle_book_status(db: Session, identity: Identity | None, book_id: int) -> Book:
    require_admin(identity)
    book = load_book(db, book_id)
    book.is_active = not book.is_active
    db.commit()
    return book


@operation("Error toggling featured status")
def toggle_featured_status(db: Session, identity: Identity | None, book_id: int) -> Book:
    require_admin(identity)
    book = load_book(db, book_id)
    book.is_featured = not book.is_featured
    db.commit()
    return book


@operation("Error updating stock")
def update_book_stock(
    db: Session,
    identity: Identity | None,
    book_id: int,
    quantity: int,
    stock_operation: str,
) -> Book:
    """
    Adjust stock.

    add:      stock += quantity
    subtract: sold += min(stock, quantity); stock = max(0, stock - quantity)
    """
    require_admin(identity)
    book = load_book(db, book_id)

    if stock_operation not in STOCK_OPERATIONS:
        raise InvalidOperation('Invalid operation. Use "add" or "subtract"')
    if quantity is None or quantity <= 0:
        raise ValidationFailed("Quantity must be greater than 0", field="quantity")

    if stock_operation == "add":
        book.stock += quantity
    else:
        book.sold += min(book.stock, quantity)
        book.stock = max(0, book.stock - quantity)

    db.commit()
    return book


@operation("Error bulk updating books")
def bulk_update_books(
    db: Session,
    identity: Identity | None,
    ids: list[int],
    payload: BookUpdate | dict,
) -> list[Book]:
    require_admin(identity)
    data = column_values(coerce(BookUpdate, payload), exclude_unset=True)
    if "category_id" in data and data["category_id"] is not None:
        load_category(db, data["category_id"], "New category")

    stmt = select(Book).where(Book.id.in_(ids)).order_by(Book.id)
    books = list(db.execute(stmt).scalars().all())
    for book in books:
        _apply_update(db, book, dict(data))
    db.commit()
    return books


@operation("Error bulk deleting books")
def bulk_delete_books(db: Session, identity: Identity | None, ids: list[int]) -> bool:
    require_admin(identity)
    stmt = select(Book).where(Book.id.in_(ids))
    books = list(db.execute(stmt).scalars().all())
    for book in books:
        change_book_count(db, book.category_id, -1)
        db.delete(book)
    db.commit()
    logger.info(f"Bulk deleted {len(books)} books")
    return True
