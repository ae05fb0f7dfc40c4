"""
Query/Filter Builder

Turns the sparse filter structs, search terms and sort keys of the
listing operations into SQLAlchemy statements.

Filter semantics:
- exact match for ids, enums and booleans
- inclusive range for min_price / max_price, minimum for rating
- case-insensitive substring for author, publisher and names
- in_stock: stock > 0 vs stock == 0; has_parent: parent set vs unset

Search:
- customer book search is relevance ranked. PostgreSQL uses its full-text
  functions (to_tsvector / plainto_tsquery / ts_rank); other dialects fall
  back to weighted term matching over title, author and description.
- admin searches use case-insensitive substring matching.
"""

import logging
from typing import Sequence

from sqlalchemy import Select, and_, case, func, literal, or_
from sqlalchemy.sql.elements import ColumnElement

from bookstore.models import Book, Category, User
from bookstore.schemas.book import BookFilter
from bookstore.schemas.category import CategoryFilter
from bookstore.schemas.user import UserFilter

logger = logging.getLogger(__name__)

# =============================================================================
# Sort maps
# =============================================================================
# Only these keys may be used for ordering; anything else falls back to
# creation time.

BOOK_SORT_FIELDS = {
    "CREATED_AT": Book.created_at,
    "UPDATED_AT": Book.updated_at,
    "TITLE": Book.title,
    "AUTHOR": Book.author,
    "PRICE": Book.price,
    "RATING": Book.rating,
    "SOLD": Book.sold,
    "VIEW_COUNT": Book.view_count,
}

USER_SORT_FIELDS = {
    "createdAt": User.created_at,
    "updatedAt": User.updated_at,
    "name": User.name,
    "email": User.email,
    "role": User.role,
    "lastLogin": User.last_login,
}

# Weights for the fallback relevance score
TITLE_WEIGHT = 3
AUTHOR_WEIGHT = 2
DESCRIPTION_WEIGHT = 1


def is_ascending(sort_order: str | None) -> bool:
    """ASC in any case means ascending; everything else is descending."""
    return (sort_order or "").upper() == "ASC"


def resolve_sort(
    sort_fields: dict,
    sort_by: str | None,
    sort_order: str | None,
    default_column,
    tiebreaker,
) -> list:
    """
    Order clauses for an allow-listed sort key.

    The primary key is appended in the same direction so paging is stable
    when the sort column has ties.
    """
    column = sort_fields.get(sort_by or "", default_column)
    if is_ascending(sort_order):
        return [column.asc(), tiebreaker.asc()]
    return [column.desc(), tiebreaker.desc()]


# =============================================================================
# Substring search (admin listings)
# =============================================================================

def substring_match(columns: Sequence, term: str | None) -> ColumnElement | None:
    """OR of case-insensitive substring matches, or None for a blank term."""
    if not term or not term.strip():
        return None
    term = term.strip()
    return or_(*[column.icontains(term, autoescape=True) for column in columns])


def book_substring_search(term: str | None) -> ColumnElement | None:
    return substring_match([Book.title, Book.author, Book.isbn, Book.publisher], term)


def category_substring_search(term: str | None) -> ColumnElement | None:
    return substring_match([Category.name, Category.description, Category.slug], term)


def user_substring_search(term: str | None) -> ColumnElement | None:
    return substring_match([User.name, User.email, User.phone], term)


# =============================================================================
# Relevance search (customer book listings)
# =============================================================================

def book_text_search(dialect_name: str, term: str) -> tuple[ColumnElement, ColumnElement]:
    """
    Build (condition, score) for a relevance-ranked book search.

    Args:
        dialect_name: Name of the active SQL dialect
        term: Raw search text

    Returns:
        A WHERE condition and a score expression to order by (descending)
    """
    if dialect_name == "postgresql":
        document = func.to_tsvector(
            "simple",
            func.coalesce(Book.title, "")
            + " "
            + func.coalesce(Book.author, "")
            + " "
            + func.coalesce(Book.description, ""),
        )
        query = func.plainto_tsquery("simple", term)
        return document.op("@@")(query), func.ts_rank(document, query)

    words = [word for word in term.lower().split() if word]
    score = literal(0)
    for word in words:
        for column, weight in (
            (Book.title, TITLE_WEIGHT),
            (Book.author, AUTHOR_WEIGHT),
            (Book.description, DESCRIPTION_WEIGHT),
        ):
            score = score + case(
                (column.icontains(word, autoescape=True), weight),
                else_=0,
            )
    return score > 0, score


# =============================================================================
# Filters
# =============================================================================

def apply_book_filters(
    stmt: Select,
    filters: BookFilter | None,
    include_inactive: bool = False,
) -> Select:
    """
    Narrow a Book statement by every field present in filters.

    Customer listings (include_inactive=False) always restrict to active
    books and ignore filters.is_active.
    """
    conditions = []
    if not include_inactive:
        conditions.append(Book.is_active.is_(True))

    if filters is not None:
        if include_inactive and filters.is_active is not None:
            conditions.append(Book.is_active.is_(filters.is_active))
        if filters.category_id is not None:
            conditions.append(Book.category_id == filters.category_id)
        if filters.min_price is not None:
            conditions.append(Book.price >= filters.min_price)
        if filters.max_price is not None:
            conditions.append(Book.price <= filters.max_price)
        if filters.author:
            conditions.append(Book.author.icontains(filters.author, autoescape=True))
        if filters.publisher:
            conditions.append(Book.publisher.icontains(filters.publisher, autoescape=True))
        if filters.language:
            conditions.append(Book.language == filters.language)
        if filters.format is not None:
            conditions.append(Book.format == filters.format.value)
        if filters.in_stock is not None:
            conditions.append(Book.stock > 0 if filters.in_stock else Book.stock == 0)
        if filters.is_featured is not None:
            conditions.append(Book.is_featured.is_(filters.is_featured))
        if filters.is_on_sale is not None:
            conditions.append(Book.is_on_sale.is_(filters.is_on_sale))
        if filters.rating is not None:
            conditions.append(Book.rating >= filters.rating)

    return stmt.where(and_(*conditions)) if conditions else stmt


def apply_category_filters(stmt: Select, filters: CategoryFilter | None) -> Select:
    if filters is None:
        return stmt
    if filters.is_active is not None:
        stmt = stmt.where(Category.is_active.is_(filters.is_active))
    if filters.is_featured is not None:
        stmt = stmt.where(Category.is_featured.is_(filters.is_featured))
    if filters.parent_category_id is not None:
        stmt = stmt.where(Category.parent_category_id == filters.parent_category_id)
    if filters.has_parent is not None:
        if filters.has_parent:
            stmt = stmt.where(Category.parent_category_id.is_not(None))
        else:
            stmt = stmt.where(Category.parent_category_id.is_(None))
    return stmt


def apply_user_filters(stmt: Select, filters: UserFilter | None) -> Select:
    if filters is None:
        return stmt
    if filters.role is not None:
        stmt = stmt.where(User.role == filters.role.value)
    if filters.is_active is not None:
        stmt = stmt.where(User.is_active.is_(filters.is_active))
    if filters.is_email_verified is not None:
        stmt = stmt.where(User.is_email_verified.is_(filters.is_email_verified))
    if filters.gender is not None:
        stmt = stmt.where(User.gender == filters.gender.value)
    return stmt
