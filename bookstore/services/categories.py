"""
Category Service

Category reads, admin mutations and the parent/child bookkeeping.

Parent links are stored twice: `parent_category_id` on the child and the
child's id in the parent's `sub_categories`. Every mutation that changes a
parent link goes through the same two steps, in order:

1. unlink_from_parent(): drop the id from the old parent's list
2. link_to_parent(): add the id to the new parent's list (set semantics)

The new parent is validated before either step runs, so a rejected move
leaves both lists untouched.
"""

import logging
from dataclasses import dataclass, field

from sqlalchemy import case, func, select, update
from sqlalchemy.orm import Session

from bookstore.errors import InvalidOperation, NotFound, operation
from bookstore.models import Book, Category
from bookstore.schemas.category import (
    CategoryCreate,
    CategoryFilter,
    CategoryOrder,
    CategoryUpdate,
)
from bookstore.services.auth import Identity, require_admin
from bookstore.services.filters import apply_category_filters, category_substring_search
from bookstore.services.pagination import ADMIN_PAGE_SIZE, Page, PageRequest, paginate
from bookstore.services.payloads import coerce, column_values

logger = logging.getLogger(__name__)

PUBLIC_ORDER = (Category.sort_order.asc(), Category.name.asc())
ADMIN_ORDER = (Category.sort_order.asc(), Category.created_at.desc(), Category.id.desc())


@dataclass
class CategoryNode:
    """An active root category with its active children."""

    category: Category
    children: list[Category] = field(default_factory=list)


@dataclass(frozen=True)
class CategoryStats:
    total_categories: int
    active_categories: int
    inactive_categories: int
    featured_categories: int
    parent_categories: int
    sub_categories: int


# =============================================================================
# Shared helpers
# =============================================================================

def load_category(db: Session, category_id: int, entity: str = "Category") -> Category:
    category = db.get(Category, category_id)
    if category is None:
        raise NotFound(entity)
    return category


def change_book_count(db: Session, category_id: int, delta: int) -> None:
    """Atomically add delta to a category's book_count, never below zero."""
    new_value = Category.book_count + delta
    db.execute(
        update(Category)
        .where(Category.id == category_id)
        .values(book_count=case((new_value < 0, 0), else_=new_value))
    )
    logger.debug(f"Category {category_id} book_count {delta:+d}")


def count_books(db: Session, category_ids: list[int]) -> int:
    stmt = select(func.count(Book.id)).where(Book.category_id.in_(category_ids))
    return db.execute(stmt).scalar() or 0


def child_ids(db: Session, category_id: int) -> list[int]:
    stmt = select(Category.id).where(Category.parent_category_id == category_id)
    return list(db.execute(stmt).scalars().all())


def descendant_ids(db: Session, category_id: int) -> set[int]:
    """Ids of every category below category_id."""
    found: set[int] = set()
    frontier = [category_id]
    while frontier:
        stmt = select(Category.id).where(Category.parent_category_id.in_(frontier))
        frontier = [cid for cid in db.execute(stmt).scalars().all() if cid not in found]
        found.update(frontier)
    return found


def unlink_from_parent(db: Session, category: Category) -> None:
    if category.parent_category_id is None:
        return
    parent = db.get(Category, category.parent_category_id)
    if parent is not None and category.id in parent.sub_categories:
        parent.sub_categories.remove(category.id)
    category.parent_category_id = None


def link_to_parent(parent: Category, category: Category) -> None:
    if category.id not in parent.sub_categories:
        parent.sub_categories.append(category.id)
    category.parent_category_id = parent.id


def reparent(db: Session, category: Category, new_parent_id: int | None) -> None:
    """
    Move category under new_parent_id (None makes it a root).

    Raises:
        InvalidOperation: self-parenting or moving under a descendant
        NotFound: new parent does not exist
    """
    new_parent = None
    if new_parent_id is not None:
        if new_parent_id == category.id:
            raise InvalidOperation("Category cannot be its own parent")
        new_parent = load_category(db, new_parent_id, "New parent category")
        if new_parent_id in descendant_ids(db, category.id):
            raise InvalidOperation("Category cannot be moved under one of its own subcategories")

    unlink_from_parent(db, category)
    if new_parent is not None:
        link_to_parent(new_parent, category)


def apply_update(db: Session, category: Category, data: dict) -> None:
    if "parent_category_id" in data:
        reparent(db, category, data.pop("parent_category_id"))
    for key, value in data.items():
        setattr(category, key, value)


def has_children(db: Session, category: Category) -> bool:
    return bool(category.sub_categories) or bool(child_ids(db, category.id))


# =============================================================================
# Queries
# =============================================================================

@operation("Error fetching categories")
def list_categories(db: Session, filters: CategoryFilter | dict | None = None) -> list[Category]:
    stmt = apply_category_filters(select(Category), coerce(CategoryFilter, filters))
    return list(db.execute(stmt.order_by(*PUBLIC_ORDER)).scalars().all())


@operation("Error fetching category")
def get_category(db: Session, category_id: int) -> Category:
    return load_category(db, category_id)


@operation("Error fetching category")
def get_category_by_slug(db: Session, slug: str) -> Category:
    stmt = select(Category).where(Category.slug == slug, Category.is_active.is_(True))
    category = db.execute(stmt).scalar_one_or_none()
    if category is None:
        raise NotFound("Category")
    return category


@operation("Error fetching active categories")
def active_categories(db: Session) -> list[Category]:
    stmt = select(Category).where(Category.is_active.is_(True)).order_by(*PUBLIC_ORDER)
    return list(db.execute(stmt).scalars().all())


@operation("Error fetching featured categories")
def featured_categories(db: Session, limit: int = 6) -> list[Category]:
    stmt = (
        select(Category)
        .where(Category.is_active.is_(True), Category.is_featured.is_(True))
        .order_by(*PUBLIC_ORDER)
        .limit(limit)
    )
    return list(db.execute(stmt).scalars().all())


@operation("Error fetching category hierarchy")
def category_hierarchy(db: Session) -> list[CategoryNode]:
    stmt = select(Category).where(Category.is_active.is_(True)).order_by(*PUBLIC_ORDER)
    categories = list(db.execute(stmt).scalars().all())
    return [
        CategoryNode(
            category=root,
            children=[c for c in categories if c.parent_category_id == root.id],
        )
        for root in categories
        if root.parent_category_id is None
    ]


@operation("Error fetching category path")
def category_path(db: Session, category_id: int) -> list[Category]:
    """Breadcrumb from the root down to category_id."""
    category = load_category(db, category_id)
    path = [category]
    seen = {category.id}
    while category.parent_category_id is not None and category.parent_category_id not in seen:
        category = db.get(Category, category.parent_category_id)
        if category is None:
            break
        seen.add(category.id)
        path.append(category)
    path.reverse()
    return path


@operation("Error fetching all categories")
def all_categories(
    db: Session,
    identity: Identity | None,
    page: int = 1,
    limit: int = ADMIN_PAGE_SIZE,
    filters: CategoryFilter | dict | None = None,
    search: str | None = None,
) -> Page[Category]:
    require_admin(identity)
    request = PageRequest(page, limit)
    stmt = apply_category_filters(select(Category), coerce(CategoryFilter, filters))
    condition = category_substring_search(search)
    if condition is not None:
        stmt = stmt.where(condition)
    return paginate(db, stmt, request, ADMIN_ORDER)


@operation("Error fetching category stats")
def category_stats(db: Session) -> CategoryStats:
    row = db.execute(
        select(
            func.count(Category.id),
            func.count(case((Category.is_active.is_(True), 1))),
            func.count(case((Category.is_featured.is_(True), 1))),
            func.count(case((Category.parent_category_id.is_(None), 1))),
        )
    ).one()
    total, active, featured, roots = (value or 0 for value in row)
    return CategoryStats(
        total_categories=total,
        active_categories=active,
        inactive_categories=total - active,
        featured_categories=featured,
        parent_categories=roots,
        sub_categories=total - roots,
    )


# =============================================================================
# Mutations
# =============================================================================

@operation("Error creating category", entity="Category")
def create_category(db: Session, identity: Identity | None, payload: CategoryCreate | dict) -> Category:
    require_admin(identity)
    data = column_values(coerce(CategoryCreate, payload))
    parent_id = data.pop("parent_category_id", None)

    parent = load_category(db, parent_id, "Parent category") if parent_id is not None else None

    category = Category(**data)
    db.add(category)
    db.flush()
    if parent is not None:
        link_to_parent(parent, category)

    db.commit()
    logger.info(f"Category created: {category.name} (id={category.id})")
    return category


@operation("Error updating category", entity="Category")
def update_category(
    db: Session,
    identity: Identity | None,
    category_id: int,
    payload: CategoryUpdate | dict,
) -> Category:
    require_admin(identity)
    category = load_category(db, category_id)
    data = column_values(coerce(CategoryUpdate, payload), exclude_unset=True)
    apply_update(db, category, data)
    db.commit()
    return category


@operation("Error deleting category")
def delete_category(db: Session, identity: Identity | None, category_id: int) -> bool:
    require_admin(identity)
    category = load_category(db, category_id)

    book_total = max(category.book_count, count_books(db, [category.id]))
    if book_total > 0:
        raise InvalidOperation(
            f"Cannot delete category. It has {book_total} books associated with it."
        )
    if has_children(db, category):
        raise InvalidOperation(
            "Cannot delete category. It has subcategories. "
            "Please delete or move subcategories first."
        )

    unlink_from_parent(db, category)
    db.delete(category)
    db.commit()
    logger.info(f"Category deleted: id={category_id}")
    return True


@operation("Error toggling category status")
def toggle_category_status(db: Session, identity: Identity | None, category_id: int) -> Category:
    require_admin(identity)
    category = load_category(db, category_id)
    category.is_active = not category.is_active
    db.commit()
    return category


@operation("Error toggling featured status")
def toggle_category_featured(db: Session, identity: Identity | None, category_id: int) -> Category:
    require_admin(identity)
    category = load_category(db, category_id)
    category.is_featured = not category.is_featured
    db.commit()
    return category


@operation("Error bulk updating categories", entity="Category")
def bulk_update_categories(
    db: Session,
    identity: Identity | None,
    ids: list[int],
    payload: CategoryUpdate | dict,
) -> list[Category]:
    require_admin(identity)
    data = column_values(coerce(CategoryUpdate, payload), exclude_unset=True)
    stmt = select(Category).where(Category.id.in_(ids)).order_by(Category.id)
    categories = list(db.execute(stmt).scalars().all())
    for category in categories:
        apply_update(db, category, dict(data))
    db.commit()
    return categories


@operation("Error bulk deleting categories")
def bulk_delete_categories(db: Session, identity: Identity | None, ids: list[int]) -> bool:
    require_admin(identity)
    stmt = select(Category).where(Category.id.in_(ids))
    categories = list(db.execute(stmt).scalars().all())

    stored_total = sum(category.book_count for category in categories)
    if max(stored_total, count_books(db, list(ids))) > 0:
        raise InvalidOperation("Cannot delete categories. They have books associated with them.")
    if any(has_children(db, category) for category in categories):
        raise InvalidOperation("Cannot delete categories that have subcategories.")

    for category in categories:
        unlink_from_parent(db, category)
        db.delete(category)
    db.commit()
    logger.info(f"Bulk deleted {len(categories)} categories")
    return True


@operation("Error reordering categories")
def reorder_categories(
    db: Session,
    identity: Identity | None,
    category_orders: list[CategoryOrder | dict],
) -> list[Category]:
    require_admin(identity)
    updated = []
    for entry in category_orders:
        order = coerce(CategoryOrder, entry)
        category = db.get(Category, order.id)
        if category is None:
            continue
        category.sort_order = order.sort_order
        updated.append(category)
    db.commit()
    return updated
