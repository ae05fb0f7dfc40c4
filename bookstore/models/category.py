"""
Category Model

Categories form a shallow tree: each category may point at a parent and
keeps the ids of its direct children in `sub_categories`.

The child list and `book_count` are denormalized; services.categories
and services.books keep them in sync.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, event
from sqlalchemy.ext.mutable import MutableList
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bookstore.database import Base
from bookstore.utils.dates import utc_now
from bookstore.utils.slugs import slugify

if TYPE_CHECKING:
    from bookstore.models.book import Book


class Category(Base):
    """
    Category model grouping books.

    Table: categories

    Example:
        fiction = Category(name="Fiction")
        sci_fi = Category(name="Science Fiction", parent_category_id=fiction.id)
    """

    __tablename__ = "categories"

    # -------------------------------------------------------------------------
    # Primary Key
    # -------------------------------------------------------------------------
    id: Mapped[int] = mapped_column(primary_key=True)

    # -------------------------------------------------------------------------
    # Basic Fields
    # -------------------------------------------------------------------------
    name: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        index=True,
        nullable=False,
        comment="Category display name"
    )

    description: Mapped[str | None] = mapped_column(String(500), nullable=True)

    slug: Mapped[str] = mapped_column(
        String(120),
        unique=True,
        index=True,
        nullable=False,
        comment="URL identifier, lowercase letters, digits and dashes"
    )

    # {"url", "publicId"}
    image: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    # -------------------------------------------------------------------------
    # Hierarchy
    # -------------------------------------------------------------------------
    parent_category_id: Mapped[int | None] = mapped_column(
        ForeignKey("categories.id"),
        index=True,
        nullable=True,
    )

    # Direct child ids, maintained alongside parent_category_id
    sub_categories: Mapped[list[int]] = mapped_column(
        MutableList.as_mutable(JSON),
        default=list,
        nullable=False,
    )

    # -------------------------------------------------------------------------
    # Counters & Flags
    # -------------------------------------------------------------------------
    book_count: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
        comment="Denormalized number of books in this category"
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_featured: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # -------------------------------------------------------------------------
    # SEO
    # -------------------------------------------------------------------------
    meta_title: Mapped[str | None] = mapped_column(String(200), nullable=True)
    meta_description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    keywords: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)

    # -------------------------------------------------------------------------
    # Timestamps
    # -------------------------------------------------------------------------
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        onupdate=utc_now,
        nullable=False,
    )

    # -------------------------------------------------------------------------
    # Relationships
    # -------------------------------------------------------------------------
    books: Mapped[list["Book"]] = relationship(
        "Book",
        back_populates="category",
        lazy="select",
    )

    @property
    def url(self) -> str:
        return f"/categories/{self.slug}"

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, name='{self.name}')>"


@event.listens_for(Category, "before_insert")
def _category_before_insert(mapper, connection, target: Category) -> None:
    if not target.slug:
        target.slug = slugify(target.name)
