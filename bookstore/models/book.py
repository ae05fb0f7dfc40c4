"""
Book Model

The central model of the catalog.

Tags live in their own table (book_tags) so that "shares a tag with"
queries stay in SQL; `Book.tags` proxies the tag names as a plain list.

Embedded sub-documents (images, cover image, dimensions, SEO keywords)
are stored as JSON columns.

Two mapper events keep derived columns in sync on every flush:
- slug: regenerated from the title when missing, or when the title changes
  and the same update does not send a slug
- cover_image: derived from the images list when not given explicitly
"""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    event,
    inspect,
)
from sqlalchemy.ext.associationproxy import AssociationProxy, association_proxy
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bookstore.database import Base
from bookstore.utils.dates import as_utc, utc_now
from bookstore.utils.slugs import book_slug

if TYPE_CHECKING:
    from bookstore.models.category import Category


class BookFormat(str, Enum):
    """Physical or digital format of a book."""
    HARDCOVER = "hardcover"
    PAPERBACK = "paperback"
    EBOOK = "ebook"
    AUDIOBOOK = "audiobook"


class BookTag(Base):
    """One tag attached to one book. Names are stored lowercase and trimmed."""

    __tablename__ = "book_tags"
    __table_args__ = (
        UniqueConstraint("book_id", "name", name="uq_book_tags_book_name"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    book_id: Mapped[int] = mapped_column(
        ForeignKey("books.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    name: Mapped[str] = mapped_column(
        String(50),
        index=True,
        nullable=False,
        comment="Lowercase tag name"
    )

    def __init__(self, name: str, **kwargs):
        super().__init__(name=name, **kwargs)

    def __repr__(self) -> str:
        return f"<BookTag(book_id={self.book_id}, name='{self.name}')>"


class Book(Base):
    """
    Book model representing a title in the catalog.

    Table: books

    Virtual fields (Python properties, not columns):
    - discount_percentage: whole-number discount against original_price
    - in_stock: stock > 0
    - on_sale: is_on_sale and now inside the sale window
    - url: /books/<slug>

    Example:
        book = Book(
            title="Clean Code",
            author="Robert C. Martin",
            price=29.99,
            category_id=1,
            stock=10,
        )
        book.set_tags(["programming", "craft"])
    """

    __tablename__ = "books"

    # -------------------------------------------------------------------------
    # Primary Key
    # -------------------------------------------------------------------------
    id: Mapped[int] = mapped_column(primary_key=True)

    # -------------------------------------------------------------------------
    # Basic Fields
    # -------------------------------------------------------------------------
    title: Mapped[str] = mapped_column(
        String(200),
        index=True,
        nullable=False,
        comment="Book title"
    )

    author: Mapped[str] = mapped_column(
        String(100),
        index=True,
        nullable=False,
        comment="Author display name"
    )

    # Optional, but unique when present (NULLs never collide)
    isbn: Mapped[str | None] = mapped_column(
        String(13),
        unique=True,
        nullable=True,
        comment="ISBN-10 or ISBN-13, digits only"
    )

    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Book description or summary"
    )

    # -------------------------------------------------------------------------
    # Pricing
    # -------------------------------------------------------------------------
    price: Mapped[float] = mapped_column(
        Numeric(10, 2, asdecimal=False),
        nullable=False,
        comment="Selling price"
    )

    original_price: Mapped[float | None] = mapped_column(
        Numeric(10, 2, asdecimal=False),
        nullable=True,
        comment="List price before discount"
    )

    # -------------------------------------------------------------------------
    # Classification
    # -------------------------------------------------------------------------
    category_id: Mapped[int] = mapped_column(
        ForeignKey("categories.id"),
        index=True,
        nullable=False,
    )

    publisher: Mapped[str | None] = mapped_column(String(100), nullable=True)
    published_year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    pages: Mapped[int | None] = mapped_column(Integer, nullable=True)

    language: Mapped[str] = mapped_column(
        String(50),
        default="Vietnamese",
        nullable=False,
    )

    format: Mapped[str] = mapped_column(
        String(20),
        default=BookFormat.PAPERBACK.value,
        nullable=False,
        comment="hardcover, paperback, ebook or audiobook"
    )

    # -------------------------------------------------------------------------
    # Physical Details & Media
    # -------------------------------------------------------------------------
    # {"length": .., "width": .., "height": ..}
    dimensions: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    weight: Mapped[float | None] = mapped_column(Float, nullable=True)

    # [{"url", "publicId", "alt", "isMain"}, ...] in display order
    images: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list, nullable=False)

    # {"url", "publicId", "alt"}
    cover_image: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    # -------------------------------------------------------------------------
    # Inventory & Ratings
    # -------------------------------------------------------------------------
    stock: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    sold: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Running average, kept up to date by services.ratings
    rating: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    review_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # -------------------------------------------------------------------------
    # Flags
    # -------------------------------------------------------------------------
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_featured: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_on_sale: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    sale_start_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    sale_end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # -------------------------------------------------------------------------
    # SEO & Engagement
    # -------------------------------------------------------------------------
    slug: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
        comment="URL identifier derived from the title"
    )
    meta_title: Mapped[str | None] = mapped_column(String(200), nullable=True)
    meta_description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    keywords: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)

    view_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    wishlist_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # -------------------------------------------------------------------------
    # Timestamps
    # -------------------------------------------------------------------------
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        index=True,
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
    category: Mapped["Category"] = relationship(
        "Category",
        back_populates="books",
        lazy="selectin",
    )

    tag_links: Mapped[list[BookTag]] = relationship(
        BookTag,
        cascade="all, delete-orphan",
        order_by=BookTag.id,
        lazy="selectin",
    )

    tags: AssociationProxy[list[str]] = association_proxy("tag_links", "name")

    # -------------------------------------------------------------------------
    # Virtual Fields
    # -------------------------------------------------------------------------
    @property
    def discount_percentage(self) -> int:
        if self.original_price and self.original_price > self.price:
            return round((self.original_price - self.price) / self.original_price * 100)
        return 0

    @property
    def in_stock(self) -> bool:
        return (self.stock or 0) > 0

    @property
    def on_sale(self) -> bool:
        """True while is_on_sale is set and now falls inside the sale window."""
        if not self.is_on_sale or not self.sale_start_date or not self.sale_end_date:
            return False
        now = utc_now()
        return as_utc(self.sale_start_date) <= now <= as_utc(self.sale_end_date)

    @property
    def url(self) -> str:
        return f"/books/{self.slug}"

    def set_tags(self, names: list[str]) -> None:
        """
        Replace the tag set, keeping rows for names that are still present.

        Rewriting unchanged rows would insert the replacement before the
        old row is deleted and trip the (book_id, name) constraint.
        """
        wanted: list[str] = []
        for name in names:
            normalized = name.strip().lower()
            if normalized and normalized not in wanted:
                wanted.append(normalized)

        self.tag_links = [link for link in self.tag_links if link.name in wanted]
        existing = {link.name for link in self.tag_links}
        for name in wanted:
            if name not in existing:
                self.tag_links.append(BookTag(name=name))

    def __repr__(self) -> str:
        return f"<Book(id={self.id}, title='{self.title}')>"


# =============================================================================
# Derived column maintenance
# =============================================================================

def derive_cover_image(book: Book) -> dict | None:
    """Main image, else the first image, with alt falling back to the title."""
    if book.cover_image and book.cover_image.get("url"):
        return book.cover_image
    images = book.images or []
    if not images:
        return book.cover_image
    chosen = next((image for image in images if image.get("isMain")), images[0])
    return {
        "url": chosen.get("url"),
        "publicId": chosen.get("publicId"),
        "alt": chosen.get("alt") or book.title,
    }


@event.listens_for(Book, "before_insert")
def _book_before_insert(mapper, connection, target: Book) -> None:
    if not target.slug:
        target.slug = book_slug(target.title)
    target.cover_image = derive_cover_image(target)


@event.listens_for(Book, "before_update")
def _book_before_update(mapper, connection, target: Book) -> None:
    state = inspect(target)
    # a slug sent with the update wins over the one derived from the new title
    title_changed = state.attrs.title.history.has_changes()
    slug_sent = state.attrs.slug.history.has_changes()
    if (title_changed and not slug_sent) or not target.slug:
        target.slug = book_slug(target.title)
    target.cover_image = derive_cover_image(target)
