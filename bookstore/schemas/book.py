"""
Book Pydantic Schemas

Validate create/update payloads before they reach the ORM, and describe
the sparse filter accepted by the book listings.

Constraints:
- title ≤ 200, author ≤ 100, description ≤ 2000 characters
- isbn: 10 or 13 digits (hyphens and spaces are stripped)
- prices, stock and weight are non-negative
- published_year between 1000 and the current year
- tags are trimmed, lowercased and de-duplicated
"""

import re
from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator

from bookstore.models.book import BookFormat
from bookstore.schemas.common import CoverImageSchema, DimensionsSchema, ImageSchema

ISBN_PATTERN = re.compile(r"^(?:\d{10}|\d{13})$")


def clean_isbn(v: str | None) -> str | None:
    """Strip separators and check for 10 or 13 digits."""
    if v is None:
        return v
    cleaned = re.sub(r"[-\s]", "", v)
    if not cleaned:
        return None
    if not ISBN_PATTERN.match(cleaned):
        raise ValueError("ISBN must be 10 or 13 digits")
    return cleaned


def normalize_tags(v: list[str] | None) -> list[str] | None:
    if v is None:
        return v
    tags: list[str] = []
    for tag in v:
        normalized = tag.strip().lower()
        if normalized and normalized not in tags:
            tags.append(normalized)
    return tags


def check_published_year(v: int | None) -> int | None:
    if v is None:
        return v
    current_year = date.today().year
    if v < 1000 or v > current_year:
        raise ValueError(f"Published year must be between 1000 and {current_year}")
    return v


REQUIRED_COLUMNS = (
    "title", "author", "description", "price", "category_id", "language", "format",
    "images", "stock", "is_active", "is_featured", "is_on_sale", "tags", "keywords",
)


def not_null(v):
    """Explicit nulls are rejected for columns that cannot be empty."""
    if v is None:
        raise ValueError("cannot be null")
    return v


def strip_required(v: str | None) -> str | None:
    if v is None:
        return v
    if not v.strip():
        raise ValueError("must not be empty or whitespace")
    return v.strip()


class BookBase(BaseModel):
    """Fields shared by create payloads."""

    title: str = Field(..., min_length=1, max_length=200, examples=["Clean Code"])
    author: str = Field(..., min_length=1, max_length=100, examples=["Robert C. Martin"])
    isbn: str | None = Field(default=None, description="ISBN-10 or ISBN-13", examples=["9780132350884"])
    description: str = Field(..., min_length=1, max_length=2000)
    price: float = Field(..., ge=0)
    original_price: float | None = Field(default=None, ge=0)
    category_id: int = Field(..., description="Owning category")

    publisher: str | None = Field(default=None, max_length=100)
    published_year: int | None = None
    pages: int | None = Field(default=None, ge=1)
    language: str = Field(default="Vietnamese", max_length=50)
    format: BookFormat = BookFormat.PAPERBACK

    dimensions: DimensionsSchema | None = None
    weight: float | None = Field(default=None, ge=0)
    images: list[ImageSchema] = Field(default_factory=list)
    cover_image: CoverImageSchema | None = None

    stock: int = Field(default=0, ge=0)
    is_active: bool = True
    is_featured: bool = False
    is_on_sale: bool = False
    sale_start_date: datetime | None = None
    sale_end_date: datetime | None = None

    tags: list[str] = Field(default_factory=list)
    slug: str | None = Field(default=None, max_length=255)
    meta_title: str | None = Field(default=None, max_length=200)
    meta_description: str | None = Field(default=None, max_length=500)
    keywords: list[str] = Field(default_factory=list)


class BookCreate(BookBase):
    """
    Schema for creating a new book.

    Example payload:
    {
        "title": "Clean Code",
        "author": "Robert C. Martin",
        "description": "A handbook of agile software craftsmanship",
        "price": 29.99,
        "category_id": 1,
        "tags": ["Programming", " craft "]
    }
    """

    @field_validator("title", "author", "description")
    @classmethod
    def must_not_be_blank(cls, v: str) -> str:
        return strip_required(v)

    @field_validator("isbn")
    @classmethod
    def validate_isbn(cls, v: str | None) -> str | None:
        return clean_isbn(v)

    @field_validator("published_year")
    @classmethod
    def validate_published_year(cls, v: int | None) -> int | None:
        return check_published_year(v)

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str]) -> list[str]:
        return normalize_tags(v)


class BookUpdate(BaseModel):
    """
    Schema for updating an existing book.

    All fields are optional; only the fields present in the payload are
    applied (model_dump(exclude_unset=True)).
    """

    title: str | None = Field(default=None, min_length=1, max_length=200)
    author: str | None = Field(default=None, min_length=1, max_length=100)
    isbn: str | None = None
    description: str | None = Field(default=None, min_length=1, max_length=2000)
    price: float | None = Field(default=None, ge=0)
    original_price: float | None = Field(default=None, ge=0)
    category_id: int | None = None

    publisher: str | None = Field(default=None, max_length=100)
    published_year: int | None = None
    pages: int | None = Field(default=None, ge=1)
    language: str | None = Field(default=None, max_length=50)
    format: BookFormat | None = None

    dimensions: DimensionsSchema | None = None
    weight: float | None = Field(default=None, ge=0)
    images: list[ImageSchema] | None = None
    cover_image: CoverImageSchema | None = None

    stock: int | None = Field(default=None, ge=0)
    is_active: bool | None = None
    is_featured: bool | None = None
    is_on_sale: bool | None = None
    sale_start_date: datetime | None = None
    sale_end_date: datetime | None = None

    tags: list[str] | None = None
    slug: str | None = Field(default=None, max_length=255)
    meta_title: str | None = Field(default=None, max_length=200)
    meta_description: str | None = Field(default=None, max_length=500)
    keywords: list[str] | None = None

    @field_validator(*REQUIRED_COLUMNS)
    @classmethod
    def reject_null(cls, v):
        return not_null(v)

    @field_validator("title", "author", "description")
    @classmethod
    def must_not_be_blank(cls, v: str | None) -> str | None:
        return strip_required(v)

    @field_validator("isbn")
    @classmethod
    def validate_isbn(cls, v: str | None) -> str | None:
        return clean_isbn(v)

    @field_validator("published_year")
    @classmethod
    def validate_published_year(cls, v: int | None) -> int | None:
        return check_published_year(v)

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str] | None) -> list[str] | None:
        return normalize_tags(v)


class BookFilter(BaseModel):
    """
    Sparse book filter: every field left as None is ignored.

    is_active is honoured by the admin listing only; customer listings
    always restrict to active books.
    """

    category_id: int | None = None
    min_price: float | None = None
    max_price: float | None = None
    author: str | None = None
    publisher: str | None = None
    language: str | None = None
    format: BookFormat | None = None
    in_stock: bool | None = None
    is_featured: bool | None = None
    is_on_sale: bool | None = None
    rating: float | None = None
    is_active: bool | None = None
