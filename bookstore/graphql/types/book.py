"""
GraphQL Book Types

Output types, the paginated connection, statistics and the input types
for book mutations and filters.

Update inputs default every field to UNSET so that only the fields a
client actually sends are applied.
"""

from datetime import datetime

import strawberry

from bookstore.graphql.types.common import (
    CoverImageInput,
    DimensionsInput,
    DimensionsType,
    ImageInput,
    ImageType,
)


@strawberry.type
class BookCategoryType:
    """The owning category as embedded in a book."""

    id: int
    name: str
    slug: str
    description: str | None = None


@strawberry.type
class BookType:
    """
    GraphQL type representing a book.

    Includes the computed fields discountPercentage, inStock, onSale and url.
    """

    id: int
    title: str
    author: str
    description: str
    price: float
    language: str
    format: str
    slug: str
    url: str
    isbn: str | None = None
    original_price: float | None = None
    category: BookCategoryType | None = None
    publisher: str | None = None
    published_year: int | None = None
    pages: int | None = None
    dimensions: DimensionsType | None = None
    weight: float | None = None
    images: list[ImageType] = strawberry.field(default_factory=list)
    cover_image: ImageType | None = None
    stock: int = 0
    sold: int = 0
    rating: float = 0.0
    review_count: int = 0
    is_active: bool = True
    is_featured: bool = False
    is_on_sale: bool = False
    sale_start_date: datetime | None = None
    sale_end_date: datetime | None = None
    tags: list[str] = strawberry.field(default_factory=list)
    meta_title: str | None = None
    meta_description: str | None = None
    keywords: list[str] = strawberry.field(default_factory=list)
    view_count: int = 0
    wishlist_count: int = 0
    discount_percentage: int = 0
    in_stock: bool = False
    on_sale: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None


@strawberry.type
class BookConnection:
    """One page of books."""

    books: list[BookType]
    total_count: int
    has_next_page: bool
    has_previous_page: bool
    current_page: int
    total_pages: int


@strawberry.type
class BookStatsType:
    total_books: int
    active_books: int
    inactive_books: int
    total_stock: int
    total_sold: int
    average_rating: float
    featured_books: int
    out_of_stock_books: int


@strawberry.input
class BookInput:
    """Input type for creating a book."""

    title: str
    author: str
    description: str
    price: float
    category_id: int
    isbn: str | None = None
    original_price: float | None = None
    publisher: str | None = None
    published_year: int | None = None
    pages: int | None = None
    language: str | None = None
    format: str | None = None
    dimensions: DimensionsInput | None = None
    weight: float | None = None
    images: list[ImageInput] | None = None
    cover_image: CoverImageInput | None = None
    stock: int | None = None
    is_active: bool | None = None
    is_featured: bool | None = None
    is_on_sale: bool | None = None
    sale_start_date: datetime | None = None
    sale_end_date: datetime | None = None
    tags: list[str] | None = None
    slug: str | None = None
    meta_title: str | None = None
    meta_description: str | None = None
    keywords: list[str] | None = None


@strawberry.input
class BookUpdateInput:
    """Input type for updating a book. Omitted fields are left unchanged."""

    title: str | None = strawberry.UNSET
    author: str | None = strawberry.UNSET
    description: str | None = strawberry.UNSET
    price: float | None = strawberry.UNSET
    category_id: int | None = strawberry.UNSET
    isbn: str | None = strawberry.UNSET
    original_price: float | None = strawberry.UNSET
    publisher: str | None = strawberry.UNSET
    published_year: int | None = strawberry.UNSET
    pages: int | None = strawberry.UNSET
    language: str | None = strawberry.UNSET
    format: str | None = strawberry.UNSET
    dimensions: DimensionsInput | None = strawberry.UNSET
    weight: float | None = strawberry.UNSET
    images: list[ImageInput] | None = strawberry.UNSET
    cover_image: CoverImageInput | None = strawberry.UNSET
    stock: int | None = strawberry.UNSET
    is_active: bool | None = strawberry.UNSET
    is_featured: bool | None = strawberry.UNSET
    is_on_sale: bool | None = strawberry.UNSET
    sale_start_date: datetime | None = strawberry.UNSET
    sale_end_date: datetime | None = strawberry.UNSET
    tags: list[str] | None = strawberry.UNSET
    slug: str | None = strawberry.UNSET
    meta_title: str | None = strawberry.UNSET
    meta_description: str | None = strawberry.UNSET
    keywords: list[str] | None = strawberry.UNSET


@strawberry.input
class BookFilterInput:
    """Every field is optional; omitted fields do not narrow the result."""

    category_id: int | None = None
    min_price: float | None = None
    max_price: float | None = None
    author: str | None = None
    publisher: str | None = None
    language: str | None = None
    format: str | None = None
    in_stock: bool | None = None
    is_featured: bool | None = None
    is_on_sale: bool | None = None
    rating: float | None = None
    is_active: bool | None = None
