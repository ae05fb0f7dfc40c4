"""
GraphQL Category Types
"""

from datetime import datetime

import strawberry

from bookstore.graphql.types.common import MediaInput, MediaType


@strawberry.type
class CategoryRefType:
    """A parent or child category as embedded in another category."""

    id: int
    name: str
    slug: str
    is_active: bool = True


@strawberry.type
class CategoryType:
    """
    GraphQL type representing a category.

    parentCategory and subCategories are resolved to lightweight
    references; url is computed from the slug.
    """

    id: int
    name: str
    slug: str
    url: str
    description: str | None = None
    image: MediaType | None = None
    parent_category: CategoryRefType | None = None
    sub_categories: list[CategoryRefType] = strawberry.field(default_factory=list)
    book_count: int = 0
    is_active: bool = True
    is_featured: bool = False
    sort_order: int = 0
    meta_title: str | None = None
    meta_description: str | None = None
    keywords: list[str] = strawberry.field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None


@strawberry.type
class CategoryHierarchyType:
    """An active root category with its active children."""

    id: int
    name: str
    slug: str
    url: str
    description: str | None = None
    image: MediaType | None = None
    book_count: int = 0
    is_featured: bool = False
    sort_order: int = 0
    children: list[CategoryType] = strawberry.field(default_factory=list)


@strawberry.type
class CategoryConnection:
    """One page of categories."""

    categories: list[CategoryType]
    total_count: int
    has_next_page: bool
    has_previous_page: bool
    current_page: int
    total_pages: int


@strawberry.type
class CategoryStatsType:
    total_categories: int
    active_categories: int
    inactive_categories: int
    featured_categories: int
    parent_categories: int
    sub_categories: int


@strawberry.input
class CategoryInput:
    """Input type for creating a category."""

    name: str
    description: str | None = None
    slug: str | None = None
    image: MediaInput | None = None
    parent_category_id: int | None = None
    is_active: bool | None = None
    is_featured: bool | None = None
    sort_order: int | None = None
    meta_title: str | None = None
    meta_description: str | None = None
    keywords: list[str] | None = None


@strawberry.input
class CategoryUpdateInput:
    """
    Input type for updating a category.

    Omitted fields are left unchanged; parentCategoryId: null makes the
    category a root.
    """

    name: str | None = strawberry.UNSET
    description: str | None = strawberry.UNSET
    slug: str | None = strawberry.UNSET
    image: MediaInput | None = strawberry.UNSET
    parent_category_id: int | None = strawberry.UNSET
    is_active: bool | None = strawberry.UNSET
    is_featured: bool | None = strawberry.UNSET
    sort_order: int | None = strawberry.UNSET
    meta_title: str | None = strawberry.UNSET
    meta_description: str | None = strawberry.UNSET
    keywords: list[str] | None = strawberry.UNSET


@strawberry.input
class CategoryFilterInput:
    is_active: bool | None = None
    is_featured: bool | None = None
    parent_category_id: int | None = None
    has_parent: bool | None = None


@strawberry.input
class CategoryOrderInput:
    id: int
    sort_order: int
