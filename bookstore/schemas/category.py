"""
Category Pydantic Schemas

Slugs are optional on input; when absent the model derives one from the
name. A supplied slug must match ^[a-z0-9-]+$.
"""

import re

from pydantic import BaseModel, Field, field_validator

from bookstore.schemas.common import MediaSchema

SLUG_PATTERN = re.compile(r"^[a-z0-9-]+$")


def check_slug(v: str | None) -> str | None:
    if v is None:
        return v
    if not SLUG_PATTERN.match(v):
        raise ValueError("Slug can only contain lowercase letters, numbers, and hyphens")
    return v


class CategoryCreate(BaseModel):
    """
    Schema for creating a category.

    Example payload:
    {
        "name": "Science Fiction",
        "parent_category_id": 1,
        "sort_order": 2
    }
    """

    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    slug: str | None = Field(default=None, max_length=120)
    image: MediaSchema | None = None
    parent_category_id: int | None = None
    is_active: bool = True
    is_featured: bool = False
    sort_order: int = 0
    meta_title: str | None = Field(default=None, max_length=200)
    meta_description: str | None = Field(default=None, max_length=500)
    keywords: list[str] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def name_must_not_be_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Name cannot be empty or whitespace")
        return v.strip()

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, v: str | None) -> str | None:
        return check_slug(v)


class CategoryUpdate(BaseModel):
    """All fields optional; only fields present in the payload are applied."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    slug: str | None = Field(default=None, max_length=120)
    image: MediaSchema | None = None
    parent_category_id: int | None = None
    is_active: bool | None = None
    is_featured: bool | None = None
    sort_order: int | None = None
    meta_title: str | None = Field(default=None, max_length=200)
    meta_description: str | None = Field(default=None, max_length=500)
    keywords: list[str] | None = None

    @field_validator("name", "is_active", "is_featured", "sort_order", "keywords")
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("cannot be null")
        return v

    @field_validator("name")
    @classmethod
    def name_must_not_be_blank(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            raise ValueError("Name cannot be empty or whitespace")
        return v.strip() if v else v

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, v: str | None) -> str | None:
        return check_slug(v)


class CategoryFilter(BaseModel):
    """Sparse category filter; None means "not specified"."""

    is_active: bool | None = None
    is_featured: bool | None = None
    parent_category_id: int | None = None
    has_parent: bool | None = None


class CategoryOrder(BaseModel):
    """One entry of a reorderCategories request."""

    id: int
    sort_order: int
