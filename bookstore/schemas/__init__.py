"""
Pydantic Schemas Package

Input validation for create/update payloads and the sparse filter structs
used by the listing operations.
"""

from bookstore.schemas.book import BookCreate, BookFilter, BookUpdate
from bookstore.schemas.category import (
    CategoryCreate,
    CategoryFilter,
    CategoryOrder,
    CategoryUpdate,
)
from bookstore.schemas.common import (
    AddressSchema,
    CoverImageSchema,
    DimensionsSchema,
    ImageSchema,
    MediaSchema,
)
from bookstore.schemas.user import (
    AdminUserUpdate,
    BulkUserUpdate,
    LoginRequest,
    PasswordChange,
    ProfileUpdate,
    UserCreate,
    UserFilter,
    UserRegister,
)

__all__ = [
    "BookCreate",
    "BookUpdate",
    "BookFilter",
    "CategoryCreate",
    "CategoryUpdate",
    "CategoryFilter",
    "CategoryOrder",
    "ImageSchema",
    "CoverImageSchema",
    "DimensionsSchema",
    "MediaSchema",
    "AddressSchema",
    "UserRegister",
    "UserCreate",
    "LoginRequest",
    "ProfileUpdate",
    "AdminUserUpdate",
    "BulkUserUpdate",
    "PasswordChange",
    "UserFilter",
]
