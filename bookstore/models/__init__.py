"""
SQLAlchemy Models Package

Model Relationships:
- Category <-> Book: One-to-Many (every book belongs to one category)
- Category <-> Category: optional parent link plus denormalized child ids
- Book <-> BookTag: One-to-Many (tag names, exposed as Book.tags)
- OrderDetail -> Book: line item snapshot (no API surface)

Import all models here so Base.metadata knows every table before
create_all() runs.
"""

from bookstore.models.category import Category
from bookstore.models.book import Book, BookFormat, BookTag
from bookstore.models.user import Gender, User, UserRole
from bookstore.models.order_detail import OrderDetail

__all__ = [
    "Category",
    "Book",
    "BookFormat",
    "BookTag",
    "User",
    "UserRole",
    "Gender",
    "OrderDetail",
]
