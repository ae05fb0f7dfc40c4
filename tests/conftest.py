"""
pytest Fixtures for Bookstore API Tests

Shared fixtures used across all test files.

For database tests we use:
- a fresh in-memory SQLite Database per test (StaticPool keeps the
  single connection alive for the lifetime of the test)
- one session per test, shared with the app through a get_db override
"""

# =============================================================================
# TEST ENVIRONMENT SETUP
# =============================================================================
# IMPORTANT: Set environment variables BEFORE importing the app
import os

os.environ["TOKEN_SECRET"] = "test-token-secret-for-unit-tests-at-least-32-chars"
os.environ["DB_URI"] = "sqlite://"
os.environ["ENV"] = "test"

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from bookstore.database import Database, get_db
from bookstore.main import app
from bookstore.models import Book, Category, User
from bookstore.services.auth import Identity
from bookstore.services.security import create_access_token, hash_password

# =============================================================================
# DATABASE FIXTURES
# =============================================================================


@pytest.fixture(scope="function")
def database() -> Generator[Database, None, None]:
    """
    Create an in-memory SQLite Database with all tables.

    Scope: function, so every test starts from an empty schema.
    """
    db = Database("sqlite://")
    db.create_tables()

    yield db

    db.drop_tables()
    db.close()


@pytest.fixture(scope="function")
def db_session(database: Database) -> Generator[Session, None, None]:
    """Session bound to the per-test database."""
    session = database.session()
    yield session
    session.close()


@pytest.fixture(scope="function")
def client(database: Database, db_session: Session) -> Generator[TestClient, None, None]:
    """
    Create a test client with the test database.

    get_db is overridden so resolvers use the same session as the test,
    and the Database is placed on app.state for the health endpoint.
    """

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.state.database = database

    yield TestClient(app)

    app.dependency_overrides.clear()
    del app.state.database


# =============================================================================
# USER FIXTURES
# =============================================================================


def make_user(db_session: Session, **overrides) -> User:
    values = {
        "name": "Test User",
        "email": "user@example.com",
        "password_hash": hash_password("secret1"),
        "role": "customer",
        "is_active": True,
    }
    values.update(overrides)
    user = User(**values)
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def admin_user(db_session: Session) -> User:
    return make_user(db_session, name="Admin User", email="admin@example.com", role="admin")


@pytest.fixture
def customer_user(db_session: Session) -> User:
    return make_user(db_session, name="Customer User", email="customer@example.com")


@pytest.fixture
def admin(admin_user: User) -> Identity:
    """Identity of the admin user, for calling services directly."""
    return Identity.from_user(admin_user)


@pytest.fixture
def customer(customer_user: User) -> Identity:
    return Identity.from_user(customer_user)


@pytest.fixture
def admin_token(admin_user: User) -> str:
    return create_access_token(admin_user.id)


@pytest.fixture
def customer_token(customer_user: User) -> str:
    return create_access_token(customer_user.id)


# =============================================================================
# CATALOG FIXTURES
# =============================================================================


@pytest.fixture
def sample_category(db_session: Session) -> Category:
    """Create a root category."""
    category = Category(name="Programming", description="Books about writing software")
    db_session.add(category)
    db_session.commit()
    db_session.refresh(category)
    return category


@pytest.fixture
def second_category(db_session: Session) -> Category:
    category = Category(name="Fiction", description="Novels and short stories")
    db_session.add(category)
    db_session.commit()
    db_session.refresh(category)
    return category


@pytest.fixture
def sample_book(db_session: Session, sample_category: Category) -> Book:
    """
    Create an active book in sample_category.

    The category's book_count is set to match, as create_book would.
    """
    book = Book(
        title="Clean Code",
        author="Robert C. Martin",
        description="A handbook of agile software craftsmanship",
        price=29.99,
        category_id=sample_category.id,
        stock=10,
    )
    book.set_tags(["programming", "craft"])
    db_session.add(book)
    sample_category.book_count = 1
    db_session.commit()
    db_session.refresh(book)
    return book


@pytest.fixture
def multiple_books(db_session: Session, sample_category: Category) -> list[Book]:
    """Create fifteen books for pagination and filter tests."""
    books = []
    for i in range(15):
        book = Book(
            title=f"Test Book {i + 1}",
            author="Jane Doe" if i % 2 == 0 else "John Roe",
            description=f"Description for book {i + 1}",
            price=10 + i,
            category_id=sample_category.id,
            stock=0 if i % 5 == 0 else 3,
            is_active=i != 14,
        )
        books.append(book)
        db_session.add(book)
    sample_category.book_count = len(books)
    db_session.commit()
    for book in books:
        db_session.refresh(book)
    return books
