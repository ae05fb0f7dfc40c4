"""
Database Configuration Module

This module sets up SQLAlchemy 2.0 for the Bookstore API.

The datastore client is an explicitly constructed `Database` object rather
than module-level globals:

1. main.py creates it inside the FastAPI lifespan
2. it is stored on app.state.database
3. get_db() pulls a session from it for each request
4. it is disposed when the application shuts down

Session Management Pattern
==========================
We use the "session per request" pattern:
1. Request arrives → create a new session
2. Use session for all database operations in that request
3. Commit on success, rollback on failure (see errors.operation)
4. Close session when request ends
"""

import logging
from collections.abc import Generator

from fastapi import Request
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)


# =============================================================================
# Base Model Class
# =============================================================================
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

        class Book(Base):
            __tablename__ = "books"
            ...
    """
    pass


# =============================================================================
# Database Client
# =============================================================================
class Database:
    """
    Engine plus session factory with an explicit init/close lifecycle.

    Key engine parameters:
    - pool_size / max_overflow: connection pool sizing (ignored for SQLite)
    - pool_pre_ping: test connection health before using it
    - echo: log all SQL statements (debug only)

    In-memory SQLite URLs share a single connection through StaticPool so
    every session sees the same database.
    """

    def __init__(
        self,
        url: str,
        echo: bool = False,
        pool_size: int = 5,
        max_overflow: int = 10,
    ):
        self.url = make_url(url)
        self.engine = self._create_engine(echo, pool_size, max_overflow)
        self.session_factory = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=self.engine,
        )
        _register_engine_events(self.engine)

    def _create_engine(self, echo: bool, pool_size: int, max_overflow: int) -> Engine:
        if self.url.get_backend_name() == "sqlite":
            kwargs = {"connect_args": {"check_same_thread": False}}
            if self.url.database in (None, "", ":memory:"):
                kwargs["poolclass"] = StaticPool
            return create_engine(self.url, echo=echo, **kwargs)

        return create_engine(
            self.url,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_pre_ping=True,
            echo=echo,
        )

    @property
    def dialect_name(self) -> str:
        return self.engine.dialect.name

    def session(self) -> Session:
        """Open a new session bound to this database."""
        return self.session_factory()

    def ping(self) -> None:
        """
        Run a trivial query to prove the database is reachable.

        Raises:
            SQLAlchemyError: If no connection can be established
        """
        with self.engine.connect() as connection:
            connection.execute(text("SELECT 1"))

    def is_connected(self) -> bool:
        """Non-raising variant of ping() used by the health endpoint."""
        try:
            self.ping()
        except Exception as exc:
            logger.warning(f"Database health check failed: {exc}")
            return False
        return True

    def create_tables(self) -> None:
        """
        Create all database tables.

        Models must be imported first so they register on Base.metadata.
        """
        from bookstore import models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def drop_tables(self) -> None:
        """
        Drop all database tables.

        DANGER: This deletes all data! Only use in tests.
        """
        Base.metadata.drop_all(bind=self.engine)

    def close(self) -> None:
        """Dispose of the connection pool."""
        self.engine.dispose()
        logger.info("Database connection closed")


def _register_engine_events(engine: Engine) -> None:
    """Log connection lifecycle events raised by the engine."""

    @event.listens_for(engine, "connect")
    def on_connect(dbapi_connection, connection_record):
        logger.info(f"Database connected ({engine.dialect.name})")

    @event.listens_for(engine, "close")
    def on_close(dbapi_connection, connection_record):
        logger.debug("Database connection returned to driver")

    @event.listens_for(engine, "handle_error")
    def on_error(context):
        logger.error(f"Database error: {context.original_exception}")


# =============================================================================
# Dependency Injection
# =============================================================================
def get_db(request: Request) -> Generator[Session, None, None]:
    """
    Database session dependency for FastAPI.

    Opens a session from the Database stored on app.state and closes it
    when the request ends (even if an exception occurs).

    Usage in Routes:
        @router.get("/books/")
        def get_books(db: Session = Depends(get_db)):
            ...

    Yields:
        SQLAlchemy Session instance
    """
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()
