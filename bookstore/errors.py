"""
Error Taxonomy

Every failure a service operation can report is one of the BookstoreError
subclasses below. GraphQL resolvers let them propagate; Strawberry puts
the message into the response's `errors` list.

The `operation(prefix)` decorator wraps a service function so that:
- the session is rolled back when the operation fails
- the message carries the operation prefix ("Error creating book: ...")
- library exceptions (pydantic, SQLAlchemy) are mapped into the taxonomy
"""

import functools
import logging
import re
from typing import Optional

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


FIELD_LABELS = {"isbn": "ISBN"}


class BookstoreError(Exception):
    """Base class for errors reported to API clients."""

    default_message = "Unexpected error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def prefixed(self, prefix: str) -> "BookstoreError":
        """Return a copy of this error whose message starts with prefix."""
        clone = copy_error(self)
        clone.message = f"{prefix}: {self.message}"
        clone.args = (clone.message,)
        return clone


class AuthenticationRequired(BookstoreError):
    """Raised when an operation needs a logged-in caller."""

    default_message = "Authentication required. Please log in."


class AccessDenied(BookstoreError):
    """Raised when the caller lacks the required role or ownership."""

    default_message = "Access denied. Admin privileges required."


class NotFound(BookstoreError):
    """Raised when a referenced entity does not exist."""

    def __init__(self, entity: str, message: Optional[str] = None):
        self.entity = entity
        super().__init__(message or f"{entity} not found")


class ValidationFailed(BookstoreError):
    """Raised when input does not satisfy field constraints."""

    def __init__(self, reason: str, field: Optional[str] = None):
        self.reason = reason
        self.field = field
        super().__init__(reason)


class DuplicateKey(BookstoreError):
    """
    Raised when a unique field collides with an existing row.

    Surfaced without the operation prefix.
    """

    def __init__(self, field: str, message: Optional[str] = None, entity: Optional[str] = None):
        self.field = field
        if entity:
            label = f"{entity} {FIELD_LABELS.get(field, field.replace('_', ' '))}"
        else:
            label = FIELD_LABELS.get(field, field.replace("_", " ").capitalize())
        super().__init__(message or f"{label} already exists")


class InvalidOperation(BookstoreError):
    """Raised when a request is well-formed but not allowed in this state."""


class DownstreamFailure(BookstoreError):
    """Raised when the datastore or other machinery fails unexpectedly."""

    def __init__(self, cause: Exception):
        self.cause = cause
        super().__init__(str(getattr(cause, "orig", None) or cause))


def copy_error(error: BookstoreError) -> BookstoreError:
    clone = error.__class__.__new__(error.__class__)
    clone.__dict__.update(error.__dict__)
    return clone


# =============================================================================
# Translation helpers
# =============================================================================

_UNIQUE_PATTERNS = (
    re.compile(r"UNIQUE constraint failed: \w+\.(\w+)"),
    re.compile(r"Key \((\w+)\)=\(.*\) already exists"),
    re.compile(r"Duplicate entry .* for key '(?:\w+\.)?(\w+)'"),
)


def duplicate_field(exc: IntegrityError) -> Optional[str]:
    """Extract the offending column from a driver unique-violation message."""
    message = str(exc.orig) if exc.orig is not None else str(exc)
    for pattern in _UNIQUE_PATTERNS:
        match = pattern.search(message)
        if match:
            return match.group(1)
    return None


def describe_validation_error(exc: ValidationError) -> ValidationFailed:
    """Flatten a pydantic ValidationError into one readable message."""
    parts = []
    first_field = None
    for error in exc.errors():
        loc = ".".join(str(part) for part in error.get("loc", ()))
        msg = error.get("msg", "Invalid value").removeprefix("Value error, ")
        if first_field is None and loc:
            first_field = loc
        parts.append(f"{loc}: {msg}" if loc else msg)
    return ValidationFailed("; ".join(parts), field=first_field)


def translate(exc: Exception, entity: Optional[str] = None) -> BookstoreError:
    """Map any exception onto the taxonomy."""
    if isinstance(exc, BookstoreError):
        return exc
    if isinstance(exc, ValidationError):
        return describe_validation_error(exc)
    if isinstance(exc, IntegrityError):
        field = duplicate_field(exc)
        if field:
            return DuplicateKey(field, entity=entity)
        return ValidationFailed(str(exc.orig))
    return DownstreamFailure(exc)


def _find_session(args, kwargs) -> Optional[Session]:
    if isinstance(kwargs.get("db"), Session):
        return kwargs["db"]
    for arg in args:
        if isinstance(arg, Session):
            return arg
    return None


# =============================================================================
# Operation decorator
# =============================================================================

def operation(prefix: str, entity: Optional[str] = None):
    """
    Wrap a service operation with rollback and error prefixing.

    Usage:
        @operation("Error creating book")
        def create_book(db: Session, identity, payload): ...

    DuplicateKey errors keep their bare message ("Category name already
    exists" when entity="Category"); every other error is re-raised as
    "<prefix>: <message>".
    """

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except Exception as exc:
                db = _find_session(args, kwargs)
                if db is not None:
                    db.rollback()

                error = translate(exc, entity)
                if isinstance(error, DownstreamFailure):
                    logger.error(f"{prefix}: {error.message}", exc_info=exc)
                else:
                    logger.warning(f"{prefix}: {error.message}")

                if isinstance(error, DuplicateKey):
                    if error is exc:
                        raise
                    raise error from exc
                raise error.prefixed(prefix) from exc

        return wrapper

    return decorator
