"""
Tests for the error taxonomy and the operation() decorator.
"""

import pytest
from pydantic import BaseModel, Field
from sqlalchemy.exc import IntegrityError, OperationalError

from bookstore.errors import (
    DownstreamFailure,
    DuplicateKey,
    NotFound,
    ValidationFailed,
    duplicate_field,
    operation,
    translate,
)


class Sample(BaseModel):
    count: int = Field(..., ge=0)


def integrity_error(message: str) -> IntegrityError:
    return IntegrityError("INSERT ...", {}, Exception(message))


class TestDuplicateField:
    @pytest.mark.parametrize(
        "message,field",
        [
            ("UNIQUE constraint failed: books.isbn", "isbn"),
            ('duplicate key value violates unique constraint "users_email_key"\n'
             "DETAIL:  Key (email)=(a@x.com) already exists.", "email"),
            ("Duplicate entry 'x' for key 'categories.name'", "name"),
            ("NOT NULL constraint failed: books.title", None),
        ],
    )
    def test_detects_column(self, message, field):
        assert duplicate_field(integrity_error(message)) == field


class TestTranslate:
    def test_passes_through_taxonomy(self):
        error = NotFound("Book")
        assert translate(error) is error

    def test_pydantic_error(self):
        with pytest.raises(Exception) as exc_info:
            Sample(count=-1)
        error = translate(exc_info.value)
        assert isinstance(error, ValidationFailed)
        assert error.field == "count"

    def test_integrity_error_with_entity(self):
        error = translate(integrity_error("UNIQUE constraint failed: categories.name"), entity="Category")
        assert isinstance(error, DuplicateKey)
        assert error.message == "Category name already exists"

    def test_unexpected_error(self):
        error = translate(OperationalError("SELECT 1", {}, Exception("connection refused")))
        assert isinstance(error, DownstreamFailure)
        assert error.message == "connection refused"


class TestOperationDecorator:
    def test_prefixes_message(self):
        @operation("Error doing thing")
        def failing():
            raise NotFound("Thing")

        with pytest.raises(NotFound) as exc_info:
            failing()
        assert exc_info.value.message == "Error doing thing: Thing not found"
        assert str(exc_info.value) == "Error doing thing: Thing not found"

    def test_duplicate_key_is_not_prefixed(self):
        @operation("Error doing thing")
        def failing():
            raise DuplicateKey("email")

        with pytest.raises(DuplicateKey) as exc_info:
            failing()
        assert exc_info.value.message == "Email already exists"

    def test_unexpected_error_becomes_downstream_failure(self):
        @operation("Error doing thing")
        def failing():
            raise RuntimeError("boom")

        with pytest.raises(DownstreamFailure) as exc_info:
            failing()
        assert exc_info.value.message == "Error doing thing: boom"

    def test_rolls_back_session(self, db_session, sample_category):
        @operation("Error renaming")
        def rename(db, category):
            category.name = "Renamed"
            db.flush()
            raise NotFound("Something")

        with pytest.raises(NotFound):
            rename(db_session, sample_category)

        db_session.refresh(sample_category)
        assert sample_category.name == "Programming"

    def test_success_passes_value_through(self):
        @operation("Error adding")
        def add(a, b):
            return a + b

        assert add(1, 2) == 3
