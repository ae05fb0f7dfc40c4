"""
Ratings Service

Maintains the denormalized rating fields on the Book model:
- rating: running average of every submitted rating
- review_count: number of submitted ratings

Review entities themselves live outside this service; whatever records a
review calls update_book_rating() once per submission.
"""

import logging

from sqlalchemy.orm import Session

from bookstore.errors import ValidationFailed, operation
from bookstore.models import Book
from bookstore.services.auth import Identity, require_authenticated
from bookstore.services.books import load_book

logger = logging.getLogger(__name__)

MIN_RATING = 0
MAX_RATING = 5


def running_average(current: float, count: int, new_rating: float) -> float:
    """(current * count + new_rating) / (count + 1)"""
    return (current * count + new_rating) / (count + 1)


@operation("Error updating rating")
def update_book_rating(
    db: Session,
    identity: Identity | None,
    book_id: int,
    rating: float,
) -> Book:
    """
    Fold one new rating into a book's average.

    Args:
        db: Database session
        identity: Caller (must be authenticated)
        book_id: Book being rated
        rating: Value between 0 and 5 inclusive

    Returns:
        The updated book
    """
    require_authenticated(identity)
    if rating is None or not MIN_RATING <= rating <= MAX_RATING:
        raise ValidationFailed(
            f"Rating must be between {MIN_RATING} and {MAX_RATING}", field="rating"
        )

    book = load_book(db, book_id)
    book.rating = running_average(book.rating or 0.0, book.review_count or 0, rating)
    book.review_count = (book.review_count or 0) + 1
    db.commit()

    logger.debug(f"Book {book_id} rating now {book.rating:.2f} over {book.review_count} reviews")
    return book
