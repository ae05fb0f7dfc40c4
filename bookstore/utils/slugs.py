"""
Slug helpers.

A slug is the URL-safe form of a human-readable name:
"The Great Gatsby!" → "the-great-gatsby".
"""

import re
import time

_INVALID_CHARS = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE = re.compile(r"\s+")
_DASHES = re.compile(r"-+")


def slugify(value: str) -> str:
    """
    Lowercase, drop everything except letters, digits, spaces and dashes,
    turn whitespace into dashes and collapse repeated dashes.
    """
    slug = _INVALID_CHARS.sub("", (value or "").lower())
    slug = _WHITESPACE.sub("-", slug)
    slug = _DASHES.sub("-", slug)
    return slug.strip("-")


def book_slug(title: str) -> str:
    """
    Slug for a book title, suffixed with the current time in milliseconds.

    The suffix keeps slugs unique when two books share a title.
    """
    stamp = int(time.time() * 1000)
    base = slugify(title)
    return f"{base}-{stamp}" if base else str(stamp)
