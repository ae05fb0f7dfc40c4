"""Timezone helpers."""

from datetime import UTC, datetime


def utc_now() -> datetime:
    return datetime.now(UTC)


def as_utc(value: datetime | None) -> datetime | None:
    """
    Attach UTC to naive datetimes.

    SQLite drops tzinfo on round trip, so values read back from it are
    naive even though they were written in UTC.
    """
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)
