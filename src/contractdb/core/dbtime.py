"""Timestamp helpers for text-typed datetime columns.

SQLite has no datetime storage class; timestamps are stored as
``YYYY-MM-DD HH:MM:SS`` text in UTC, which sorts lexically.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

DB_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"
DB_DATETIME_MS_FORMAT = "%Y-%m-%d %H:%M:%S.%f"


def utc_now() -> datetime:
    return datetime.now(UTC)


def today() -> datetime:
    """Current UTC date at midnight."""
    return utc_now().replace(hour=0, minute=0, second=0, microsecond=0)


def to_db_str(value: datetime) -> str:
    """Format a datetime as stored in the database (converted to UTC if aware)."""
    if value.tzinfo is not None:
        value = value.astimezone(UTC)
    return value.strftime(DB_DATETIME_FORMAT)


def from_db_str(text: str | None) -> datetime:
    """Parse a database timestamp as UTC.

    Unparsable or missing text yields the current time rather than an error,
    so a corrupt timestamp column never breaks loading a record.
    """
    if text:
        for fmt in (DB_DATETIME_FORMAT, DB_DATETIME_MS_FORMAT):
            try:
                return datetime.strptime(text, fmt).replace(tzinfo=UTC)
            except ValueError:
                continue
    return utc_now()


def now_db_str(with_ms: bool = False) -> str:
    now = utc_now()
    if with_ms:
        # strftime %f is microseconds; keep millisecond precision
        return now.strftime(DB_DATETIME_MS_FORMAT)[:-3]
    return now.strftime(DB_DATETIME_FORMAT)


def add_days(value: datetime | None, days: int) -> datetime:
    """Shift ``value`` by ``days``; ``None`` means today at midnight."""
    if value is None:
        value = today()
    return value + timedelta(days=days)
