"""
Date/time helpers.

All instants are stored in UTC. SQLite hands back naive datetimes; those are
read as UTC so comparisons against request values stay tz-aware.
"""

from datetime import datetime, timezone


def as_utc(dt: datetime) -> datetime:
    """Normalise to tz-aware UTC; naive values are taken to be UTC already."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
