"""Timezone helpers. All stored timestamps are UTC."""

from datetime import datetime, timezone
from typing import Optional


def now_utc() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes and convert aware ones."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def isoformat_utc(value: Optional[datetime]) -> Optional[str]:
    """ISO-8601 string for a stored timestamp (SQLite returns naive values)."""
    value = ensure_utc(value)
    return value.isoformat() if value else None
