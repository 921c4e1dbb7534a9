"""UTC datetime utilities."""

from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def days_after(start: datetime, days: int) -> datetime:
    return start + timedelta(days=days)


def parse_iso(value: str | datetime | None) -> datetime | None:
    """Parse an ISO8601 string stored inside a JSONB document.

    Naive values are assumed to be UTC so comparisons with utc_now() never raise.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def to_iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None
