"""Timestamp helpers shared by the scheduler, selector, aggregator and store adapters."""

from datetime import datetime, timezone

UTC = timezone.utc


def ensure_aware(value: datetime) -> datetime:
    """Attach UTC to a naive datetime; aware values pass through."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def coerce_timestamp(value: object) -> datetime | None:
    """
    Interpret a stored timestamp as an aware datetime.

    Naive datetimes (and ISO strings without an offset) are taken as UTC.
    Returns None when the value cannot be interpreted.
    """
    if isinstance(value, datetime):
        return ensure_aware(value)
    if not isinstance(value, str):
        return None

    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return ensure_aware(parsed)


def to_iso(value: datetime | None) -> str | None:
    """Serialize an aware datetime as ISO-8601 in UTC."""
    if value is None:
        return None
    return ensure_aware(value).astimezone(UTC).isoformat()
