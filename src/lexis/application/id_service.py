"""Identifiers for review events."""

from ulid import ULID


def generate_event_id() -> str:
    """Generate a time-sortable review event ID using ULID."""
    return f"rev_{ULID()}"
