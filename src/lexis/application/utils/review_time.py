"""Human-readable labels for how far away a review is."""

import math
from datetime import datetime, timezone

from .timestamps import coerce_timestamp

SECONDS_PER_DAY = 86400


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"


def format_time_until_review(
    next_review_date: datetime | str | None,
    now: datetime | None = None,
) -> str | None:
    """
    Describe when a review is due relative to now.

    The distance is rounded to whole days (halves round up), then bucketed:
    "Today", "Tomorrow" / "Yesterday", days below a week, weeks below 30 days,
    months (30 days each) below a year, then years (365 days each). Future
    labels read "Next week", "Next month", "Next year" for a count of one;
    past labels end in "ago".

    Returns:
        The label, or None when the date is missing or unreadable.
    """
    review_at = coerce_timestamp(next_review_date)
    if review_at is None:
        return None
    now = coerce_timestamp(now) if now is not None else datetime.now(timezone.utc)

    diff_days = math.floor((review_at - now).total_seconds() / SECONDS_PER_DAY + 0.5)

    if diff_days < 0:
        days = -diff_days
        if days == 1:
            return "Yesterday"
        if days < 7:
            return f"{days} days ago"
        if days < 30:
            return f"{_plural(days // 7, 'week')} ago"
        if days < 365:
            return f"{_plural(days // 30, 'month')} ago"
        return f"{_plural(days // 365, 'year')} ago"

    if diff_days == 0:
        return "Today"
    if diff_days == 1:
        return "Tomorrow"
    if diff_days < 7:
        return f"{diff_days} days"
    if diff_days < 30:
        weeks = diff_days // 7
        return "Next week" if weeks == 1 else f"{weeks} weeks"
    if diff_days < 365:
        months = diff_days // 30
        return "Next month" if months == 1 else f"{months} months"
    years = diff_days // 365
    return "Next year" if years == 1 else f"{years} years"
