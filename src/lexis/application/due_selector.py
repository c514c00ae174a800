"""
Due-set selection for review sessions.

Decides which words are due "now" and orders them into a session queue.
Also hosts the look-ahead windows (this week, this month, learned) so every
view derives "due" from the same definition.
"""

import logging
from collections.abc import Iterable
from datetime import datetime, timedelta
from enum import Enum

from lexis.domain.constants import MONTH_DAYS, WEEK_DAYS
from lexis.domain.models import ReviewState

from .utils.timestamps import ensure_aware

logger = logging.getLogger(__name__)


class ReviewWindow(str, Enum):
    """
    Look-ahead windows over next_review_date.

    THIS_WEEK: unscheduled, overdue, or due within 7 days.
    THIS_MONTH: due after 7 days but within 30 days.
    LEARNED: due more than 30 days out.
    """

    THIS_WEEK = "this-week"
    THIS_MONTH = "this-month"
    LEARNED = "learned"

    @classmethod
    def parse(cls, value: "ReviewWindow | str") -> "ReviewWindow":
        if isinstance(value, ReviewWindow):
            return value
        normalized = value.strip().lower().replace("_", "-")
        try:
            return cls(normalized)
        except ValueError:
            valid = ", ".join(w.value for w in cls)
            raise ValueError(f"Unknown review window '{value}'. Expected one of: {valid}") from None


def is_due(state: ReviewState, now: datetime) -> bool:
    """
    A word is due when it has never been scheduled or its date has arrived.

    Archived words are never due. Naive datetimes are taken as UTC.
    """
    if state.is_archived:
        return False
    if state.next_review_date is None:
        return True
    return ensure_aware(state.next_review_date) <= ensure_aware(now)


def _due_order(state: ReviewState) -> tuple:
    # Unscheduled first, then earliest date, then word_id for a stable order
    if state.next_review_date is None:
        return (0, 0.0, state.word_id)
    return (1, ensure_aware(state.next_review_date).timestamp(), state.word_id)


def select_due(
    states: Iterable[ReviewState],
    now: datetime,
    limit: int | None = None,
) -> list[str]:
    """
    Build the ordered due set.

    Args:
        states: Candidate states (typically all of a user's words).
        now: Reference time.
        limit: Maximum number of words to return. None or <= 0 means no cap.

    Returns:
        Word ids of due words only, unscheduled words first, then by
        next_review_date ascending, ties broken by word_id.
    """
    due = sorted((s for s in states if is_due(s, now)), key=_due_order)
    if limit is not None and limit > 0:
        due = due[:limit]
    return [s.word_id for s in due]


def count_due(states: Iterable[ReviewState], now: datetime) -> int:
    return sum(1 for s in states if is_due(s, now))


def filter_window(
    states: Iterable[ReviewState],
    window: ReviewWindow | str,
    now: datetime,
) -> list[ReviewState]:
    """
    Return the states falling inside a look-ahead window, in due order.
    """
    window = ReviewWindow.parse(window)
    now = ensure_aware(now)
    week_end = now + timedelta(days=WEEK_DAYS)
    month_end = now + timedelta(days=MONTH_DAYS)

    matched: list[ReviewState] = []
    for state in states:
        if state.is_archived:
            continue
        due_at = state.next_review_date
        if due_at is not None:
            due_at = ensure_aware(due_at)

        if window == ReviewWindow.THIS_WEEK:
            keep = due_at is None or due_at <= week_end
        elif window == ReviewWindow.THIS_MONTH:
            keep = due_at is not None and week_end < due_at <= month_end
        else:
            keep = due_at is not None and due_at > month_end

        if keep:
            matched.append(state)

    matched.sort(key=_due_order)
    logger.debug(f"Window {window.value}: {len(matched)} words")
    return matched
