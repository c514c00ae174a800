"""
Stats aggregator for deriving streak and weekly counts from the review log.

This is a pure computation module with no I/O.
"""

import logging
from collections.abc import Iterable
from datetime import date, datetime, timedelta, timezone, tzinfo

from lexis.application.utils.timestamps import coerce_timestamp
from lexis.domain.constants import WEEK_DAYS
from lexis.domain.models import ReviewEvent, WeeklyStats

logger = logging.getLogger(__name__)

UTC = timezone.utc


def _normalize_now(now: datetime) -> datetime:
    return now if now.tzinfo is not None else now.replace(tzinfo=UTC)


def _valid_timestamps(events: Iterable[ReviewEvent]) -> list[datetime]:
    stamps: list[datetime] = []
    skipped = 0
    for event in events:
        stamp = coerce_timestamp(event.graded_at)
        if stamp is None:
            skipped += 1
            logger.warning(
                f"Skipping review event {event.event_id} for word {event.word_id}: "
                f"malformed graded_at {event.graded_at!r}"
            )
            continue
        stamps.append(stamp)
    if skipped:
        logger.debug(f"Skipped {skipped} malformed review events")
    return stamps


def weekly_stats(events: Iterable[ReviewEvent], now: datetime) -> WeeklyStats:
    """
    Count reviews in the trailing week and the week before it.

    this_week counts graded_at in [now - 7d, now); last_week counts
    [now - 14d, now - 7d).
    """
    now = _normalize_now(now)
    week_start = now - timedelta(days=WEEK_DAYS)
    prev_start = now - timedelta(days=2 * WEEK_DAYS)

    this_week = 0
    last_week = 0
    for stamp in _valid_timestamps(events):
        if week_start <= stamp < now:
            this_week += 1
        elif prev_start <= stamp < week_start:
            last_week += 1

    return WeeklyStats(this_week=this_week, last_week=last_week)


def streak(
    events: Iterable[ReviewEvent],
    now: datetime,
    tz: tzinfo | None = None,
) -> int:
    """
    Count consecutive calendar days with at least one review.

    The streak ends today or, as a grace day, yesterday, and walks backward
    until a day without reviews. Days are taken in ``tz`` when given,
    otherwise in the timezone of ``now``.
    """
    now = _normalize_now(now)
    zone = tz or now.tzinfo
    today = now.astimezone(zone).date()

    days: set[date] = {stamp.astimezone(zone).date() for stamp in _valid_timestamps(events)}
    if not days:
        return 0

    one_day = timedelta(days=1)
    if today in days:
        cursor = today
    elif today - one_day in days:
        cursor = today - one_day
    else:
        return 0

    count = 0
    while cursor in days:
        count += 1
        cursor -= one_day
    return count


class StatsAggregator:
    """
    Computes derived review statistics from a review-event log.

    Stateless and side-effect free.
    """

    def __init__(self, tz: tzinfo | None = None):
        """
        Args:
            tz: Timezone whose calendar days define the streak. Defaults to
                the timezone of the ``now`` passed to each call.
        """
        self.tz = tz

    def weekly(self, events: Iterable[ReviewEvent], now: datetime) -> WeeklyStats:
        return weekly_stats(events, now)

    def streak(self, events: Iterable[ReviewEvent], now: datetime) -> int:
        return streak(events, now, tz=self.tz)
