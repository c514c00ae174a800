"""
Review Service: application layer orchestrator.

Coordinates the progress store, the review-event log, and the pure
scheduling / selection / stats functions.
"""

import logging
from collections.abc import Iterable
from dataclasses import replace
from datetime import datetime, timedelta, timezone, tzinfo

from lexis.domain.constants import DEFAULT_SESSION_LIMIT, WEEK_DAYS
from lexis.domain.exceptions import WordNotTrackedError
from lexis.domain.models import (
    Grade,
    MasteryBreakdown,
    ReviewEvent,
    ReviewState,
    WeeklyStats,
    WordStatus,
)
from lexis.domain.ports import ReviewEventLog, WordProgressStore

from .due_selector import ReviewWindow, count_due, filter_window, select_due
from .id_service import generate_event_id
from .scheduler import reconcile_status, schedule
from .session import ReviewSession
from .stats.aggregator import StatsAggregator
from .stats.mastery import mastery_breakdown

logger = logging.getLogger(__name__)

UTC = timezone.utc


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ReviewService:
    """
    Application service for review sessions and learner statistics.

    Follows Dependency Inversion: depends on the WordProgressStore and
    ReviewEventLog abstractions, not concrete adapter implementations.
    """

    def __init__(
        self,
        progress_store: WordProgressStore,
        event_log: ReviewEventLog,
        aggregator: StatsAggregator | None = None,
        review_limit: int = DEFAULT_SESSION_LIMIT,
    ):
        """
        Args:
            progress_store: The port persisting ReviewState.
            event_log: The port serving review history.
            aggregator: Optional custom aggregator; uses default if not provided.
            review_limit: Due-set size used when a caller passes no limit.
                0 means unlimited.
        """
        self._store = progress_store
        self._events = event_log
        self._stats = aggregator or StatsAggregator()
        self.review_limit = review_limit

    # ------------------------------------------------------------------
    # Tracking
    # ------------------------------------------------------------------

    async def start_learning(self, user_id: str, word_ids: Iterable[str]) -> int:
        """
        Begin tracking words for a user.

        Words the user already tracks are left untouched.

        Returns:
            The number of words newly tracked.
        """
        started = 0
        for word_id in dict.fromkeys(word_ids):
            if await self._store.insert_if_absent(user_id, ReviewState.new(word_id)):
                started += 1
        logger.info(f"Started {started} new words for user {user_id}")
        return started

    async def forget_word(self, user_id: str, word_id: str) -> None:
        """Stop tracking a word, removing its state and review history."""
        if not await self._store.delete_word(user_id, word_id):
            raise WordNotTrackedError(user_id, word_id)
        logger.info(f"Removed word {word_id} for user {user_id}")

    async def archive_word(self, user_id: str, word_id: str) -> ReviewState:
        state = await self._require_state(user_id, word_id)
        archived = replace(state, status=WordStatus.ARCHIVED)
        await self._store.upsert_state(user_id, archived)
        return archived

    async def restore_word(self, user_id: str, word_id: str) -> ReviewState:
        """Un-archive a word; its status is re-derived from its interval."""
        state = await self._require_state(user_id, word_id)
        restored = reconcile_status(replace(state, status=WordStatus.LEARNING))
        await self._store.upsert_state(user_id, restored)
        return restored

    # ------------------------------------------------------------------
    # Due words and sessions
    # ------------------------------------------------------------------

    async def get_due_words(
        self,
        user_id: str,
        limit: int | None = None,
        now: datetime | None = None,
    ) -> list[str]:
        """Due word ids in session order; limit None falls back to review_limit."""
        if limit is None:
            limit = self.review_limit
        states = await self._store.list_states(user_id)
        return select_due(states, now or _utcnow(), limit=limit)

    async def get_due_count(self, user_id: str, now: datetime | None = None) -> int:
        states = await self._store.list_states(user_id)
        return count_due(states, now or _utcnow())

    async def list_window(
        self,
        user_id: str,
        window: ReviewWindow | str,
        now: datetime | None = None,
    ) -> list[ReviewState]:
        states = await self._store.list_states(user_id)
        return filter_window(states, window, now or _utcnow())

    async def start_session(
        self,
        user_id: str,
        limit: int | None = None,
        now: datetime | None = None,
    ) -> ReviewSession:
        """Snapshot the current due set into a session queue."""
        queue = await self.get_due_words(user_id, limit=limit, now=now)
        logger.info(f"Review session for {user_id}: {len(queue)} words due")
        return ReviewSession(user_id=user_id, queue=tuple(queue))

    async def submit_grade(
        self,
        session: ReviewSession,
        grade: Grade | int | str,
        now: datetime | None = None,
    ) -> ReviewState:
        """
        Grade the session's current word and advance the session.

        The session only advances once the review has been persisted.
        """
        word_id = session.current_word_id
        if word_id is None:
            # advance() raises SessionFinishedError with the session context
            session.advance()
        state = await self.process_review(session.user_id, word_id, grade, now=now)
        session.advance()
        return state

    # ------------------------------------------------------------------
    # Grading
    # ------------------------------------------------------------------

    async def process_review(
        self,
        user_id: str,
        word_id: str,
        grade: Grade | int | str,
        now: datetime | None = None,
    ) -> ReviewState:
        """
        Apply a grade to a word and persist the outcome.

        Words without a stored state start from the default state.

        Returns:
            The new ReviewState.
        """
        now = now or _utcnow()
        grade = Grade.parse(grade)

        current = await self._store.get_state(user_id, word_id)
        if current is None:
            logger.debug(f"No progress for {word_id}; grading from default state")
            current = ReviewState.new(word_id)

        updated = schedule(current, grade, now)
        event = ReviewEvent(
            event_id=generate_event_id(),
            user_id=user_id,
            word_id=word_id,
            graded_at=now,
            grade=grade,
        )
        await self._store.save_review(user_id, updated, event)

        logger.info(
            f"Graded {word_id} as {grade.name} for {user_id}: "
            f"interval {current.interval} -> {updated.interval}, status {updated.status.value}"
        )
        return updated

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    async def get_streak(
        self,
        user_id: str,
        now: datetime | None = None,
        tz: tzinfo | None = None,
    ) -> int:
        events = await self._events.list_events(user_id)
        aggregator = StatsAggregator(tz=tz) if tz is not None else self._stats
        return aggregator.streak(events, now or _utcnow())

    async def get_weekly_stats(self, user_id: str, now: datetime | None = None) -> WeeklyStats:
        now = now or _utcnow()
        events = await self._events.list_events(
            user_id, start=now - timedelta(days=2 * WEEK_DAYS), end=now
        )
        return self._stats.weekly(events, now)

    async def get_mastery(self, user_id: str) -> MasteryBreakdown:
        return mastery_breakdown(await self._store.list_states(user_id))

    async def _require_state(self, user_id: str, word_id: str) -> ReviewState:
        state = await self._store.get_state(user_id, word_id)
        if state is None:
            raise WordNotTrackedError(user_id, word_id)
        return state
