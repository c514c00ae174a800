"""
Ports (interfaces) for progress persistence.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from .models import ReviewEvent, ReviewState


class WordProgressStore(ABC):
    """
    Port for persisting ReviewState keyed by (user, word).

    Implementations:
        - InMemoryProgressStore: Process-local dictionaries.
        - SqliteProgressStore: A local SQLite database.
    """

    @abstractmethod
    async def get_state(self, user_id: str, word_id: str) -> ReviewState | None:
        """Return the word's state, or None if the user does not track it."""
        pass

    @abstractmethod
    async def list_states(self, user_id: str) -> list[ReviewState]:
        """Return every state tracked for the user, ordered by word_id."""
        pass

    @abstractmethod
    async def upsert_state(self, user_id: str, state: ReviewState) -> None:
        pass

    @abstractmethod
    async def insert_if_absent(self, user_id: str, state: ReviewState) -> bool:
        """
        Insert the state unless the user already tracks the word.

        Returns:
            True if a row was created.
        """
        pass

    @abstractmethod
    async def save_review(self, user_id: str, state: ReviewState, event: ReviewEvent) -> None:
        """
        Upsert the state and append the event in a single atomic transaction.

        Either both writes land or neither does, so scheduling state and
        review statistics never disagree after a crash.
        """
        pass

    @abstractmethod
    async def delete_word(self, user_id: str, word_id: str) -> bool:
        """
        Remove the word's state and cascade to its review events.

        Returns:
            True if a state was removed.
        """
        pass


class ReviewEventLog(ABC):
    """
    Port for the append-only review history consumed by stats aggregation.
    """

    @abstractmethod
    async def append(self, event: ReviewEvent) -> None:
        """
        Record one event for a word the user already tracks.

        Raises:
            WordNotTrackedError: If no state exists for (user_id, word_id).
        """
        pass

    @abstractmethod
    async def list_events(
        self,
        user_id: str,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[ReviewEvent]:
        """
        Fetch the user's events with ``start <= graded_at < end``.

        Args:
            user_id: The learner.
            start: Inclusive lower bound, or None for no bound.
            end: Exclusive upper bound, or None for no bound.

        Returns:
            Events sorted by graded_at ascending. Rows whose timestamp cannot
            be interpreted are only returned when no bounds are given.
        """
        pass
