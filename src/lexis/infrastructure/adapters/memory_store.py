"""
In-memory progress store.

Implements both WordProgressStore and ReviewEventLog with plain dictionaries.
Useful for tests and for throwaway sessions (``backend = "memory"``).
"""

import logging
from datetime import datetime

from lexis.application.utils.timestamps import coerce_timestamp
from lexis.domain.exceptions import WordNotTrackedError
from lexis.domain.models import ReviewEvent, ReviewState
from lexis.domain.ports import ReviewEventLog, WordProgressStore

logger = logging.getLogger(__name__)


class InMemoryProgressStore(WordProgressStore, ReviewEventLog):
    """
    Process-local store. Every method completes without awaiting, so a
    save_review can never be observed half-applied.
    """

    def __init__(self):
        self._states: dict[str, dict[str, ReviewState]] = {}
        self._events: dict[str, list[ReviewEvent]] = {}

    async def get_state(self, user_id: str, word_id: str) -> ReviewState | None:
        return self._states.get(user_id, {}).get(word_id)

    async def list_states(self, user_id: str) -> list[ReviewState]:
        states = self._states.get(user_id, {})
        return [states[w] for w in sorted(states)]

    async def upsert_state(self, user_id: str, state: ReviewState) -> None:
        self._states.setdefault(user_id, {})[state.word_id] = state

    async def insert_if_absent(self, user_id: str, state: ReviewState) -> bool:
        states = self._states.setdefault(user_id, {})
        if state.word_id in states:
            return False
        states[state.word_id] = state
        return True

    async def save_review(self, user_id: str, state: ReviewState, event: ReviewEvent) -> None:
        self._states.setdefault(user_id, {})[state.word_id] = state
        self._events.setdefault(user_id, []).append(event)

    async def delete_word(self, user_id: str, word_id: str) -> bool:
        removed = self._states.get(user_id, {}).pop(word_id, None)
        if user_id in self._events:
            self._events[user_id] = [e for e in self._events[user_id] if e.word_id != word_id]
        return removed is not None

    async def append(self, event: ReviewEvent) -> None:
        if event.word_id not in self._states.get(event.user_id, {}):
            raise WordNotTrackedError(event.user_id, event.word_id)
        self._events.setdefault(event.user_id, []).append(event)

    async def list_events(
        self,
        user_id: str,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[ReviewEvent]:
        events = list(self._events.get(user_id, []))
        if start is None and end is None:
            return sorted(events, key=_sort_key)

        start, end = coerce_timestamp(start), coerce_timestamp(end)

        matched = []
        for event in events:
            stamp = coerce_timestamp(event.graded_at)
            if stamp is None:
                logger.debug(f"Dropping event {event.event_id} with unreadable graded_at from range query")
                continue
            if start is not None and stamp < start:
                continue
            if end is not None and stamp >= end:
                continue
            matched.append(event)
        return sorted(matched, key=_sort_key)


def _sort_key(event: ReviewEvent) -> tuple:
    stamp = coerce_timestamp(event.graded_at)
    # Unreadable timestamps sort first; the aggregator skips them anyway
    return (stamp is not None, stamp.timestamp() if stamp else 0.0, event.event_id)
