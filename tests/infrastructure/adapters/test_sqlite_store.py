import sqlite3
from dataclasses import replace
from datetime import timedelta

import pytest

from lexis.application.stats.aggregator import streak
from lexis.domain.exceptions import WordNotTrackedError
from lexis.domain.models import Grade, ReviewEvent, ReviewState, WordStatus
from lexis.infrastructure.adapters.sqlite_store import SqliteProgressStore


@pytest.fixture
def store(tmp_path):
    return SqliteProgressStore(tmp_path / "nested" / "lexis.db")


def _event(event_id, word_id, graded_at, grade=Grade.REMEMBERED):
    return ReviewEvent(
        event_id=event_id, user_id="u1", word_id=word_id, graded_at=graded_at, grade=grade
    )


@pytest.mark.asyncio
async def test_state_round_trip(store, now):
    state = ReviewState(
        word_id="bab",
        interval=2.7,
        ease_factor=2.7,
        review_count=2,
        next_review_date=now + timedelta(days=2.7),
        last_review_date=now,
        status=WordStatus.LEARNING,
        success_rate=1.0,
    )

    await store.upsert_state("u1", state)

    assert await store.get_state("u1", "bab") == state
    assert await store.get_state("u2", "bab") is None


@pytest.mark.asyncio
async def test_new_state_keeps_null_dates(store):
    await store.insert_if_absent("u1", ReviewState.new("bab"))

    loaded = await store.get_state("u1", "bab")
    assert loaded.next_review_date is None
    assert loaded.is_new


@pytest.mark.asyncio
async def test_insert_if_absent_does_not_overwrite(store, now):
    reviewed = replace(ReviewState.new("bab"), interval=5.0, review_count=3)
    await store.upsert_state("u1", reviewed)

    assert await store.insert_if_absent("u1", ReviewState.new("bab")) is False
    assert await store.insert_if_absent("u1", ReviewState.new("shubbak")) is True
    assert (await store.get_state("u1", "bab")).interval == 5.0
    assert [s.word_id for s in await store.list_states("u1")] == ["bab", "shubbak"]


@pytest.mark.asyncio
async def test_save_review_writes_state_and_event(store, now):
    state = replace(ReviewState.new("bab"), interval=1.0, review_count=1, last_review_date=now)

    await store.save_review("u1", state, _event("rev_1", "bab", now))

    assert (await store.get_state("u1", "bab")).review_count == 1
    events = await store.list_events("u1")
    assert [e.event_id for e in events] == ["rev_1"]
    assert events[0].grade == Grade.REMEMBERED


@pytest.mark.asyncio
async def test_save_review_is_atomic(store, now):
    first = replace(ReviewState.new("bab"), interval=1.0, review_count=1)
    await store.save_review("u1", first, _event("rev_1", "bab", now))

    second = replace(first, interval=2.5, review_count=2)
    with pytest.raises(sqlite3.IntegrityError):
        # Duplicate event id makes the event insert fail after the upsert
        await store.save_review("u1", second, _event("rev_1", "bab", now))

    assert (await store.get_state("u1", "bab")).review_count == 1


@pytest.mark.asyncio
async def test_delete_word_cascades_to_events(store, now):
    await store.save_review("u1", ReviewState.new("bab"), _event("rev_1", "bab", now))
    await store.save_review("u1", ReviewState.new("dar"), _event("rev_2", "dar", now))

    assert await store.delete_word("u1", "bab") is True
    assert await store.delete_word("u1", "bab") is False
    assert [e.word_id for e in await store.list_events("u1")] == ["dar"]


@pytest.mark.asyncio
async def test_list_events_filters_half_open_range(store, now):
    await store.insert_if_absent("u1", ReviewState.new("bab"))
    for i, days in enumerate([0, 3, 7, 10]):
        await store.append(_event(f"rev_{i}", "bab", now - timedelta(days=days)))

    window = await store.list_events("u1", start=now - timedelta(days=7), end=now)

    assert [e.event_id for e in window] == ["rev_2", "rev_1"]


@pytest.mark.asyncio
async def test_offset_timestamps_are_stored_in_utc(store, now):
    await store.insert_if_absent("u1", ReviewState.new("bab"))
    # 20:00Z on the previous day
    await store.append(_event("rev_tokyo", "bab", "2026-03-10T05:00:00+09:00"))

    window = await store.list_events("u1", start=now - timedelta(days=7), end=now)

    assert [e.event_id for e in window] == ["rev_tokyo"]
    assert window[0].graded_at == "2026-03-09T20:00:00+00:00"


@pytest.mark.asyncio
async def test_append_for_untracked_word_raises(store, now):
    with pytest.raises(WordNotTrackedError):
        await store.append(_event("rev_1", "ghost", now))

    assert await store.list_events("u1") == []


@pytest.mark.asyncio
async def test_malformed_rows_come_back_raw_and_are_skipped(store, now):
    await store.save_review("u1", ReviewState.new("bab"), _event("rev_1", "bab", now))
    with store.connect() as conn:
        conn.execute(
            "INSERT INTO review_events (event_id, user_id, word_id, graded_at, grade) "
            "VALUES ('rev_bad', 'u1', 'bab', 'garbage', 2)"
        )
        conn.execute(
            "INSERT INTO review_events (event_id, user_id, word_id, graded_at, grade) "
            "VALUES ('rev_worse', 'u1', 'bab', ?, 42)",
            (now.isoformat(),),
        )

    events = await store.list_events("u1")

    # Unknown grade dropped at the adapter; bad timestamp passed through
    assert {e.event_id for e in events} == {"rev_1", "rev_bad"}
    assert streak(events, now) == 1


@pytest.mark.asyncio
async def test_in_memory_database_persists_across_calls(now):
    store = SqliteProgressStore(":memory:")
    await store.insert_if_absent("u1", ReviewState.new("bab"))

    assert len(await store.list_states("u1")) == 1
    store.close()
