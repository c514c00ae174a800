from dataclasses import replace
from datetime import datetime, timedelta

import pytest

from lexis.application.scheduler import derive_status, reconcile_status, schedule
from lexis.domain.constants import MAX_INTERVAL
from lexis.domain.exceptions import InvalidGradeError, InvalidReviewStateError
from lexis.domain.models import Grade, ReviewState, WordStatus

ALL_GRADES = list(Grade)


def _state(**kwargs) -> ReviewState:
    return replace(ReviewState.new("qalam"), **kwargs)


# --- Scenarios ---


def test_first_perfect_on_fresh_word(now):
    result = schedule(ReviewState.new("qalam"), Grade.PERFECT, now)

    assert result.review_count == 1
    assert result.interval == 1.0
    assert result.ease_factor == pytest.approx(2.6)
    assert result.next_review_date == now + timedelta(days=1)
    assert result.last_review_date == now
    assert result.status == WordStatus.LEARNING
    assert result.success_rate == 1.0


def test_perfect_until_learned_then_forgot_relapses(now):
    state = ReviewState.new("qalam")
    seen_learned = False
    for i in range(10):
        state = schedule(state, Grade.PERFECT, now + timedelta(days=i))
        if state.interval >= 7:
            seen_learned = True
            break

    assert seen_learned
    assert state.status == WordStatus.LEARNED

    lapsed = schedule(state, Grade.FORGOT, now + timedelta(days=20))
    assert lapsed.status == WordStatus.LEARNING
    assert lapsed.interval == 1.0


def test_perfect_growth_sequence(now):
    state = ReviewState.new("qalam")
    intervals = []
    for _ in range(3):
        state = schedule(state, Grade.PERFECT, now)
        intervals.append(state.interval)

    # 1 -> 1 * 2.7 -> 2.7 * 2.8
    assert intervals == [1.0, 2.7, 7.56]
    assert state.ease_factor == pytest.approx(2.8)


def test_long_perfect_run_stays_within_interval_cap(now):
    state = ReviewState.new("qalam")
    for i in range(30):
        reviewed_at = now + timedelta(days=i)
        state = schedule(state, Grade.PERFECT, reviewed_at)

        assert 0 < state.interval <= MAX_INTERVAL
        assert state.next_review_date == reviewed_at + timedelta(days=state.interval)
        assert state.status == derive_status(state.interval)
        assert state.review_count == i + 1

    assert state.interval == MAX_INTERVAL
    assert state.status == WordStatus.LEARNED


def test_success_on_tiny_interval_never_rounds_to_zero(now):
    result = schedule(_state(interval=0.001, review_count=1), Grade.REMEMBERED, now)

    assert result.interval == 0.01
    assert result.next_review_date > now


def test_naive_now_is_taken_as_utc(now):
    naive = datetime(2026, 3, 10, 12, 0)

    result = schedule(ReviewState.new("qalam"), Grade.PERFECT, naive)

    assert result.last_review_date.tzinfo is not None
    assert result == schedule(ReviewState.new("qalam"), Grade.PERFECT, now)


# --- Per-grade semantics ---


def test_remembered_multiplies_by_ease(now):
    result = schedule(_state(interval=5.0, review_count=3), Grade.REMEMBERED, now)
    assert result.interval == 12.5
    assert result.ease_factor == 2.5


def test_struggled_grows_modestly_with_small_penalty(now):
    result = schedule(_state(interval=5.0, review_count=3), Grade.STRUGGLED, now)
    assert result.interval == 6.0
    assert result.ease_factor == pytest.approx(2.35)


def test_struggled_on_new_word_uses_first_step(now):
    result = schedule(ReviewState.new("qalam"), Grade.STRUGGLED, now)
    assert result.interval == 1.0
    assert result.next_review_date == now + timedelta(days=1)


def test_forgot_on_new_word_stays_due_now(now):
    result = schedule(ReviewState.new("qalam"), Grade.FORGOT, now)
    assert result.interval == 0
    assert result.next_review_date == now
    assert result.ease_factor == pytest.approx(2.3)
    assert result.success_rate == 0.0


def test_consecutive_forgot_never_breaches_ease_floor(now):
    state = _state(interval=30.0, ease_factor=1.5, review_count=10)
    for i in range(10):
        state = schedule(state, Grade.FORGOT, now + timedelta(days=i))
        assert state.ease_factor >= 1.3
    assert state.ease_factor == 1.3


# --- Properties ---


@pytest.mark.parametrize("grade", ALL_GRADES)
@pytest.mark.parametrize(
    "start",
    [
        {"interval": 0.0},
        {"interval": 0.4, "review_count": 1},
        {"interval": 3.0, "ease_factor": 1.3, "review_count": 4},
        {"interval": 45.5, "ease_factor": 3.1, "review_count": 12, "success_rate": 0.75},
    ],
)
def test_output_invariants_hold(now, grade, start):
    state = _state(**start)
    result = schedule(state, grade, now)

    assert result.interval >= 0
    assert result.ease_factor >= 1.3
    assert result.review_count == state.review_count + 1
    assert result.next_review_date >= now
    assert result.status == derive_status(result.interval)
    assert 0.0 <= result.success_rate <= 1.0


@pytest.mark.parametrize("grade", ALL_GRADES)
def test_schedule_is_deterministic(now, grade):
    state = _state(interval=4.0, review_count=2, success_rate=0.5)
    assert schedule(state, grade, now) == schedule(state, grade, now)


@pytest.mark.parametrize("interval", [0.0, 0.5, 1.0, 6.0, 100.0])
def test_forgot_never_lengthens_interval(now, interval):
    result = schedule(_state(interval=interval, review_count=1), Grade.FORGOT, now)
    assert result.interval <= interval


def test_perfect_keeps_learned_word_learned(now):
    state = _state(interval=8.0, review_count=5, status=WordStatus.LEARNED)
    result = schedule(state, Grade.PERFECT, now)
    assert result.status == WordStatus.LEARNED


def test_schedule_does_not_mutate_input(now):
    state = _state(interval=2.0, review_count=1)
    schedule(state, Grade.REMEMBERED, now)
    assert state.interval == 2.0
    assert state.review_count == 1


def test_grade_accepts_int_and_name(now):
    state = ReviewState.new("qalam")
    assert schedule(state, 3, now) == schedule(state, "perfect", now)


# --- Validation ---


@pytest.mark.parametrize(
    "bad",
    [
        {"interval": -1.0},
        {"ease_factor": 1.2},
        {"review_count": -1},
        {"success_rate": 1.5},
        {"status": WordStatus.ARCHIVED},
        {"interval": float("nan"), "review_count": 1},
        {"interval": float("inf"), "review_count": 1},
        {"ease_factor": float("nan")},
        {"ease_factor": float("inf")},
        {"success_rate": float("nan")},
    ],
)
def test_invalid_input_state_is_rejected(now, bad):
    with pytest.raises(InvalidReviewStateError):
        schedule(_state(**bad), Grade.REMEMBERED, now)


def test_unknown_grade_is_rejected(now):
    with pytest.raises(InvalidGradeError):
        schedule(ReviewState.new("qalam"), 9, now)


# --- Status reconciliation ---


def test_reconcile_status_fixes_stale_label():
    stale = _state(interval=10.0, status=WordStatus.LEARNING)
    assert reconcile_status(stale).status == WordStatus.LEARNED


def test_reconcile_status_leaves_archived_alone():
    archived = _state(interval=10.0, status=WordStatus.ARCHIVED)
    assert reconcile_status(archived) is archived
