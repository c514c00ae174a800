"""
Review scheduler.

Maps (ReviewState, Grade, now) to the next ReviewState. This is a pure
computation module with no I/O: persisting the result is the caller's job.
"""

import math
from dataclasses import replace
from datetime import datetime, timedelta

from lexis.domain.constants import (
    FIRST_SUCCESS_INTERVAL,
    FORGOT_EASE_PENALTY,
    LAPSE_INTERVAL,
    LEARNED_INTERVAL_THRESHOLD,
    MAX_INTERVAL,
    MIN_EASE_FACTOR,
    MIN_SUCCESS_INTERVAL,
    PERFECT_EASE_BONUS,
    PRECISION,
    STRUGGLED_EASE_PENALTY,
    STRUGGLED_GROWTH,
)
from lexis.domain.exceptions import InvalidReviewStateError
from lexis.domain.models import Grade, ReviewState, WordStatus

from .stats.mastery import update_success_rate
from .utils.timestamps import ensure_aware


def is_learned(interval: float) -> bool:
    return interval >= LEARNED_INTERVAL_THRESHOLD


def derive_status(interval: float) -> WordStatus:
    """
    Status is a projection of interval, never set independently.
    """
    return WordStatus.LEARNED if is_learned(interval) else WordStatus.LEARNING


def validate_state(state: ReviewState) -> None:
    """
    Check ReviewState invariants.

    Raises:
        InvalidReviewStateError: On the first violated invariant.
    """
    for name in ("interval", "ease_factor", "success_rate"):
        value = getattr(state, name)
        if not math.isfinite(value):
            raise InvalidReviewStateError(f"{state.word_id}: {name} must be finite, got {value}")
    if state.interval < 0:
        raise InvalidReviewStateError(
            f"{state.word_id}: interval must be >= 0, got {state.interval}"
        )
    if state.ease_factor < MIN_EASE_FACTOR:
        raise InvalidReviewStateError(
            f"{state.word_id}: ease_factor must be >= {MIN_EASE_FACTOR}, got {state.ease_factor}"
        )
    if state.review_count < 0:
        raise InvalidReviewStateError(
            f"{state.word_id}: review_count must be >= 0, got {state.review_count}"
        )
    if not 0.0 <= state.success_rate <= 1.0:
        raise InvalidReviewStateError(
            f"{state.word_id}: success_rate must be within [0, 1], got {state.success_rate}"
        )


def schedule(state: ReviewState, grade: Grade | int | str, now: datetime) -> ReviewState:
    """
    Compute the scheduling state after one graded review.

    Args:
        state: The word's current state. Must satisfy the ReviewState invariants.
        grade: The learner's feedback; ints and names are coerced via Grade.parse.
        now: Time of the review. The new next_review_date is now + interval days.
            A naive value is taken as UTC.

    Returns:
        A new ReviewState. The input is never mutated.

    Raises:
        InvalidReviewStateError: If the input violates an invariant or the
            word is archived.
        InvalidGradeError: If the grade is not recognized.
    """
    grade = Grade.parse(grade)
    now = ensure_aware(now)
    validate_state(state)
    if state.is_archived:
        raise InvalidReviewStateError(f"{state.word_id}: archived words cannot be reviewed")

    interval, ease = _next_interval_and_ease(state.interval, state.ease_factor, grade)

    result = ReviewState(
        word_id=state.word_id,
        interval=interval,
        ease_factor=ease,
        review_count=state.review_count + 1,
        next_review_date=now + timedelta(days=interval),
        last_review_date=now,
        status=derive_status(interval),
        success_rate=update_success_rate(
            state.success_rate, state.review_count, grade.is_success
        ),
    )

    validate_state(result)
    return result


def _next_interval_and_ease(
    interval: float, ease: float, grade: Grade
) -> tuple[float, float]:
    is_new = interval == 0

    if grade == Grade.FORGOT:
        ease = max(MIN_EASE_FACTOR, ease - FORGOT_EASE_PENALTY)
        # Reset to the lapse floor, but never lengthen a shorter interval
        return min(interval, LAPSE_INTERVAL), round(ease, PRECISION)

    if grade == Grade.STRUGGLED:
        ease = max(MIN_EASE_FACTOR, ease - STRUGGLED_EASE_PENALTY)
        new_interval = FIRST_SUCCESS_INTERVAL if is_new else interval * STRUGGLED_GROWTH
    elif grade == Grade.REMEMBERED:
        new_interval = FIRST_SUCCESS_INTERVAL if is_new else interval * ease
    else:
        ease = ease + PERFECT_EASE_BONUS
        new_interval = FIRST_SUCCESS_INTERVAL if is_new else interval * ease

    # A success never rounds down to the "never reviewed" interval of 0
    new_interval = max(round(min(new_interval, MAX_INTERVAL), PRECISION), MIN_SUCCESS_INTERVAL)
    # The floor has one decimal, so rounding never takes ease below it
    return new_interval, round(ease, PRECISION)


def reconcile_status(state: ReviewState) -> ReviewState:
    """
    Re-derive status from interval for a non-archived state.

    Used when restoring an archived word.
    """
    if state.is_archived:
        return state
    status = derive_status(state.interval)
    if status == state.status:
        return state
    return replace(state, status=status)
