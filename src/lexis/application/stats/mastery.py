"""
Mastery metrics derived from scheduling state.

Memory stability is a 0-100 score summarizing how well a word is held;
the breakdown buckets all of a user's words into mastery levels.
"""

import math
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from lexis.domain.constants import (
    DEFAULT_EASE_FACTOR,
    EASE_SCORE_CEILING,
    EASE_SCORE_SCALE,
    INTERVAL_SCORE_BASE,
    INTERVAL_SCORE_MAX,
    MASTERY_EASE_WEIGHT,
    MASTERY_INTERVAL_HORIZON,
    MASTERY_INTERVAL_WEIGHT,
    MASTERY_REVIEW_HORIZON,
    MASTERY_REVIEW_WEIGHT,
    MASTERY_THRESHOLDS,
    MIN_EASE_FACTOR,
    REVIEW_BONUS_MAX,
    REVIEW_BONUS_PER_REVIEW,
    STABILITY_THRESHOLDS,
    STABILITY_WEIGHT_EASE_FACTOR,
    STABILITY_WEIGHT_INTERVAL,
    STABILITY_WEIGHT_REVIEW_COUNT,
    STABILITY_WEIGHT_SUCCESS_RATE,
)
from lexis.domain.models import MasteryBreakdown, ReviewState


class StabilityLevel(str, Enum):
    JUST_STARTED = "just_started"
    BUILDING = "building"
    DEVELOPING = "developing"
    STRONG = "strong"
    MASTERED = "mastered"

    @property
    def description(self) -> str:
        return _LEVEL_DESCRIPTIONS[self]


_LEVEL_DESCRIPTIONS = {
    StabilityLevel.JUST_STARTED: "Just starting - review frequently",
    StabilityLevel.BUILDING: "Building memory - keep practicing",
    StabilityLevel.DEVELOPING: "Developing well - good progress",
    StabilityLevel.STRONG: "Strong retention - nearly mastered",
    StabilityLevel.MASTERED: "Excellent! Well memorized",
}

_MASTERY_BUCKETS = ("novice", "beginner", "intermediate", "advanced", "mastered")


@dataclass(frozen=True)
class WordMastery:
    word_id: str
    stability: int
    level: StabilityLevel


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def memory_stability(
    interval: float,
    success_rate: float = 0.0,
    review_count: int = 0,
    ease_factor: float = DEFAULT_EASE_FACTOR,
) -> int:
    """
    Weighted 0-100 stability score.

    Interval contributes on a log scale (so the first weeks matter most),
    then success rate, review count and ease factor. Out-of-range inputs are
    clamped rather than rejected.
    """
    interval = max(0.0, interval)
    success_rate = _clamp(success_rate, 0.0, 1.0)
    review_count = max(0, review_count)
    ease_factor = _clamp(ease_factor, MIN_EASE_FACTOR, EASE_SCORE_CEILING)

    if interval == 0:
        interval_score = 0.0
    else:
        interval_score = min(INTERVAL_SCORE_MAX, INTERVAL_SCORE_BASE * math.log2(interval + 1))

    review_bonus = min(REVIEW_BONUS_MAX, review_count * REVIEW_BONUS_PER_REVIEW)
    ease_score = (
        (ease_factor - MIN_EASE_FACTOR) / (EASE_SCORE_CEILING - MIN_EASE_FACTOR) * EASE_SCORE_SCALE
    )

    score = (
        interval_score * STABILITY_WEIGHT_INTERVAL
        + success_rate * 100 * STABILITY_WEIGHT_SUCCESS_RATE
        + review_bonus * STABILITY_WEIGHT_REVIEW_COUNT
        + ease_score * STABILITY_WEIGHT_EASE_FACTOR
    )
    return round(_clamp(score, 0, 100))


def stability_level(score: float) -> StabilityLevel:
    levels = list(StabilityLevel)
    for level, upper in zip(levels, STABILITY_THRESHOLDS):
        if score < upper:
            return level
    return StabilityLevel.MASTERED


def word_mastery(state: ReviewState) -> WordMastery:
    score = memory_stability(
        state.interval,
        success_rate=state.success_rate,
        review_count=state.review_count,
        ease_factor=state.ease_factor,
    )
    return WordMastery(word_id=state.word_id, stability=score, level=stability_level(score))


def update_success_rate(current: float | None, review_count: int, success: bool) -> float:
    """
    Fold one more outcome into a rolling success rate.

    Args:
        current: The rate before this review (None is treated as 0).
        review_count: Number of reviews already folded into ``current``.
        success: Whether this review was a successful recall.
    """
    if review_count <= 0:
        return 1.0 if success else 0.0

    successes = (current or 0.0) * review_count + (1 if success else 0)
    return _clamp(successes / (review_count + 1), 0.0, 1.0)


def _mastery_score(state: ReviewState) -> int:
    ease_score = min(
        (state.ease_factor - MIN_EASE_FACTOR) / (EASE_SCORE_CEILING - MIN_EASE_FACTOR)
        * MASTERY_EASE_WEIGHT,
        MASTERY_EASE_WEIGHT,
    )
    interval_score = min(
        state.interval / MASTERY_INTERVAL_HORIZON * MASTERY_INTERVAL_WEIGHT,
        MASTERY_INTERVAL_WEIGHT,
    )
    review_score = min(
        state.review_count / MASTERY_REVIEW_HORIZON * MASTERY_REVIEW_WEIGHT,
        MASTERY_REVIEW_WEIGHT,
    )
    return round(ease_score + interval_score + review_score)


def mastery_breakdown(states: Iterable[ReviewState]) -> MasteryBreakdown:
    """
    Bucket words into mastery levels and average their scores.

    Archived words are left out.
    """
    active = [s for s in states if not s.is_archived]
    breakdown = MasteryBreakdown()
    if not active:
        return breakdown

    total_score = 0
    for state in active:
        score = _mastery_score(state)
        total_score += score
        breakdown.total_reviews += state.review_count

        bucket = _MASTERY_BUCKETS[-1]
        for name, upper in zip(_MASTERY_BUCKETS, MASTERY_THRESHOLDS):
            if score < upper:
                bucket = name
                break
        breakdown.levels[bucket] += 1

    breakdown.total_mastery = round(total_score / len(active))
    breakdown.average_reviews = round(breakdown.total_reviews / len(active))
    return breakdown
