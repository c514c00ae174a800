from dataclasses import replace

import pytest

from lexis.application.stats.mastery import (
    StabilityLevel,
    mastery_breakdown,
    memory_stability,
    stability_level,
    update_success_rate,
    word_mastery,
)
from lexis.domain.models import ReviewState, WordStatus


def test_memory_stability_zero_for_untouched_word_at_ease_floor():
    assert memory_stability(interval=0, success_rate=0, review_count=0, ease_factor=1.3) == 0


def test_memory_stability_default_ease_contributes():
    # Only the ease term: (2.5 - 1.3) / 1.2 * 20 * 0.1
    assert memory_stability(interval=0) == 2


def test_memory_stability_clamps_bad_inputs():
    assert memory_stability(interval=-10, success_rate=-1, review_count=-3, ease_factor=0.5) == 0
    assert 0 <= memory_stability(interval=1000, success_rate=2, review_count=100) <= 100


def test_memory_stability_grows_with_interval():
    day1 = memory_stability(interval=1)
    day7 = memory_stability(interval=7)
    day30 = memory_stability(interval=30)
    assert day1 < day7 < day30


def test_memory_stability_rewards_success_rate():
    low = memory_stability(interval=7, success_rate=0.2)
    high = memory_stability(interval=7, success_rate=0.9)
    assert high > low


@pytest.mark.parametrize(
    "score,level",
    [
        (0, StabilityLevel.JUST_STARTED),
        (19, StabilityLevel.JUST_STARTED),
        (20, StabilityLevel.BUILDING),
        (59, StabilityLevel.DEVELOPING),
        (60, StabilityLevel.STRONG),
        (80, StabilityLevel.MASTERED),
        (100, StabilityLevel.MASTERED),
    ],
)
def test_stability_level_thresholds(score, level):
    assert stability_level(score) is level


def test_stability_level_has_description():
    assert "review frequently" in StabilityLevel.JUST_STARTED.description


def test_update_success_rate_rolling_average():
    assert update_success_rate(None, 0, True) == 1.0
    assert update_success_rate(0.0, 0, False) == 0.0
    assert update_success_rate(1.0, 1, False) == 0.5
    assert update_success_rate(0.5, 2, True) == pytest.approx(2 / 3)


def test_word_mastery_combines_score_and_level():
    state = replace(ReviewState.new("nahr"), interval=30.0, success_rate=1.0, review_count=5)
    result = word_mastery(state)
    assert result.word_id == "nahr"
    assert result.level == stability_level(result.stability)
    assert result.stability > memory_stability(interval=1)


def test_mastery_breakdown_empty():
    breakdown = mastery_breakdown([])
    assert breakdown.total_mastery == 0
    assert breakdown.total_reviews == 0
    assert sum(breakdown.levels.values()) == 0


def test_mastery_breakdown_buckets_words():
    veteran = replace(ReviewState.new("a"), interval=30.0, review_count=6)  # 30 + 40 + 30
    fresh = ReviewState.new("b")  # ease only: 30
    archived = replace(ReviewState.new("c"), interval=60.0, status=WordStatus.ARCHIVED)

    breakdown = mastery_breakdown([veteran, fresh, archived])

    assert breakdown.levels["mastered"] == 1
    assert breakdown.levels["beginner"] == 1
    assert breakdown.total_mastery == 65
    assert breakdown.total_reviews == 6
    assert breakdown.average_reviews == 3
