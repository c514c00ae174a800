# Application Stats Package
from .aggregator import StatsAggregator, streak, weekly_stats
from .mastery import (
    StabilityLevel,
    WordMastery,
    mastery_breakdown,
    memory_stability,
    stability_level,
    update_success_rate,
    word_mastery,
)

__all__ = [
    "StatsAggregator",
    "streak",
    "weekly_stats",
    "StabilityLevel",
    "WordMastery",
    "mastery_breakdown",
    "memory_stability",
    "stability_level",
    "update_success_rate",
    "word_mastery",
]
