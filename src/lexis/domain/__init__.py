# Domain Package
from .exceptions import (
    InvalidGradeError,
    InvalidReviewStateError,
    LexisError,
    SessionFinishedError,
    WordNotTrackedError,
)
from .models import Grade, MasteryBreakdown, ReviewEvent, ReviewState, WeeklyStats, WordStatus
from .ports import ReviewEventLog, WordProgressStore

__all__ = [
    "Grade",
    "WordStatus",
    "ReviewState",
    "ReviewEvent",
    "WeeklyStats",
    "MasteryBreakdown",
    "WordProgressStore",
    "ReviewEventLog",
    "LexisError",
    "InvalidReviewStateError",
    "InvalidGradeError",
    "WordNotTrackedError",
    "SessionFinishedError",
]
