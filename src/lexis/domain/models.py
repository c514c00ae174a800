"""
Domain models for spaced-repetition scheduling.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum

from .constants import DEFAULT_EASE_FACTOR
from .exceptions import InvalidGradeError


class Grade(IntEnum):
    """
    Feedback given after attempting to recall a word.

    Ordered from worst to best so that comparisons read naturally
    (``grade >= Grade.REMEMBERED`` means the recall succeeded).
    """

    FORGOT = 0
    STRUGGLED = 1
    REMEMBERED = 2
    PERFECT = 3

    @property
    def is_success(self) -> bool:
        return self >= Grade.REMEMBERED

    @classmethod
    def parse(cls, value: "Grade | int | str") -> "Grade":
        """
        Coerce a Grade, an int, or a case-insensitive name into a Grade.

        Raises:
            InvalidGradeError: If the value does not name a known grade.
        """
        if isinstance(value, Grade):
            return value
        if isinstance(value, bool):
            raise InvalidGradeError(f"Unrecognized grade: {value!r}")
        if isinstance(value, int):
            try:
                return cls(value)
            except ValueError:
                raise InvalidGradeError(f"Unrecognized grade: {value!r}") from None
        if isinstance(value, str):
            text = value.strip()
            if text.isdigit():
                return cls.parse(int(text))
            try:
                return cls[text.upper()]
            except KeyError:
                raise InvalidGradeError(f"Unrecognized grade: {value!r}") from None
        raise InvalidGradeError(f"Unrecognized grade: {value!r}")


class WordStatus(str, Enum):
    LEARNING = "learning"
    LEARNED = "learned"
    ARCHIVED = "archived"


@dataclass(frozen=True)
class ReviewState:
    """
    Scheduling state for one user x word pair.

    Attributes:
        word_id: The tracked word.
        interval: Days until the next review. 0 means never successfully reviewed.
        ease_factor: Multiplier governing interval growth (floor 1.3).
        review_count: Total number of grades submitted.
        next_review_date: When the word is due. None means not yet scheduled.
        last_review_date: When the word was last graded.
        status: Display label derived from interval (or user-set archived).
        success_rate: Rolling share of successful recalls (0.0-1.0).
    """

    word_id: str
    interval: float = 0.0
    ease_factor: float = DEFAULT_EASE_FACTOR
    review_count: int = 0
    next_review_date: datetime | None = None
    last_review_date: datetime | None = None
    status: WordStatus = WordStatus.LEARNING
    success_rate: float = 0.0

    @classmethod
    def new(cls, word_id: str) -> "ReviewState":
        """Initial state for a word that just became trackable."""
        return cls(word_id=word_id)

    @property
    def is_new(self) -> bool:
        return self.review_count == 0 and self.next_review_date is None

    @property
    def is_archived(self) -> bool:
        return self.status == WordStatus.ARCHIVED


@dataclass(frozen=True)
class ReviewEvent:
    """
    A single append-only review log entry.

    Attributes:
        event_id: Time-sortable unique id.
        user_id: The learner who graded the word.
        word_id: The word that was graded.
        graded_at: When the grade was submitted. Stores hand back whatever they
            persisted, so this may be a raw string or even None for corrupt rows.
        grade: The grade submitted.
    """

    event_id: str
    user_id: str
    word_id: str
    graded_at: datetime | str | None
    grade: Grade


@dataclass(frozen=True)
class WeeklyStats:
    """Review counts for the trailing week and the week before it."""

    this_week: int = 0
    last_week: int = 0


@dataclass
class MasteryBreakdown:
    """
    Aggregate mastery picture across a user's tracked words.
    """

    total_mastery: int = 0
    levels: dict[str, int] = field(
        default_factory=lambda: {
            "novice": 0,
            "beginner": 0,
            "intermediate": 0,
            "advanced": 0,
            "mastered": 0,
        }
    )
    average_reviews: int = 0
    total_reviews: int = 0
