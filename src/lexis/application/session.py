"""
Review session snapshot.

The queue and its total are captured once when the session starts, so the
progress bar only moves forward even if more words fall due mid-session.
"""

from dataclasses import dataclass, field

from lexis.domain.exceptions import SessionFinishedError


@dataclass
class ReviewSession:
    user_id: str
    queue: tuple[str, ...]
    completed: int = 0
    total: int = field(init=False, default=0)

    def __post_init__(self):
        self.queue = tuple(self.queue)
        self.total = len(self.queue)

    @property
    def is_finished(self) -> bool:
        return self.completed >= self.total

    @property
    def current_word_id(self) -> str | None:
        if self.is_finished:
            return None
        return self.queue[self.completed]

    @property
    def remaining(self) -> int:
        return self.total - self.completed

    @property
    def progress(self) -> float:
        """Fraction of the session done. An empty session counts as complete."""
        if self.total == 0:
            return 1.0
        return self.completed / self.total

    @property
    def progress_label(self) -> str:
        return f"{self.completed}/{self.total}"

    def advance(self) -> str | None:
        """
        Mark the current card as done.

        Returns:
            The next word id, or None when the session is over.

        Raises:
            SessionFinishedError: If there is no current card.
        """
        if self.is_finished:
            raise SessionFinishedError(
                f"Session for {self.user_id} already finished ({self.progress_label})"
            )
        self.completed += 1
        return self.current_word_id
