"""Domain exceptions raised by the scheduler and the services built on it."""


class LexisError(Exception):
    """Base class for all Lexis errors."""


class InvalidReviewStateError(LexisError, ValueError):
    """A ReviewState violates an invariant (negative interval, ease below floor, ...)."""


class InvalidGradeError(LexisError, ValueError):
    """A grade value that does not map to a known Grade."""


class WordNotTrackedError(LexisError, KeyError):
    """The user has no progress record for the requested word."""

    def __init__(self, user_id: str, word_id: str):
        self.user_id = user_id
        self.word_id = word_id
        super().__init__(f"Word '{word_id}' is not tracked for user '{user_id}'")

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message
        return self.args[0]


class SessionFinishedError(LexisError):
    """Raised when advancing a review session that has no cards left."""
