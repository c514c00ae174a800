import pytest

from lexis.application.session import ReviewSession
from lexis.domain.exceptions import SessionFinishedError


def test_session_walks_queue_in_order():
    session = ReviewSession(user_id="u1", queue=("a", "b", "c"))

    assert session.total == 3
    assert session.current_word_id == "a"
    assert session.progress_label == "0/3"

    assert session.advance() == "b"
    assert session.advance() == "c"
    assert session.advance() is None

    assert session.is_finished
    assert session.progress == 1.0
    assert session.remaining == 0


def test_session_total_is_a_snapshot():
    session = ReviewSession(user_id="u1", queue=["a", "b"])
    session.advance()

    assert session.total == 2
    assert session.progress == 0.5
    assert session.progress_label == "1/2"


def test_advancing_finished_session_raises():
    session = ReviewSession(user_id="u1", queue=())

    assert session.is_finished
    assert session.progress == 1.0
    assert session.current_word_id is None
    with pytest.raises(SessionFinishedError):
        session.advance()
