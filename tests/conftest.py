from datetime import datetime, timezone

import pytest

from lexis.application.review_service import ReviewService
from lexis.infrastructure.adapters.memory_store import InMemoryProgressStore


@pytest.fixture
def now():
    """A fixed, timezone-aware reference time."""
    return datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def memory_store():
    return InMemoryProgressStore()


@pytest.fixture
def service(memory_store):
    return ReviewService(memory_store, memory_store)


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config and the database
    monkeypatch.setenv("HOME", str(home))
    for key in (
        "LEXIS_DB_PATH",
        "LEXIS_BACKEND",
        "LEXIS_USER_ID",
        "LEXIS_TIMEZONE",
        "LEXIS_REVIEW_LIMIT",
        "LEXIS_VERBOSE",
    ):
        monkeypatch.delenv(key, raising=False)
    return home
