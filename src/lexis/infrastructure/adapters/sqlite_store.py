"""
SQLite Progress Store: infrastructure adapter for a local SQLite database.

Implements WordProgressStore and ReviewEventLog on two tables:
word_progress (one row per user x word) and review_events (append-only).
"""

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

from lexis.application.utils.timestamps import coerce_timestamp, to_iso
from lexis.domain.exceptions import InvalidGradeError, WordNotTrackedError
from lexis.domain.models import Grade, ReviewEvent, ReviewState, WordStatus
from lexis.domain.ports import ReviewEventLog, WordProgressStore

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS word_progress (
    user_id TEXT NOT NULL,
    word_id TEXT NOT NULL,
    interval REAL NOT NULL DEFAULT 0,
    ease_factor REAL NOT NULL DEFAULT 2.5,
    review_count INTEGER NOT NULL DEFAULT 0,
    next_review_date TEXT,
    last_review_date TEXT,
    status TEXT NOT NULL DEFAULT 'learning',
    success_rate REAL NOT NULL DEFAULT 0,
    PRIMARY KEY (user_id, word_id)
);

CREATE TABLE IF NOT EXISTS review_events (
    event_id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    word_id TEXT NOT NULL,
    graded_at TEXT,
    grade INTEGER NOT NULL,
    FOREIGN KEY (user_id, word_id)
        REFERENCES word_progress (user_id, word_id)
        ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_review_events_user_time
    ON review_events (user_id, graded_at);
"""

INSERT_STATE = """
INSERT INTO word_progress (
    user_id, word_id, interval, ease_factor, review_count,
    next_review_date, last_review_date, status, success_rate
)
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
"""

UPSERT_STATE = INSERT_STATE + """
ON CONFLICT (user_id, word_id) DO UPDATE SET
    interval = excluded.interval,
    ease_factor = excluded.ease_factor,
    review_count = excluded.review_count,
    next_review_date = excluded.next_review_date,
    last_review_date = excluded.last_review_date,
    status = excluded.status,
    success_rate = excluded.success_rate
"""


class SqliteProgressStore(WordProgressStore, ReviewEventLog):
    """
    Persists progress in SQLite.

    Each public method runs in its own transaction; save_review writes the
    state row and the event row in the same one.
    """

    def __init__(self, db_path: Path | str):
        self.db_path = db_path if db_path == ":memory:" else Path(db_path)
        self._shared: sqlite3.Connection | None = None
        if self.db_path == ":memory:":
            # A private in-memory database only lives as long as its connection
            self._shared = sqlite3.connect(":memory:", check_same_thread=False)
        self.initialize()

    @contextmanager
    def connect(self):
        if self._shared is not None:
            conn = self._shared
        else:
            conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            if conn is not self._shared:
                conn.close()

    def initialize(self) -> None:
        if isinstance(self.db_path, Path):
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self.connect() as conn:
            conn.executescript(SCHEMA)
        logger.debug(f"SQLite progress store ready at {self.db_path}")

    def close(self) -> None:
        if self._shared is not None:
            self._shared.close()
            self._shared = None

    # ------------------------------------------------------------------
    # WordProgressStore
    # ------------------------------------------------------------------

    async def get_state(self, user_id: str, word_id: str) -> ReviewState | None:
        with self.connect() as conn:
            row = conn.execute(
                "SELECT * FROM word_progress WHERE user_id = ? AND word_id = ?",
                (user_id, word_id),
            ).fetchone()
        return _state_from_row(row) if row else None

    async def list_states(self, user_id: str) -> list[ReviewState]:
        with self.connect() as conn:
            rows = conn.execute(
                "SELECT * FROM word_progress WHERE user_id = ? ORDER BY word_id",
                (user_id,),
            ).fetchall()
        return [_state_from_row(row) for row in rows]

    async def upsert_state(self, user_id: str, state: ReviewState) -> None:
        with self.connect() as conn:
            conn.execute(UPSERT_STATE, _state_params(user_id, state))

    async def insert_if_absent(self, user_id: str, state: ReviewState) -> bool:
        with self.connect() as conn:
            cursor = conn.execute(
                INSERT_STATE + "ON CONFLICT (user_id, word_id) DO NOTHING",
                _state_params(user_id, state),
            )
            return cursor.rowcount > 0

    async def save_review(self, user_id: str, state: ReviewState, event: ReviewEvent) -> None:
        with self.connect() as conn:
            conn.execute(UPSERT_STATE, _state_params(user_id, state))
            _insert_event(conn, event)

    async def delete_word(self, user_id: str, word_id: str) -> bool:
        with self.connect() as conn:
            cursor = conn.execute(
                "DELETE FROM word_progress WHERE user_id = ? AND word_id = ?",
                (user_id, word_id),
            )
            return cursor.rowcount > 0

    # ------------------------------------------------------------------
    # ReviewEventLog
    # ------------------------------------------------------------------

    async def append(self, event: ReviewEvent) -> None:
        with self.connect() as conn:
            tracked = conn.execute(
                "SELECT 1 FROM word_progress WHERE user_id = ? AND word_id = ?",
                (event.user_id, event.word_id),
            ).fetchone()
            if tracked is None:
                raise WordNotTrackedError(event.user_id, event.word_id)
            _insert_event(conn, event)

    async def list_events(
        self,
        user_id: str,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[ReviewEvent]:
        # ISO strings in UTC compare correctly as text
        query = "SELECT * FROM review_events WHERE user_id = ?"
        params: list = [user_id]
        if start is not None:
            query += " AND graded_at >= ?"
            params.append(to_iso(start))
        if end is not None:
            query += " AND graded_at < ?"
            params.append(to_iso(end))
        query += " ORDER BY graded_at, event_id"

        with self.connect() as conn:
            rows = conn.execute(query, params).fetchall()

        events = []
        for row in rows:
            try:
                grade = Grade.parse(row["grade"])
            except InvalidGradeError:
                logger.warning(f"Skipping review event {row['event_id']}: unknown grade {row['grade']!r}")
                continue
            events.append(
                ReviewEvent(
                    event_id=row["event_id"],
                    user_id=row["user_id"],
                    word_id=row["word_id"],
                    # Raw text; the aggregator decides whether it is readable
                    graded_at=row["graded_at"],
                    grade=grade,
                )
            )
        return events


def _insert_event(conn: sqlite3.Connection, event: ReviewEvent) -> None:
    # Readable timestamps are stored as UTC ISO text for range comparison;
    # unreadable text is kept as given
    stamp = coerce_timestamp(event.graded_at)
    graded_at = to_iso(stamp) if stamp is not None else event.graded_at
    conn.execute(
        "INSERT INTO review_events (event_id, user_id, word_id, graded_at, grade) "
        "VALUES (?, ?, ?, ?, ?)",
        (event.event_id, event.user_id, event.word_id, graded_at, int(event.grade)),
    )


def _state_params(user_id: str, state: ReviewState) -> tuple:
    return (
        user_id,
        state.word_id,
        state.interval,
        state.ease_factor,
        state.review_count,
        to_iso(state.next_review_date),
        to_iso(state.last_review_date),
        state.status.value,
        state.success_rate,
    )


def _state_from_row(row: sqlite3.Row) -> ReviewState:
    try:
        status = WordStatus(row["status"])
    except ValueError:
        logger.warning(f"Unknown status {row['status']!r} for {row['word_id']}; using learning")
        status = WordStatus.LEARNING

    return ReviewState(
        word_id=row["word_id"],
        interval=float(row["interval"]),
        ease_factor=float(row["ease_factor"]),
        review_count=int(row["review_count"]),
        next_review_date=coerce_timestamp(row["next_review_date"]),
        last_review_date=coerce_timestamp(row["last_review_date"]),
        status=status,
        success_rate=float(row["success_rate"]),
    )
