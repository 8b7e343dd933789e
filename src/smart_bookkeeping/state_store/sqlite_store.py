"""
SQLite-based feedback store implementation.

Tables:
- schema_version: Schema version tracking
- feedback_events: One row per feedback event, in insertion order
"""

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from ..errors import PersistenceUnavailableError, UnknownFieldError
from ..schemas.feedback import FeedbackEvent
from ..schemas.fields import parse_field

logger = logging.getLogger(__name__)


class FeedbackStore:
    """
    SQLite store for the feedback ledger.

    The ledger is always written whole: replace_events() swaps every row
    inside a single transaction, so readers see either the old or the new
    history, never a mix.
    """

    SCHEMA_VERSION = 1

    def __init__(self, db_path: Path | str):
        """
        Initialize feedback store.

        Args:
            db_path: Path to SQLite database file

        Raises:
            PersistenceUnavailableError: If the database cannot be created
        """
        self.db_path = Path(db_path)
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PersistenceUnavailableError(f"Cannot create {self.db_path.parent}: {e}") from e
        self._init_db()

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection with row factory."""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database transactions.

        Storage errors surface as PersistenceUnavailableError.
        """
        try:
            conn = self._get_connection()
        except sqlite3.Error as e:
            logger.error("Feedback store unavailable: %s", e)
            raise PersistenceUnavailableError(f"Cannot open {self.db_path}: {e}") from e
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.error("Feedback store operation failed: %s", e)
            raise PersistenceUnavailableError(str(e)) from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_db(self) -> None:
        """Initialize database schema."""
        with self._transaction() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS schema_version (
                    version INTEGER PRIMARY KEY
                )
            """
            )

            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS feedback_events (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    field TEXT NOT NULL,
                    original_value TEXT NOT NULL,
                    corrected_value TEXT,
                    was_correct INTEGER NOT NULL,
                    original_confidence REAL NOT NULL,
                    recorded_at TEXT NOT NULL
                )
            """
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_feedback_events_field ON feedback_events(field)"
            )

            conn.execute(
                "INSERT OR IGNORE INTO schema_version (version) VALUES (?)",
                (self.SCHEMA_VERSION,),
            )

    def load_events(self) -> list[FeedbackEvent]:
        """
        Load every stored event in insertion order.

        Rows whose field is no longer tracked are skipped.
        """
        with self._transaction() as conn:
            rows = conn.execute("SELECT * FROM feedback_events ORDER BY id").fetchall()

        events = []
        for row in rows:
            try:
                tracked = parse_field(row["field"])
            except UnknownFieldError:
                logger.warning("Skipping feedback row %s for unknown field %r", row["id"], row["field"])
                continue
            events.append(
                FeedbackEvent(
                    field=tracked,
                    original_value=row["original_value"],
                    corrected_value=row["corrected_value"],
                    was_correct=bool(row["was_correct"]),
                    original_confidence=row["original_confidence"],
                    recorded_at=row["recorded_at"],
                )
            )
        return events

    def replace_events(self, events: list[FeedbackEvent]) -> None:
        """Atomically replace the stored ledger with events."""
        with self._transaction() as conn:
            conn.execute("DELETE FROM feedback_events")
            conn.executemany(
                """
                INSERT INTO feedback_events
                (field, original_value, corrected_value, was_correct,
                 original_confidence, recorded_at)
                VALUES (?, ?, ?, ?, ?, ?)
            """,
                [
                    (
                        event.field.value,
                        event.original_value,
                        event.corrected_value,
                        1 if event.was_correct else 0,
                        event.original_confidence,
                        event.recorded_at,
                    )
                    for event in events
                ],
            )
        logger.debug("Saved %d feedback events", len(events))

    def clear(self) -> None:
        """Delete every stored event."""
        self.replace_events([])

    def get_stats(self) -> dict[str, dict[str, Any]]:
        """Get per-field feedback statistics."""
        with self._transaction() as conn:
            rows = conn.execute(
                """
                SELECT field,
                       COUNT(*) AS total,
                       SUM(was_correct) AS correct
                FROM feedback_events
                GROUP BY field
                ORDER BY field
            """
            ).fetchall()

        return {
            row["field"]: {
                "total": row["total"],
                "correct": row["correct"] or 0,
                "incorrect": row["total"] - (row["correct"] or 0),
            }
            for row in rows
        }
