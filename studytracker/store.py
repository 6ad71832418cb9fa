"""
Tool: Session Store
Purpose: SQLite persistence for study sessions

Sessions are stored with UTC ISO-8601 timestamps so range queries can
compare strings. Every insert/delete is its own transaction and writes are
serialized; subscribers are told after each committed change.

Usage:
    store = SessionStore(DB_PATH)
    session_id = store.insert(session)
    sessions = store.filter_sessions(SessionFilter(subject="Physics", min_focus=4))
    unsubscribe = store.subscribe(lambda event, session_id: ...)

Dependencies:
    - sqlite3 (stdlib)
    - uuid (stdlib)
"""

from __future__ import annotations

import logging
import sqlite3
import threading
import uuid
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from studytracker.errors import StoreFailure
from studytracker.models import SessionFilter, StudySession


logger = logging.getLogger(__name__)

ChangeListener = Callable[[str, str], None]

SESSION_INSERTED = "inserted"
SESSION_DELETED = "deleted"


def generate_id() -> str:
    """Generate a short unique ID."""
    return uuid.uuid4().hex[:12]


def to_storage_time(instant: datetime) -> str:
    if instant.tzinfo is None:
        raise StoreFailure(f"Naive datetime cannot be stored: {instant}")
    return instant.astimezone(timezone.utc).isoformat(timespec="microseconds")


def row_to_session(row: Optional[sqlite3.Row]) -> Optional[StudySession]:
    """Convert sqlite3.Row to StudySession."""
    if row is None:
        return None
    return StudySession(
        id=row["id"],
        subject_name=row["subject_name"],
        subject_icon_url=row["subject_icon_url"],
        date=datetime.fromisoformat(row["date"]),
        duration=row["duration"],
        focus_level=row["focus_level"],
        notes=row["notes"],
    )


class SessionStore:
    """SQLite-backed store for StudySession records."""

    def __init__(self, db_path: Path | str):
        self.db_path = Path(db_path)
        self._write_lock = threading.Lock()
        self._listeners: list[ChangeListener] = []
        conn = self.get_connection()
        conn.close()

    def get_connection(self) -> sqlite3.Connection:
        """Get database connection, creating tables if needed."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row

        cursor = conn.cursor()
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS study_sessions (
                id TEXT PRIMARY KEY,
                subject_name TEXT NOT NULL CHECK (length(trim(subject_name)) > 0),
                subject_icon_url TEXT,
                date TEXT NOT NULL,
                duration INTEGER NOT NULL CHECK (duration > 0),
                focus_level INTEGER NOT NULL CHECK (focus_level BETWEEN 1 AND 5),
                notes TEXT,
                created_at DATETIME DEFAULT CURRENT_TIMESTAMP
            )
        """)
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_sessions_date ON study_sessions(date)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_sessions_subject ON study_sessions(subject_name)")

        conn.commit()
        return conn

    # =========================================================================
    # Change notification
    # =========================================================================

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """Register a listener called with (event, session_id) after each write."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, event: str, session_id: str) -> None:
        for listener in list(self._listeners):
            try:
                listener(event, session_id)
            except Exception:
                logger.exception(f"Session change listener failed for {event} {session_id}")

    # =========================================================================
    # Writes
    # =========================================================================

    def insert(self, session: StudySession) -> str:
        """
        Persist a session and return its id.

        Raises:
            StoreFailure: constraint violation or database error
        """
        session_id = session.id or generate_id()

        with self._write_lock:
            conn = self.get_connection()
            try:
                conn.execute(
                    """
                    INSERT OR REPLACE INTO study_sessions
                        (id, subject_name, subject_icon_url, date, duration, focus_level, notes)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        session_id,
                        session.subject_name,
                        session.subject_icon_url,
                        to_storage_time(session.date),
                        session.duration,
                        session.focus_level,
                        session.notes,
                    ),
                )
                conn.commit()
            except sqlite3.Error as e:
                conn.rollback()
                raise StoreFailure(f"Insert rejected for {session.subject_name!r}: {e}") from e
            finally:
                conn.close()

        self._notify(SESSION_INSERTED, session_id)
        return session_id

    def delete(self, session_id: str) -> bool:
        """Delete a session. Returns False if it did not exist."""
        with self._write_lock:
            conn = self.get_connection()
            try:
                cursor = conn.execute("DELETE FROM study_sessions WHERE id = ?", (session_id,))
                conn.commit()
                deleted = cursor.rowcount > 0
            except sqlite3.Error as e:
                conn.rollback()
                raise StoreFailure(f"Delete rejected for {session_id}: {e}") from e
            finally:
                conn.close()

        if deleted:
            self._notify(SESSION_DELETED, session_id)
        return deleted

    # =========================================================================
    # Reads
    # =========================================================================

    def _query(self, sql: str, params: tuple[Any, ...] = ()) -> list[StudySession]:
        conn = self.get_connection()
        try:
            rows = conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise StoreFailure(f"Query failed: {e}") from e
        finally:
            conn.close()
        return [row_to_session(row) for row in rows]

    def get(self, session_id: str) -> Optional[StudySession]:
        found = self._query("SELECT * FROM study_sessions WHERE id = ?", (session_id,))
        return found[0] if found else None

    def get_all(self) -> list[StudySession]:
        """Snapshot of every session, newest first."""
        return self._query("SELECT * FROM study_sessions ORDER BY date DESC")

    def sessions_in_range(self, start: datetime, end: datetime) -> list[StudySession]:
        """Sessions with start <= date <= end, newest first."""
        return self.filter_sessions(SessionFilter(start=start, end=end))

    def filter_sessions(self, criteria: Optional[SessionFilter] = None) -> list[StudySession]:
        """Sessions matching every set criterion, newest first."""
        criteria = criteria or SessionFilter()
        clauses = []
        params: list[Any] = []

        if criteria.subject is not None:
            clauses.append("subject_name = ?")
            params.append(criteria.subject)
        if criteria.min_focus is not None:
            clauses.append("focus_level >= ?")
            params.append(criteria.min_focus)
        if criteria.max_focus is not None:
            clauses.append("focus_level <= ?")
            params.append(criteria.max_focus)
        if criteria.start is not None:
            clauses.append("date >= ?")
            params.append(to_storage_time(criteria.start))
        if criteria.end is not None:
            clauses.append("date <= ?")
            params.append(to_storage_time(criteria.end))
        if criteria.search_query is not None:
            clauses.append("notes LIKE '%' || ? || '%'")
            params.append(criteria.search_query)

        sql = "SELECT * FROM study_sessions"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY date DESC"

        return self._query(sql, tuple(params))

    def count(self) -> int:
        conn = self.get_connection()
        try:
            return conn.execute("SELECT COUNT(*) FROM study_sessions").fetchone()[0]
        finally:
            conn.close()
