"""SQLite-backed session store."""
from __future__ import annotations

import sqlite3
from typing import List, Optional

from interview_session.models import InterviewSession
from services.errors import ConflictError, NotFoundError

from .sqlite import get_conn


class SqliteSessionStore:  # One row per session, full record as JSON
    def __init__(self, db_path: Optional[str] = None) -> None:
        self._db_path = db_path

    def create(self, session: InterviewSession) -> None:
        """Insert ``session``; a clash on id or active candidate is a conflict."""

        try:
            with get_conn(self._db_path) as conn:
                conn.execute(
                    """INSERT INTO interview_sessions
                       (session_id, candidate_id, status, superseded, final_score, payload_json, created_at, updated_at)
                       VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                    (
                        session.session_id,
                        session.candidate_id,
                        session.status,
                        int(session.superseded),
                        session.final_score,
                        session.model_dump_json(),
                        session.created_at,
                        session.updated_at,
                    ),
                )
        except sqlite3.IntegrityError as exc:
            raise ConflictError(f"candidate {session.candidate_id} already has a session") from exc

    def get(self, session_id: str) -> InterviewSession:
        with get_conn(self._db_path) as conn:
            row = conn.execute(
                "SELECT payload_json FROM interview_sessions WHERE session_id = ?",
                (session_id,),
            ).fetchone()
        if row is None:
            raise NotFoundError(f"session {session_id} not found")
        return InterviewSession.model_validate_json(row["payload_json"])

    def save(self, session: InterviewSession) -> None:
        with get_conn(self._db_path) as conn:
            cur = conn.execute(
                """UPDATE interview_sessions
                   SET status = ?, superseded = ?, final_score = ?, payload_json = ?, updated_at = ?
                   WHERE session_id = ?""",
                (
                    session.status,
                    int(session.superseded),
                    session.final_score,
                    session.model_dump_json(),
                    session.updated_at,
                    session.session_id,
                ),
            )
            if cur.rowcount == 0:
                raise NotFoundError(f"session {session.session_id} not found")

    def find_active(self, candidate_id: str) -> Optional[InterviewSession]:
        with get_conn(self._db_path) as conn:
            row = conn.execute(
                """SELECT payload_json FROM interview_sessions
                   WHERE candidate_id = ? AND superseded = 0""",
                (candidate_id,),
            ).fetchone()
        if row is None:
            return None
        return InterviewSession.model_validate_json(row["payload_json"])

    def list(self) -> List[InterviewSession]:
        with get_conn(self._db_path) as conn:
            rows = conn.execute(
                "SELECT payload_json FROM interview_sessions ORDER BY created_at DESC, rowid DESC"
            ).fetchall()
        return [InterviewSession.model_validate_json(row["payload_json"]) for row in rows]


__all__ = ["SqliteSessionStore"]
