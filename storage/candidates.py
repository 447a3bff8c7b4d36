"""Candidate interview status records."""
from __future__ import annotations

import math
from typing import List, Optional

from pydantic import BaseModel

from interview_session.models import utc_now
from services.errors import InvalidArgumentError

from .sqlite import get_conn

SORTABLE_COLUMNS = ("candidate_id", "interview_status", "score", "created_at", "updated_at")


class CandidateRecord(BaseModel):  # Stored candidate entry
    candidate_id: str
    interview_status: str
    session_id: Optional[str] = None
    score: Optional[int] = None
    summary: Optional[str] = None
    created_at: str
    updated_at: str


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class CandidatePage(BaseModel):
    data: List[CandidateRecord]
    pagination: Pagination


class CandidateStore:  # Mirrors each candidate's latest interview outcome
    def __init__(self, db_path: Optional[str] = None) -> None:
        self._db_path = db_path

    def mark(
        self,
        candidate_id: str,
        *,
        status: str,
        session_id: Optional[str] = None,
        score: Optional[int] = None,
        summary: Optional[str] = None,
    ) -> None:
        """Upsert the candidate row; ``None`` fields keep their stored value."""

        now = utc_now()
        with get_conn(self._db_path) as conn:
            conn.execute(
                """INSERT INTO candidates (candidate_id, interview_status, session_id, score, summary, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?)
                   ON CONFLICT(candidate_id) DO UPDATE SET
                     interview_status = excluded.interview_status,
                     session_id = COALESCE(excluded.session_id, candidates.session_id),
                     score = COALESCE(excluded.score, candidates.score),
                     summary = COALESCE(excluded.summary, candidates.summary),
                     updated_at = excluded.updated_at""",
                (candidate_id, status, session_id, score, summary, now, now),
            )

    def get(self, candidate_id: str) -> Optional[CandidateRecord]:
        with get_conn(self._db_path) as conn:
            row = conn.execute(
                """SELECT candidate_id, interview_status, session_id, score, summary, created_at, updated_at
                   FROM candidates WHERE candidate_id = ?""",
                (candidate_id,),
            ).fetchone()
        return CandidateRecord(**dict(row)) if row else None

    def list_candidates(
        self,
        *,
        search: str = "",
        sort_by: str = "updated_at",
        order: str = "desc",
        page: int = 1,
        limit: int = 10,
    ) -> CandidatePage:
        """One page of candidates, filtered by a case-insensitive id substring."""

        if sort_by not in SORTABLE_COLUMNS:
            raise InvalidArgumentError(f"sort_by must be one of {', '.join(SORTABLE_COLUMNS)}")
        if order not in ("asc", "desc"):
            raise InvalidArgumentError("order must be 'asc' or 'desc'")
        if page < 1 or limit < 1:
            raise InvalidArgumentError("page and limit must be positive")

        where, params = "", []
        term = (search or "").strip()
        if term:
            escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
            where = "WHERE candidate_id LIKE ? ESCAPE '\\'"
            params.append(f"%{escaped}%")
        direction = order.upper()
        with get_conn(self._db_path) as conn:
            total = conn.execute(f"SELECT COUNT(*) FROM candidates {where}", params).fetchone()[0]
            rows = conn.execute(
                f"""SELECT candidate_id, interview_status, session_id, score, summary, created_at, updated_at
                    FROM candidates {where}
                    ORDER BY {sort_by} {direction}, candidate_id {direction}
                    LIMIT ? OFFSET ?""",
                [*params, limit, (page - 1) * limit],
            ).fetchall()
        return CandidatePage(
            data=[CandidateRecord(**dict(row)) for row in rows],
            pagination=Pagination(page=page, limit=limit, total=total, pages=math.ceil(total / limit)),
        )


__all__ = ["CandidatePage", "CandidateRecord", "CandidateStore", "Pagination", "SORTABLE_COLUMNS"]
