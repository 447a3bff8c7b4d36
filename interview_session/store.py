from __future__ import annotations  # Session persistence interface

from threading import RLock
from typing import Dict, List, Optional, Protocol

from interview_session.models import InterviewSession
from services.errors import ConflictError, NotFoundError


class SessionStore(Protocol):  # Durable storage keyed by session id and candidate id
    def create(self, session: InterviewSession) -> None: ...

    def get(self, session_id: str) -> InterviewSession: ...

    def save(self, session: InterviewSession) -> None: ...

    def find_active(self, candidate_id: str) -> Optional[InterviewSession]: ...

    def list(self) -> List[InterviewSession]: ...


class CandidateTracker(Protocol):  # Optional candidate status sink
    def mark(
        self,
        candidate_id: str,
        *,
        status: str,
        session_id: Optional[str] = None,
        score: Optional[int] = None,
        summary: Optional[str] = None,
    ) -> None: ...


class InMemorySessionStore:  # Thread-safe in-memory store
    def __init__(self) -> None:
        self._sessions: Dict[str, InterviewSession] = {}
        self._lock = RLock()

    def create(self, session: InterviewSession) -> None:  # Create-if-absent
        with self._lock:
            if session.session_id in self._sessions:
                raise ConflictError(f"session {session.session_id} already exists")
            if self._active_locked(session.candidate_id) is not None:
                raise ConflictError(f"candidate {session.candidate_id} already has a session")
            self._sessions[session.session_id] = session.model_copy(deep=True)

    def get(self, session_id: str) -> InterviewSession:
        with self._lock:
            stored = self._sessions.get(session_id)
        if stored is None:
            raise NotFoundError(f"session {session_id} not found")
        return stored.model_copy(deep=True)

    def save(self, session: InterviewSession) -> None:  # Full-record overwrite
        with self._lock:
            if session.session_id not in self._sessions:
                raise NotFoundError(f"session {session.session_id} not found")
            self._sessions[session.session_id] = session.model_copy(deep=True)

    def find_active(self, candidate_id: str) -> Optional[InterviewSession]:
        with self._lock:
            found = self._active_locked(candidate_id)
        return found.model_copy(deep=True) if found else None

    def list(self) -> List[InterviewSession]:
        with self._lock:
            sessions = [session.model_copy(deep=True) for session in self._sessions.values()]
        return sorted(sessions, key=lambda item: item.created_at, reverse=True)

    def _active_locked(self, candidate_id: str) -> Optional[InterviewSession]:
        for session in self._sessions.values():
            if session.candidate_id == candidate_id and not session.superseded:
                return session
        return None


__all__ = ["SessionStore", "CandidateTracker", "InMemorySessionStore"]
