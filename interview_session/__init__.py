"""Interview session state machine and records."""
from .interview_session import InterviewSessionEngine
from .models import InterviewSession, QuestionSlot, StartResult, SubmitResult
from .store import CandidateTracker, InMemorySessionStore, SessionStore

__all__ = [
    "InterviewSessionEngine",
    "InterviewSession",
    "QuestionSlot",
    "StartResult",
    "SubmitResult",
    "CandidateTracker",
    "InMemorySessionStore",
    "SessionStore",
]
