"""Pydantic schemas for the interview session API."""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from agents.tiers import TOTAL_QUESTIONS, Tier
from agents.types import Breakdown, JobMetadata
from interview_session import InterviewSession
from interview_session.models import SessionStatus
from services.resumption import ResumeCheckpoint
from storage.candidates import CandidateRecord


class CreateSessionReq(BaseModel):
    candidate_id: str
    job_position: Optional[str] = None
    experience_level: Optional[str] = None
    tech_stack: Optional[List[str]] = None

    def job(self) -> JobMetadata:
        fields = {
            "job_position": self.job_position,
            "experience_level": self.experience_level,
            "tech_stack": self.tech_stack,
        }
        return JobMetadata(**{key: value for key, value in fields.items() if value})


class SubmitAnswerReq(BaseModel):
    ordinal: int
    answer: Optional[str] = None
    timed_out: bool = False


class ResumeReq(BaseModel):
    checkpoint: Optional[ResumeCheckpoint] = None


class ResumeChoiceReq(BaseModel):
    choice: str


class ErrorBody(BaseModel):
    error: str
    message: str


class QuestionSlotView(BaseModel):
    ordinal: int
    tier: Tier
    time_limit_seconds: int
    question_text: str
    answer_text: str
    score: int
    reasoning: str
    breakdown: Breakdown
    scored: bool
    timed_out: bool


class SessionView(BaseModel):
    session_id: str
    candidate_id: str
    job: JobMetadata
    status: SessionStatus
    superseded: bool
    current_question_index: int
    answered_count: int
    total_questions: int = TOTAL_QUESTIONS
    questions: List[QuestionSlotView] = Field(default_factory=list)
    final_score: Optional[int] = None
    summary: Optional[str] = None
    recommendation: Optional[str] = None
    created_at: str
    updated_at: str
    started_at: Optional[str] = None
    completed_at: Optional[str] = None

    @classmethod
    def from_session(cls, session: InterviewSession) -> "SessionView":
        return cls(
            session_id=session.session_id,
            candidate_id=session.candidate_id,
            job=session.job,
            status=session.status,
            superseded=session.superseded,
            current_question_index=session.current_question_index,
            answered_count=session.answered_count,
            questions=[
                QuestionSlotView(
                    ordinal=slot.ordinal,
                    tier=slot.tier,
                    time_limit_seconds=slot.time_limit_seconds,
                    question_text=slot.question_text,
                    answer_text=slot.answer_text,
                    score=slot.score,
                    reasoning=slot.reasoning,
                    breakdown=slot.breakdown,
                    scored=slot.scored,
                    timed_out=slot.timed_out,
                )
                for slot in session.questions
            ],
            final_score=session.final_score,
            summary=session.summary,
            recommendation=session.recommendation,
            created_at=session.created_at,
            updated_at=session.updated_at,
            started_at=session.started_at,
            completed_at=session.completed_at,
        )


class CandidateDetail(BaseModel):
    candidate: CandidateRecord
    session: Optional[SessionView] = None
