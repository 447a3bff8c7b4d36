from __future__ import annotations  # Session records and engine results

from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

from agents.tiers import TOTAL_QUESTIONS, Tier, tier_for_ordinal, time_limit_for
from agents.types import Breakdown, JobMetadata, QuestionOut, Source

SessionStatus = Literal["pending", "in_progress", "completed"]

_STATUS_ORDER = {"pending": 0, "in_progress": 1, "completed": 2}

NO_ANSWER_TEXT = "No answer provided (time expired)."


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


class QuestionSlot(BaseModel):  # One fixed-position question/answer/score record
    ordinal: int = Field(ge=0, le=TOTAL_QUESTIONS - 1)
    question_text: str = ""
    question_source: Optional[Source] = None
    answer_text: str = ""
    score: int = Field(default=0, ge=0, le=100)
    reasoning: str = ""
    breakdown: Breakdown = Field(default_factory=Breakdown)
    scored: bool = False
    timed_out: bool = False
    answered_at: Optional[str] = None

    @property
    def tier(self) -> Tier:
        return tier_for_ordinal(self.ordinal)

    @property
    def time_limit_seconds(self) -> int:
        return time_limit_for(self.tier)

    @property
    def has_question(self) -> bool:
        return bool(self.question_text)

    @property
    def answered(self) -> bool:
        return bool(self.answer_text.strip()) and self.scored

    def as_question(self) -> QuestionOut:
        return QuestionOut(
            text=self.question_text,
            tier=self.tier,
            ordinal=self.ordinal,
            time_limit_seconds=self.time_limit_seconds,
            source=self.question_source or "generated",
        )


def _empty_slots() -> List[QuestionSlot]:
    return [QuestionSlot(ordinal=index) for index in range(TOTAL_QUESTIONS)]


class InterviewSession(BaseModel):  # Authoritative session record
    session_id: str
    candidate_id: str
    job: JobMetadata = Field(default_factory=JobMetadata)
    status: SessionStatus = "pending"
    questions: List[QuestionSlot] = Field(default_factory=_empty_slots)
    final_score: Optional[int] = Field(default=None, ge=0, le=100)
    summary: Optional[str] = None
    recommendation: Optional[str] = None
    superseded: bool = False
    created_at: str = Field(default_factory=utc_now)
    updated_at: str = Field(default_factory=utc_now)
    started_at: Optional[str] = None
    completed_at: Optional[str] = None

    @model_validator(mode="after")
    def _check_slots(self) -> "InterviewSession":
        if len(self.questions) != TOTAL_QUESTIONS:
            raise ValueError(f"session must hold exactly {TOTAL_QUESTIONS} slots")
        for index, slot in enumerate(self.questions):
            if slot.ordinal != index:
                raise ValueError("slots must be ordered by ordinal")
        return self

    @property
    def current_question_index(self) -> int:
        """Index of the first unanswered slot; ``TOTAL_QUESTIONS`` when all are answered."""

        for slot in self.questions:
            if not slot.answered:
                return slot.ordinal
        return TOTAL_QUESTIONS

    @property
    def answered_count(self) -> int:
        return sum(1 for slot in self.questions if slot.answered)

    @property
    def all_answered(self) -> bool:
        return all(slot.answered for slot in self.questions)

    def advance_status(self, status: SessionStatus) -> None:
        """Move status forward; regressions are rejected."""

        if _STATUS_ORDER[status] < _STATUS_ORDER[self.status]:
            raise ValueError(f"status cannot move from {self.status} to {status}")
        self.status = status

    def touch(self) -> None:
        self.updated_at = utc_now()


class StartResult(BaseModel):  # Payload returned by start
    session_id: str
    status: SessionStatus
    question: QuestionOut
    ordinal: int
    question_number: int
    total_questions: int = TOTAL_QUESTIONS


class SubmitResult(BaseModel):  # Payload returned by submit_answer
    session_id: str
    ordinal: int
    score: int
    reasoning: str
    breakdown: Breakdown
    next_question: Optional[QuestionOut] = None
    is_complete: bool
    final_score: Optional[int] = None
    summary: Optional[str] = None


__all__ = [
    "SessionStatus",
    "QuestionSlot",
    "InterviewSession",
    "StartResult",
    "SubmitResult",
    "NO_ANSWER_TEXT",
    "utc_now",
]
