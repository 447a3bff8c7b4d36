"""Reconnect handling: reconcile client-held progress with the stored session."""
from __future__ import annotations

import logging
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from agents.tiers import TOTAL_QUESTIONS, Tier, tier_for_ordinal, time_limit_for
from interview_session import InterviewSession, InterviewSessionEngine, StartResult
from observability import log_event
from services.errors import InvalidArgumentError

logger = logging.getLogger(__name__)

ResumeAction = Literal["start", "continue", "finished", "restarted"]
Choice = Literal["continue", "restart"]

_ACTION_TO_COPY: Dict[str, str] = {
    "start": "Your interview is ready to begin.",
    "continue": "Welcome back! Let's pick up where you left off.",
    "finished": "This interview is already finished.",
    "restarted": "This interview was restarted. Create a new session to begin again.",
}


class ResumeCheckpoint(BaseModel):
    """Progress cached by the client. A hint only, never trusted over the store."""

    ordinal: int = Field(ge=0, le=TOTAL_QUESTIONS - 1)
    tier: Optional[Tier] = None
    elapsed_seconds: float = Field(default=0.0, ge=0.0)


class ResumeDecision(BaseModel):
    session_id: str
    action: ResumeAction
    prompt: bool = False
    choices: List[Choice] = Field(default_factory=list)
    resume_ordinal: Optional[int] = None
    question_number: Optional[int] = None
    tier: Optional[Tier] = None
    time_limit_seconds: Optional[int] = None
    answered_count: int = 0
    total_questions: int = TOTAL_QUESTIONS
    discard_checkpoint: bool = False
    requires_create: bool = False
    message: str
    final_score: Optional[int] = None
    summary: Optional[str] = None


class ResumeOutcome(BaseModel):
    choice: Choice
    session_id: str
    start: Optional[StartResult] = None
    requires_create: bool = False


def decide(session: InterviewSession, checkpoint: Optional[ResumeCheckpoint] = None) -> ResumeDecision:
    """Pure reconciliation of ``checkpoint`` against the authoritative ``session``."""

    answered = session.answered_count
    if session.superseded:
        # Nothing left to continue; the candidate needs a fresh session.
        return ResumeDecision(
            session_id=session.session_id,
            action="restarted",
            answered_count=answered,
            discard_checkpoint=True,
            requires_create=True,
            message=_ACTION_TO_COPY["restarted"],
        )
    if session.status == "completed":
        return ResumeDecision(
            session_id=session.session_id,
            action="finished",
            answered_count=answered,
            discard_checkpoint=True,
            message=_ACTION_TO_COPY["finished"],
            final_score=session.final_score,
            summary=session.summary,
        )

    resume_ordinal = min(session.current_question_index, TOTAL_QUESTIONS - 1)
    tier = tier_for_ordinal(resume_ordinal)
    # Elapsed time is never deducted: a resumed question gets its full limit.
    limit = time_limit_for(tier)

    if session.status == "pending":
        return ResumeDecision(
            session_id=session.session_id,
            action="start",
            resume_ordinal=resume_ordinal,
            question_number=resume_ordinal + 1,
            tier=tier,
            time_limit_seconds=limit,
            answered_count=answered,
            discard_checkpoint=checkpoint is not None,
            message=_ACTION_TO_COPY["start"],
        )

    if checkpoint is None:
        prompt = answered > 0
        stale = False
    else:
        prompt = checkpoint.ordinal < resume_ordinal
        stale = checkpoint.ordinal != resume_ordinal or (
            checkpoint.tier is not None and checkpoint.tier != tier
        )
    return ResumeDecision(
        session_id=session.session_id,
        action="continue",
        prompt=prompt,
        choices=["continue", "restart"] if prompt else [],
        resume_ordinal=resume_ordinal,
        question_number=resume_ordinal + 1,
        tier=tier,
        time_limit_seconds=limit,
        answered_count=answered,
        discard_checkpoint=stale,
        message=_ACTION_TO_COPY["continue"],
    )


class ResumptionGateway:  # Continue-or-restart prompt after a reconnect
    def __init__(self, engine: InterviewSessionEngine) -> None:
        self._engine = engine

    def reconcile(self, session_id: str, checkpoint: Optional[ResumeCheckpoint] = None) -> ResumeDecision:
        session = self._engine.get(session_id)
        decision = decide(session, checkpoint)
        log_event(
            "resume_decision",
            session_id,
            action=decision.action,
            ordinal=decision.resume_ordinal,
            client_ordinal=checkpoint.ordinal if checkpoint else None,
            client_elapsed_s=checkpoint.elapsed_seconds if checkpoint else None,
            prompt=decision.prompt,
        )
        return decision

    def apply_choice(self, session_id: str, choice: str) -> ResumeOutcome:
        """Act on the candidate's explicit choice; restart is never taken implicitly."""

        if choice == "continue":
            start = self._engine.start(session_id)
            return ResumeOutcome(choice="continue", session_id=session_id, start=start)
        if choice == "restart":
            self._engine.supersede(session_id)
            logger.info("Session %s restarted by candidate choice", session_id)
            return ResumeOutcome(choice="restart", session_id=session_id, requires_create=True)
        raise InvalidArgumentError(f"Unknown resume choice: {choice!r}")


__all__ = [
    "ResumeCheckpoint",
    "ResumeDecision",
    "ResumeOutcome",
    "ResumptionGateway",
    "decide",
]
