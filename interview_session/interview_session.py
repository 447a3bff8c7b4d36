from __future__ import annotations  # Interview session state machine

import logging
from typing import Any, Callable, List, Optional
from uuid import uuid4

from agents.aggregator import aggregate
from agents.answer_scorer import score_answer
from agents.question_catalog import get_question
from agents.tiers import LAST_ORDINAL, TOTAL_QUESTIONS, tier_for_ordinal
from agents.types import AggregateResult, JobMetadata, QuestionOut, ScoreResult
from observability import log_event
from services.errors import ConflictError, InvalidArgumentError, NotFoundError
from services.locks import candidate_lock, session_lock

from .models import NO_ANSWER_TEXT, InterviewSession, QuestionSlot, StartResult, SubmitResult, utc_now
from .store import CandidateTracker, SessionStore

logger = logging.getLogger(__name__)

QuestionSource = Callable[..., QuestionOut]
Scorer = Callable[..., ScoreResult]
Aggregator = Callable[..., AggregateResult]


class InterviewSessionEngine:  # Drives one candidate's six-question interview
    """Owns session lifecycle: pending -> in_progress -> completed.

    Every mutation is a read-modify-write of the whole record under the
    session's lock. Backend trouble is absorbed by the catalog, scorer and
    aggregator; only structural errors leave this class.
    """

    def __init__(
        self,
        store: SessionStore,
        candidates: Optional[CandidateTracker] = None,
        *,
        question_source: QuestionSource = get_question,
        scorer: Scorer = score_answer,
        aggregator: Aggregator = aggregate,
        id_factory: Callable[[], str] = lambda: uuid4().hex,
    ) -> None:
        self._store = store
        self._candidates = candidates
        self._question_source = question_source
        self._scorer = scorer
        self._aggregator = aggregator
        self._id_factory = id_factory

    def create(self, candidate_id: str, job: Optional[JobMetadata] = None) -> InterviewSession:
        candidate_id = (candidate_id or "").strip()
        if not candidate_id:
            raise InvalidArgumentError("candidate_id is required")
        with candidate_lock(candidate_id):
            if self._store.find_active(candidate_id) is not None:
                raise ConflictError(f"Interview already exists for candidate {candidate_id}")
            session = InterviewSession(
                session_id=self._id_factory(),
                candidate_id=candidate_id,
                job=job or JobMetadata(),
            )
            self._store.create(session)
        self._mark_candidate(session, "pending")
        log_event("session_created", session.session_id, candidate_id=candidate_id, status=session.status)
        return session

    def start(self, session_id: str) -> StartResult:
        with session_lock(session_id):
            session = self._store.get(session_id)
            _check_live(session)
            changed = False
            if session.status == "pending":
                session.advance_status("in_progress")
                session.started_at = session.started_at or utc_now()
                changed = True
            index = session.current_question_index
            if index < TOTAL_QUESTIONS:
                slot = session.questions[index]
                changed = self._ensure_question(session, slot) or changed
                question = slot.as_question()
            else:
                # Every slot answered; hand back a fresh question instead of failing.
                logger.info("All questions answered for %s; synthesizing a question", session_id)
                question = self._question_source(
                    tier_for_ordinal(LAST_ORDINAL), LAST_ORDINAL, job=session.job, session_id=session_id
                )
            if changed:
                session.touch()
                self._store.save(session)
        if changed:
            self._mark_candidate(session, session.status)
            log_event("session_started", session_id, ordinal=question.ordinal, tier=question.tier, status=session.status)
        return StartResult(
            session_id=session_id,
            status=session.status,
            question=question,
            ordinal=question.ordinal,
            question_number=question.ordinal + 1,
        )

    def submit_answer(
        self,
        session_id: str,
        ordinal: Any,
        answer_text: Any,
        *,
        timed_out: bool = False,
    ) -> SubmitResult:
        ordinal = _check_ordinal(ordinal)
        answer = _check_answer(answer_text, timed_out)
        with session_lock(session_id):
            session = self._store.get(session_id)
            _check_live(session)
            first_open = session.current_question_index
            if ordinal > first_open:
                raise InvalidArgumentError(
                    f"ordinal {ordinal} is ahead of the first unanswered question {first_open}"
                )
            if session.status == "pending":
                session.advance_status("in_progress")
                session.started_at = session.started_at or utc_now()

            slot = session.questions[ordinal]
            self._ensure_question(session, slot)
            result = self._scorer(slot.question_text, answer, session_id=session_id, ordinal=ordinal)
            slot.answer_text = answer
            slot.score = result.score
            slot.reasoning = result.reasoning
            slot.breakdown = result.breakdown.model_copy()
            slot.scored = True
            slot.timed_out = timed_out
            slot.answered_at = utc_now()

            next_question: Optional[QuestionOut] = None
            if session.all_answered:
                self._complete(session)
            else:
                next_slot = session.questions[session.current_question_index]
                self._ensure_question(session, next_slot)
                next_question = next_slot.as_question()
            session.touch()
            self._store.save(session)

        log_event("answer_scored", session_id, ordinal=ordinal, score=result.score, source=result.source)
        self._mark_candidate(session, session.status)
        return SubmitResult(
            session_id=session_id,
            ordinal=ordinal,
            score=result.score,
            reasoning=result.reasoning,
            breakdown=result.breakdown,
            next_question=next_question,
            is_complete=session.status == "completed",
            final_score=session.final_score,
            summary=session.summary,
        )

    def get(self, session_id: str) -> InterviewSession:
        return self._store.get(session_id)

    def get_for_candidate(self, candidate_id: str) -> InterviewSession:
        session = self._store.find_active(candidate_id)
        if session is None:
            raise NotFoundError(f"No active interview for candidate {candidate_id}")
        return session

    def list_sessions(self) -> List[InterviewSession]:
        return self._store.list()

    def supersede(self, session_id: str) -> InterviewSession:
        """Retire a session so its candidate can start over with ``create``."""

        with session_lock(session_id):
            session = self._store.get(session_id)
            if session.status == "completed":
                raise ConflictError("A completed interview cannot be restarted")
            if session.superseded:
                return session
            session.superseded = True
            session.touch()
            self._store.save(session)
        self._mark_candidate(session, "superseded")
        log_event("session_superseded", session_id, status=session.status)
        return session

    def _ensure_question(self, session: InterviewSession, slot: QuestionSlot) -> bool:
        if slot.has_question:
            return False
        question = self._question_source(slot.tier, slot.ordinal, job=session.job, session_id=session.session_id)
        slot.question_text = question.text
        slot.question_source = question.source
        return True

    def _complete(self, session: InterviewSession) -> None:
        outcome = self._aggregator(session.questions, session_id=session.session_id)
        session.final_score = outcome.final_score
        session.summary = outcome.summary
        session.recommendation = outcome.recommendation
        session.advance_status("completed")
        if session.completed_at is None:
            session.completed_at = utc_now()
        log_event(
            "session_completed",
            session.session_id,
            score=outcome.final_score,
            source=outcome.source,
            status=session.status,
        )

    def _mark_candidate(self, session: InterviewSession, status: str) -> None:
        if self._candidates is None:
            return
        self._candidates.mark(
            session.candidate_id,
            status=status,
            session_id=session.session_id,
            score=session.final_score,
            summary=session.summary,
        )


def _check_live(session: InterviewSession) -> None:
    if session.superseded:
        raise ConflictError(f"Interview {session.session_id} was restarted; create a new session")


def _check_ordinal(ordinal: Any) -> int:
    if isinstance(ordinal, bool) or not isinstance(ordinal, int):
        raise InvalidArgumentError("ordinal must be an integer")
    if ordinal < 0 or ordinal > LAST_ORDINAL:
        raise InvalidArgumentError(f"ordinal must be between 0 and {LAST_ORDINAL}")
    return ordinal


def _check_answer(answer_text: Any, timed_out: bool) -> str:
    if answer_text is None:
        answer_text = ""
    if not isinstance(answer_text, str):
        raise InvalidArgumentError("answer must be text")
    answer = answer_text.strip()
    if answer:
        return answer
    if timed_out:
        return NO_ANSWER_TEXT
    raise InvalidArgumentError("answer is required")


__all__ = ["InterviewSessionEngine"]
