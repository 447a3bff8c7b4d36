"""FastAPI routes for interview session control."""
from __future__ import annotations

from typing import List, Literal, NoReturn

from fastapi import APIRouter, HTTPException, Query

from api.schemas import CandidateDetail, CreateSessionReq, ResumeChoiceReq, ResumeReq, SessionView, SubmitAnswerReq
from interview_session import InterviewSessionEngine, StartResult, SubmitResult
from services.errors import ConflictError, InvalidArgumentError, NotFoundError, SessionError
from services.resumption import ResumeDecision, ResumeOutcome, ResumptionGateway
from storage.candidates import CandidatePage, CandidateStore
from storage.sessions import SqliteSessionStore


router = APIRouter(prefix="/api/interview-sessions")
candidates_router = APIRouter(prefix="/api/candidates")

_STATUS_BY_ERROR = {
    NotFoundError: 404,
    ConflictError: 409,
    InvalidArgumentError: 400,
}

# Stores resolve settings.DB_PATH per connection; the schema is applied at startup.
_CANDIDATES = CandidateStore()
_ENGINE = InterviewSessionEngine(SqliteSessionStore(), _CANDIDATES)


def _engine() -> InterviewSessionEngine:
    return _ENGINE


def _raise_http(exc: SessionError) -> NoReturn:
    status = _STATUS_BY_ERROR.get(type(exc), 400)
    raise HTTPException(status_code=status, detail={"error": exc.kind, "message": exc.message}) from exc


@router.post("", response_model=SessionView, status_code=201)
def create_session(req: CreateSessionReq) -> SessionView:
    try:
        session = _engine().create(req.candidate_id, req.job())
    except SessionError as exc:
        _raise_http(exc)
    return SessionView.from_session(session)


@router.get("", response_model=List[SessionView])
def list_sessions() -> List[SessionView]:
    return [SessionView.from_session(session) for session in _engine().list_sessions()]


@router.get("/by-candidate/{candidate_id}", response_model=SessionView)
def get_session_for_candidate(candidate_id: str) -> SessionView:
    try:
        session = _engine().get_for_candidate(candidate_id)
    except SessionError as exc:
        _raise_http(exc)
    return SessionView.from_session(session)


@router.get("/{session_id}", response_model=SessionView)
def get_session(session_id: str) -> SessionView:
    try:
        session = _engine().get(session_id)
    except SessionError as exc:
        _raise_http(exc)
    return SessionView.from_session(session)


@router.post("/{session_id}/start", response_model=StartResult)
def start_session(session_id: str) -> StartResult:
    try:
        return _engine().start(session_id)
    except SessionError as exc:
        _raise_http(exc)


@router.post("/{session_id}/answers", response_model=SubmitResult)
def submit_answer(session_id: str, req: SubmitAnswerReq) -> SubmitResult:
    try:
        return _engine().submit_answer(session_id, req.ordinal, req.answer, timed_out=req.timed_out)
    except SessionError as exc:
        _raise_http(exc)


@router.post("/{session_id}/resume", response_model=ResumeDecision)
def resume_session(session_id: str, req: ResumeReq) -> ResumeDecision:
    try:
        return ResumptionGateway(_engine()).reconcile(session_id, req.checkpoint)
    except SessionError as exc:
        _raise_http(exc)


@router.post("/{session_id}/resume/choice", response_model=ResumeOutcome)
def apply_resume_choice(session_id: str, req: ResumeChoiceReq) -> ResumeOutcome:
    try:
        return ResumptionGateway(_engine()).apply_choice(session_id, req.choice)
    except SessionError as exc:
        _raise_http(exc)


@candidates_router.get("", response_model=CandidatePage)
def list_candidates(
    search: str = "",
    sort_by: str = "updated_at",
    order: Literal["asc", "desc"] = "desc",
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
) -> CandidatePage:
    try:
        return _CANDIDATES.list_candidates(search=search, sort_by=sort_by, order=order, page=page, limit=limit)
    except SessionError as exc:
        _raise_http(exc)


@candidates_router.get("/{candidate_id}", response_model=CandidateDetail)
def get_candidate(candidate_id: str) -> CandidateDetail:
    """Candidate record plus the session it currently points at, if any."""

    record = _CANDIDATES.get(candidate_id)
    if record is None:
        _raise_http(NotFoundError(f"Candidate {candidate_id} not found"))
    session = None
    if record.session_id:
        session = SessionView.from_session(_engine().get(record.session_id))
    return CandidateDetail(candidate=record, session=session)
