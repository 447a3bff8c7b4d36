import threading
import time
from typing import Any, Dict, List

import pytest

from agents.tiers import time_limit_for
from agents.types import Breakdown, QuestionOut, ScoreResult
from interview_session import InMemorySessionStore, InterviewSessionEngine
from interview_session.models import NO_ANSWER_TEXT
from services import locks
from services.errors import ConflictError, InvalidArgumentError, NotFoundError


class RecordingCandidates:
    def __init__(self) -> None:
        self.marks: List[Dict[str, Any]] = []

    def mark(self, candidate_id, *, status, session_id=None, score=None, summary=None):
        self.marks.append(
            {"candidate_id": candidate_id, "status": status, "session_id": session_id, "score": score, "summary": summary}
        )


class CountingQuestions:
    def __init__(self) -> None:
        self.calls = 0

    def __call__(self, tier, ordinal, *, job=None, session_id="-"):
        self.calls += 1
        return QuestionOut(
            text=f"{tier} question for slot {ordinal}",
            tier=tier,
            ordinal=ordinal,
            time_limit_seconds=time_limit_for(tier),
        )


def fixed_scorer(scores):
    def score(question_text, answer_text, *, session_id="-", ordinal=None):
        value = scores[ordinal]
        return ScoreResult(
            score=value,
            reasoning=f"scored {value}",
            breakdown=Breakdown(technical_accuracy=value, clarity=value, completeness=value, depth=value),
        )

    return score


@pytest.fixture
def candidates():
    return RecordingCandidates()


@pytest.fixture
def questions():
    return CountingQuestions()


@pytest.fixture
def engine(candidates, questions):
    counter = iter(range(1, 1000))
    return InterviewSessionEngine(
        InMemorySessionStore(),
        candidates,
        question_source=questions,
        scorer=fixed_scorer([90, 85, 70, 75, 60, 65]),
        id_factory=lambda: f"s{next(counter)}",
    )


def _answer_all(engine, session_id):
    result = None
    for ordinal in range(6):
        result = engine.submit_answer(session_id, ordinal, f"answer number {ordinal}")
    return result


def test_create_starts_pending_with_six_empty_slots(engine, candidates):
    session = engine.create("cand-1")
    assert session.status == "pending"
    assert len(session.questions) == 6
    assert session.current_question_index == 0
    assert session.job.job_position == "Software Developer"
    assert candidates.marks[-1]["status"] == "pending"


@pytest.mark.parametrize("candidate_id", ["", "   ", None])
def test_create_requires_candidate(engine, candidate_id):
    with pytest.raises(InvalidArgumentError):
        engine.create(candidate_id)


def test_second_create_for_candidate_conflicts(engine):
    engine.create("cand-1")
    with pytest.raises(ConflictError):
        engine.create("cand-1")
    assert len(engine.list_sessions()) == 1


def test_start_moves_to_in_progress_and_is_idempotent(engine, questions):
    session = engine.create("cand-1")
    first = engine.start(session.session_id)
    assert first.status == "in_progress"
    assert first.ordinal == 0
    assert first.question_number == 1
    assert first.question.tier == "easy"
    assert first.question.time_limit_seconds == 120

    again = engine.start(session.session_id)
    assert again.question.text == first.question.text
    assert questions.calls == 1

    stored = engine.get(session.session_id)
    assert stored.started_at is not None
    assert stored.questions[0].question_text == first.question.text


def test_start_unknown_session(engine):
    with pytest.raises(NotFoundError):
        engine.start("nope")


def test_full_interview_completes_with_mean_score(engine, candidates):
    session = engine.create("cand-1")
    engine.start(session.session_id)
    result = _answer_all(engine, session.session_id)

    assert result.is_complete
    assert result.next_question is None
    assert result.final_score == 74
    assert "Recommendation: Consider" in result.summary

    stored = engine.get(session.session_id)
    assert stored.status == "completed"
    assert stored.completed_at is not None
    assert stored.recommendation == "Consider"
    assert [slot.score for slot in stored.questions] == [90, 85, 70, 75, 60, 65]
    assert candidates.marks[-1]["status"] == "completed"
    assert candidates.marks[-1]["score"] == 74


def test_next_question_follows_tier_progression(engine):
    session = engine.create("cand-1")
    engine.start(session.session_id)
    tiers = []
    for ordinal in range(5):
        result = engine.submit_answer(session.session_id, ordinal, "an answer")
        assert not result.is_complete
        tiers.append(result.next_question.tier)
        assert result.next_question.ordinal == ordinal + 1
    assert tiers == ["easy", "medium", "medium", "hard", "hard"]


@pytest.mark.parametrize("ordinal", [-1, 6, 99, "1", 1.0, True])
def test_bad_ordinal_is_rejected_before_lookup(engine, ordinal):
    with pytest.raises(InvalidArgumentError):
        engine.submit_answer("missing", ordinal, "answer")


def test_submit_to_unknown_session(engine):
    with pytest.raises(NotFoundError):
        engine.submit_answer("missing", 0, "answer")


def test_blank_answer_is_rejected(engine):
    session = engine.create("cand-1")
    engine.start(session.session_id)
    with pytest.raises(InvalidArgumentError):
        engine.submit_answer(session.session_id, 0, "   ")
    assert engine.get(session.session_id).answered_count == 0


def test_timed_out_blank_answer_is_recorded(engine):
    session = engine.create("cand-1")
    engine.start(session.session_id)
    engine.submit_answer(session.session_id, 0, "", timed_out=True)
    slot = engine.get(session.session_id).questions[0]
    assert slot.answer_text == NO_ANSWER_TEXT
    assert slot.timed_out
    assert slot.scored


def test_skipping_ahead_is_rejected(engine):
    session = engine.create("cand-1")
    engine.start(session.session_id)
    with pytest.raises(InvalidArgumentError):
        engine.submit_answer(session.session_id, 2, "answer")


def test_submit_on_pending_session_starts_it(engine):
    session = engine.create("cand-1")
    result = engine.submit_answer(session.session_id, 0, "answer")
    stored = engine.get(session.session_id)
    assert stored.status == "in_progress"
    assert stored.started_at is not None
    assert result.next_question.ordinal == 1


def test_resubmitting_earlier_slot_overwrites(candidates, questions):
    scores = [50, 50, 50, 50, 50, 50]
    engine = InterviewSessionEngine(
        InMemorySessionStore(), candidates, question_source=questions, scorer=fixed_scorer(scores)
    )
    session = engine.create("cand-1")
    engine.submit_answer(session.session_id, 0, "first try")
    engine.submit_answer(session.session_id, 1, "second")
    scores[0] = 95
    engine.submit_answer(session.session_id, 0, "better try")
    stored = engine.get(session.session_id)
    assert stored.questions[0].answer_text == "better try"
    assert stored.questions[0].score == 95
    assert stored.current_question_index == 2


def test_resubmit_after_completion_reaggregates(candidates, questions):
    scores = [60, 60, 60, 60, 60, 60]
    engine = InterviewSessionEngine(
        InMemorySessionStore(), candidates, question_source=questions, scorer=fixed_scorer(scores)
    )
    session = engine.create("cand-1")
    _answer_all(engine, session.session_id)
    completed_at = engine.get(session.session_id).completed_at

    scores[5] = 96
    result = engine.submit_answer(session.session_id, 5, "much better")
    assert result.is_complete
    assert result.final_score == 66
    stored = engine.get(session.session_id)
    assert stored.status == "completed"
    assert stored.completed_at == completed_at


def test_start_on_completed_session_still_returns_question(engine):
    session = engine.create("cand-1")
    _answer_all(engine, session.session_id)
    result = engine.start(session.session_id)
    assert result.status == "completed"
    assert result.ordinal == 5
    assert result.question.tier == "hard"


def test_default_backends_fall_back_without_models():
    engine = InterviewSessionEngine(InMemorySessionStore())
    session = engine.create("cand-1")
    start = engine.start(session.session_id)
    assert start.question.source == "fallback"
    result = engine.submit_answer(session.session_id, 0, "React is a UI library.")
    assert result.score == 60
    assert result.reasoning.startswith("Automated scoring")


def test_supersede_frees_candidate_and_blocks_old_session(engine, candidates):
    session = engine.create("cand-1")
    engine.submit_answer(session.session_id, 0, "answer")
    engine.supersede(session.session_id)
    assert candidates.marks[-1]["status"] == "superseded"

    with pytest.raises(ConflictError):
        engine.start(session.session_id)
    with pytest.raises(ConflictError):
        engine.submit_answer(session.session_id, 1, "answer")
    with pytest.raises(NotFoundError):
        engine.get_for_candidate("cand-1")

    fresh = engine.create("cand-1")
    assert fresh.session_id != session.session_id
    assert engine.get_for_candidate("cand-1").session_id == fresh.session_id
    # the retired record is still readable
    assert engine.get(session.session_id).superseded


def test_supersede_is_idempotent(engine):
    session = engine.create("cand-1")
    engine.supersede(session.session_id)
    assert engine.supersede(session.session_id).superseded


def test_completed_session_cannot_be_superseded(engine):
    session = engine.create("cand-1")
    _answer_all(engine, session.session_id)
    with pytest.raises(ConflictError):
        engine.supersede(session.session_id)


def test_status_never_regresses(engine):
    session = engine.create("cand-1")
    engine.start(session.session_id)
    stored = engine.get(session.session_id)
    with pytest.raises(ValueError):
        stored.advance_status("pending")


def test_list_sessions_newest_first(engine):
    engine.create("cand-1")
    engine.create("cand-2")
    ids = {session.candidate_id for session in engine.list_sessions()}
    assert ids == {"cand-1", "cand-2"}


def _run_together(*jobs):
    barrier = threading.Barrier(len(jobs))
    errors: List[BaseException] = []

    def run(job):
        barrier.wait()
        try:
            job()
        except Exception as exc:  # noqa: BLE001
            errors.append(exc)

    threads = [threading.Thread(target=run, args=(job,)) for job in jobs]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)
    return errors


def test_concurrent_submits_keep_both_answers(candidates, questions):
    score = fixed_scorer([70, 80, 70, 70, 70, 70])

    def slow_score(*args, **kwargs):
        time.sleep(0.05)
        return score(*args, **kwargs)

    engine = InterviewSessionEngine(InMemorySessionStore(), candidates, question_source=questions, scorer=slow_score)
    session = engine.create("cand-1")
    engine.submit_answer(session.session_id, 0, "first try")

    errors = _run_together(
        lambda: engine.submit_answer(session.session_id, 0, "second try"),
        lambda: engine.submit_answer(session.session_id, 1, "next answer"),
    )

    assert errors == []
    stored = engine.get(session.session_id)
    assert stored.answered_count == 2
    assert stored.current_question_index == 2
    assert stored.questions[0].answer_text == "second try"
    assert stored.questions[1].answer_text == "next answer"
    assert stored.questions[1].score == 80


def test_concurrent_creates_for_one_candidate_make_one_session(engine):
    errors = _run_together(lambda: engine.create("cand-x"), lambda: engine.create("cand-x"))

    assert len(errors) == 1
    assert isinstance(errors[0], ConflictError)
    assert [session.candidate_id for session in engine.list_sessions()] == ["cand-x"]


def test_lock_table_is_empty_after_many_sessions(engine):
    for number in range(20):
        session = engine.create(f"cand-{number}")
        engine.start(session.session_id)
        engine.submit_answer(session.session_id, 0, "an answer")
    assert locks.held_lock_count() == 0
    assert locks._LOCKS == {}


def test_waiting_thread_keeps_lock_entry_alive():
    entered = threading.Event()
    release = threading.Event()
    order: List[str] = []

    def holder():
        with locks.session_lock("shared"):
            entered.set()
            release.wait(timeout=5)
            order.append("holder")

    def waiter():
        entered.wait(timeout=5)
        with locks.session_lock("shared"):
            order.append("waiter")

    threads = [threading.Thread(target=holder), threading.Thread(target=waiter)]
    for thread in threads:
        thread.start()
    entered.wait(timeout=5)
    time.sleep(0.05)
    assert locks.held_lock_count() == 1
    release.set()
    for thread in threads:
        thread.join(timeout=5)

    assert order == ["holder", "waiter"]
    assert locks.held_lock_count() == 0
