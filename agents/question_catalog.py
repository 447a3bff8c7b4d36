"""Question catalog backed by a generative model with a static fallback."""
from __future__ import annotations

import logging
from textwrap import dedent
from typing import Any, Dict, List, Optional

from agents.tiers import TOTAL_QUESTIONS, Tier, time_limit_for
from agents.types import JobMetadata, QuestionOut
from config.registry import QUESTION_KEY, get_model
from llm_gateway import LlmGatewayError
from observability import log_event, span
from services.errors import BackendDegraded

logger = logging.getLogger(__name__)

FALLBACK_QUESTIONS: Dict[Tier, List[str]] = {
    "easy": [
        "What is React and what are its main benefits?",
        "Explain the difference between let, const, and var in JavaScript.",
        "What is the purpose of the useState hook in React?",
        "What is the difference between == and === in JavaScript?",
        "What is a component in React?",
        "Explain what props are in React.",
    ],
    "medium": [
        "Explain the concept of lifting state up in React.",
        "What is the difference between controlled and uncontrolled components?",
        "How does the useEffect hook work and when would you use it?",
        "What is the difference between synchronous and asynchronous JavaScript?",
        "Explain how promises work in JavaScript.",
        "What is the virtual DOM and how does it improve performance?",
    ],
    "hard": [
        "Explain how React's reconciliation algorithm works.",
        "What are some common performance optimization techniques in React?",
        "How would you implement authentication in a full-stack application?",
        "Explain the concept of closures in JavaScript with an example.",
        "What is the difference between useMemo and useCallback hooks?",
        "How would you handle state management in a large React application?",
    ],
}

MAX_QUESTION_CHARS = 1000


def fallback_question(tier: Tier, ordinal: int) -> str:
    questions = FALLBACK_QUESTIONS[tier]
    return questions[ordinal % len(questions)]


def build_prompt(tier: Tier, ordinal: int, job: JobMetadata) -> str:
    stack = ", ".join(job.tech_stack) if job.tech_stack else "general software engineering"
    return dedent(
        f"""
        Generate a {tier} level interview question for a {job.experience_level} {job.job_position}.
        The candidate works with: {stack}.
        This is question {ordinal + 1} of {TOTAL_QUESTIONS}.

        Requirements:
        - Should test practical knowledge
        - Be specific and clear
        - Appropriate for {tier} level

        Return only the question text, no explanations.
        """
    ).strip()


def _coerce_text(raw: Any) -> str:
    if isinstance(raw, dict):
        raw = raw.get("text") or raw.get("question")
    if not isinstance(raw, str):
        raise BackendDegraded(f"question backend returned {type(raw).__name__}")
    text = raw.strip().strip('"').strip()
    if not text:
        raise BackendDegraded("question backend returned empty text")
    if len(text) > MAX_QUESTION_CHARS:
        raise BackendDegraded("question backend returned oversized text")
    return text


def _fallback(tier: Tier, ordinal: int, limit: int, session_id: str, exc: Exception) -> QuestionOut:
    logger.warning("Question backend unavailable, using fallback tier=%s ordinal=%d: %s", tier, ordinal, exc)
    log_event(
        "backend_degraded",
        session_id,
        component="question_catalog",
        ordinal=ordinal,
        tier=tier,
        reason=str(exc),
    )
    return QuestionOut(
        text=fallback_question(tier, ordinal),
        tier=tier,
        ordinal=ordinal,
        time_limit_seconds=limit,
        source="fallback",
    )


def get_question(
    tier: Tier,
    ordinal: int,
    *,
    job: Optional[JobMetadata] = None,
    session_id: str = "-",
) -> QuestionOut:
    """Return a question for ``tier``/``ordinal``.

    Backend errors, unbound models and unusable output all resolve to the
    static list for the tier; nothing is raised to the caller.
    """

    job = job or JobMetadata()
    limit = time_limit_for(tier)
    try:
        llm = get_model(QUESTION_KEY)
        with span(session_id, "question_catalog", ordinal=ordinal):
            raw = llm(
                prompt=build_prompt(tier, ordinal, job),
                inputs={"tier": tier, "question_number": ordinal + 1, "job": job.model_dump()},
            )
        text = _coerce_text(raw)
    except (KeyError, LlmGatewayError, BackendDegraded) as exc:
        return _fallback(tier, ordinal, limit, session_id, exc)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Question backend raised unexpectedly")
        return _fallback(tier, ordinal, limit, session_id, exc)
    return QuestionOut(text=text, tier=tier, ordinal=ordinal, time_limit_seconds=limit, source="generated")


__all__ = ["FALLBACK_QUESTIONS", "fallback_question", "build_prompt", "get_question"]
