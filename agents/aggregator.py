"""Session aggregation: final score plus narrative summary."""
from __future__ import annotations

import logging
from textwrap import dedent
from typing import Any, Dict, List, Sequence

from agents.types import AggregateResult
from config.registry import SUMMARY_KEY, get_model
from llm_gateway import LlmGatewayError
from observability import log_event, span
from services.errors import BackendDegraded
from services.scoring import final_score, mean_score, recommendation_for, round_half_up

logger = logging.getLogger(__name__)

MAX_SUMMARY_CHARS = 4000


def _triples(slots: Sequence[Any]) -> List[Dict[str, Any]]:
    return [
        {
            "number": slot.ordinal + 1,
            "tier": slot.tier,
            "question": slot.question_text,
            "answer": slot.answer_text,
            "score": slot.score,
        }
        for slot in slots
    ]


def build_prompt(slots: Sequence[Any]) -> str:
    qa_text = "\n".join(
        f"Q{item['number']} ({item['tier']}): {item['question']}\nA: {item['answer']}\nScore: {item['score']}/100\n"
        for item in _triples(slots)
    )
    return dedent(
        """
        Create a concise interview summary for this candidate based on their responses:

        {qa_text}

        Provide:
        - Overall technical competency
        - Strengths observed
        - Areas for improvement
        - Recommendation (hire/consider/pass)

        Keep it professional and under 150 words.
        """
    ).strip().format(qa_text=qa_text)


def fallback_summary(slots: Sequence[Any], score: int) -> str:
    """Templated summary used when the summarizer backend is unavailable."""

    answered = sum(1 for slot in slots if (slot.answer_text or "").strip())
    average = round_half_up(mean_score(slot.score for slot in slots))
    if average >= 70:
        knowledge = "good"
    elif average >= 50:
        knowledge = "adequate"
    else:
        knowledge = "limited"
    return (
        "Interview Summary:\n"
        f"Completed {answered} of {len(slots)} questions with an average score of {average}/100.\n\n"
        f"The candidate demonstrated {knowledge} technical knowledge across the topics covered.\n\n"
        f"Recommendation: {recommendation_for(score)}"
    )


def _coerce_summary(raw: Any) -> str:
    if isinstance(raw, dict):
        raw = raw.get("summary") or raw.get("text")
    if not isinstance(raw, str) or not raw.strip():
        raise BackendDegraded("summary backend returned no text")
    return raw.strip()[:MAX_SUMMARY_CHARS]


def aggregate(slots: Sequence[Any], *, session_id: str = "-") -> AggregateResult:
    """Reduce six scored slots into a final score and summary. No side effects."""

    score = final_score(slot.score for slot in slots)
    recommendation = recommendation_for(score)
    try:
        llm = get_model(SUMMARY_KEY)
        with span(session_id, "session_summary"):
            raw = llm(prompt=build_prompt(slots), inputs={"answers": _triples(slots), "final_score": score})
        summary = _coerce_summary(raw)
    except (KeyError, LlmGatewayError, BackendDegraded) as exc:
        reason = str(exc)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Summary backend raised unexpectedly")
        reason = str(exc)
    else:
        return AggregateResult(final_score=score, summary=summary, recommendation=recommendation)
    logger.warning("Summary backend unavailable, using template: %s", reason)
    log_event("backend_degraded", session_id, component="aggregator", reason=reason)
    return AggregateResult(
        final_score=score,
        summary=fallback_summary(slots, score),
        recommendation=recommendation,
        source="fallback",
    )


__all__ = ["aggregate", "fallback_summary", "build_prompt"]
