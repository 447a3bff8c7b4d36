"""Answer scorer with a deterministic heuristic fallback."""
from __future__ import annotations

import json
import logging
import re
from textwrap import dedent
from typing import Any, Dict, Optional

from pydantic import ValidationError

from agents.types import Breakdown, ScoreResult, ScoringReply
from config.registry import SCORER_KEY, get_model
from config.settings import settings
from llm_gateway import LlmGatewayError
from observability import log_event, span
from services.errors import BackendDegraded
from services.scoring import clamp_score, round_half_up

logger = logging.getLogger(__name__)

CODE_MARKER = re.compile(r"```|\bfunction\b|\bconst\b|\blet\b|=>|\bdef\s|\bclass\s|\breturn\s")
DIMENSIONS = ("technical_accuracy", "clarity", "completeness", "depth")

FALLBACK_REASONING = "Automated scoring based on response structure and content analysis."
DEFAULT_REASONING = "Standard response provided."


def heuristic_score(answer_text: str) -> ScoreResult:
    """Score an answer from its structure alone."""

    answer = (answer_text or "").strip()
    base = settings.FALLBACK_BASE_SCORE
    if CODE_MARKER.search(answer):
        base += 15
    if len(answer) > 50:
        base += 15
    if len(answer) > 100:
        base += 10
    base = min(base, settings.FALLBACK_SCORE_CAP)
    breakdown = Breakdown(
        technical_accuracy=clamp_score(base),
        clarity=clamp_score(base - 5),
        completeness=clamp_score(base - 10),
        depth=clamp_score(base - 5),
    )
    return ScoreResult(
        score=clamp_score(base),
        reasoning=FALLBACK_REASONING,
        breakdown=breakdown,
        source="fallback",
    )


def build_prompt(question_text: str, answer_text: str) -> str:
    return dedent(
        f"""
        You are an expert technical interviewer. Score this answer comprehensively.

        Question: {question_text}
        Answer: {answer_text}

        Scoring criteria:
        - technical_accuracy (0-100): Correctness of information
        - clarity (0-100): How well explained and understandable
        - completeness (0-100): Covers all aspects of the question
        - depth (0-100): Shows deeper understanding and insights
        - score: Average of all four criteria
        - reasoning: 1-2 sentences explaining the score

        Return JSON with keys score, reasoning and breakdown.
        """
    ).strip()


def _parse_reply(raw: Any) -> ScoringReply:
    if isinstance(raw, ScoringReply):
        return raw
    try:
        if isinstance(raw, str):
            match = re.search(r"\{[\s\S]*\}", raw)
            if not match:
                raise BackendDegraded("scoring backend reply had no JSON object")
            return ScoringReply.model_validate_json(match.group(0))
        return ScoringReply.model_validate(raw)
    except (ValidationError, json.JSONDecodeError) as exc:
        raise BackendDegraded(f"scoring backend reply failed validation: {exc}") from exc


def _fill_breakdown(reply: ScoringReply, reported: Optional[int]) -> Breakdown:
    """Complete a partial breakdown.

    Missing dimensions take the reported score when it is in range, else the
    mean of the dimensions that were given. A reply with neither is unusable.
    """

    given: Dict[str, int] = {
        name: clamp_score(reply.breakdown[name]) for name in DIMENSIONS if name in reply.breakdown
    }
    if len(given) < len(DIMENSIONS):
        if reported is not None:
            filler = reported
        elif given:
            filler = clamp_score(sum(given.values()) / len(given))
        else:
            raise BackendDegraded("scoring backend reply had neither score nor breakdown")
        logger.debug("Filling breakdown dimensions %s with %d", sorted(set(DIMENSIONS) - set(given)), filler)
        given = {name: given.get(name, filler) for name in DIMENSIONS}
    return Breakdown(**given)


def _normalize(reply: ScoringReply) -> ScoreResult:
    reported = None
    if reply.score is not None and 0 <= reply.score <= 100:
        reported = clamp_score(reply.score)
    breakdown = _fill_breakdown(reply, reported)
    composite = reported if reported is not None else clamp_score(round_half_up(breakdown.mean()))
    reasoning = (reply.reasoning or "").strip() or DEFAULT_REASONING
    return ScoreResult(score=composite, reasoning=reasoning, breakdown=breakdown, source="generated")


def score_answer(question_text: str, answer_text: str, *, session_id: str = "-", ordinal: Optional[int] = None) -> ScoreResult:
    """Score one answer; degrades to :func:`heuristic_score` instead of raising."""

    try:
        llm = get_model(SCORER_KEY)
        with span(session_id, "answer_scorer", ordinal=ordinal):
            raw = llm(
                prompt=build_prompt(question_text, answer_text),
                inputs={"question_text": question_text, "answer_text": answer_text},
            )
        return _normalize(_parse_reply(raw))
    except (KeyError, LlmGatewayError, BackendDegraded) as exc:
        reason = str(exc)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Scoring backend raised unexpectedly")
        reason = str(exc)
    logger.warning("Scoring backend unavailable, using heuristic: %s", reason)
    log_event("backend_degraded", session_id, component="answer_scorer", ordinal=ordinal, reason=reason)
    return heuristic_score(answer_text)


__all__ = ["heuristic_score", "score_answer", "build_prompt", "CODE_MARKER"]
