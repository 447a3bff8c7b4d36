"""Bind the catalog, scorer and summarizer registry keys to configured LLM routes."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Dict, Type

from pydantic import BaseModel

from agents.types import ScoringReply
from config.registry import QUESTION_KEY, SCORER_KEY, SUMMARY_KEY, bind_model
from config.routes import LlmRoute, load_app_registry
from llm_gateway import TextReply, call

logger = logging.getLogger(__name__)

SCHEMAS: Dict[str, Type[BaseModel]] = {
    QUESTION_KEY: TextReply,
    SCORER_KEY: ScoringReply,
    SUMMARY_KEY: TextReply,
}


def _text_model(route: LlmRoute) -> Callable[..., Any]:
    def _invoke(*, prompt: str, **_: Any) -> str:
        return call(prompt, TextReply, cfg=route).text

    return _invoke


def _scoring_model(route: LlmRoute) -> Callable[..., Any]:
    def _invoke(*, prompt: str, **_: Any) -> ScoringReply:
        return call(prompt, ScoringReply, cfg=route, options={"temperature": 0.0})

    return _invoke


def bind_from_config(path: Path) -> bool:
    """Bind generative backends from ``path``; returns False when no config exists.

    Without bindings every component runs its deterministic fallback.
    """

    if not path.exists():
        logger.warning("LLM config %s not found; generative backends disabled", path)
        return False
    registry = load_app_registry(path, SCHEMAS)
    bind_model(QUESTION_KEY, _text_model(registry[QUESTION_KEY][0]))
    bind_model(SCORER_KEY, _scoring_model(registry[SCORER_KEY][0]))
    bind_model(SUMMARY_KEY, _text_model(registry[SUMMARY_KEY][0]))
    logger.info("Generative backends bound from %s", path)
    return True


__all__ = ["bind_from_config", "SCHEMAS"]
