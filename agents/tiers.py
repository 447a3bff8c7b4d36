"""Difficulty tier mapping for question ordinals."""
from __future__ import annotations

from typing import Literal

from config.settings import settings

Tier = Literal["easy", "medium", "hard"]

TOTAL_QUESTIONS = 6
LAST_ORDINAL = TOTAL_QUESTIONS - 1


def tier_for_ordinal(ordinal: int) -> Tier:
    """Return the fixed tier for a 0-based ordinal: 0-1 easy, 2-3 medium, 4-5 hard."""

    if ordinal < 0 or ordinal > LAST_ORDINAL:
        raise ValueError(f"ordinal out of range: {ordinal}")
    if ordinal < 2:
        return "easy"
    if ordinal < 4:
        return "medium"
    return "hard"


def time_limit_for(tier: Tier) -> int:
    limits = {
        "easy": settings.TIME_LIMIT_EASY,
        "medium": settings.TIME_LIMIT_MEDIUM,
        "hard": settings.TIME_LIMIT_HARD,
    }
    return limits[tier]


def time_limit_for_ordinal(ordinal: int) -> int:
    return time_limit_for(tier_for_ordinal(ordinal))


__all__ = [
    "Tier",
    "TOTAL_QUESTIONS",
    "LAST_ORDINAL",
    "tier_for_ordinal",
    "time_limit_for",
    "time_limit_for_ordinal",
]
