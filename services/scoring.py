"""Score arithmetic shared by the scorer, the aggregator and the engine."""
from __future__ import annotations

import math
from typing import Iterable, List

from agents.types import Recommendation

HIRE_THRESHOLD = 80
PASS_THRESHOLD = 60


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up, matching the stored scores."""
    return int(math.floor(value + 0.5))


def clamp_score(value: float) -> int:
    """Clamp a raw score into [0, 100] as an int."""

    if value != value:  # NaN
        return 0
    return max(0, min(100, round_half_up(value)))


def mean_score(scores: Iterable[float]) -> float:
    values: List[float] = [float(score) for score in scores]
    if not values:
        return 0.0
    return sum(values) / len(values)


def final_score(scores: Iterable[float]) -> int:
    """Half-up rounded mean of the per-question scores."""

    return clamp_score(mean_score(scores))


def recommendation_for(score: int) -> Recommendation:
    if score >= HIRE_THRESHOLD:
        return "Hire"
    if score < PASS_THRESHOLD:
        return "Pass"
    return "Consider"


__all__ = [
    "round_half_up",
    "clamp_score",
    "mean_score",
    "final_score",
    "recommendation_for",
    "HIRE_THRESHOLD",
    "PASS_THRESHOLD",
]
