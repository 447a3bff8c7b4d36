"""Shared type definitions for the generative agents."""
from typing import Literal, Optional

from pydantic import BaseModel, Field

from agents.tiers import Tier

Source = Literal["generated", "fallback"]
Recommendation = Literal["Hire", "Consider", "Pass"]


class JobMetadata(BaseModel):
    job_position: str = "Software Developer"
    experience_level: str = "Mid-level"
    tech_stack: list[str] = Field(default_factory=lambda: ["JavaScript", "React"])


class Breakdown(BaseModel):
    technical_accuracy: int = Field(default=0, ge=0, le=100)
    clarity: int = Field(default=0, ge=0, le=100)
    completeness: int = Field(default=0, ge=0, le=100)
    depth: int = Field(default=0, ge=0, le=100)

    def mean(self) -> float:
        return (self.technical_accuracy + self.clarity + self.completeness + self.depth) / 4


class QuestionOut(BaseModel):
    text: str
    tier: Tier
    ordinal: int = Field(ge=0, le=5)
    time_limit_seconds: int
    source: Source = "generated"

    @property
    def question_number(self) -> int:
        return self.ordinal + 1


class ScoreResult(BaseModel):
    score: int = Field(ge=0, le=100)
    reasoning: str
    breakdown: Breakdown
    source: Source = "generated"


class AggregateResult(BaseModel):
    final_score: int = Field(ge=0, le=100)
    summary: str
    recommendation: Recommendation
    source: Source = "generated"


class ScoringReply(BaseModel):
    """Shape requested from the scoring backend."""

    score: Optional[float] = None
    reasoning: Optional[str] = None
    breakdown: dict[str, float] = Field(default_factory=dict)
