import math
from typing import Literal

from pydantic import BaseModel, ConfigDict, field_validator

from job_matcher.models.requests import JobPosting


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (70.5 -> 71, -2.5 -> -2)."""
    return int(math.floor(value + 0.5))


def clamp_score(value: float | int | None, low: int = 0, high: int = 100) -> int:
    """Round and clamp a score into [low, high]. None counts as low."""
    if value is None:
        return low
    return max(low, min(high, round_half_up(value)))


class SkillsMatch(BaseModel):
    model_config = ConfigDict(frozen=True)

    matched: list[str] = []
    missing: list[str] = []
    score: int = 0

    @field_validator("score", mode="before")
    @classmethod
    def clamp(cls, v):
        return clamp_score(v)


class FitAssessment(BaseModel):
    model_config = ConfigDict(frozen=True)

    suitable: bool = False
    explanation: str = ""
    score: int = 0

    @field_validator("score", mode="before")
    @classmethod
    def clamp(cls, v):
        return clamp_score(v)


class MatchResult(BaseModel):
    # Results are shared with the score cache; derive new ones with model_copy
    model_config = ConfigDict(frozen=True)

    job: JobPosting
    match_score: int = 0
    explanation: str = ""
    skills_match: SkillsMatch = SkillsMatch()
    experience_match: FitAssessment = FitAssessment()
    location_match: FitAssessment = FitAssessment()
    salary_match: FitAssessment = FitAssessment()
    # Scoring transparency fields
    scoring_method: Literal["ai", "heuristic"] = "heuristic"
    personalization_boost: int = 0
    recommendation_reason: str = ""

    @field_validator("match_score", mode="before")
    @classmethod
    def clamp(cls, v):
        return clamp_score(v)


class SearchSuggestion(BaseModel):
    type: Literal["query", "skill", "company", "location", "role"]
    text: str
    count: int = 0
    relevance: float = 0.0


def _percent(part: int, whole: int) -> float:
    return round(part / whole * 100, 2) if whole else 0.0


class EngineMetrics(BaseModel):
    total_requests: int = 0
    jobs_scored: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    tokens_saved: int = 0
    batched_requests: int = 0
    retry_count: int = 0
    fallback_count: int = 0
    personalized_recommendations: int = 0

    @property
    def cache_hit_rate(self) -> float:
        return _percent(self.cache_hits, self.cache_hits + self.cache_misses)

    @property
    def batch_efficiency(self) -> float:
        """Share of scored jobs that went to the AI provider in batches."""
        return _percent(self.batched_requests, self.jobs_scored)

    @property
    def personalization_rate(self) -> float:
        """Share of scored jobs whose score was adjusted by personalization."""
        return _percent(self.personalized_recommendations, self.jobs_scored)
