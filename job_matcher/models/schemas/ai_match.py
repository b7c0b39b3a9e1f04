"""Strict contract for the AI provider's compatibility payload.

Upstream output is never trusted: scores are coerced to numbers and clamped
into 0-100, list fields keep only strings, and explanations fall back to
neutral defaults. Structurally wrong payloads fail validation so the caller
can fall back instead of emitting half-parsed results.
"""

import math

from pydantic import BaseModel, ConfigDict, Field, field_validator

from job_matcher.models.responses import clamp_score


def _coerce_score(value) -> int:
    if isinstance(value, bool):
        raise ValueError("score must be numeric, got bool")
    if isinstance(value, str):
        try:
            value = float(value.strip().rstrip("%"))
        except ValueError:
            raise ValueError(f"score is not numeric: {value!r}") from None
    if not isinstance(value, (int, float)):
        raise ValueError(f"score must be numeric, got {type(value).__name__}")
    if not math.isfinite(value):
        raise ValueError("score must be finite")
    return clamp_score(value)


def _string_list(value) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError("expected a list of strings")
    return [v.strip() for v in value if isinstance(v, str) and v.strip()]


class AISkillsMatch(BaseModel):
    model_config = ConfigDict(extra="ignore")

    matched: list[str] = []
    missing: list[str] = []
    score: int

    @field_validator("score", mode="before")
    @classmethod
    def coerce_score(cls, v):
        return _coerce_score(v)

    @field_validator("matched", "missing", mode="before")
    @classmethod
    def string_lists(cls, v):
        return _string_list(v)


class AIFitAssessment(BaseModel):
    model_config = ConfigDict(extra="ignore")

    suitable: bool = False
    explanation: str = ""
    score: int

    @field_validator("score", mode="before")
    @classmethod
    def coerce_score(cls, v):
        return _coerce_score(v)

    @field_validator("suitable", mode="before")
    @classmethod
    def coerce_suitable(cls, v):
        if isinstance(v, str):
            return v.strip().lower() in ("true", "yes", "1")
        return bool(v)

    @field_validator("explanation", mode="before")
    @classmethod
    def strip_explanation(cls, v):
        return v.strip() if isinstance(v, str) else ""


class AIMatchPayload(BaseModel):
    """Validated form of the provider's ``{"matchScore": ..., ...}`` object."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    match_score: int = Field(alias="matchScore")
    explanation: str = ""
    skills_match: AISkillsMatch = Field(alias="skillsMatch")
    experience_match: AIFitAssessment = Field(alias="experienceMatch")
    location_match: AIFitAssessment = Field(alias="locationMatch")
    salary_match: AIFitAssessment = Field(alias="salaryMatch")

    @field_validator("match_score", mode="before")
    @classmethod
    def coerce_score(cls, v):
        return _coerce_score(v)

    @field_validator("explanation", mode="before")
    @classmethod
    def strip_explanation(cls, v):
        return v.strip() if isinstance(v, str) else ""


class AIRankingPayload(BaseModel):
    """Provider answer for semantic search: indices into the offered job list."""

    model_config = ConfigDict(extra="ignore")

    indices: list[int] = []

    @field_validator("indices", mode="before")
    @classmethod
    def coerce_indices(cls, v):
        if not isinstance(v, list):
            raise ValueError("indices must be a list")
        out = []
        for item in v:
            if isinstance(item, bool):
                continue
            if isinstance(item, int):
                out.append(item)
            elif isinstance(item, float) and item.is_integer():
                out.append(int(item))
            elif isinstance(item, str) and item.strip().lstrip("-").isdigit():
                out.append(int(item.strip()))
        return out
