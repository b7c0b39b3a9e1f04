"""Validated contracts for AI payloads and behavior tracking."""

from job_matcher.models.schemas.ai_match import (
    AIFitAssessment,
    AIMatchPayload,
    AIRankingPayload,
    AISkillsMatch,
)
from job_matcher.models.schemas.behavior import BehaviorProfile, SearchHistoryEntry

__all__ = [
    "AIFitAssessment",
    "AIMatchPayload",
    "AIRankingPayload",
    "AISkillsMatch",
    "BehaviorProfile",
    "SearchHistoryEntry",
]
