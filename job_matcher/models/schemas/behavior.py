"""Per-candidate behavioral signals feeding personalization and suggestions."""

from datetime import datetime, timezone

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SearchHistoryEntry(BaseModel):
    query: str = ""
    filters: dict = {}
    timestamp: datetime = Field(default_factory=_utcnow)
    result_count: int = 0


class BehaviorProfile(BaseModel):
    """Mutable behavior record for one candidate.

    Every list is capped by the owning engine; oldest entries are dropped
    first so the profile stays bounded however long a candidate is active.
    """

    applied_jobs: list[str] = []
    viewed_jobs: list[str] = []
    saved_jobs: list[str] = []
    rejected_jobs: list[str] = []
    preferred_companies: list[str] = []
    preferred_job_types: list[str] = []
    search_history: list[SearchHistoryEntry] = []
    skill_interests: list[str] = []
    location_interests: list[str] = []
    average_view_time: float = 0.0
