"""Behavior tracking and bounded personalization of match scores."""

import logging
import math
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import datetime, timezone

from job_matcher.config import settings
from job_matcher.models.requests import JobPosting
from job_matcher.models.responses import MatchResult, clamp_score
from job_matcher.models.schemas.behavior import BehaviorProfile, SearchHistoryEntry

logger = logging.getLogger(__name__)

ACTIONS: tuple[str, ...] = ("apply", "view", "save", "reject")

COMPANY_BOOST = 15
JOB_TYPE_BOOST = 10
REJECTED_PENALTY = -5
APPLIED_BOOST = 5

_JOB_LIST_FIELDS = {
    "apply": "applied_jobs",
    "view": "viewed_jobs",
    "save": "saved_jobs",
    "reject": "rejected_jobs",
}


class BehaviorStore(ABC):
    """Storage for behavior profiles. Updates are applied atomically per call."""

    @abstractmethod
    def get(self, candidate_id: str) -> BehaviorProfile | None:
        """Return a snapshot of the profile, or None if never tracked."""

    @abstractmethod
    def update(
        self,
        candidate_id: str,
        mutate: Callable[[BehaviorProfile], None],
    ) -> BehaviorProfile:
        """Apply ``mutate`` to the profile (created if missing) and return it."""

    @abstractmethod
    def profiles(self) -> list[BehaviorProfile]:
        """Snapshot of every tracked profile."""

    @abstractmethod
    def delete(self, candidate_id: str) -> None: ...

    @abstractmethod
    def clear(self) -> None: ...


class InMemoryBehaviorStore(BehaviorStore):
    def __init__(self) -> None:
        self._profiles: dict[str, BehaviorProfile] = {}
        self._lock = threading.Lock()

    def get(self, candidate_id: str) -> BehaviorProfile | None:
        with self._lock:
            profile = self._profiles.get(candidate_id)
            return profile.model_copy(deep=True) if profile is not None else None

    def update(
        self,
        candidate_id: str,
        mutate: Callable[[BehaviorProfile], None],
    ) -> BehaviorProfile:
        with self._lock:
            profile = self._profiles.setdefault(candidate_id, BehaviorProfile())
            mutate(profile)
            return profile.model_copy(deep=True)

    def profiles(self) -> list[BehaviorProfile]:
        with self._lock:
            return [p.model_copy(deep=True) for p in self._profiles.values()]

    def delete(self, candidate_id: str) -> None:
        with self._lock:
            self._profiles.pop(candidate_id, None)

    def clear(self) -> None:
        with self._lock:
            self._profiles.clear()


def _append_capped(items: list, value, cap: int) -> None:
    """Append unless already present; drop the oldest entries beyond ``cap``."""
    if value in items:
        return
    items.append(value)
    if len(items) > cap:
        del items[: len(items) - cap]


def _parse_view_time(value) -> float | None:
    """Seconds spent on a job page; raises ValueError for anything non-numeric."""
    if value is None or value == "":
        return None
    try:
        seconds = float(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"view_time must be a number of seconds, got {value!r}") from e
    if not math.isfinite(seconds) or seconds < 0:
        raise ValueError(f"view_time must be a non-negative number of seconds, got {value!r}")
    return seconds


def _append_unique_ci(items: list[str], value: str, cap: int) -> None:
    value = value.strip()
    if not value:
        return
    lowered = value.lower()
    for i, existing in enumerate(items):
        if existing.lower() == lowered:
            # refresh recency
            items.append(items.pop(i))
            return
    _append_capped(items, value, cap)


class PersonalizationEngine:
    def __init__(
        self,
        store: BehaviorStore | None = None,
        list_cap: int | None = None,
        history_cap: int | None = None,
        interest_cap: int | None = None,
        max_boost: int | None = None,
    ) -> None:
        self.store = store if store is not None else InMemoryBehaviorStore()
        self.list_cap = list_cap or settings.behavior_list_cap
        self.history_cap = history_cap or settings.search_history_cap
        self.interest_cap = interest_cap or settings.interest_cap
        self.max_boost = settings.max_personalization_boost if max_boost is None else max_boost
        self.personalized_count = 0

    # ------------------------------------------------------------------
    # Tracking
    # ------------------------------------------------------------------

    def track(
        self,
        candidate_id: str,
        action: str,
        job_id: str,
        metadata: dict | None = None,
    ) -> BehaviorProfile:
        """Record an ``apply``/``view``/``save``/``reject`` action."""
        if action not in ACTIONS:
            raise ValueError(f"Unknown behavior action: {action!r}")
        metadata = metadata or {}
        view_time = _parse_view_time(metadata.get("view_time")) if action == "view" else None

        def mutate(profile: BehaviorProfile) -> None:
            _append_capped(getattr(profile, _JOB_LIST_FIELDS[action]), job_id, self.list_cap)

            if view_time:
                if profile.average_view_time:
                    profile.average_view_time = (profile.average_view_time + view_time) / 2
                else:
                    profile.average_view_time = view_time

            # positive signals teach preferences
            if action in ("apply", "save"):
                if metadata.get("company"):
                    _append_unique_ci(profile.preferred_companies, metadata["company"], self.interest_cap)
                if metadata.get("job_type"):
                    _append_unique_ci(profile.preferred_job_types, metadata["job_type"], self.interest_cap)

        logger.debug("Tracked %s of job %s for candidate %s", action, job_id, candidate_id)
        return self.store.update(candidate_id, mutate)

    def track_search(
        self,
        candidate_id: str,
        query: str | None,
        filters: dict | None = None,
        result_count: int = 0,
    ) -> BehaviorProfile:
        filters = filters or {}

        def mutate(profile: BehaviorProfile) -> None:
            profile.search_history.append(
                SearchHistoryEntry(
                    query=(query or "").strip(),
                    filters=filters,
                    timestamp=datetime.now(timezone.utc),
                    result_count=result_count,
                )
            )
            if len(profile.search_history) > self.history_cap:
                del profile.search_history[: len(profile.search_history) - self.history_cap]
            for skill in filters.get("skills") or []:
                _append_unique_ci(profile.skill_interests, skill, self.interest_cap)
            if filters.get("location"):
                _append_unique_ci(profile.location_interests, filters["location"], self.interest_cap)

        return self.store.update(candidate_id, mutate)

    def set_preferences(
        self,
        candidate_id: str,
        companies: list[str] | None = None,
        job_types: list[str] | None = None,
    ) -> BehaviorProfile:
        def mutate(profile: BehaviorProfile) -> None:
            for company in companies or []:
                _append_unique_ci(profile.preferred_companies, company, self.interest_cap)
            for job_type in job_types or []:
                _append_unique_ci(profile.preferred_job_types, job_type, self.interest_cap)

        return self.store.update(candidate_id, mutate)

    def get_profile(self, candidate_id: str) -> BehaviorProfile | None:
        return self.store.get(candidate_id)

    def clear(self, candidate_id: str | None = None) -> None:
        if candidate_id:
            self.store.delete(candidate_id)
        else:
            self.store.clear()

    # ------------------------------------------------------------------
    # Scoring
    # ------------------------------------------------------------------

    def boost(self, candidate_id: str, job: JobPosting) -> int:
        """Score adjustment in [-max_boost, max_boost] from behavior signals."""
        profile = self.store.get(candidate_id)
        if profile is None:
            return 0

        boost = 0
        company = job.company.strip().lower()
        if company and any(c.lower() == company for c in profile.preferred_companies):
            boost += COMPANY_BOOST

        job_type = job.type.strip().lower()
        if job_type and any(
            t.lower() in job_type or job_type in t.lower()
            for t in profile.preferred_job_types
            if t.strip()
        ):
            boost += JOB_TYPE_BOOST

        # coarse: any rejection counts, no similarity analysis
        if profile.rejected_jobs:
            boost += REJECTED_PENALTY
        if profile.applied_jobs:
            boost += APPLIED_BOOST

        return max(-self.max_boost, min(self.max_boost, boost))

    def apply_personalization(self, result: MatchResult, candidate_id: str) -> MatchResult:
        """Return a copy of ``result`` with the clamped boost applied."""
        boost = self.boost(candidate_id, result.job)
        if boost == 0:
            return result.model_copy(deep=True)

        self.personalized_count += 1
        if boost > 0:
            reason = f"Boosted by {boost} based on your activity"
        else:
            reason = f"Lowered by {-boost} based on your activity"
        return result.model_copy(
            deep=True,
            update={
                "match_score": clamp_score(result.match_score + boost),
                "personalization_boost": boost,
                "recommendation_reason": reason,
            },
        )
