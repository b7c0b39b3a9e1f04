"""Search suggestions merged from behavior profiles, CV skills and job titles."""

import logging
import threading
from collections import Counter

from cachetools import TTLCache
from rapidfuzz import fuzz

from job_matcher.config import settings
from job_matcher.models.requests import CandidateProfile, JobPosting
from job_matcher.models.responses import SearchSuggestion
from job_matcher.services.pipeline.personalization import PersonalizationEngine

logger = logging.getLogger(__name__)

FUZZY_THRESHOLD = 80
MIN_FUZZY_LENGTH = 3
RECENT_HISTORY = 10

# How much each source is trusted before fuzzy relevance is applied
SOURCE_WEIGHTS: dict[str, float] = {
    "history": 1.0,
    "skill": 0.9,
    "company": 0.8,
    "role": 0.8,
    "popular": 0.7,
    "location": 0.6,
}
POPULARITY_BONUS = 0.02
POPULARITY_BONUS_CAP = 5


def text_relevance(partial: str, text: str) -> float:
    """0..1 closeness of ``text`` to what the user has typed so far.

    Short inputs only match as substrings; longer ones also match fuzzily
    so typos still produce suggestions.
    """
    partial = partial.strip().lower()
    text = text.strip().lower()
    if not text:
        return 0.0
    if not partial:
        return 1.0
    if partial in text:
        return 1.0 if text.startswith(partial) else 0.9
    if len(partial) < MIN_FUZZY_LENGTH:
        return 0.0
    score = fuzz.partial_ratio(partial, text)
    return score / 100 if score >= FUZZY_THRESHOLD else 0.0


class SuggestionEngine:
    def __init__(
        self,
        personalization: PersonalizationEngine,
        ttl_seconds: float | None = None,
        limit: int | None = None,
        cache: TTLCache | None = None,
    ) -> None:
        self.personalization = personalization
        self.limit = limit or settings.suggestion_limit
        if cache is None:
            cache = TTLCache(
                maxsize=settings.cache_max_entries,
                ttl=settings.suggestion_ttl_seconds if ttl_seconds is None else ttl_seconds,
            )
        self.cache = cache
        # cachetools caches are not thread-safe
        self._lock = threading.Lock()

    def popular_queries(self) -> Counter:
        counts: Counter = Counter()
        for profile in self.personalization.store.profiles():
            for entry in profile.search_history:
                if entry.query:
                    counts[entry.query.lower()] += 1
        return counts

    def generate(
        self,
        candidate_id: str,
        partial_query: str,
        candidate: CandidateProfile | None = None,
        jobs: list[JobPosting] | None = None,
    ) -> list[SearchSuggestion]:
        cache_key = f"{candidate_id}\x00{partial_query.strip().lower()}"
        with self._lock:
            cached = self.cache.get(cache_key)
        if cached is not None:
            logger.debug("Suggestion cache hit for candidate %s", candidate_id)
            return list(cached)

        best: dict[str, SearchSuggestion] = {}

        def offer(kind: str, source: str, text: str, count: int = 1) -> None:
            relevance = text_relevance(partial_query, text)
            if relevance <= 0:
                return
            relevance = SOURCE_WEIGHTS[source] * relevance
            relevance += POPULARITY_BONUS * min(count - 1, POPULARITY_BONUS_CAP)
            suggestion = SearchSuggestion(
                type=kind, text=text.strip(), count=count, relevance=round(relevance, 3)
            )
            key = suggestion.text.lower()
            current = best.get(key)
            if current is None or suggestion.relevance > current.relevance:
                best[key] = suggestion

        for query, count in self.popular_queries().items():
            offer("query", "popular", query, count)

        if candidate is not None:
            for skill in dict.fromkeys(s.strip() for s in candidate.skills if s.strip()):
                offer("skill", "skill", skill)

        profile = self.personalization.get_profile(candidate_id)
        if profile is not None:
            for entry in profile.search_history[-RECENT_HISTORY:]:
                if entry.query:
                    offer("query", "history", entry.query)
            for company in profile.preferred_companies:
                offer("company", "company", company)
            for location in profile.location_interests:
                offer("location", "location", location)

        if jobs:
            titles = Counter(job.title.strip() for job in jobs if job.is_active and job.title.strip())
            for title, count in titles.items():
                offer("role", "role", title, count)

        suggestions = sorted(best.values(), key=lambda s: s.relevance, reverse=True)[: self.limit]
        with self._lock:
            self.cache[cache_key] = suggestions
        return list(suggestions)

    def clear(self) -> None:
        with self._lock:
            self.cache.clear()
