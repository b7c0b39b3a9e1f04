"""Engine entry point: wires cache, scorers, personalization and search together.

Flow:
    candidate + jobs (+ preferences)
      ├─ precondition check (skills or experience must be parsed)
      ├─ ScoreCache.get per job           → cached results
      ├─ BatchMatcher.match_uncached      → AI / heuristic results, cached
      ├─ PersonalizationEngine            → bounded boost per result
      └─ sort by score, drop weak matches → list[MatchResult]

    search(filters)
      ├─ precondition check, before any AI call
      ├─ hard filters (location, type, salary, skills)
      ├─ query → semantic ranking, keyword fallback / top-up
      ├─ prefilter + cap
      └─ general matching path above
"""

import logging

from job_matcher.config import settings
from job_matcher.errors import PreconditionError
from job_matcher.models.requests import (
    CandidateProfile,
    JobPosting,
    MatchPreferences,
    SearchFilters,
)
from job_matcher.models.responses import EngineMetrics, MatchResult, SearchSuggestion
from job_matcher.services.gemini_client import AIProvider, create_provider
from job_matcher.services.pipeline import prefilter as ranker
from job_matcher.services.pipeline import search as search_path
from job_matcher.services.pipeline.ai_scorer import AIScorer
from job_matcher.services.pipeline.batch_matcher import BatchMatcher
from job_matcher.services.pipeline.heuristic_scorer import HeuristicScorer
from job_matcher.services.pipeline.personalization import PersonalizationEngine
from job_matcher.services.pipeline.suggestions import SuggestionEngine
from job_matcher.services.repository import JobRepository
from job_matcher.services.score_cache import ScoreCache

logger = logging.getLogger(__name__)


def _require_parsed(candidate: CandidateProfile) -> None:
    if not candidate.unique_skills() and not candidate.experience.strip():
        raise PreconditionError(
            f"Candidate {candidate.candidate_id} has no parsed skills or experience"
        )


class SearchOrchestrator:
    def __init__(
        self,
        batch_matcher: BatchMatcher,
        personalization: PersonalizationEngine | None = None,
        suggestions: SuggestionEngine | None = None,
        repository: JobRepository | None = None,
        min_match_score: int | None = None,
    ) -> None:
        self.batch_matcher = batch_matcher
        self.cache: ScoreCache = batch_matcher.cache
        self.ai_scorer: AIScorer = batch_matcher.ai_scorer
        self.personalization = personalization or PersonalizationEngine()
        self.suggestions = suggestions or SuggestionEngine(self.personalization)
        self.repository = repository
        self.min_match_score = (
            settings.min_match_score if min_match_score is None else min_match_score
        )
        self.total_requests = 0
        self.jobs_scored = 0

    # ------------------------------------------------------------------
    # Matching
    # ------------------------------------------------------------------

    async def find_matches(
        self,
        candidate: CandidateProfile,
        jobs: list[JobPosting],
        preferences: MatchPreferences | None = None,
    ) -> list[MatchResult]:
        """Score ``jobs`` for ``candidate``, best first.

        Results at or below ``min_match_score`` are dropped. AI failures are
        absorbed by the batch matcher; only PreconditionError escapes.
        """
        _require_parsed(candidate)
        self.total_requests += 1
        self.jobs_scored += len(jobs)

        results: list[MatchResult] = []
        uncached: list[JobPosting] = []
        for job in jobs:
            cached = self.cache.get(ScoreCache.make_key(candidate.candidate_id, job.id, preferences))
            if cached is not None:
                results.append(cached)
            else:
                uncached.append(job)

        logger.info(
            "Matching %d jobs for candidate %s: %d cached, %d to score",
            len(jobs),
            candidate.candidate_id,
            len(results),
            len(uncached),
        )
        if uncached:
            results.extend(
                await self.batch_matcher.match_uncached(candidate, uncached, preferences)
            )

        personalized = [
            self.personalization.apply_personalization(result, candidate.candidate_id)
            for result in results
        ]
        personalized.sort(key=lambda r: r.match_score, reverse=True)
        return [r for r in personalized if r.match_score > self.min_match_score]

    async def get_top_matches(
        self,
        candidate: CandidateProfile,
        jobs: list[JobPosting],
        limit: int = 20,
        preferences: MatchPreferences | None = None,
    ) -> list[MatchResult]:
        shortlist = ranker.rank_for_matching(jobs, candidate, preferences)
        matches = await self.find_matches(candidate, shortlist, preferences)
        return matches[:limit]

    async def match_candidate(
        self,
        candidate_id: str,
        limit: int = 20,
        preferences: MatchPreferences | None = None,
    ) -> list[MatchResult]:
        """Load the candidate and the job catalog from the repository and match."""
        if self.repository is None:
            raise PreconditionError("No job repository configured")
        candidate = await self.repository.get_candidate_profile(candidate_id)
        if candidate is None:
            raise PreconditionError(f"No parsed profile for candidate {candidate_id}")
        jobs = await self.repository.get_jobs()
        return await self.get_top_matches(candidate, jobs, limit=limit, preferences=preferences)

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    async def search(
        self,
        candidate: CandidateProfile,
        jobs: list[JobPosting],
        filters: SearchFilters | None = None,
        preferences: MatchPreferences | None = None,
    ) -> list[MatchResult]:
        _require_parsed(candidate)
        filters = filters or SearchFilters()
        filtered = search_path.apply_filters(jobs, filters)

        query = (filters.query or "").strip()
        if query:
            filtered = await search_path.semantic_search(self.ai_scorer, query, candidate, filtered)

        shortlist = ranker.rank_for_search(filtered, candidate, preferences)
        results = await self.find_matches(candidate, shortlist, preferences)

        self.personalization.track_search(
            candidate.candidate_id,
            query,
            filters.as_log_dict(),
            result_count=len(results),
        )
        return results

    def generate_suggestions(
        self,
        candidate_id: str,
        partial_query: str,
        candidate: CandidateProfile | None = None,
        jobs: list[JobPosting] | None = None,
    ) -> list[SearchSuggestion]:
        return self.suggestions.generate(candidate_id, partial_query, candidate, jobs)

    # ------------------------------------------------------------------
    # Behavior passthroughs
    # ------------------------------------------------------------------

    def track(self, candidate_id: str, action: str, job_id: str, metadata: dict | None = None):
        return self.personalization.track(candidate_id, action, job_id, metadata)

    def set_preferences(
        self,
        candidate_id: str,
        companies: list[str] | None = None,
        job_types: list[str] | None = None,
    ):
        return self.personalization.set_preferences(candidate_id, companies, job_types)

    # ------------------------------------------------------------------
    # Housekeeping
    # ------------------------------------------------------------------

    def metrics(self) -> EngineMetrics:
        return EngineMetrics(
            total_requests=self.total_requests,
            jobs_scored=self.jobs_scored,
            cache_hits=self.cache.hits,
            cache_misses=self.cache.misses,
            tokens_saved=self.cache.tokens_saved,
            batched_requests=self.batch_matcher.batched_requests,
            retry_count=self.batch_matcher.retry_count,
            fallback_count=self.batch_matcher.fallback_count,
            personalized_recommendations=self.personalization.personalized_count,
        )

    def clear_cache(self) -> None:
        self.cache.clear()
        self.suggestions.clear()
        logger.info("Match and suggestion caches cleared")


def build_orchestrator(
    provider: AIProvider | None = None,
    repository: JobRepository | None = None,
) -> SearchOrchestrator:
    """Default wiring from settings. Uses Gemini when an API key is configured."""
    if provider is None:
        provider = create_provider()
    batch_matcher = BatchMatcher(
        ai_scorer=AIScorer(provider),
        heuristic_scorer=HeuristicScorer(),
        cache=ScoreCache(),
    )
    return SearchOrchestrator(batch_matcher, repository=repository)
