"""Batch matcher: fills the uncached gap of a match request.

Flow per request:
    uncached jobs
      ├─ claim each cache key (single-flight; duplicates await the owner)
      ├─ owned keys split into fixed-size batches, processed sequentially
      │     ├─ per-job AI calls within a batch run concurrently
      │     ├─ failed jobs retried with exponential backoff + jitter
      │     ├─ exhausted jobs get one individual AI call
      │     └─ still failing → heuristic score for that job only
      ├─ fixed delay between batches (provider rate limits)
      └─ every result written to the score cache before returning
"""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from typing import Any

from job_matcher.config import settings
from job_matcher.errors import AIScoringError, TransientError
from job_matcher.models.requests import CandidateProfile, JobPosting, MatchPreferences
from job_matcher.models.responses import MatchResult
from job_matcher.services.pipeline.ai_scorer import AIScorer
from job_matcher.services.pipeline.heuristic_scorer import HeuristicScorer
from job_matcher.services.retry import RetryPolicy
from job_matcher.services.score_cache import ScoreCache
from job_matcher.services.single_flight import SingleFlight

logger = logging.getLogger(__name__)


def default_retry_policy() -> RetryPolicy:
    return RetryPolicy(
        max_attempts=settings.max_retries + 1,
        base_delay=settings.retry_base_delay_seconds,
        max_delay=settings.retry_max_delay_seconds,
        jitter=lambda: random.uniform(0.0, settings.retry_jitter_seconds),
    )


class BatchMatcher:
    def __init__(
        self,
        ai_scorer: AIScorer,
        heuristic_scorer: HeuristicScorer,
        cache: ScoreCache,
        single_flight: SingleFlight | None = None,
        retry_policy: RetryPolicy | None = None,
        batch_size: int | None = None,
        inter_batch_delay: float | None = None,
        heuristic_ttl: float | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.ai_scorer = ai_scorer
        self.heuristic_scorer = heuristic_scorer
        self.cache = cache
        self.single_flight = single_flight if single_flight is not None else SingleFlight()
        self.retry_policy = retry_policy or default_retry_policy()
        self.batch_size = max(1, batch_size or settings.batch_size)
        self.inter_batch_delay = (
            settings.inter_batch_delay_seconds if inter_batch_delay is None else inter_batch_delay
        )
        self.heuristic_ttl = (
            settings.heuristic_cache_ttl_seconds if heuristic_ttl is None else heuristic_ttl
        )
        self._sleep = sleep

        # Counters surfaced through EngineMetrics
        self.batched_requests = 0
        self.retry_count = 0
        self.fallback_count = 0

    async def match_uncached(
        self,
        candidate: CandidateProfile,
        jobs: list[JobPosting],
        preferences: MatchPreferences | None = None,
    ) -> list[MatchResult]:
        """Score jobs missing from the cache. Never raises for AI failures."""
        results: list[MatchResult] = []
        owned: list[tuple[JobPosting, str]] = []
        waiting: list[tuple[JobPosting, asyncio.Future]] = []
        seen: set[str] = set()

        for job in jobs:
            key = ScoreCache.make_key(candidate.candidate_id, job.id, preferences)
            if key in seen:
                continue
            seen.add(key)
            future, owner = self.single_flight.claim(key)
            if not owner:
                waiting.append((job, future))
                continue
            # another request may have finished this key since our cache lookup
            cached = self.cache.peek(key)
            if cached is not None:
                self.single_flight.resolve(key, cached)
                results.append(cached)
                continue
            owned.append((job, key))

        try:
            results.extend(await self._score_owned(candidate, owned, preferences))
        finally:
            # no-op for resolved keys; releases waiters if we were cancelled
            for _, key in owned:
                self.single_flight.abandon(key)

        for job, future in waiting:
            results.append(await self._await_shared(candidate, job, future, preferences))
        return results

    async def _await_shared(
        self,
        candidate: CandidateProfile,
        job: JobPosting,
        future: asyncio.Future,
        preferences: MatchPreferences | None,
    ) -> MatchResult:
        try:
            return await asyncio.shield(future)
        except asyncio.CancelledError:
            if not future.cancelled():
                raise
        logger.info("In-flight match for job %s was abandoned, recomputing", job.id)
        recomputed = await self.match_uncached(candidate, [job], preferences)
        return recomputed[0]

    async def _score_owned(
        self,
        candidate: CandidateProfile,
        owned: list[tuple[JobPosting, str]],
        preferences: MatchPreferences | None,
    ) -> list[MatchResult]:
        if not owned:
            return []

        if not self.ai_scorer.available:
            logger.info("AI scorer not available, using heuristic matching for %d jobs", len(owned))
            return [self._heuristic(candidate, job, key, preferences) for job, key in owned]

        self.batched_requests += len(owned)
        results: list[MatchResult] = []
        for start in range(0, len(owned), self.batch_size):
            if start:
                await self._sleep(self.inter_batch_delay)
            batch = owned[start:start + self.batch_size]
            results.extend(await self._process_batch(candidate, batch, preferences))
        return results

    async def _process_batch(
        self,
        candidate: CandidateProfile,
        batch: list[tuple[JobPosting, str]],
        preferences: MatchPreferences | None,
    ) -> list[MatchResult]:
        done: dict[str, MatchResult] = {}
        pending = list(batch)

        async def attempt() -> None:
            outcomes = await asyncio.gather(
                *(self.ai_scorer.score(candidate, job, preferences) for job, _ in pending),
                return_exceptions=True,
            )
            failed: list[tuple[JobPosting, str]] = []
            errors: list[Exception] = []
            for (job, key), outcome in zip(pending, outcomes):
                if isinstance(outcome, MatchResult):
                    self._store(key, outcome)
                    done[key] = outcome
                elif isinstance(outcome, Exception):
                    failed.append((job, key))
                    errors.append(outcome)
                else:
                    raise outcome
            pending[:] = failed
            if errors:
                # keep retrying while anything failed transiently
                raise next((e for e in errors if isinstance(e, TransientError)), errors[0])

        outcome = await self.retry_policy.run(
            attempt,
            retryable=(TransientError,),
            name=f"Batch of {len(batch)} jobs",
        )
        self.retry_count += outcome.attempts - 1

        if outcome.exhausted:
            logger.warning(
                "Batch scoring failed for %d/%d jobs (%s), falling back to individual matching",
                len(pending),
                len(batch),
                outcome.error,
            )
            for job, key in pending:
                done[key] = await self._score_individually(candidate, job, key, preferences)

        return [done[key] for _, key in batch]

    async def _score_individually(
        self,
        candidate: CandidateProfile,
        job: JobPosting,
        key: str,
        preferences: MatchPreferences | None,
    ) -> MatchResult:
        try:
            result = await self.ai_scorer.score(candidate, job, preferences)
        except AIScoringError as e:
            logger.warning("Individual AI matching failed for job %s, using heuristic: %s", job.id, e)
            return self._heuristic(candidate, job, key, preferences)
        self._store(key, result)
        return result

    def _heuristic(
        self,
        candidate: CandidateProfile,
        job: JobPosting,
        key: str,
        preferences: MatchPreferences | None,
    ) -> MatchResult:
        self.fallback_count += 1
        result = self.heuristic_scorer.score(candidate, job, preferences)
        self._store(key, result, ttl=self.heuristic_ttl)
        return result

    def _store(self, key: str, result: MatchResult, ttl: float | None = None) -> None:
        self.cache.put(key, result, ttl=ttl)
        self.single_flight.resolve(key, result)
