"""Tests for the engine entry point."""

import json

import pytest
from conftest import FakeClock, FakeProvider, ai_payload, make_job, make_orchestrator

from job_matcher.errors import PreconditionError
from job_matcher.models.requests import CandidateProfile, SearchFilters
from job_matcher.services.repository import InMemoryJobRepository
from job_matcher.services.score_cache import ScoreCache


def _scores_by_title(scores: dict[str, int]):
    def handler(prompt, system):
        if "indices" in (system or "") or "Search query" in prompt:
            return json.dumps({"indices": []})
        for title, score in scores.items():
            if f"Job: {title} at" in prompt:
                return json.dumps(ai_payload(score=score))
        return json.dumps(ai_payload(score=50))

    return handler


class TestFindMatches:
    @pytest.mark.asyncio
    async def test_sorted_and_thresholded(self, candidate):
        jobs = [make_job("a", "Alpha"), make_job("b", "Beta"), make_job("c", "Gamma"), make_job("d", "Delta")]
        provider = FakeProvider(_scores_by_title({"Alpha": 40, "Beta": 90, "Gamma": 20, "Delta": 21}))
        results = await make_orchestrator(provider).find_matches(candidate, jobs)
        assert [r.job.id for r in results] == ["b", "a", "d"]

    @pytest.mark.asyncio
    async def test_repeat_request_served_from_cache(self, candidate, jobs):
        provider = FakeProvider()
        orchestrator = make_orchestrator(provider)

        first = await orchestrator.find_matches(candidate, jobs)
        calls = provider.call_count
        second = await orchestrator.find_matches(candidate, jobs)

        assert provider.call_count == calls
        assert first == second
        assert orchestrator.metrics().cache_hits == len(jobs)

    @pytest.mark.asyncio
    async def test_expired_entries_rescored(self, candidate, jobs):
        clock = FakeClock()
        provider = FakeProvider()
        orchestrator = make_orchestrator(provider, cache=ScoreCache(ttl_seconds=60, clock=clock))

        await orchestrator.find_matches(candidate, jobs)
        calls = provider.call_count
        clock.advance(61)
        await orchestrator.find_matches(candidate, jobs)

        assert provider.call_count == 2 * calls

    @pytest.mark.asyncio
    async def test_missing_skills_and_experience(self, jobs):
        empty = CandidateProfile(candidate_id="c0", skills=[], experience="  ")
        with pytest.raises(PreconditionError):
            await make_orchestrator(FakeProvider()).find_matches(empty, jobs)

    @pytest.mark.asyncio
    async def test_search_rejects_unparsed_candidate_before_ai_call(self, jobs):
        provider = FakeProvider()
        orchestrator = make_orchestrator(provider)
        empty = CandidateProfile(candidate_id="c0", skills=[], experience="")
        with pytest.raises(PreconditionError):
            await orchestrator.search(empty, jobs, SearchFilters(query="python"))
        assert provider.call_count == 0
        assert orchestrator.personalization.get_profile("c0") is None

    @pytest.mark.asyncio
    async def test_returned_results_do_not_alias_cache(self, candidate):
        cache = ScoreCache()
        orchestrator = make_orchestrator(FakeProvider(), cache=cache)
        job = make_job("a")
        results = await orchestrator.find_matches(candidate, [job])
        results[0].skills_match.matched.append("Cobol")

        key = ScoreCache.make_key(candidate.candidate_id, job.id, None)
        assert cache.peek(key).skills_match.matched == ["Python"]
        again = await orchestrator.find_matches(candidate, [job])
        assert again[0].skills_match.matched == ["Python"]

    @pytest.mark.asyncio
    async def test_preferred_company_boost(self, candidate):
        provider = FakeProvider(_scores_by_title({"Acme Role": 60, "Other Role": 60}))
        orchestrator = make_orchestrator(provider)
        orchestrator.set_preferences(candidate.candidate_id, companies=["Acme"])

        jobs = [make_job("x", "Other Role", company="Globex"), make_job("y", "Acme Role", company="Acme")]
        results = await orchestrator.find_matches(candidate, jobs)

        assert results[0].job.id == "y"
        assert results[0].match_score == 75
        assert results[0].personalization_boost == 15
        assert results[1].match_score == 60

    @pytest.mark.asyncio
    async def test_cached_results_are_not_personalized_twice(self, candidate):
        orchestrator = make_orchestrator(FakeProvider(_scores_by_title({"Acme Role": 60})))
        orchestrator.set_preferences(candidate.candidate_id, companies=["Acme"])
        job = make_job("y", "Acme Role")
        await orchestrator.find_matches(candidate, [job])
        again = await orchestrator.find_matches(candidate, [job])
        assert again[0].match_score == 75

    @pytest.mark.asyncio
    async def test_heuristic_only_without_provider(self, candidate, jobs):
        orchestrator = make_orchestrator(None)
        results = await orchestrator.find_matches(candidate, jobs)
        assert results
        assert all(r.scoring_method == "heuristic" for r in results)
        assert all(0 <= r.match_score <= 100 for r in results)


class TestTopMatches:
    @pytest.mark.asyncio
    async def test_prefiltered_and_limited(self, candidate, jobs):
        orchestrator = make_orchestrator(FakeProvider())
        results = await orchestrator.get_top_matches(candidate, jobs, limit=2)
        assert len(results) == 2
        # zero-overlap, non-entry-level job never reaches scoring
        assert "job-2" not in {r.job.id for r in results}

    @pytest.mark.asyncio
    async def test_match_candidate_from_repository(self, candidate, jobs):
        repo = InMemoryJobRepository(jobs=jobs, candidates=[candidate])
        orchestrator = make_orchestrator(FakeProvider(), repository=repo)
        results = await orchestrator.match_candidate(candidate.candidate_id, limit=10)
        assert {r.job.id for r in results} <= {j.id for j in jobs}
        assert results

    @pytest.mark.asyncio
    async def test_match_candidate_without_profile(self):
        orchestrator = make_orchestrator(FakeProvider(), repository=InMemoryJobRepository())
        with pytest.raises(PreconditionError):
            await orchestrator.match_candidate("ghost")


class TestSearch:
    @pytest.mark.asyncio
    async def test_semantic_results_topped_up_without_duplicates(self, candidate):
        jobs = [make_job(f"py-{i}", f"Python Role {i}", requirements=["Python"]) for i in range(8)]

        def handler(prompt, system):
            if "Search query" in prompt:
                return json.dumps({"indices": [2, 2, 5]})
            return json.dumps(ai_payload(score=70))

        orchestrator = make_orchestrator(FakeProvider(handler))
        results = await orchestrator.search(candidate, jobs, SearchFilters(query="python"))

        ids = [r.job.id for r in results]
        assert len(ids) == 5
        assert len(set(ids)) == 5
        assert {"py-2", "py-5"} <= set(ids)

    @pytest.mark.asyncio
    async def test_hard_filters_applied(self, candidate, jobs):
        orchestrator = make_orchestrator(FakeProvider())
        results = await orchestrator.search(candidate, jobs, SearchFilters(min_salary=100_000))
        assert [r.job.id for r in results] == ["job-3"]

    @pytest.mark.asyncio
    async def test_search_recorded_in_history(self, candidate, jobs):
        orchestrator = make_orchestrator(FakeProvider(_scores_by_title({})))
        await orchestrator.search(candidate, jobs, SearchFilters(query="python", location="Remote"))
        profile = orchestrator.personalization.get_profile(candidate.candidate_id)
        assert profile.search_history[-1].query == "python"
        assert profile.location_interests == ["Remote"]

        suggestions = orchestrator.generate_suggestions(candidate.candidate_id, "pyt", candidate)
        assert "python" in {s.text.lower() for s in suggestions}


class TestHousekeeping:
    @pytest.mark.asyncio
    async def test_metrics(self, candidate, jobs):
        orchestrator = make_orchestrator(FakeProvider())
        await orchestrator.find_matches(candidate, jobs)
        await orchestrator.find_matches(candidate, jobs)
        metrics = orchestrator.metrics()
        assert metrics.total_requests == 2
        assert metrics.batched_requests == len(jobs)
        assert metrics.cache_hits == len(jobs)
        assert metrics.cache_misses == len(jobs)
        assert metrics.cache_hit_rate == 50.0
        assert metrics.tokens_saved == len(jobs) * 1000
        assert metrics.jobs_scored == 2 * len(jobs)
        assert metrics.batch_efficiency == 50.0
        assert metrics.personalization_rate == 0.0

    @pytest.mark.asyncio
    async def test_personalization_rate(self, candidate):
        orchestrator = make_orchestrator(FakeProvider())
        orchestrator.set_preferences(candidate.candidate_id, companies=["Acme"])
        jobs = [make_job("a"), make_job("b", company="Globex"), make_job("c"), make_job("d", company="Initech")]
        await orchestrator.find_matches(candidate, jobs)
        assert orchestrator.metrics().personalization_rate == 50.0

    def test_rates_are_zero_before_any_request(self):
        metrics = make_orchestrator(FakeProvider()).metrics()
        assert metrics.cache_hit_rate == 0.0
        assert metrics.batch_efficiency == 0.0
        assert metrics.personalization_rate == 0.0

    @pytest.mark.asyncio
    async def test_clear_cache_forces_rescoring(self, candidate, jobs):
        provider = FakeProvider()
        orchestrator = make_orchestrator(provider)
        await orchestrator.find_matches(candidate, jobs)
        calls = provider.call_count
        orchestrator.clear_cache()
        await orchestrator.find_matches(candidate, jobs)
        assert provider.call_count == 2 * calls
