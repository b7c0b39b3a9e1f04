"""Shared test configuration, pytest markers and fakes."""

import json

import pytest

from job_matcher.models.requests import CandidateProfile, JobPosting
from job_matcher.services.pipeline.ai_scorer import AIScorer
from job_matcher.services.pipeline.batch_matcher import BatchMatcher
from job_matcher.services.pipeline.heuristic_scorer import HeuristicScorer
from job_matcher.services.pipeline.orchestrator import SearchOrchestrator
from job_matcher.services.retry import RetryPolicy
from job_matcher.services.score_cache import ScoreCache


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "concurrency: exercises overlapping async requests"
    )


def ai_payload(score=82, matched=None, missing=None) -> dict:
    return {
        "matchScore": score,
        "explanation": "Strong backend profile",
        "skillsMatch": {"matched": matched or ["Python"], "missing": missing or [], "score": 80},
        "experienceMatch": {"suitable": True, "explanation": "5 years", "score": 85},
        "locationMatch": {"suitable": True, "explanation": "Remote", "score": 90},
        "salaryMatch": {"suitable": True, "explanation": "In range", "score": 70},
    }


class FakeProvider:
    """Scripted AI provider.

    ``handler(prompt, system)`` returns the response text or raises. The
    default answers every match prompt with a valid payload.
    """

    def __init__(self, handler=None):
        self.handler = handler or (lambda prompt, system: json.dumps(ai_payload()))
        self.prompts: list[str] = []

    async def generate(self, prompt, *, system=None):
        self.prompts.append(prompt)
        return self.handler(prompt, system)

    @property
    def call_count(self) -> int:
        return len(self.prompts)


async def no_sleep(_delay):
    return None


def make_retry_policy(max_attempts=4) -> RetryPolicy:
    return RetryPolicy(max_attempts=max_attempts, base_delay=0, max_delay=0, jitter=lambda: 0.0, sleep=no_sleep)


def make_batch_matcher(provider=None, cache=None, timeout_seconds=5, **kwargs) -> BatchMatcher:
    kwargs.setdefault("retry_policy", make_retry_policy())
    kwargs.setdefault("sleep", no_sleep)
    return BatchMatcher(
        ai_scorer=AIScorer(provider, timeout_seconds=timeout_seconds),
        heuristic_scorer=HeuristicScorer(),
        cache=cache if cache is not None else ScoreCache(),
        **kwargs,
    )


def make_orchestrator(provider=None, cache=None, **kwargs) -> SearchOrchestrator:
    return SearchOrchestrator(make_batch_matcher(provider, cache), **kwargs)


def make_job(job_id, title="Backend Developer", **kwargs) -> JobPosting:
    defaults = {
        "company": "Acme",
        "location": "Remote",
        "type": "Full-time",
        "requirements": ["Python", "Docker"],
        "description": "Build APIs and data services.",
    }
    defaults.update(kwargs)
    return JobPosting(id=job_id, title=title, **defaults)


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def candidate() -> CandidateProfile:
    return CandidateProfile(
        candidate_id="cand-1",
        name="Jane Doe",
        skills=["Python", "AWS", "python"],
        experience="5 years of experience as a backend developer, developed payment APIs",
        education="BSc Computer Science",
        location="Berlin, Germany",
    )


@pytest.fixture
def jobs() -> list[JobPosting]:
    return [
        make_job("job-1", "Senior Python Developer", requirements=["Python", "AWS"]),
        make_job("job-2", "Frontend Engineer", company="Globex", location="Berlin",
                 requirements=["React", "TypeScript"], description="Build web UIs."),
        make_job("job-3", "Data Engineer", company="Initech", location="Munich",
                 requirements=["Python", "Spark"], salary="$90k - $120k"),
        make_job("job-4", "Junior QA Intern", company="Umbrella", location="Remote",
                 requirements=["Selenium"], type="Internship"),
    ]
