"""Cheap prefilter and priority ranking ahead of expensive scoring.

Pure functions over the job list. Nothing here calls the AI provider, so
the number of jobs reaching the batch matcher stays bounded.
"""

from job_matcher.config import settings
from job_matcher.models.requests import CandidateProfile, JobPosting, MatchPreferences
from job_matcher.services.skill_matcher import is_entry_level, overlap_count

REMOTE_PRIORITY = 10
OVERLAP_PRIORITY = 5


def _cross_contains(a: str, b: str) -> bool:
    a, b = a.strip().lower(), b.strip().lower()
    if not a or not b:
        return False
    return a in b or b in a


def type_allowed(job: JobPosting, preferences: MatchPreferences | None) -> bool:
    if preferences is None:
        return True
    wanted = [t for t in preferences.preferred_job_types if t.strip()]
    # unknown type is not a mismatch
    if not wanted or not job.type.strip():
        return True
    return any(_cross_contains(t, job.type) for t in wanted)


def location_allowed(job: JobPosting, preferences: MatchPreferences | None) -> bool:
    if preferences is None or not (preferences.preferred_location or "").strip():
        return True
    if job.is_remote() or not job.location.strip():
        return True
    return _cross_contains(preferences.preferred_location, job.location)


def priority(job: JobPosting, overlap: int) -> int:
    return (REMOTE_PRIORITY if job.is_remote() else 0) + OVERLAP_PRIORITY * overlap


def prefilter(
    jobs: list[JobPosting],
    candidate: CandidateProfile,
    preferences: MatchPreferences | None = None,
) -> list[JobPosting]:
    """Drop jobs that cannot be a reasonable match and sort the rest by priority."""
    skills = candidate.unique_skills()
    kept: list[tuple[int, JobPosting]] = []

    for job in jobs:
        if not job.is_active:
            continue
        if not type_allowed(job, preferences):
            continue
        if not location_allowed(job, preferences):
            continue

        overlap = overlap_count(job.requirements, skills) if skills else 0
        # no skills parsed: nothing to filter on
        if skills and overlap == 0 and not is_entry_level(job.title):
            continue
        kept.append((priority(job, overlap), job))

    # sorted() is stable, equal priorities keep input order
    kept = sorted(kept, key=lambda item: item[0], reverse=True)
    return [job for _, job in kept]


def rank_for_matching(
    jobs: list[JobPosting],
    candidate: CandidateProfile,
    preferences: MatchPreferences | None = None,
    cap: int | None = None,
) -> list[JobPosting]:
    return prefilter(jobs, candidate, preferences)[: cap or settings.match_job_cap]


def rank_for_search(
    jobs: list[JobPosting],
    candidate: CandidateProfile,
    preferences: MatchPreferences | None = None,
    cap: int | None = None,
) -> list[JobPosting]:
    return prefilter(jobs, candidate, preferences)[: cap or settings.search_job_cap]
