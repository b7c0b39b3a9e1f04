"""Data-store interface the engine reads candidates and jobs through."""

from typing import Protocol

from job_matcher.models.requests import CandidateProfile, JobPosting


class JobRepository(Protocol):
    async def get_jobs(self, limit: int | None = None) -> list[JobPosting]: ...

    async def get_job_by_id(self, job_id: str) -> JobPosting | None: ...

    async def get_candidate_profile(self, candidate_id: str) -> CandidateProfile | None: ...


class InMemoryJobRepository:
    """Dict-backed repository for tests and local runs."""

    def __init__(
        self,
        jobs: list[JobPosting] | None = None,
        candidates: list[CandidateProfile] | None = None,
    ) -> None:
        self._jobs: dict[str, JobPosting] = {job.id: job for job in jobs or []}
        self._candidates: dict[str, CandidateProfile] = {
            c.candidate_id: c for c in candidates or []
        }

    def add_job(self, job: JobPosting) -> None:
        self._jobs[job.id] = job

    def add_candidate(self, candidate: CandidateProfile) -> None:
        self._candidates[candidate.candidate_id] = candidate

    async def get_jobs(self, limit: int | None = None) -> list[JobPosting]:
        jobs = list(self._jobs.values())
        return jobs[:limit] if limit else jobs

    async def get_job_by_id(self, job_id: str) -> JobPosting | None:
        return self._jobs.get(job_id)

    async def get_candidate_profile(self, candidate_id: str) -> CandidateProfile | None:
        return self._candidates.get(candidate_id)
