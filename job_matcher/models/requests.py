import json

from pydantic import BaseModel, ConfigDict, Field


class CandidateProfile(BaseModel):
    """Parsed CV data for one candidate. Owned by the caller, never mutated."""

    model_config = ConfigDict(frozen=True)

    candidate_id: str
    name: str = ""
    skills: list[str] = []  # may contain duplicates
    experience: str = ""
    education: str = ""
    location: str = ""
    summary: str = ""

    def unique_skills(self) -> list[str]:
        """Lowercased skills with duplicates removed, original order kept."""
        return list(dict.fromkeys(s.lower().strip() for s in self.skills if s.strip()))


class JobPosting(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    company: str
    location: str = ""
    type: str = ""  # Full-time, Contract, etc.
    salary: str | None = None
    requirements: list[str] = []
    description: str = ""
    is_active: bool = True

    def search_text(self) -> str:
        return f"{self.title} {self.company} {self.description} {' '.join(self.requirements)}"

    def is_remote(self) -> bool:
        return "remote" in self.location.lower()


class MatchPreferences(BaseModel):
    model_config = ConfigDict(frozen=True)

    preferred_location: str | None = None
    salary_expectation: str | None = None
    preferred_job_types: list[str] = []

    def fingerprint(self) -> str:
        """Stable serialization used as part of the score cache key."""
        data: dict[str, object] = {}
        if self.preferred_location:
            data["location"] = self.preferred_location.strip().lower()
        if self.salary_expectation:
            data["salary"] = self.salary_expectation.strip().lower()
        types = sorted({t.strip().lower() for t in self.preferred_job_types if t.strip()})
        if types:
            data["job_types"] = types
        if not data:
            return ""
        return json.dumps(data, sort_keys=True, separators=(",", ":"))


class SearchFilters(BaseModel):
    query: str | None = Field(None, max_length=500)
    location: str | None = None
    type: str | None = None
    min_salary: int | None = None
    skills: list[str] = []

    def as_log_dict(self) -> dict:
        return self.model_dump(exclude_none=True, exclude_defaults=True)
