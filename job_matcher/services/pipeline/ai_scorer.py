"""AI-assisted compatibility scorer.

Wraps one provider call per job: prompt formatting, a per-call timeout,
response validation and score clamping. Every failure is raised as one of
the ``AIScoringError`` subclasses; deciding what to do about it is the
batch matcher's job.
"""

import asyncio
import json
import logging

from pydantic import ValidationError

from job_matcher.config import settings
from job_matcher.errors import AIScoringError, ParseError, ProtocolError, TransientError
from job_matcher.models.requests import CandidateProfile, JobPosting, MatchPreferences
from job_matcher.models.responses import FitAssessment, MatchResult, SkillsMatch
from job_matcher.models.schemas.ai_match import AIMatchPayload, AIRankingPayload
from job_matcher.services import prompt_builder
from job_matcher.services.gemini_client import AIProvider

logger = logging.getLogger(__name__)


def _strip_code_fences(text: str) -> str:
    text = text.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else text[3:]
        if text.endswith("```"):
            text = text[:-3]
        text = text.strip()
    return text


def parse_json_object(text: str | None) -> dict:
    """Decode a provider response into a JSON object.

    Raises ProtocolError for empty, undecodable or non-object responses.
    """
    if text is None or not text.strip():
        raise ProtocolError("Empty response from AI provider")
    try:
        data = json.loads(_strip_code_fences(text))
    except json.JSONDecodeError as e:
        raise ProtocolError(f"AI response is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ProtocolError(f"Expected a JSON object, got {type(data).__name__}")
    return data


class AIScorer:
    scoring_method = "ai"

    def __init__(
        self,
        provider: AIProvider | None,
        timeout_seconds: float | None = None,
    ) -> None:
        self.provider = provider
        self.timeout_seconds = (
            settings.ai_timeout_seconds if timeout_seconds is None else timeout_seconds
        )
        self.calls = 0

    @property
    def available(self) -> bool:
        return self.provider is not None

    async def _generate(self, prompt: str, system: str) -> str:
        if self.provider is None:
            raise TransientError("AI provider not configured")
        self.calls += 1
        try:
            return await asyncio.wait_for(
                self.provider.generate(prompt, system=system),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise TransientError(
                f"AI provider call timed out after {self.timeout_seconds:.0f}s"
            ) from e
        except AIScoringError:
            raise
        except Exception as e:
            raise ProtocolError(f"AI provider failed: {e}") from e

    async def score(
        self,
        candidate: CandidateProfile,
        job: JobPosting,
        preferences: MatchPreferences | None = None,
    ) -> MatchResult:
        prompt = prompt_builder.build_match_prompt(candidate, job, preferences)
        text = await self._generate(prompt, prompt_builder.MATCH_SYSTEM_PROMPT)
        data = parse_json_object(text)

        try:
            payload = AIMatchPayload.model_validate(data)
        except ValidationError as e:
            raise ParseError(
                f"AI match payload for job {job.id} failed validation: {e.error_count()} errors"
            ) from e

        return MatchResult(
            job=job,
            match_score=payload.match_score,
            explanation=payload.explanation or "AI analysis completed",
            skills_match=SkillsMatch(
                matched=payload.skills_match.matched,
                missing=payload.skills_match.missing,
                score=payload.skills_match.score,
            ),
            experience_match=self._assessment(payload.experience_match, "Experience"),
            location_match=self._assessment(payload.location_match, "Location"),
            salary_match=self._assessment(payload.salary_match, "Salary"),
            scoring_method="ai",
        )

    @staticmethod
    def _assessment(raw, label: str) -> FitAssessment:
        return FitAssessment(
            suitable=raw.suitable,
            explanation=raw.explanation or f"{label} compatibility analyzed",
            score=raw.score,
        )

    async def rank_jobs(
        self,
        query: str,
        candidate: CandidateProfile,
        jobs: list[JobPosting],
    ) -> list[int]:
        """Indices of ``jobs`` that best match ``query``, best first.

        Out-of-range and repeated indices from the provider are dropped.
        """
        if not jobs:
            return []
        prompt = prompt_builder.build_ranking_prompt(query, candidate, jobs)
        text = await self._generate(prompt, prompt_builder.RANKING_SYSTEM_PROMPT)
        data = parse_json_object(text)

        try:
            payload = AIRankingPayload.model_validate(data)
        except ValidationError as e:
            raise ParseError(f"AI ranking payload failed validation: {e.error_count()} errors") from e

        seen: set[int] = set()
        indices: list[int] = []
        for idx in payload.indices:
            if 0 <= idx < len(jobs) and idx not in seen:
                seen.add(idx)
                indices.append(idx)
        if len(indices) != len(payload.indices):
            logger.debug(
                "Dropped %d duplicate or out-of-range indices from AI ranking",
                len(payload.indices) - len(indices),
            )
        return indices
