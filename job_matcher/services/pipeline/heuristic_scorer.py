"""Deterministic fallback scorer.

No I/O and no external dependencies, so it is always available. Used when
the AI provider is not configured or keeps failing for a job.
"""

from job_matcher.models.requests import CandidateProfile, JobPosting, MatchPreferences
from job_matcher.models.responses import FitAssessment, MatchResult, SkillsMatch, round_half_up
from job_matcher.services.skill_matcher import split_requirements

# Weights for the overall score, in percent
W_SKILLS = 40
W_EXPERIENCE = 30
W_LOCATION = 20
W_SALARY = 10

EXPERIENCE_BASE = 50
EXPERIENCE_KEYWORD_BONUS = 20
EXPERIENCE_TITLE_BONUS = 15
EXPERIENCE_SUITABLE_THRESHOLD = 60
EXPERIENCE_KEYWORDS: tuple[str, ...] = ("years", "experience", "worked", "developed", "managed", "led")

LOCATION_MATCH_SCORE = 90
LOCATION_MISMATCH_SCORE = 30
LOCATION_UNKNOWN_SCORE = 50

SALARY_NEUTRAL_SCORE = 70


class HeuristicScorer:
    scoring_method = "heuristic"

    def score(
        self,
        candidate: CandidateProfile,
        job: JobPosting,
        preferences: MatchPreferences | None = None,
    ) -> MatchResult:
        skills = self._skills_match(candidate, job)
        experience = self._experience_match(candidate, job)
        location = self._location_match(candidate, job)
        salary = self._salary_match(job)

        weighted = (
            skills.score * W_SKILLS
            + experience.score * W_EXPERIENCE
            + location.score * W_LOCATION
            + salary.score * W_SALARY
        )
        # Integer sum keeps halves exact before rounding
        overall = round_half_up(weighted / 100)

        return MatchResult(
            job=job,
            match_score=overall,
            explanation=self._explain(skills),
            skills_match=skills,
            experience_match=experience,
            location_match=location,
            salary_match=salary,
            scoring_method="heuristic",
        )

    def _skills_match(self, candidate: CandidateProfile, job: JobPosting) -> SkillsMatch:
        matched, missing = split_requirements(job.requirements, candidate.unique_skills())
        total = len(matched) + len(missing)
        score = round_half_up(len(matched) * 100 / total) if total else 0
        return SkillsMatch(matched=matched, missing=missing, score=score)

    def _experience_match(self, candidate: CandidateProfile, job: JobPosting) -> FitAssessment:
        text = candidate.experience.lower()
        score = EXPERIENCE_BASE
        if any(keyword in text for keyword in EXPERIENCE_KEYWORDS):
            score += EXPERIENCE_KEYWORD_BONUS
        title_words = [w for w in job.title.lower().split() if len(w) > 3]
        if any(word in text for word in title_words):
            score += EXPERIENCE_TITLE_BONUS

        suitable = score >= EXPERIENCE_SUITABLE_THRESHOLD
        return FitAssessment(
            suitable=suitable,
            explanation="Experience appears suitable" if suitable else "Experience may need review",
            score=score,
        )

    def _location_match(self, candidate: CandidateProfile, job: JobPosting) -> FitAssessment:
        if job.is_remote():
            return FitAssessment(
                suitable=True,
                explanation="Remote position - location flexible",
                score=LOCATION_MATCH_SCORE,
            )

        candidate_loc = candidate.location.lower().strip()
        job_loc = job.location.lower().strip()
        if not candidate_loc or not job_loc:
            return FitAssessment(
                suitable=True,
                explanation="Location compatibility needs review",
                score=LOCATION_UNKNOWN_SCORE,
            )
        if candidate_loc in job_loc or job_loc in candidate_loc:
            return FitAssessment(
                suitable=True,
                explanation="Location matches candidate preference",
                score=LOCATION_MATCH_SCORE,
            )
        return FitAssessment(
            suitable=False,
            explanation="Location may require relocation",
            score=LOCATION_MISMATCH_SCORE,
        )

    def _salary_match(self, job: JobPosting) -> FitAssessment:
        # Salary text is free-form and unverified, so it stays neutral
        explanation = (
            "Salary compatibility needs review" if job.salary
            else "Salary not specified in job posting"
        )
        return FitAssessment(suitable=True, explanation=explanation, score=SALARY_NEUTRAL_SCORE)

    @staticmethod
    def _explain(skills: SkillsMatch) -> str:
        total = len(skills.matched) + len(skills.missing)
        explanation = (
            f"{skills.score}% skills match with {len(skills.matched)}/{total} requirements met."
        )
        if skills.matched:
            explanation += f" Strong match in: {', '.join(skills.matched[:3])}."
        if 0 < len(skills.missing) <= 3:
            explanation += f" May need development in: {', '.join(skills.missing)}."
        return explanation
