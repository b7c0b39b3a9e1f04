"""All prompt templates for AI provider calls."""

from job_matcher.models.requests import CandidateProfile, JobPosting, MatchPreferences

# Truncation limits keep prompts (and cost) bounded
MAX_SKILLS = 15
MAX_REQUIREMENTS = 10
MAX_EXPERIENCE_CHARS = 300
MAX_DESCRIPTION_CHARS = 500
MAX_SUMMARY_CHARS = 200
MAX_RANKING_DESCRIPTION_CHARS = 160

MATCH_SYSTEM_PROMPT = (
    "Analyze job-candidate compatibility. Return JSON with matchScore (0-100), "
    "explanation, skillsMatch {matched[], missing[], score}, "
    "experienceMatch {suitable, explanation, score}, "
    "locationMatch {suitable, explanation, score}, "
    "salaryMatch {suitable, explanation, score}. Respond with valid JSON only."
)

RANKING_SYSTEM_PROMPT = (
    "You rank job postings for a job seeker's search query. "
    "Respond with valid JSON only."
)


def _truncate(text: str | None, limit: int) -> str:
    text = (text or "").strip()
    if len(text) <= limit:
        return text
    return text[:limit].rstrip() + "..."


def build_match_prompt(
    candidate: CandidateProfile,
    job: JobPosting,
    preferences: MatchPreferences | None = None,
) -> str:
    """Compact compatibility prompt built from truncated profile and job fields."""
    prefs = preferences or MatchPreferences()
    skills = ", ".join(candidate.unique_skills()[:MAX_SKILLS]) or "Not specified"
    requirements = ", ".join(job.requirements[:MAX_REQUIREMENTS]) or "Not specified"
    job_types = ", ".join(prefs.preferred_job_types) or "Any"

    return f"""Job: {job.title} at {job.company}
Location: {job.location or 'Not specified'}
Type: {job.type or 'Not specified'}
Requirements: {requirements}
Salary: {job.salary or 'Not specified'}
Description: {_truncate(job.description, MAX_DESCRIPTION_CHARS) or 'Not provided'}

Candidate Skills: {skills}
Experience: {_truncate(candidate.experience, MAX_EXPERIENCE_CHARS) or 'Not provided'}
Education: {_truncate(candidate.education, MAX_SUMMARY_CHARS) or 'Not provided'}
Location: {candidate.location or 'Not specified'}
Summary: {_truncate(candidate.summary, MAX_SUMMARY_CHARS) or 'Not provided'}

User Preferences:
- Location: {prefs.preferred_location or 'Any'}
- Salary: {prefs.salary_expectation or 'Not specified'}
- Job Types: {job_types}

Respond with ONLY valid JSON in this exact structure:
{{
  "matchScore": <integer 0-100>,
  "explanation": "<1-2 sentence overall compatibility>",
  "skillsMatch": {{"matched": [<skills>], "missing": [<skills>], "score": <integer 0-100>}},
  "experienceMatch": {{"suitable": <true|false>, "explanation": "<text>", "score": <integer 0-100>}},
  "locationMatch": {{"suitable": <true|false>, "explanation": "<text>", "score": <integer 0-100>}},
  "salaryMatch": {{"suitable": <true|false>, "explanation": "<text>", "score": <integer 0-100>}}
}}"""


def build_ranking_prompt(
    query: str,
    candidate: CandidateProfile,
    jobs: list[JobPosting],
) -> str:
    """Semantic search prompt: pick the indices of jobs that fit the query."""
    lines = []
    for i, job in enumerate(jobs):
        reqs = ", ".join(job.requirements[:5])
        desc = _truncate(job.description, MAX_RANKING_DESCRIPTION_CHARS)
        lines.append(f"[{i}] {job.title} at {job.company} ({job.location}) | {reqs} | {desc}")
    listing = "\n".join(lines)
    skills = ", ".join(candidate.unique_skills()[:MAX_SKILLS]) or "Not specified"

    return f"""Search query: "{query}"
Candidate skills: {skills}

JOBS:
{listing}

Select the jobs that best match the search query's intent, best first.
Only use indices from the list above (0 to {len(jobs) - 1}).

Respond with ONLY valid JSON in this exact structure:
{{"indices": [<integer>, ...]}}"""
