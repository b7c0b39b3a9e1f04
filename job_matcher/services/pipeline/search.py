"""Search path: hard filters, keyword search and semantic ranking.

Semantic ranking asks the AI scorer to pick the best jobs for a free-text
query out of a bounded window. It is best effort: any failure, an empty
answer or too few picks falls back to (or is topped up with) keyword hits.
"""

import logging
import re

import numpy as np
from sklearn.feature_extraction.text import TfidfVectorizer
from sklearn.metrics.pairwise import cosine_similarity

from job_matcher.config import settings
from job_matcher.errors import AIScoringError
from job_matcher.models.requests import CandidateProfile, JobPosting, SearchFilters
from job_matcher.services.pipeline.ai_scorer import AIScorer
from job_matcher.services.skill_matcher import are_skills_similar

logger = logging.getLogger(__name__)

_NUMBER_RE = re.compile(r"\d[\d,]*")


def parse_salary(text: str | None) -> int | None:
    """Largest number in a free-form salary string, in currency units.

    Values under 1000 are read as thousands ("80-100k" -> 100000).
    """
    if not text:
        return None
    numbers = [int(n.replace(",", "")) for n in _NUMBER_RE.findall(text)]
    if not numbers:
        return None
    largest = max(numbers)
    return largest * 1000 if largest < 1000 else largest


def matches_filters(job: JobPosting, filters: SearchFilters) -> bool:
    if filters.location:
        wanted = filters.location.strip().lower()
        actual = job.location.strip().lower()
        if not (wanted in actual or (actual and actual in wanted)):
            return False

    if filters.type and job.type.strip().lower() != filters.type.strip().lower():
        return False

    if filters.min_salary:
        salary = parse_salary(job.salary)
        if salary is None or salary < filters.min_salary:
            return False

    if filters.skills:
        if not any(
            are_skills_similar(skill, req)
            for skill in filters.skills
            for req in job.requirements
        ):
            return False

    return True


def apply_filters(jobs: list[JobPosting], filters: SearchFilters) -> list[JobPosting]:
    """Hard filters only. The free-text query is handled by ranking."""
    return [job for job in jobs if matches_filters(job, filters)]


def keyword_search(jobs: list[JobPosting], query: str) -> list[JobPosting]:
    """Jobs whose text contains ``query``, most similar first by TF-IDF cosine."""
    needle = query.strip().lower()
    if not needle:
        return list(jobs)
    hits = [job for job in jobs if needle in job.search_text().lower()]
    if len(hits) < 2:
        return hits

    vectorizer = TfidfVectorizer(stop_words="english", sublinear_tf=True, ngram_range=(1, 2))
    try:
        matrix = vectorizer.fit_transform([needle] + [job.search_text() for job in hits])
    except ValueError:
        # only stop words in the corpus
        return hits
    scores = cosine_similarity(matrix[0:1], matrix[1:])[0]
    order = np.argsort(-scores, kind="stable")
    return [hits[i] for i in order]


async def semantic_search(
    ai_scorer: AIScorer,
    query: str,
    candidate: CandidateProfile,
    jobs: list[JobPosting],
    window: int | None = None,
    min_results: int | None = None,
) -> list[JobPosting]:
    """AI-ranked jobs for ``query`` with keyword fallback and top-up.

    Never raises for AI failures. The result has no duplicate job ids.
    """
    window = window or settings.semantic_window
    min_results = settings.semantic_min_results if min_results is None else min_results
    keyword_hits = keyword_search(jobs, query)

    if not ai_scorer.available:
        return keyword_hits

    candidates = jobs[:window]
    try:
        indices = await ai_scorer.rank_jobs(query, candidate, candidates)
    except AIScoringError as e:
        logger.warning("Semantic ranking failed, using keyword search: %s", e)
        return keyword_hits

    if not indices:
        logger.info("Semantic ranking returned no jobs for %r, using keyword search", query)
        return keyword_hits

    ranked: list[JobPosting] = []
    seen: set[str] = set()
    for i in indices:
        if candidates[i].id not in seen:
            seen.add(candidates[i].id)
            ranked.append(candidates[i])

    if len(ranked) < min_results:
        for job in keyword_hits:
            if len(ranked) >= min_results:
                break
            if job.id not in seen:
                seen.add(job.id)
                ranked.append(job)
        logger.debug("Semantic ranking topped up to %d jobs with keyword hits", len(ranked))
    return ranked
