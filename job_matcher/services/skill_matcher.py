"""Skill comparison helpers shared by the heuristic scorer, prefilter and search.

Matching is deliberately cheap: case-insensitive substring containment in
either direction, plus a synonym table that maps common aliases onto a
canonical skill name.
"""

import re

# ---------------------------------------------------------------------------
# Skill synonyms: alias -> canonical name
# ---------------------------------------------------------------------------
SKILL_SYNONYMS: dict[str, str] = {
    # JavaScript ecosystem
    "js": "javascript", "ecmascript": "javascript", "es6": "javascript", "es2015": "javascript",
    "ts": "typescript",
    "reactjs": "react", "react.js": "react",
    "nodejs": "node.js", "node": "node.js",
    "vuejs": "vue", "vue.js": "vue",
    # Python / JVM
    "py": "python", "python3": "python",
    "jdk": "java", "jre": "java",
    # Web
    "css3": "css", "cascading style sheets": "css",
    "html5": "html", "hypertext markup language": "html",
    # Databases
    "mysql": "sql", "postgresql": "sql", "postgres": "sql",
    # Cloud & DevOps
    "amazon web services": "aws",
    "containerization": "docker",
    "k8s": "kubernetes", "kube": "kubernetes",
    "gcp": "google cloud", "google cloud platform": "google cloud",
    # Tooling
    "version control": "git", "github": "git", "gitlab": "git",
    # AI/ML
    "ml": "machine learning", "dl": "deep learning",
}

ENTRY_LEVEL_KEYWORDS: tuple[str, ...] = ("junior", "entry", "intern", "graduate")


def normalize_skill(skill: str) -> str:
    """Lowercase, trim and collapse whitespace."""
    return re.sub(r"\s+", " ", skill.lower().strip())


def canonicalize(skill: str) -> str:
    norm = normalize_skill(skill)
    return SKILL_SYNONYMS.get(norm, norm)


def are_skills_similar(a: str, b: str) -> bool:
    """True when two skills are equal, aliases of each other, or one contains the other."""
    left = normalize_skill(a)
    right = normalize_skill(b)
    if not left or not right:
        return False
    if left == right:
        return True
    if canonicalize(left) == canonicalize(right):
        return True
    return left in right or right in left


def requirement_matched(requirement: str, candidate_skills: list[str]) -> bool:
    return any(are_skills_similar(skill, requirement) for skill in candidate_skills)


def split_requirements(
    requirements: list[str],
    candidate_skills: list[str],
) -> tuple[list[str], list[str]]:
    """Partition job requirements into (matched, missing), keeping the job's spelling."""
    skills = [normalize_skill(s) for s in candidate_skills if s.strip()]
    matched: list[str] = []
    missing: list[str] = []
    for req in requirements:
        if not req.strip():
            continue
        if requirement_matched(req, skills):
            matched.append(req)
        else:
            missing.append(req)
    return matched, missing


def overlap_count(requirements: list[str], candidate_skills: list[str]) -> int:
    """Number of requirements with at least one matching candidate skill."""
    matched, _ = split_requirements(requirements, candidate_skills)
    return len(matched)


def is_entry_level(title: str) -> bool:
    lower = title.lower()
    return any(keyword in lower for keyword in ENTRY_LEVEL_KEYWORDS)
