"\"\"\"Skills and experience matching between a candidate and a job.\"\"\""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, Sequence

import structlog
from rapidfuzz import fuzz

from ..schemas import CandidateSkills, JobRequirements, MatchResult
from ..schemas.profile import ProfessionalSummary
from .insights import LEVEL_YEAR_BANDS

DEFAULT_SYNONYMS: dict[str, str] = {
    "js": "javascript",
    "ecmascript": "javascript",
    "ts": "typescript",
    "py": "python",
    "golang": "go",
    "k8s": "kubernetes",
    "postgres": "postgresql",
    "psql": "postgresql",
    "mongo": "mongodb",
    "node": "nodejs",
    "node js": "nodejs",
    "react js": "react",
    "reactjs": "react",
    "vue js": "vue",
    "vuejs": "vue",
    "ml": "machine learning",
    "dl": "deep learning",
    "ai": "artificial intelligence",
    "nlp": "natural language processing",
    "aws": "amazon web services",
    "gcp": "google cloud platform",
    "tf": "terraform",
    "ci cd": "continuous integration",
    "cicd": "continuous integration",
    "c sharp": "c#",
    "cpp": "c++",
}

_NON_WORD = re.compile(r"[^\w+#]+")
_VERSION = re.compile(r"v?\d+x?")


def normalize_skill(value: str) -> str:
    """Lowercase, fold punctuation and whitespace into single spaces."""
    return " ".join(_NON_WORD.sub(" ", value.lower()).split())


def strip_version(normalized: str) -> str:
    """Drop trailing version tokens: ``postgresql 15`` and ``python 3 11`` become bare names."""
    tokens = normalized.split()
    while len(tokens) > 1 and _VERSION.fullmatch(tokens[-1]):
        tokens.pop()
    return " ".join(tokens)


@dataclass
class MatchEngineConfig:
    """Weights and thresholds for skills matching."""

    min_similarity: float = 90.0
    skills_weight: float = 0.6
    experience_weight: float = 0.4
    preferred_bonus: float = 10.0
    experience_penalty_per_year: float = 20.0
    strong_skill_threshold: float = 0.8
    synonyms: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_SYNONYMS))
    extra_synonyms: dict[str, str] = field(default_factory=dict)


class MatchEngine:
    """Score a candidate's skills and experience against job requirements."""

    def __init__(self, *, config: MatchEngineConfig | None = None) -> None:
        self._config = config or MatchEngineConfig()
        merged = {**self._config.synonyms, **self._config.extra_synonyms}
        self._synonyms = {normalize_skill(key): normalize_skill(value) for key, value in merged.items()}
        self._logger = structlog.get_logger(__name__)

    def canonical(self, skill: str) -> str:
        normalized = strip_version(normalize_skill(skill))
        return self._synonyms.get(normalized, normalized)

    def match(
        self,
        skills: CandidateSkills | Sequence[str],
        summary: ProfessionalSummary | None,
        requirements: JobRequirements,
    ) -> MatchResult:
        if isinstance(skills, CandidateSkills):
            candidate_skills = [
                *skills.technical,
                *skills.soft,
                *skills.languages,
                *skills.frameworks,
                *skills.tools,
            ]
            proficiency = {self.canonical(name): level for name, level in skills.proficiency.items()}
        else:
            candidate_skills = list(skills)
            proficiency = {}

        candidate = _unique_by(candidate_skills, self.canonical)
        candidate_keys = [self.canonical(skill) for skill in candidate]

        required = _unique_by(requirements.required_skills, self.canonical)
        preferred = _unique_by(requirements.preferred_skills, self.canonical)

        matched_required = [skill for skill in required if self._has_skill(skill, candidate_keys)]
        matched_preferred = [skill for skill in preferred if self._has_skill(skill, candidate_keys)]
        gaps = [skill for skill in required if skill not in matched_required]

        skills_match = _ratio(len(matched_required), len(required))
        preferred_match = _ratio(len(matched_preferred), len(preferred))
        bonus = self._config.preferred_bonus * preferred_match / 100.0

        years = summary.years_of_experience if summary and summary.years_of_experience else 0.0
        experience_match = self._experience_match(years, requirements)

        if experience_match is None:
            weighted = (self._config.skills_weight + self._config.experience_weight) * skills_match
        else:
            weighted = (
                self._config.skills_weight * skills_match
                + self._config.experience_weight * experience_match
            )
        overall = min(max(weighted + bonus, 0.0), 100.0)

        requirement_keys = {self.canonical(skill) for skill in (*required, *preferred)}
        summary_text = normalize_skill(
            " ".join(part for part in (summary.headline, summary.summary) if part)
        ) if summary else ""
        notable = [
            skill
            for skill, key in zip(candidate, candidate_keys)
            if key not in requirement_keys
            and not any(self._similar(key, self.canonical(req)) for req in requirement_keys)
            and (
                proficiency.get(key, 0.0) >= self._config.strong_skill_threshold
                or _mentions(summary_text, key)
            )
        ]
        strengths = _unique_by([*matched_required, *matched_preferred, *notable], self.canonical)

        result = MatchResult(
            overall_match=round(overall, 1),
            skills_match=round(skills_match, 1),
            preferred_match=round(preferred_match, 1),
            experience_match=None if experience_match is None else round(experience_match, 1),
            gaps=gaps,
            strengths=strengths,
            matched_required=matched_required,
            matched_preferred=matched_preferred,
        )
        self._logger.debug(
            "match.computed",
            overall=result.overall_match,
            skills=result.skills_match,
            experience=result.experience_match,
            gaps=len(gaps),
        )
        return result

    def _has_skill(self, requirement: str, candidate_keys: Iterable[str]) -> bool:
        key = self.canonical(requirement)
        return any(self._similar(key, candidate) for candidate in candidate_keys)

    def _similar(self, left: str, right: str) -> bool:
        if not left or not right:
            return False
        if left == right:
            return True
        # whole names only; "react" must not satisfy "react native"
        return fuzz.token_sort_ratio(left, right) >= self._config.min_similarity

    def _experience_match(self, years: float, requirements: JobRequirements) -> float | None:
        low, high = requirements.min_years, requirements.max_years
        if low is None and high is None:
            if requirements.experience_level is None:
                return None
            low, high = LEVEL_YEAR_BANDS[requirements.experience_level]

        if low is not None and years < low:
            distance = low - years
        elif high is not None and years > high:
            distance = years - high
        else:
            return 100.0
        return max(100.0 - self._config.experience_penalty_per_year * distance, 0.0)


def _ratio(hits: int, total: int) -> float:
    return 100.0 * hits / total if total else 0.0


def _mentions(text: str, key: str) -> bool:
    return bool(text) and f" {key} " in f" {text} "


def _unique_by(values: Iterable[str], key_fn) -> list[str]:
    seen: set[str] = set()
    ordered: list[str] = []
    for value in values:
        if not value or not value.strip():
            continue
        key = key_fn(value)
        if key and key not in seen:
            seen.add(key)
            ordered.append(value)
    return ordered


__all__ = ["DEFAULT_SYNONYMS", "MatchEngine", "MatchEngineConfig", "normalize_skill"]
