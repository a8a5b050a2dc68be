"\"\"\"Deterministic quality scoring for a synthesized curriculum.\"\"\""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Sequence

from ..schemas import DIFFICULTY_FOR_LEVEL, DIFFICULTY_LEVELS, Curriculum, JobPosting
from .matcher import normalize_skill

QUALITY_WEIGHTS: dict[str, float] = {
    "coverage": 0.30,
    "difficulty": 0.25,
    "criteria": 0.20,
    "progression": 0.15,
    "completeness": 0.10,
}

ROUND_ORDER: tuple[str, ...] = (
    "recruiter_screen",
    "technical",
    "behavioral",
    "culture_values",
    "onsite",
    "executive_final",
)

DIFFICULTY_STEP_PENALTY = 40.0


@dataclass(frozen=True, slots=True)
class QualityReport:
    """Weighted score in [0, 100] plus the findings that lowered it."""

    score: float
    components: dict[str, float]
    weak_areas: list[str] = field(default_factory=list)
    missing_skills: list[str] = field(default_factory=list)


def uncovered_skills(curriculum: Curriculum, skills: Sequence[str]) -> list[str]:
    """Skills that no topic or subtopic of any round mentions."""
    texts = [
        f" {normalize_skill(text)} "
        for round_ in curriculum.rounds
        for topic in round_.topics_to_cover
        for text in (topic.topic, *topic.subtopics)
    ]
    missing = []
    for skill in skills:
        key = normalize_skill(skill)
        if key and not any(f" {key} " in text for text in texts):
            missing.append(skill)
    return missing


def assess_quality(curriculum: Curriculum, job: JobPosting) -> QualityReport:
    weak_areas: list[str] = []

    required = [skill for skill in job.requirements.required_skills if skill.strip()]
    missing = uncovered_skills(curriculum, required)
    coverage = 100.0 * (len(required) - len(missing)) / len(required) if required else 100.0
    if missing:
        weak_areas.append(f"Required skills not covered: {', '.join(missing)}")

    difficulty = 100.0
    expected = DIFFICULTY_FOR_LEVEL.get(job.effective_level) if job.effective_level else None
    if expected is not None:
        distance = abs(
            DIFFICULTY_LEVELS.index(curriculum.difficulty_level) - DIFFICULTY_LEVELS.index(expected)
        )
        difficulty = max(100.0 - DIFFICULTY_STEP_PENALTY * distance, 0.0)
        if distance:
            weak_areas.append(
                f"Difficulty {curriculum.difficulty_level} does not fit the {job.effective_level} level"
            )

    unclear = [
        round_.round_number
        for round_ in curriculum.rounds
        if len(round_.evaluation_criteria) < 2
        or any(not criterion.description for criterion in round_.evaluation_criteria)
    ]
    criteria = _share(len(curriculum.rounds) - len(unclear), len(curriculum.rounds))
    if unclear:
        weak_areas.append(f"Unclear evaluation criteria in rounds {_numbers(unclear)}")

    positions = [_order_index(round_.round_type) for round_ in curriculum.rounds]
    ordered = positions[0] == 0 and all(b >= a for a, b in zip(positions, positions[1:]))
    progression = 100.0 if ordered else 50.0
    if not ordered:
        weak_areas.append("Rounds do not progress from screening to final interviews")

    incomplete = [
        round_.round_number
        for round_ in curriculum.rounds
        if not (
            round_.sample_questions
            and round_.opening_script
            and round_.closing_script
            and round_.candidate_prep.key_topics
        )
    ]
    completeness = _share(len(curriculum.rounds) - len(incomplete), len(curriculum.rounds))
    if incomplete:
        weak_areas.append(f"Incomplete rounds {_numbers(incomplete)}")

    components = {
        "coverage": round(coverage, 1),
        "difficulty": round(difficulty, 1),
        "criteria": round(criteria, 1),
        "progression": progression,
        "completeness": round(completeness, 1),
    }
    score = sum(QUALITY_WEIGHTS[name] * value for name, value in components.items())
    return QualityReport(
        score=round(score, 1),
        components=components,
        weak_areas=weak_areas,
        missing_skills=missing,
    )


def _share(hits: int, total: int) -> float:
    return 100.0 * hits / total if total else 100.0


def _order_index(round_type: str) -> int:
    return ROUND_ORDER.index(round_type) if round_type in ROUND_ORDER else len(ROUND_ORDER)


def _numbers(values: Iterable[int]) -> str:
    return ", ".join(str(value) for value in values)


__all__ = ["QUALITY_WEIGHTS", "QualityReport", "assess_quality", "uncovered_skills"]
