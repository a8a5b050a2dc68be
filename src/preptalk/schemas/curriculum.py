"""Generated interview curriculum."""

from __future__ import annotations

import math
from typing import Literal

from pydantic import Field, model_validator

from .profile import ProfileModel

RoundType = Literal[
    "recruiter_screen",
    "technical",
    "behavioral",
    "culture_values",
    "onsite",
    "executive_final",
]
TopicDepth = Literal["basic", "intermediate", "advanced"]
DifficultyLevel = Literal["beginner", "intermediate", "advanced", "expert"]
GenerationStatus = Literal["generating", "complete", "failed"]

DIFFICULTY_LEVELS: tuple[DifficultyLevel, ...] = ("beginner", "intermediate", "advanced", "expert")
DIFFICULTY_FOR_LEVEL: dict[str, DifficultyLevel] = {
    "entry": "beginner",
    "junior": "beginner",
    "mid": "intermediate",
    "senior": "advanced",
    "lead": "advanced",
    "principal": "expert",
    "executive": "expert",
}


class InterviewerPersona(ProfileModel):
    name: str = Field(min_length=1)
    role: str = Field(min_length=1)
    personality: str
    communication_style: Literal["direct", "conversational", "challenging", "supportive"]
    pace: Literal["slow", "moderate", "fast"] = "moderate"
    goal: str
    red_flags_they_watch_for: list[str] = Field(default_factory=list)


class RoundTopic(ProfileModel):
    topic: str = Field(min_length=1)
    subtopics: list[str] = Field(default_factory=list)
    depth: TopicDepth = "intermediate"
    time_allocation: int = Field(ge=0)
    must_cover: bool = True
    question_count: int = Field(ge=1)


class SampleQuestion(ProfileModel):
    text: str = Field(min_length=1)
    topic: str | None = None
    difficulty: TopicDepth = "intermediate"
    expected_duration: int = Field(default=5, ge=1)


class EvaluationCriterion(ProfileModel):
    name: str
    description: str
    weight: float = Field(gt=0.0, le=1.0)


class PrepTopic(ProfileModel):
    topic: str
    priority: Literal["critical", "important", "nice_to_have"]


class CandidatePrep(ProfileModel):
    """Preparation guidance handed to the candidate for one round."""

    key_topics: list[PrepTopic] = Field(default_factory=list)
    recommended_preparation: list[str] = Field(default_factory=list)
    weak_area_focus: list[str] = Field(default_factory=list)
    estimated_prep_hours: float = Field(ge=0.0)


class CurriculumRound(ProfileModel):
    round_number: int = Field(ge=1)
    round_type: RoundType
    title: str
    description: str
    duration_minutes: int = Field(gt=0)
    interviewer_persona: InterviewerPersona
    topics_to_cover: list[RoundTopic] = Field(min_length=1)
    evaluation_criteria: list[EvaluationCriterion] = Field(min_length=1)
    sample_questions: list[SampleQuestion] = Field(default_factory=list)
    opening_script: str
    closing_script: str
    passing_score: float = Field(default=70.0, ge=0.0, le=100.0)
    candidate_prep: CandidatePrep

    @model_validator(mode="after")
    def _check_weights(self) -> "CurriculumRound":
        total = sum(criterion.weight for criterion in self.evaluation_criteria)
        if not math.isclose(total, 1.0, abs_tol=1e-6):
            raise ValueError(f"evaluation criteria weights must sum to 1, got {total:.4f}")
        return self


class Curriculum(ProfileModel):
    """Multi-round curriculum. Regeneration yields a new instance, never an edit."""

    title: str
    overview: str
    difficulty_level: DifficultyLevel
    rounds: list[CurriculumRound] = Field(min_length=1)
    total_rounds: int
    learning_objectives: list[str] = Field(default_factory=list)
    generation_status: GenerationStatus = "complete"
    quality_score: float | None = Field(default=None, ge=0.0, le=100.0)
    created_at: str | None = None

    @model_validator(mode="after")
    def _check_rounds(self) -> "Curriculum":
        numbers = [round_.round_number for round_ in self.rounds]
        if numbers != list(range(1, len(self.rounds) + 1)):
            raise ValueError(f"round numbers must run 1..N in order, got {numbers}")
        if self.total_rounds != len(self.rounds):
            raise ValueError(
                f"totalRounds={self.total_rounds} does not match {len(self.rounds)} rounds"
            )
        return self

    @property
    def estimated_total_minutes(self) -> int:
        return sum(round_.duration_minutes for round_ in self.rounds)
