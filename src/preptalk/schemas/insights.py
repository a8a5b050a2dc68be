"""Derived analytics over a candidate profile."""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import Field, StringConstraints

from .profile import ProfileModel

ExperienceLevel = Literal["entry", "junior", "mid", "senior", "lead", "principal", "executive"]
GrowthTrajectory = Literal["rapid", "steady", "varied", "lateral"]
SkillDepth = Literal["specialist", "generalist", "t-shaped"]
Text = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

EXPERIENCE_LEVELS: tuple[ExperienceLevel, ...] = (
    "entry",
    "junior",
    "mid",
    "senior",
    "lead",
    "principal",
    "executive",
)


class CareerProgression(ProfileModel):
    is_linear: bool
    industry_changes: int = Field(ge=0)
    average_tenure: float = Field(ge=0.0)
    growth_trajectory: GrowthTrajectory


class SkillsAnalysis(ProfileModel):
    primary_domain: Text
    secondary_domains: list[Text] = Field(default_factory=list)
    skill_depth: SkillDepth
    emerging_skills: list[Text] = Field(default_factory=list)
    skill_gaps: list[Text] = Field(default_factory=list)


class Readiness(ProfileModel):
    overall_score: float = Field(ge=0.0, le=100.0)
    strengths: list[Text] = Field(default_factory=list)
    areas_for_improvement: list[Text] = Field(default_factory=list)
    recommended_preparation: list[Text] = Field(default_factory=list)


class ProfileInsights(ProfileModel):
    """Read-only analytics; never mutated once produced."""

    experience_level: ExperienceLevel
    career_progression: CareerProgression
    skills_analysis: SkillsAnalysis
    readiness: Readiness
    personalized_question_topics: list[Text] = Field(default_factory=list)
