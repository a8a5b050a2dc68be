from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator, model_validator

from .insights import ExperienceLevel
from .profile import ProfileModel


class JobRequirements(ProfileModel):
    """Skill and experience requirements attached to a job posting."""

    required_skills: list[str] = Field(default_factory=list)
    preferred_skills: list[str] = Field(default_factory=list)
    experience_level: ExperienceLevel | None = None
    min_years: float | None = Field(default=None, ge=0.0)
    max_years: float | None = Field(default=None, ge=0.0)

    @field_validator("required_skills", "preferred_skills", mode="before")
    @classmethod
    def _empty_if_none(cls, value: Any) -> Any:
        return [] if value is None else value

    @model_validator(mode="after")
    def _check_band(self) -> "JobRequirements":
        if (
            self.min_years is not None
            and self.max_years is not None
            and self.max_years < self.min_years
        ):
            raise ValueError("maxYears must not be below minYears")
        return self

    def has_experience_band(self) -> bool:
        return (
            self.experience_level is not None
            or self.min_years is not None
            or self.max_years is not None
        )


class JobPosting(ProfileModel):
    """Provider-neutral job posting. Read-only input to the pipeline."""

    id: str | None = None
    title: str = Field(min_length=1)
    company_name: str | None = None
    level: ExperienceLevel | None = None
    department: str | None = None
    location: str | None = None
    description: str | None = None
    responsibilities: list[str] = Field(default_factory=list)
    requirements: JobRequirements = Field(default_factory=JobRequirements)

    @field_validator("responsibilities", mode="before")
    @classmethod
    def _responsibilities(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("requirements", mode="before")
    @classmethod
    def _requirements(cls, value: Any) -> Any:
        return {} if value is None else value

    @property
    def display_company(self) -> str:
        return self.company_name or "the company"

    @property
    def effective_level(self) -> ExperienceLevel | None:
        return self.level or self.requirements.experience_level
