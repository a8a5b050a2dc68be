"""Candidate profile extracted from a CV document."""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

Proficiency = Annotated[float, Field(ge=0.0, le=1.0)]


class ProfileModel(BaseModel):
    """Base for camelCase-aliased, frozen CV models."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
        str_strip_whitespace=True,
    )

    def to_payload(self) -> dict[str, Any]:
        """Dump using the external camelCase field names."""
        return self.model_dump(mode="json", by_alias=True)


class PersonalInfo(ProfileModel):
    """Contact channels and identity."""

    full_name: str = Field(min_length=1)
    email: str | None = None
    phone: str | None = None
    location: str | None = None
    linked_in: str | None = None
    github: str | None = None
    portfolio: str | None = None


class ProfessionalSummary(ProfileModel):
    headline: str | None = None
    summary: str | None = None
    years_of_experience: float | None = Field(default=None, ge=0.0)
    current_role: str | None = None
    target_role: str | None = None


class WorkExperience(ProfileModel):
    """Employment history entry."""

    company: str = Field(min_length=1)
    position: str = Field(min_length=1)
    start_date: str | None = None
    end_date: str | None = None
    duration: str | None = None
    location: str | None = None
    responsibilities: list[str] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)

    @field_validator("responsibilities", "skills", mode="before")
    @classmethod
    def _empty_lists(cls, value: Any) -> Any:
        return [] if value is None else value


class EducationEntry(ProfileModel):
    """Structured education history entry."""

    institution: str = Field(min_length=1)
    degree: str | None = None
    field: str | None = None
    graduation_date: str | None = None
    gpa: str | None = None
    achievements: list[str] = Field(default_factory=list)

    @field_validator("achievements", mode="before")
    @classmethod
    def _empty_lists(cls, value: Any) -> Any:
        return [] if value is None else value


class CandidateSkills(ProfileModel):
    """Skills breakdown, split into technical and soft categories."""

    technical: list[str] = Field(default_factory=list)
    soft: list[str] = Field(default_factory=list)
    languages: list[str] = Field(default_factory=list)
    frameworks: list[str] = Field(default_factory=list)
    tools: list[str] = Field(default_factory=list)
    proficiency: dict[str, Proficiency] = Field(default_factory=dict)

    # Providers answer ``null`` for lists they found nothing for.
    @field_validator("technical", "soft", "languages", "frameworks", "tools", mode="before")
    @classmethod
    def _empty_lists(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("proficiency", mode="before")
    @classmethod
    def _empty_mapping(cls, value: Any) -> Any:
        return {} if value is None else value

    def combined(self) -> list[str]:
        """Technical then soft skills, first occurrence wins."""
        seen: set[str] = set()
        ordered: list[str] = []
        for skill in [*self.technical, *self.soft]:
            key = skill.lower()
            if skill and key not in seen:
                seen.add(key)
                ordered.append(skill)
        return ordered


class ExtractionMetadata(ProfileModel):
    """Provenance of an extraction. ``confidence`` is kept as the provider sent it."""

    extraction_date: str | None = None
    document_type: str | None = None
    page_count: int | None = Field(default=None, ge=1)
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)
    warnings: list[str] = Field(default_factory=list)
    processing_model: str | None = None
    provider: str | None = None
    cost_cents: float | None = Field(default=None, ge=0.0)

    @field_validator("warnings", mode="before")
    @classmethod
    def _empty_lists(cls, value: Any) -> Any:
        return [] if value is None else value


class CandidateProfile(ProfileModel):
    """Structured CV document. Immutable once validated."""

    personal_info: PersonalInfo
    summary: ProfessionalSummary = Field(default_factory=ProfessionalSummary)
    experience: list[WorkExperience] = Field(default_factory=list)
    education: list[EducationEntry] = Field(default_factory=list)
    skills: CandidateSkills = Field(default_factory=CandidateSkills)
    metadata: ExtractionMetadata = Field(default_factory=ExtractionMetadata)

    @field_validator("experience", "education", mode="before")
    @classmethod
    def _empty_lists(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("summary", "skills", "metadata", mode="before")
    @classmethod
    def _empty_section(cls, value: Any) -> Any:
        return {} if value is None else value
