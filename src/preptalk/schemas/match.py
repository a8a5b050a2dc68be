from __future__ import annotations

from pydantic import Field

from .profile import ProfileModel


class MatchResult(ProfileModel):
    """Skills match of a candidate against one job. Never persisted on its own."""

    overall_match: float = Field(ge=0.0, le=100.0)
    skills_match: float = Field(ge=0.0)
    preferred_match: float = Field(default=0.0, ge=0.0)
    experience_match: float | None = Field(default=None, ge=0.0, le=100.0)
    gaps: list[str] = Field(default_factory=list)
    strengths: list[str] = Field(default_factory=list)
    matched_required: list[str] = Field(default_factory=list)
    matched_preferred: list[str] = Field(default_factory=list)
