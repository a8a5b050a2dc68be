"\"\"\"Pydantic schema definitions for pipeline data structures.\"\"\""

from __future__ import annotations

from .config import (
    OCR_EXTRACT,
    TEXT_GENERATE,
    AppConfig,
    Capability,
    ProviderConfig,
    ProviderSettings,
    default_provider_config,
)
from .curriculum import (
    DIFFICULTY_FOR_LEVEL,
    DIFFICULTY_LEVELS,
    CandidatePrep,
    Curriculum,
    CurriculumRound,
    EvaluationCriterion,
    InterviewerPersona,
    PrepTopic,
    RoundTopic,
    RoundType,
    SampleQuestion,
)
from .insights import (
    EXPERIENCE_LEVELS,
    CareerProgression,
    ExperienceLevel,
    ProfileInsights,
    Readiness,
    SkillsAnalysis,
)
from .job import JobPosting, JobRequirements
from .match import MatchResult
from .profile import (
    CandidateProfile,
    CandidateSkills,
    EducationEntry,
    ExtractionMetadata,
    PersonalInfo,
    ProfessionalSummary,
    WorkExperience,
)

__all__ = [
    "AppConfig",
    "CandidatePrep",
    "CandidateProfile",
    "CandidateSkills",
    "Capability",
    "CareerProgression",
    "Curriculum",
    "CurriculumRound",
    "DIFFICULTY_FOR_LEVEL",
    "DIFFICULTY_LEVELS",
    "EXPERIENCE_LEVELS",
    "EducationEntry",
    "EvaluationCriterion",
    "ExperienceLevel",
    "ExtractionMetadata",
    "InterviewerPersona",
    "JobPosting",
    "JobRequirements",
    "MatchResult",
    "OCR_EXTRACT",
    "PersonalInfo",
    "PrepTopic",
    "ProfessionalSummary",
    "ProfileInsights",
    "ProviderConfig",
    "ProviderSettings",
    "Readiness",
    "RoundTopic",
    "RoundType",
    "SampleQuestion",
    "SkillsAnalysis",
    "TEXT_GENERATE",
    "WorkExperience",
    "default_provider_config",
]
