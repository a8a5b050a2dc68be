"""Prompt templates sent through the provider gateway."""

from __future__ import annotations

import json
from typing import Any

EXTRACTION_SYSTEM_PROMPT = (
    "You convert CV and resume documents into structured JSON. "
    "Answer with a single JSON object and nothing else."
)

_PROFILE_SHAPE = """{
  "personalInfo": {
    "fullName": "string",
    "email": "string or null",
    "phone": "string or null",
    "location": "string or null",
    "linkedIn": "string or null",
    "github": "string or null",
    "portfolio": "string or null"
  },
  "summary": {
    "headline": "string or null",
    "summary": "string or null",
    "yearsOfExperience": "number or null",
    "currentRole": "string or null",
    "targetRole": "string or null"
  },
  "experience": [
    {
      "company": "string",
      "position": "string",
      "startDate": "string or null",
      "endDate": "string or null",
      "duration": "string or null",
      "location": "string or null",
      "responsibilities": ["string"],
      "skills": ["string"]
    }
  ],
  "education": [
    {
      "institution": "string",
      "degree": "string or null",
      "field": "string or null",
      "graduationDate": "string or null",
      "gpa": "string or null",
      "achievements": ["string"]
    }
  ],
  "skills": {
    "technical": ["string"],
    "soft": ["string"],
    "languages": ["string"],
    "frameworks": ["string"],
    "tools": ["string"],
    "proficiency": {"skill name": "number between 0 and 1"}
  },
  "metadata": {
    "confidence": "number between 0 and 1",
    "warnings": ["string"]
  }
}"""


def build_extraction_prompt(detail_level: str = "comprehensive", target_role: str | None = None) -> str:
    focus = (
        "Be extremely thorough."
        if detail_level == "comprehensive"
        else "Focus on the key information."
    )
    lines = ["Extract structured information from this CV/resume document."]
    if target_role:
        lines.append(f"Target role: {target_role}")
    lines.extend(
        [
            "",
            "Return ALL information as JSON with exactly these fields:",
            "",
            _PROFILE_SHAPE,
            "",
            focus,
            "Extract all text content accurately. Use null for missing fields and empty "
            "arrays for missing lists.",
            "Calculate yearsOfExperience from the work history if it is not stated.",
            "Report your own confidence in the extraction under metadata.confidence.",
        ]
    )
    return "\n".join(lines)


INSIGHTS_SYSTEM_PROMPT = (
    "You are a senior technical recruiter analysing a candidate profile. "
    "Answer with a single JSON object and nothing else."
)

_INSIGHTS_SHAPE = """{
  "experienceLevel": "entry | junior | mid | senior | lead | principal | executive",
  "careerProgression": {
    "isLinear": "boolean",
    "industryChanges": "integer",
    "averageTenure": "number of years",
    "growthTrajectory": "rapid | steady | varied | lateral"
  },
  "skillsAnalysis": {
    "primaryDomain": "string",
    "secondaryDomains": ["string"],
    "skillDepth": "specialist | generalist | t-shaped",
    "emergingSkills": ["string"],
    "skillGaps": ["string"]
  },
  "readiness": {
    "overallScore": "number 0-100",
    "strengths": ["string"],
    "areasForImprovement": ["string"],
    "recommendedPreparation": ["string"]
  },
  "personalizedQuestionTopics": ["string"]
}"""


def build_insights_prompt(
    profile: dict[str, Any],
    baseline: dict[str, Any],
    target_role: str | None = None,
) -> str:
    role_line = f"The candidate is preparing for: {target_role}\n\n" if target_role else ""
    return (
        f"{role_line}Candidate profile:\n{json.dumps(profile, ensure_ascii=False, indent=2)}\n\n"
        f"Computed baseline analysis:\n{json.dumps(baseline, ensure_ascii=False, indent=2)}\n\n"
        "Refine the baseline. Keep values you agree with, correct the rest, and add "
        "concrete strengths, improvement areas and interview question topics.\n"
        f"Respond with JSON in this shape:\n{_INSIGHTS_SHAPE}"
    )


PERSONA_SYSTEM_PROMPT = (
    "You design realistic interviewer personas for mock interviews. "
    "Answer with a single JSON object and nothing else."
)


def build_persona_prompt(
    *,
    job_title: str,
    company_name: str,
    rounds: list[dict[str, Any]],
) -> str:
    return (
        f"Role: {job_title} at {company_name}\n\n"
        f"Interview rounds:\n{json.dumps(rounds, ensure_ascii=False, indent=2)}\n\n"
        "For each round write an interviewer persona that would plausibly run it at this "
        "company, an opening script the interviewer reads at the start, and up to five "
        "sample questions the interviewer would ask.\n"
        'Respond with JSON: {"rounds": [{"roundNumber": 1, "name": "string", '
        '"role": "string", "personality": "string", "openingScript": "string", '
        '"sampleQuestions": ["string"]}]}'
    )


__all__ = [
    "EXTRACTION_SYSTEM_PROMPT",
    "INSIGHTS_SYSTEM_PROMPT",
    "PERSONA_SYSTEM_PROMPT",
    "build_extraction_prompt",
    "build_insights_prompt",
    "build_persona_prompt",
]
