"\"\"\"Profile insights: deterministic baseline refined by a text-generation call.\"\"\""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass
from typing import Any, Callable, Iterable

import pendulum
import structlog
from pydantic import ValidationError

from ..errors import InsightGenerationFailed, ProviderExhausted
from ..prompts import INSIGHTS_SYSTEM_PROMPT, build_insights_prompt
from ..providers import ProviderGateway, ProviderRequest
from ..schemas import TEXT_GENERATE, CandidateProfile, ExperienceLevel, ProfileInsights
from ..schemas.profile import WorkExperience

# Upper bounds (exclusive), checked in ascending order.
LEVEL_THRESHOLDS: tuple[tuple[float, ExperienceLevel], ...] = (
    (2.0, "junior"),
    (5.0, "mid"),
    (8.0, "senior"),
    (12.0, "lead"),
    (15.0, "principal"),
)

LEVEL_YEAR_BANDS: dict[ExperienceLevel, tuple[float, float | None]] = {
    "entry": (0.0, 2.0),
    "junior": (0.0, 2.0),
    "mid": (2.0, 5.0),
    "senior": (5.0, 8.0),
    "lead": (8.0, 12.0),
    "principal": (12.0, 15.0),
    "executive": (15.0, None),
}

_TITLE_RANKS: tuple[tuple[int, tuple[str, ...]], ...] = (
    (7, ("chief", "cto", "ceo", "vp", "vice president")),
    (6, ("director", "head of")),
    (5, ("principal", "architect", "manager")),
    (4, ("lead", "staff")),
    (3, ("senior", "sr")),
    (1, ("junior", "jr", "associate", "graduate")),
    (0, ("intern", "trainee", "apprentice")),
)
_DEFAULT_RANK = 2
_WORD = re.compile(r"[a-z]+")


def experience_level_for(years: float, role_count: int = 1) -> ExperienceLevel:
    """Bucket years of experience. No years and no roles means ``entry``."""
    if years <= 0 and role_count == 0:
        return "entry"
    for upper, level in LEVEL_THRESHOLDS:
        if years < upper:
            return level
    return "executive"


def title_rank(position: str) -> int:
    words = f" {' '.join(_WORD.findall(position.lower()))} "
    for rank, keywords in _TITLE_RANKS:
        if any(f" {keyword} " in words for keyword in keywords):
            return rank
    return _DEFAULT_RANK


@dataclass
class InsightConfig:
    """Knobs for insight generation."""

    use_model: bool = True
    temperature: float = 0.3
    max_tokens: int = 2000
    generalist_skill_count: int = 20
    t_shaped_skill_count: int = 10
    short_tenure_years: float = 1.5


class InsightGenerator:
    """Derive analytical insights from a validated profile."""

    def __init__(
        self,
        gateway: ProviderGateway | None = None,
        *,
        config: InsightConfig | None = None,
        now_provider: Callable[[], pendulum.DateTime] | None = None,
    ) -> None:
        self._gateway = gateway
        self._config = config or InsightConfig()
        self._now_provider = now_provider or pendulum.now
        self._logger = structlog.get_logger(__name__)

    def analyze(
        self,
        profile: CandidateProfile,
        target_role: str | None = None,
        *,
        cancel_event: threading.Event | None = None,
    ) -> ProfileInsights:
        baseline = self.baseline(profile, target_role)
        if not self._config.use_model or self._gateway is None:
            return baseline

        request = ProviderRequest(
            prompt=build_insights_prompt(profile.to_payload(), baseline.to_payload(), target_role),
            system_prompt=INSIGHTS_SYSTEM_PROMPT,
            temperature=self._config.temperature,
            max_tokens=self._config.max_tokens,
        )
        try:
            result = self._gateway.invoke(TEXT_GENERATE, request, cancel_event=cancel_event)
        except ProviderExhausted as exc:
            raise InsightGenerationFailed(
                "Insight generation failed: no provider produced a response", exc.details
            ) from exc

        merged = _overlay(baseline.to_payload(), result.data)
        try:
            insights = ProfileInsights.model_validate(merged)
        except ValidationError as exc:
            raise InsightGenerationFailed(
                "Insight generation returned an invalid structure",
                {
                    "provider": result.provider,
                    "errors": exc.errors(include_url=False, include_context=False, include_input=False),
                },
            ) from exc

        self._logger.info(
            "insights.generated",
            provider=result.provider,
            experience_level=insights.experience_level,
            readiness=insights.readiness.overall_score,
        )
        return insights

    def baseline(self, profile: CandidateProfile, target_role: str | None = None) -> ProfileInsights:
        """Deterministic insights computed from the profile alone."""

        as_of = self._now_provider()
        roles = list(profile.experience)
        tenures = [years for years in (_tenure_years(exp, as_of) for exp in roles) if years is not None]

        years = profile.summary.years_of_experience
        if years is None:
            years = round(sum(tenures), 2)
        level = experience_level_for(years, len(roles))

        if tenures:
            average_tenure = sum(tenures) / len(tenures)
        else:
            average_tenure = years / max(len(roles), 1)

        chronological = _chronological(roles)
        ranks = [title_rank(exp.position) for exp in chronological]
        is_linear = all(later >= earlier for earlier, later in zip(ranks, ranks[1:]))
        trajectory = _trajectory(ranks, is_linear, average_tenure)

        skills = profile.skills
        technical = _dedupe([*skills.technical, *skills.languages, *skills.frameworks, *skills.tools])
        if len(technical) >= self._config.generalist_skill_count:
            depth = "generalist"
        elif len(technical) > self._config.t_shaped_skill_count:
            depth = "t-shaped"
        else:
            depth = "specialist"

        primary_domain = (
            profile.summary.headline
            or profile.summary.current_role
            or target_role
            or profile.summary.target_role
            or (chronological[-1].position if chronological else None)
            or "General"
        )
        secondary_domains = [
            position
            for position in _dedupe(exp.position for exp in reversed(chronological))
            if position.lower() != primary_domain.lower()
        ][:3]

        emerging = _emerging_skills(chronological) or _dedupe(skills.technical)[-2:]

        strengths: list[str] = []
        if years > 0:
            strengths.append(f"{years:g}+ years of professional experience")
        if technical:
            strengths.append(f"Hands-on skills in {', '.join(technical[:3])}")
        if is_linear and len(set(ranks)) > 1:
            strengths.append("Consistent progression into more senior roles")

        improvements: list[str] = []
        preparation: list[str] = []
        if not skills.soft:
            improvements.append("Evidence of communication and collaboration skills")
            preparation.append("Prepare STAR stories that show teamwork and communication")
        if len(technical) < 5:
            improvements.append("Breadth of technical skills")
            preparation.append("Review fundamentals adjacent to your core stack")
        if tenures and average_tenure < self._config.short_tenure_years:
            improvements.append("Explaining short tenures")
            preparation.append("Prepare a clear narrative for each role change")
        if target_role:
            preparation.append(f"Research the day-to-day scope of a {target_role}")

        score = 55.0 + 3.0 * min(years, 10.0) + min(len(technical), 10) - 5.0 * len(improvements)
        score = min(max(score, 0.0), 100.0)

        topics = [f"Deep dive: {skill}" for skill in technical[:3]]
        if chronological:
            latest = chronological[-1]
            topics.append(f"Your work as {latest.position} at {latest.company}")
        topics.append("Career motivation and next steps")

        return ProfileInsights(
            experience_level=level,
            career_progression={
                "is_linear": is_linear,
                # Industries are not extracted; the model overlay may supply a count.
                "industry_changes": 0,
                "average_tenure": round(average_tenure, 2),
                "growth_trajectory": trajectory,
            },
            skills_analysis={
                "primary_domain": primary_domain,
                "secondary_domains": secondary_domains,
                "skill_depth": depth,
                "emerging_skills": emerging,
                "skill_gaps": [],
            },
            readiness={
                "overall_score": round(score, 1),
                "strengths": strengths,
                "areas_for_improvement": improvements,
                "recommended_preparation": preparation,
            },
            personalized_question_topics=topics,
        )


def _trajectory(ranks: list[int], is_linear: bool, average_tenure: float) -> str:
    if len(ranks) < 2:
        return "steady"
    if not is_linear:
        return "varied"
    gain = ranks[-1] - ranks[0]
    if gain == 0:
        return "lateral"
    if gain >= 2 and average_tenure < 2.5:
        return "rapid"
    return "steady"


def _chronological(roles: list[WorkExperience]) -> list[WorkExperience]:
    """Oldest first. CVs list roles newest first, which is the fallback order."""
    starts = [_parse_date(exp.start_date) for exp in roles]
    if roles and all(start is not None for start in starts):
        return [exp for _, exp in sorted(zip(starts, roles), key=lambda pair: pair[0])]
    return list(reversed(roles))


def _emerging_skills(chronological: list[WorkExperience]) -> list[str]:
    if not chronological:
        return []
    earlier = {skill.lower() for exp in chronological[:-1] for skill in exp.skills}
    return [skill for skill in _dedupe(chronological[-1].skills) if skill.lower() not in earlier][:5]


def _tenure_years(experience: WorkExperience, as_of: pendulum.DateTime) -> float | None:
    start = _parse_date(experience.start_date)
    if start is None:
        return None
    end = _parse_date(experience.end_date, default=as_of)
    if end is None or end < start:
        return None
    return end.diff(start).in_months() / 12.0


def _parse_date(
    value: str | None, *, default: pendulum.DateTime | None = None
) -> pendulum.DateTime | None:
    if not value:
        return default
    value = value.strip()
    try:
        if len(value) == 7 and value[4] == "-":
            return pendulum.datetime(int(value[:4]), int(value[5:7]), 1)
        if len(value) == 4 and value.isdigit():
            return pendulum.datetime(int(value), 1, 1)
        parsed = pendulum.parse(value, strict=False)
    except ValueError:
        parsed = None
    if isinstance(parsed, pendulum.DateTime):
        return parsed
    for fmt in ("MMM YYYY", "MMMM YYYY", "MM/YYYY"):
        try:
            return pendulum.from_format(value, fmt)
        except ValueError:
            continue
    # "Present", "current" and friends.
    return default


def _dedupe(values: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    ordered: list[str] = []
    for value in values:
        key = value.lower()
        if value and key not in seen:
            seen.add(key)
            ordered.append(value)
    return ordered


def _overlay(baseline: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Model values win; missing or null values keep the baseline."""
    merged = dict(baseline)
    for key, value in overlay.items():
        if value is None or key not in baseline:
            continue
        if isinstance(value, dict) and isinstance(baseline[key], dict):
            merged[key] = _overlay(baseline[key], value)
        else:
            merged[key] = value
    return merged


__all__ = [
    "InsightConfig",
    "InsightGenerator",
    "LEVEL_THRESHOLDS",
    "LEVEL_YEAR_BANDS",
    "experience_level_for",
    "title_rank",
]
