"\"\"\"Curriculum synthesis: round plan, personas, weighted topics and prep guides.\"\"\""

from __future__ import annotations

import math
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

import pendulum
import structlog
from pydantic import ValidationError

from ..errors import ProviderExhausted
from ..prompts import PERSONA_SYSTEM_PROMPT, build_persona_prompt
from ..providers import ProviderGateway, ProviderRequest
from ..schemas import (
    DIFFICULTY_FOR_LEVEL,
    TEXT_GENERATE,
    CandidateProfile,
    Curriculum,
    InterviewerPersona,
    JobPosting,
    MatchResult,
    ProfileInsights,
    RoundType,
)
from .quality import QualityReport, assess_quality

SENIOR_LEVELS: frozenset[str] = frozenset({"senior", "lead", "principal", "executive"})
EXECUTIVE_LEVELS: frozenset[str] = frozenset({"principal", "executive"})

GAP_WEIGHT = 3.0
INSIGHT_WEIGHT = 2.0
REQUIRED_SKILL_WEIGHT = 1.5
BASE_WEIGHT = 1.0

QUESTION_TEMPLATES: dict[str, str] = {
    "basic": "Tell me about your experience with {topic}.",
    "intermediate": "Describe a time you worked on {topic}. What was your approach and what was the outcome?",
    "advanced": "How would you approach {topic} in a production setting at {company}, and which trade-offs would you weigh?",
}
FOLLOW_UP_TEMPLATE = "Can you go deeper on {subtopic}?"


@dataclass(frozen=True)
class RoundTemplate:
    title: str
    description: str
    persona: dict[str, Any]
    topics: tuple[tuple[str, tuple[str, ...], str, bool], ...]
    criteria: tuple[tuple[str, str, float], ...]
    preparation: tuple[str, ...]


ROUND_TEMPLATES: dict[str, RoundTemplate] = {
    "recruiter_screen": RoundTemplate(
        title="Recruiter Screen",
        description="Introductory call covering background, motivation and logistics.",
        persona={
            "name": "Sarah Chen",
            "role": "Talent Recruiter at {company}",
            "personality": "Friendly, thorough and efficient",
            "communication_style": "conversational",
            "pace": "moderate",
            "goal": "Confirm motivation and fit before the hiring loop",
            "red_flags_they_watch_for": [
                "Vague reasons for leaving",
                "No research on the company",
                "Misaligned expectations",
            ],
        },
        topics=(
            ("Background and career story", ("Current role", "Reasons for a change"), "basic", True),
            ("Motivation for {title}", ("Why {company}", "What you want next"), "basic", True),
            ("Logistics and expectations", ("Timeline", "Compensation range", "Location"), "basic", False),
        ),
        criteria=(
            ("Communication", "Clear, concise answers with relevant detail", 0.4),
            ("Motivation", "Specific, researched interest in the role and company", 0.35),
            ("Role alignment", "Experience and expectations fit the position", 0.25),
        ),
        preparation=(
            "Prepare a two-minute career summary",
            "Research {company} and its products",
        ),
    ),
    "technical": RoundTemplate(
        title="Technical Interview",
        description="Hands-on assessment of the skills the role depends on.",
        persona={
            "name": "Alex Morgan",
            "role": "Senior Engineer at {company}",
            "personality": "Precise, curious and pragmatic",
            "communication_style": "challenging",
            "pace": "fast",
            "goal": "Verify depth in the required skills and sound problem solving",
            "red_flags_they_watch_for": [
                "Buzzwords without depth",
                "Not asking clarifying questions",
                "Ignoring trade-offs",
            ],
        },
        topics=(
            ("Core technical fundamentals", ("Problem solving", "Code quality"), "intermediate", True),
            ("Design and trade-offs", ("Scalability", "Failure modes"), "intermediate", True),
        ),
        criteria=(
            ("Technical depth", "Accurate, detailed command of the core skills", 0.4),
            ("Problem solving", "Structured approach and sensible trade-offs", 0.35),
            ("Communication", "Explains reasoning while working", 0.25),
        ),
        preparation=("Practice explaining your reasoning out loud",),
    ),
    "behavioral": RoundTemplate(
        title="Behavioral Interview",
        description="Past behaviour as evidence of how you work with others.",
        persona={
            "name": "Michael Rodriguez",
            "role": "Senior Manager at {company}",
            "personality": "Analytical, detail-oriented and patient",
            "communication_style": "direct",
            "pace": "moderate",
            "goal": "Find concrete evidence of ownership and collaboration",
            "red_flags_they_watch_for": [
                "Stories without personal contribution",
                "Blaming others",
                "No measurable outcomes",
            ],
        },
        topics=(
            ("Collaboration and conflict", ("Working across teams", "Disagreeing productively"), "intermediate", True),
            ("Ownership and impact", ("Driving results", "Measuring outcomes"), "intermediate", True),
            ("Learning from failure", ("Mistakes", "What changed afterwards"), "intermediate", False),
        ),
        criteria=(
            ("Ownership", "Takes responsibility for outcomes", 0.35),
            ("Collaboration", "Works effectively with others", 0.35),
            ("Self-awareness", "Reflects honestly on mistakes and growth", 0.3),
        ),
        preparation=("Write five STAR stories with measurable results",),
    ),
    "culture_values": RoundTemplate(
        title="Culture and Values",
        description="How your working style and values fit the team.",
        persona={
            "name": "Emma Thompson",
            "role": "Team Lead at {company}",
            "personality": "Collaborative, values-driven and perceptive",
            "communication_style": "supportive",
            "pace": "slow",
            "goal": "Understand how the candidate would work day to day on the team",
            "red_flags_they_watch_for": ["Rigid working style", "Dismissive of feedback"],
        },
        topics=(
            ("Values alignment", ("What matters to you at work", "{company} values"), "basic", True),
            ("Working style", ("Feedback", "Autonomy and support"), "basic", True),
        ),
        criteria=(
            ("Values alignment", "Motivations match how the team works", 0.5),
            ("Team fit", "Would strengthen the existing team", 0.5),
        ),
        preparation=("Read {company}'s published values and pick examples for each",),
    ),
    "onsite": RoundTemplate(
        title="Onsite Loop",
        description="Extended session with the hiring team covering role-specific scenarios.",
        persona={
            "name": "David Kim",
            "role": "Director at {company}",
            "personality": "Strategic, business-focused and forward-thinking",
            "communication_style": "direct",
            "pace": "moderate",
            "goal": "Decide whether the candidate can own the role from day one",
            "red_flags_they_watch_for": [
                "Shallow answers on core responsibilities",
                "No questions for the team",
            ],
        },
        topics=(
            ("Role-specific deep dive", ("Day-one responsibilities", "First 90 days"), "advanced", True),
            ("Cross-functional scenarios", ("Stakeholders", "Prioritisation"), "intermediate", True),
            ("Questions for the team", ("Team structure", "Success measures"), "basic", False),
        ),
        criteria=(
            ("Role expertise", "Can deliver on the core responsibilities", 0.4),
            ("Problem solving", "Handles ambiguous, realistic scenarios", 0.3),
            ("Collaboration", "Engages well with the hiring team", 0.3),
        ),
        preparation=("Map your experience to each listed responsibility",),
    ),
    "executive_final": RoundTemplate(
        title="Executive Final",
        description="Closing conversation with senior leadership on vision and leadership.",
        persona={
            "name": "Lisa Johnson",
            "role": "VP at {company}",
            "personality": "Decisive, visionary and leadership-focused",
            "communication_style": "direct",
            "pace": "slow",
            "goal": "Confirm strategic judgement and leadership at the level of the role",
            "red_flags_they_watch_for": ["No point of view on strategy", "Purely tactical answers"],
        },
        topics=(
            ("Strategic vision for the role", ("Priorities", "Risks"), "advanced", True),
            ("Leadership philosophy", ("Building teams", "Hard decisions"), "advanced", True),
            ("Business impact", ("Metrics that matter", "Trade-offs at scale"), "advanced", False),
        ),
        criteria=(
            ("Strategic thinking", "Clear point of view on direction and priorities", 0.4),
            ("Leadership", "Evidence of building and leading teams", 0.35),
            ("Business acumen", "Connects decisions to business outcomes", 0.25),
        ),
        preparation=("Prepare a point of view on {company}'s strategy",),
    ),
}


@dataclass
class SynthesisConfig:
    """Durations, limits and persona enrichment switch."""

    durations: dict[str, int] = field(
        default_factory=lambda: {
            "recruiter_screen": 30,
            "technical": 60,
            "behavioral": 45,
            "culture_values": 45,
            "onsite": 90,
            "executive_final": 45,
        }
    )
    passing_score: float = 70.0
    max_topics_per_round: int = 5
    prep_hours_per_topic: float = 1.5
    include_culture_round: bool = False
    use_model_personas: bool = False
    persona_temperature: float = 0.7
    persona_max_tokens: int = 1500
    max_sample_questions: int = 8
    min_quality_score: float = 80.0
    max_refinements: int = 2


@dataclass(slots=True)
class SynthesisResult:
    curriculum: Curriculum
    warnings: list[str] = field(default_factory=list)
    quality: QualityReport | None = None


@dataclass(slots=True)
class _TopicCandidate:
    topic: str
    subtopics: list[str]
    depth: str
    must_cover: bool
    weight: float


def allocate_minutes(total: int, weights: Sequence[float]) -> list[int]:
    """Split ``total`` proportionally to ``weights`` with largest-remainder rounding."""
    if not weights:
        return []
    weight_sum = float(sum(weights))
    if weight_sum <= 0:
        weights = [1.0] * len(weights)
        weight_sum = float(len(weights))
    raw = [total * weight / weight_sum for weight in weights]
    allocation = [math.floor(value) for value in raw]
    leftover = total - sum(allocation)
    by_remainder = sorted(range(len(raw)), key=lambda idx: (-(raw[idx] - allocation[idx]), idx))
    for idx in by_remainder[:leftover]:
        allocation[idx] += 1
    return allocation


def build_sample_questions(
    topics: Sequence[dict[str, Any]], company: str, limit: int
) -> list[dict[str, Any]]:
    """Opening question per topic first, then subtopic follow-ups, up to ``limit``."""
    per_topic: list[list[dict[str, Any]]] = []
    for topic in topics:
        count = max(topic["question_count"], 1)
        minutes = max(topic["time_allocation"] // count, 1)
        template = QUESTION_TEMPLATES.get(topic["depth"], QUESTION_TEMPLATES["intermediate"])
        texts = [template.format(topic=topic["topic"], company=company)]
        texts.extend(FOLLOW_UP_TEMPLATE.format(subtopic=sub) for sub in topic["subtopics"][: count - 1])
        per_topic.append(
            [
                {
                    "text": text,
                    "topic": topic["topic"],
                    "difficulty": topic["depth"],
                    "expected_duration": minutes,
                }
                for text in texts
            ]
        )

    questions: list[dict[str, Any]] = []
    depth = max((len(items) for items in per_topic), default=0)
    for index in range(depth):
        questions.extend(items[index] for items in per_topic if index < len(items))
    return questions[: max(limit, 1)]


def plan_rounds(
    job: JobPosting,
    profile: CandidateProfile | None,
    insights: ProfileInsights | None,
    *,
    include_culture_round: bool = False,
) -> list[RoundType]:
    plan: list[RoundType] = ["recruiter_screen"]
    if profile is None:
        return plan

    if job.requirements.required_skills or profile.skills.technical:
        plan.append("technical")
    plan.append("behavioral")
    if include_culture_round:
        plan.append("culture_values")

    level = job.effective_level or (insights.experience_level if insights else None)
    if insights is not None or level in SENIOR_LEVELS:
        plan.append("onsite")
    if level in EXECUTIVE_LEVELS:
        plan.append("executive_final")
    return plan


class CurriculumSynthesizer:
    """Assemble a validated ``Curriculum`` from the job and whatever CV analysis exists."""

    def __init__(
        self,
        gateway: ProviderGateway | None = None,
        *,
        config: SynthesisConfig | None = None,
        now_provider: Callable[[], Any] | None = None,
    ) -> None:
        self._gateway = gateway
        self._config = config or SynthesisConfig()
        self._now_provider = now_provider or pendulum.now
        self._logger = structlog.get_logger(__name__)

    def synthesize(
        self,
        job: JobPosting,
        profile: CandidateProfile | None = None,
        insights: ProfileInsights | None = None,
        match: MatchResult | None = None,
    ) -> Curriculum:
        return self.synthesize_with_warnings(job, profile, insights, match).curriculum

    def synthesize_with_warnings(
        self,
        job: JobPosting,
        profile: CandidateProfile | None = None,
        insights: ProfileInsights | None = None,
        match: MatchResult | None = None,
        *,
        cancel_event: threading.Event | None = None,
    ) -> SynthesisResult:
        warnings: list[str] = []
        company = job.display_company
        fmt = {"title": job.title, "company": company}
        plan = plan_rounds(
            job, profile, insights, include_culture_round=self._config.include_culture_round
        )

        gaps = _present(match.gaps) if match else []
        improvements = _present(insights.readiness.areas_for_improvement) if insights else []
        question_topics = _present(insights.personalized_question_topics) if insights else []
        recommended = _present(insights.readiness.recommended_preparation) if insights else []

        rounds: list[dict[str, Any]] = []
        for number, round_type in enumerate(plan, start=1):
            template = ROUND_TEMPLATES[round_type]
            duration = int(self._config.durations.get(round_type, 45))
            candidates = self._topic_candidates(
                round_type, template, fmt, job, gaps, improvements, question_topics
            )
            topics = self._allocate(candidates, duration)
            persona = {
                key: value.format(**fmt) if isinstance(value, str) else value
                for key, value in template.persona.items()
            }
            criteria_total = sum(weight for _, _, weight in template.criteria)
            rounds.append(
                {
                    "round_number": number,
                    "round_type": round_type,
                    "title": template.title,
                    "description": template.description,
                    "duration_minutes": duration,
                    "interviewer_persona": persona,
                    "topics_to_cover": topics,
                    "evaluation_criteria": [
                        {"name": name, "description": description, "weight": weight / criteria_total}
                        for name, description, weight in template.criteria
                    ],
                    "opening_script": "",
                    "closing_script": "",
                    "passing_score": self._config.passing_score,
                    "candidate_prep": self._prep(template, fmt, candidates, gaps, recommended),
                    "sample_questions": build_sample_questions(
                        topics, company, self._config.max_sample_questions
                    ),
                }
            )

        candidate_name = profile.personal_info.full_name if profile else None
        for index, round_ in enumerate(rounds):
            following = rounds[index + 1]["title"] if index + 1 < len(rounds) else None
            round_["opening_script"] = _opening_script(round_, job.title, candidate_name)
            round_["closing_script"] = _closing_script(candidate_name, following)

        if self._config.use_model_personas and self._gateway is not None:
            self._enrich_personas(job, rounds, warnings, cancel_event)

        level = (
            (insights.experience_level if insights else None)
            or job.effective_level
            or "mid"
        )
        objectives = [f"Handle the {round_['title'].lower()} with confidence" for round_ in rounds]
        objectives.extend(f"Close the gap on {gap}" for gap in gaps[:3])

        title = f"{job.title} Interview Curriculum"
        if job.company_name:
            title = f"{title} at {job.company_name}"
        overview = f"{len(rounds)}-round interview preparation for the {job.title} role at {company}."
        if profile is not None:
            overview += f" Personalized for {profile.personal_info.full_name}"
            overview += f" with an overall match of {match.overall_match:g}%." if match else "."

        payload = {
            "title": title,
            "overview": overview,
            "difficulty_level": DIFFICULTY_FOR_LEVEL[level],
            "rounds": rounds,
            "total_rounds": len(rounds),
            "learning_objectives": objectives,
            "created_at": self._now_provider().to_iso8601_string(),
        }
        curriculum = Curriculum.model_validate(payload)
        report = assess_quality(curriculum, job)
        refinements = 0
        while (
            report.score < self._config.min_quality_score
            and report.missing_skills
            and refinements < self._config.max_refinements
        ):
            _cover_skills(rounds, report.missing_skills)
            refinements += 1
            curriculum = Curriculum.model_validate(payload)
            report = assess_quality(curriculum, job)

        if report.score < self._config.min_quality_score:
            warnings.append(
                f"Curriculum quality {report.score:g} is below {self._config.min_quality_score:g}: "
                + "; ".join(report.weak_areas)
            )
        curriculum = curriculum.model_copy(update={"quality_score": report.score})

        self._logger.info(
            "curriculum.synthesized",
            rounds=[round_.round_type for round_ in curriculum.rounds],
            personalized=profile is not None,
            gaps=len(gaps),
            quality=report.score,
            refinements=refinements,
            warnings=len(warnings),
        )
        return SynthesisResult(curriculum=curriculum, warnings=warnings, quality=report)

    def _topic_candidates(
        self,
        round_type: str,
        template: RoundTemplate,
        fmt: dict[str, str],
        job: JobPosting,
        gaps: list[str],
        improvements: list[str],
        question_topics: list[str],
    ) -> list[_TopicCandidate]:
        candidates: list[_TopicCandidate] = []
        if round_type in ("technical", "onsite"):
            candidates.extend(
                _TopicCandidate(gap, [f"Fundamentals of {gap}", f"Applying {gap} in practice"], "advanced", True, GAP_WEIGHT)
                for gap in gaps
            )
            candidates.extend(
                _TopicCandidate(topic, [], "intermediate", True, INSIGHT_WEIGHT)
                for topic in question_topics
            )
        if round_type == "technical":
            covered = {gap.lower() for gap in gaps}
            candidates.extend(
                _TopicCandidate(skill, [f"Experience with {skill}"], "intermediate", True, REQUIRED_SKILL_WEIGHT)
                for skill in job.requirements.required_skills
                if skill.lower() not in covered
            )
        if round_type in ("behavioral", "recruiter_screen") and improvements:
            candidates.extend(
                _TopicCandidate(area, [], "intermediate", True, INSIGHT_WEIGHT)
                for area in (improvements if round_type == "behavioral" else improvements[:1])
            )
        for topic, subtopics, depth, must_cover in template.topics:
            candidates.append(
                _TopicCandidate(
                    topic.format(**fmt),
                    [item.format(**fmt) for item in subtopics],
                    depth,
                    must_cover,
                    BASE_WEIGHT,
                )
            )

        seen: set[str] = set()
        unique: list[_TopicCandidate] = []
        for candidate in candidates:
            candidate.topic = candidate.topic.strip()
            key = candidate.topic.lower()
            if key and key not in seen:
                seen.add(key)
                unique.append(candidate)
        # sorted() is stable, so equal weights keep their source order.
        ranked = sorted(unique, key=lambda item: -item.weight)
        return ranked[: max(self._config.max_topics_per_round, 1)]

    @staticmethod
    def _allocate(candidates: list[_TopicCandidate], duration: int) -> list[dict[str, Any]]:
        minutes = allocate_minutes(duration, [candidate.weight for candidate in candidates])
        return [
            {
                "topic": candidate.topic,
                "subtopics": candidate.subtopics,
                "depth": candidate.depth,
                "time_allocation": allotted,
                "must_cover": candidate.must_cover,
                "question_count": max(1, allotted // 5),
            }
            for candidate, allotted in zip(candidates, minutes)
        ]

    def _prep(
        self,
        template: RoundTemplate,
        fmt: dict[str, str],
        candidates: list[_TopicCandidate],
        gaps: list[str],
        recommended: list[str],
    ) -> dict[str, Any]:
        key_topics = []
        for candidate in candidates:
            if candidate.weight >= GAP_WEIGHT:
                priority = "critical"
            elif candidate.weight >= INSIGHT_WEIGHT or candidate.must_cover:
                priority = "important"
            else:
                priority = "nice_to_have"
            key_topics.append({"topic": candidate.topic, "priority": priority})

        preparation = [item.format(**fmt) for item in template.preparation]
        preparation.extend(item for item in recommended if item not in preparation)
        hours = len(key_topics) * self._config.prep_hours_per_topic + 0.5 * len(gaps)
        return {
            "key_topics": key_topics,
            "recommended_preparation": preparation,
            "weak_area_focus": list(gaps),
            "estimated_prep_hours": round(hours, 1),
        }

    def _enrich_personas(
        self,
        job: JobPosting,
        rounds: list[dict[str, Any]],
        warnings: list[str],
        cancel_event: threading.Event | None,
    ) -> None:
        request = ProviderRequest(
            prompt=build_persona_prompt(
                job_title=job.title,
                company_name=job.display_company,
                rounds=[
                    {
                        "roundNumber": round_["round_number"],
                        "roundType": round_["round_type"],
                        "title": round_["title"],
                        "goal": round_["interviewer_persona"]["goal"],
                    }
                    for round_ in rounds
                ],
            ),
            system_prompt=PERSONA_SYSTEM_PROMPT,
            temperature=self._config.persona_temperature,
            max_tokens=self._config.persona_max_tokens,
        )
        try:
            result = self._gateway.invoke(TEXT_GENERATE, request, cancel_event=cancel_event)
        except ProviderExhausted as exc:
            self._logger.warning("curriculum.persona_enrichment_failed", error=exc.message)
            warnings.append("Persona enrichment unavailable; using template personas")
            return

        entries = result.data.get("rounds")
        if not isinstance(entries, list):
            warnings.append("Persona enrichment returned no rounds; using template personas")
            return

        by_number: dict[int, dict[str, Any]] = {}
        skipped = 0
        for entry in entries:
            number = entry.get("roundNumber") if isinstance(entry, dict) else None
            if isinstance(number, int) and not isinstance(number, bool):
                by_number[number] = entry
            else:
                skipped += 1
        if skipped:
            warnings.append(f"Persona enrichment ignored {skipped} malformed round entries")

        for round_ in rounds:
            entry = by_number.get(round_["round_number"])
            if entry is None:
                continue
            self._apply_persona(round_, entry, warnings)
            self._apply_questions(round_, entry, warnings)

    @staticmethod
    def _apply_persona(round_: dict[str, Any], entry: dict[str, Any], warnings: list[str]) -> None:
        updates = {
            key: entry[key].strip()
            for key in ("name", "role", "personality")
            if isinstance(entry.get(key), str) and entry[key].strip()
        }
        candidate = {**round_["interviewer_persona"], **updates}
        try:
            InterviewerPersona.model_validate(candidate)
        except ValidationError:
            warnings.append(
                f"Persona for round {round_['round_number']} was invalid; using template persona"
            )
            return
        round_["interviewer_persona"] = candidate
        script = entry.get("openingScript")
        if isinstance(script, str) and script.strip():
            round_["opening_script"] = script.strip()

    def _apply_questions(self, round_: dict[str, Any], entry: dict[str, Any], warnings: list[str]) -> None:
        raw = entry.get("sampleQuestions")
        if raw is None:
            return
        texts = _question_texts(raw)
        if not texts:
            warnings.append(
                f"Sample questions for round {round_['round_number']} were invalid; using generated questions"
            )
            return
        texts = texts[: max(self._config.max_sample_questions, 1)]
        depth = round_["topics_to_cover"][0]["depth"]
        minutes = max(round_["duration_minutes"] // len(texts), 1)
        round_["sample_questions"] = [
            {"text": text, "topic": None, "difficulty": depth, "expected_duration": minutes}
            for text in texts
        ]


def _present(values: Sequence[str]) -> list[str]:
    return [value.strip() for value in values if value and value.strip()]


def _question_texts(raw: Any) -> list[str]:
    if not isinstance(raw, list):
        return []
    texts = []
    for item in raw:
        text = item.get("text") if isinstance(item, dict) else item
        if isinstance(text, str) and text.strip():
            texts.append(text.strip())
    return texts


def _cover_skills(rounds: list[dict[str, Any]], skills: Sequence[str]) -> None:
    """Fold uncovered required skills into the technical round, or the closest fit."""
    by_type = {round_["round_type"]: round_ for round_ in rounds}
    target = by_type.get("technical") or by_type.get("onsite") or rounds[0]
    topic = target["topics_to_cover"][0]
    topic["subtopics"] = [*topic["subtopics"], *(f"Experience with {skill}" for skill in skills)]
    target["sample_questions"] = [
        *target["sample_questions"],
        *(
            {
                "text": QUESTION_TEMPLATES["basic"].format(topic=skill),
                "topic": topic["topic"],
                "difficulty": topic["depth"],
                "expected_duration": 5,
            }
            for skill in skills
        ),
    ]


def _opening_script(round_: dict[str, Any], job_title: str, candidate_name: str | None) -> str:
    persona = round_["interviewer_persona"]
    greeting = f"Hi {candidate_name.split()[0]}" if candidate_name else "Hi"
    topics = ", ".join(topic["topic"] for topic in round_["topics_to_cover"][:3])
    return (
        f"{greeting}, I'm {persona['name']}, {persona['role']}. Thanks for making time today. "
        f"This {round_['duration_minutes']}-minute {round_['title'].lower()} for the {job_title} "
        f"role will cover {topics}."
    )


def _closing_script(candidate_name: str | None, following: str | None) -> str:
    thanks = f"Thanks, {candidate_name.split()[0]}." if candidate_name else "Thank you."
    if following:
        return f"That's everything from me. {thanks} Next up is the {following.lower()}."
    return f"That's everything from me. {thanks} We'll be in touch with a decision soon."


__all__ = [
    "CurriculumSynthesizer",
    "ROUND_TEMPLATES",
    "SynthesisConfig",
    "SynthesisResult",
    "allocate_minutes",
    "build_sample_questions",
    "plan_rounds",
]
