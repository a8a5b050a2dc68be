from __future__ import annotations

import pendulum
import pytest

from preptalk.core import CurriculumSynthesizer, InsightGenerator, MatchEngine, SynthesisConfig
from preptalk.core.curriculum import allocate_minutes, plan_rounds
from preptalk.errors import ProviderTimeout
from preptalk.schemas import CandidateProfile, JobPosting


def fixed_now() -> pendulum.DateTime:
    return pendulum.datetime(2024, 6, 1)


def build_job(**overrides) -> JobPosting:
    values = {
        "title": "Backend Engineer",
        "company_name": "Acme Pay",
        "requirements": {"required_skills": ["Python", "Go"], "preferred_skills": ["Docker"]},
    }
    values.update(overrides)
    return JobPosting.model_validate(values)


def analyse(payload: dict, job: JobPosting):
    profile = CandidateProfile.model_validate(payload)
    insights = InsightGenerator(now_provider=fixed_now).baseline(profile, job.title)
    match = MatchEngine().match(profile.skills, profile.summary, job.requirements)
    return profile, insights, match


@pytest.mark.parametrize(
    "total, weights, expected",
    [
        (60, [3, 2, 1], [30, 20, 10]),
        (10, [1, 1, 1], [4, 3, 3]),
        (45, [0, 0], [23, 22]),
        (30, [], []),
    ],
)
def test_allocate_minutes_sums_to_total(total, weights, expected):
    allocation = allocate_minutes(total, weights)

    assert allocation == expected
    assert sum(allocation) == (total if weights else 0)


def test_job_only_curriculum_has_single_recruiter_round():
    synthesizer = CurriculumSynthesizer(now_provider=fixed_now)

    curriculum = synthesizer.synthesize(build_job())

    assert curriculum.total_rounds == 1
    round_ = curriculum.rounds[0]
    assert round_.round_type == "recruiter_screen"
    assert round_.interviewer_persona.name == "Sarah Chen"
    assert round_.interviewer_persona.role == "Talent Recruiter at Acme Pay"
    assert sum(topic.time_allocation for topic in round_.topics_to_cover) == round_.duration_minutes
    assert curriculum.difficulty_level == "intermediate"
    assert curriculum.title == "Backend Engineer Interview Curriculum at Acme Pay"
    assert curriculum.created_at == "2024-06-01T00:00:00Z"
    assert round_.closing_script.endswith("We'll be in touch with a decision soon.")


def test_personalised_curriculum_weights_gaps_first(profile_payload):
    job = build_job()
    profile, insights, match = analyse(profile_payload, job)
    synthesizer = CurriculumSynthesizer(now_provider=fixed_now)

    curriculum = synthesizer.synthesize(job, profile, insights, match)

    assert [round_.round_type for round_ in curriculum.rounds] == [
        "recruiter_screen",
        "technical",
        "behavioral",
        "onsite",
    ]
    assert [round_.round_number for round_ in curriculum.rounds] == [1, 2, 3, 4]
    for round_ in curriculum.rounds:
        assert sum(topic.time_allocation for topic in round_.topics_to_cover) == round_.duration_minutes
        assert sum(c.weight for c in round_.evaluation_criteria) == pytest.approx(1.0)
        assert len(round_.topics_to_cover) <= 5

    technical = curriculum.rounds[1]
    first = technical.topics_to_cover[0]
    assert first.topic == "Go"
    assert first.depth == "advanced"
    assert first.time_allocation == max(topic.time_allocation for topic in technical.topics_to_cover)
    assert technical.candidate_prep.key_topics[0].priority == "critical"
    assert technical.candidate_prep.weak_area_focus == ["Go"]
    assert curriculum.difficulty_level == "advanced"
    assert "Close the gap on Go" in curriculum.learning_objectives
    assert curriculum.rounds[0].opening_script.startswith("Hi Jane, I'm Sarah Chen")
    assert curriculum.rounds[0].closing_script.endswith("Next up is the technical interview.")
    assert f"{match.overall_match:g}%" in curriculum.overview


def test_improvement_areas_drive_behavioral_topics(profile_payload):
    profile_payload["skills"]["soft"] = []
    job = build_job()
    profile, insights, match = analyse(profile_payload, job)
    synthesizer = CurriculumSynthesizer(now_provider=fixed_now)

    curriculum = synthesizer.synthesize(job, profile, insights, match)

    behavioral = next(round_ for round_ in curriculum.rounds if round_.round_type == "behavioral")
    recruiter = curriculum.rounds[0]
    improvement = "Evidence of communication and collaboration skills"
    assert behavioral.topics_to_cover[0].topic == improvement
    assert recruiter.topics_to_cover[0].topic == improvement
    assert behavioral.candidate_prep.key_topics[0].priority == "important"


def test_profile_without_insights_skips_onsite_for_mid_level(profile_payload):
    job = build_job(level="mid")
    profile = CandidateProfile.model_validate(profile_payload)

    plan = plan_rounds(job, profile, None)

    assert plan == ["recruiter_screen", "technical", "behavioral"]


def test_executive_roles_get_final_round(profile_payload):
    job = build_job(level="executive")
    profile = CandidateProfile.model_validate(profile_payload)

    plan = plan_rounds(job, profile, None, include_culture_round=True)

    assert plan == [
        "recruiter_screen",
        "technical",
        "behavioral",
        "culture_values",
        "onsite",
        "executive_final",
    ]


def test_durations_and_passing_score_come_from_config():
    config = SynthesisConfig(durations={"recruiter_screen": 20}, passing_score=80.0)
    synthesizer = CurriculumSynthesizer(config=config, now_provider=fixed_now)

    curriculum = synthesizer.synthesize(build_job())

    assert curriculum.rounds[0].duration_minutes == 20
    assert curriculum.rounds[0].passing_score == 80.0


def test_model_personas_replace_template_fields(profile_payload, stub_client, make_gateway):
    client = stub_client(
        "writer",
        [
            {
                "rounds": [
                    {
                        "roundNumber": 1,
                        "name": "Priya Patel",
                        "role": "Lead Recruiter",
                        "personality": "Warm and direct",
                        "openingScript": "Hello Jane, welcome!",
                    },
                    {"roundNumber": 2, "name": "   "},
                ]
            }
        ],
    )
    gateway, _ = make_gateway(client)
    job = build_job()
    profile, insights, match = analyse(profile_payload, job)
    synthesizer = CurriculumSynthesizer(
        gateway, config=SynthesisConfig(use_model_personas=True), now_provider=fixed_now
    )

    result = synthesizer.synthesize_with_warnings(job, profile, insights, match)

    first, second = result.curriculum.rounds[:2]
    assert first.interviewer_persona.name == "Priya Patel"
    assert first.interviewer_persona.communication_style == "conversational"
    assert first.opening_script == "Hello Jane, welcome!"
    assert second.interviewer_persona.name == "Alex Morgan"
    assert result.warnings == []
    assert "Backend Engineer" in client.requests[0].prompt


def test_persona_enrichment_failure_is_a_warning(stub_client, make_gateway):
    client = stub_client("writer", [ProviderTimeout("writer", "timed out")])
    gateway, _ = make_gateway(client)
    synthesizer = CurriculumSynthesizer(
        gateway, config=SynthesisConfig(use_model_personas=True), now_provider=fixed_now
    )

    result = synthesizer.synthesize_with_warnings(build_job())

    assert result.curriculum.rounds[0].interviewer_persona.name == "Sarah Chen"
    assert result.warnings == ["Persona enrichment unavailable; using template personas"]


def test_personas_are_not_requested_by_default(stub_client, make_gateway):
    client = stub_client("writer", [{"rounds": []}])
    gateway, _ = make_gateway(client)

    CurriculumSynthesizer(gateway, now_provider=fixed_now).synthesize(build_job())

    assert client.requests == []


def test_blank_gaps_and_topics_are_ignored(profile_payload):
    job = build_job()
    profile, insights, match = analyse(profile_payload, job)
    match = match.model_copy(update={"gaps": ["  ", "Go"]})
    insights = insights.model_copy(
        update={
            "personalized_question_topics": ["", *insights.personalized_question_topics],
            "readiness": insights.readiness.model_copy(
                update={"areas_for_improvement": [" ", *insights.readiness.areas_for_improvement]}
            ),
        }
    )
    synthesizer = CurriculumSynthesizer(now_provider=fixed_now)

    curriculum = synthesizer.synthesize(job, profile, insights, match)

    technical = curriculum.rounds[1]
    assert technical.topics_to_cover[0].topic == "Go"
    assert technical.candidate_prep.weak_area_focus == ["Go"]
    for round_ in curriculum.rounds:
        assert all(topic.topic for topic in round_.topics_to_cover)


def test_malformed_persona_entries_are_skipped(stub_client, make_gateway):
    client = stub_client(
        "writer",
        [
            {
                "rounds": [
                    {"roundNumber": [1], "name": "Zed"},
                    {"roundNumber": True, "name": "Bool"},
                    "Round one",
                    {"roundNumber": 1, "name": "Priya Patel"},
                ]
            }
        ],
    )
    gateway, _ = make_gateway(client)
    synthesizer = CurriculumSynthesizer(
        gateway, config=SynthesisConfig(use_model_personas=True), now_provider=fixed_now
    )

    result = synthesizer.synthesize_with_warnings(build_job())

    assert result.curriculum.rounds[0].interviewer_persona.name == "Priya Patel"
    assert result.warnings == ["Persona enrichment ignored 3 malformed round entries"]


def test_rounds_carry_sample_questions(profile_payload):
    job = build_job()
    profile, insights, match = analyse(profile_payload, job)
    synthesizer = CurriculumSynthesizer(now_provider=fixed_now)

    curriculum = synthesizer.synthesize(job, profile, insights, match)

    for round_ in curriculum.rounds:
        assert 1 <= len(round_.sample_questions) <= 8
        assert all(question.expected_duration >= 1 for question in round_.sample_questions)
    technical = curriculum.rounds[1]
    first, second = technical.sample_questions[:2]
    assert first.topic == "Go"
    assert first.difficulty == "advanced"
    assert first.text.startswith("How would you approach Go in a production setting at Acme Pay")
    assert second.topic == technical.topics_to_cover[1].topic


def test_sample_questions_respect_configured_limit():
    synthesizer = CurriculumSynthesizer(
        config=SynthesisConfig(max_sample_questions=2), now_provider=fixed_now
    )

    curriculum = synthesizer.synthesize(build_job(requirements={"required_skills": []}))

    questions = curriculum.rounds[0].sample_questions
    assert [question.topic for question in questions] == [
        "Background and career story",
        "Motivation for Backend Engineer",
    ]
    assert questions[0].text == "Tell me about your experience with Background and career story."


def test_model_sample_questions_replace_generated(stub_client, make_gateway):
    client = stub_client(
        "writer",
        [
            {
                "rounds": [
                    {
                        "roundNumber": 1,
                        "sampleQuestions": ["Why Acme Pay?", {"text": "Walk me through your CV"}, 7],
                    }
                ]
            }
        ],
    )
    gateway, _ = make_gateway(client)
    synthesizer = CurriculumSynthesizer(
        gateway, config=SynthesisConfig(use_model_personas=True), now_provider=fixed_now
    )

    result = synthesizer.synthesize_with_warnings(build_job(requirements={"required_skills": []}))

    questions = result.curriculum.rounds[0].sample_questions
    assert [question.text for question in questions] == ["Why Acme Pay?", "Walk me through your CV"]
    assert {question.difficulty for question in questions} == {"basic"}
    assert questions[0].expected_duration == 15
    assert result.warnings == []


def test_invalid_model_sample_questions_keep_generated(stub_client, make_gateway):
    client = stub_client("writer", [{"rounds": [{"roundNumber": 1, "sampleQuestions": "ask anything"}]}])
    gateway, _ = make_gateway(client)
    synthesizer = CurriculumSynthesizer(
        gateway, config=SynthesisConfig(use_model_personas=True), now_provider=fixed_now
    )

    result = synthesizer.synthesize_with_warnings(build_job(requirements={"required_skills": []}))

    assert result.curriculum.rounds[0].sample_questions[0].topic == "Background and career story"
    assert result.warnings == [
        "Sample questions for round 1 were invalid; using generated questions"
    ]


def test_refinement_folds_uncovered_skills_into_rounds():
    synthesizer = CurriculumSynthesizer(now_provider=fixed_now)

    result = synthesizer.synthesize_with_warnings(build_job())

    topic = result.curriculum.rounds[0].topics_to_cover[0]
    assert topic.subtopics[-2:] == ["Experience with Python", "Experience with Go"]
    assert result.quality.missing_skills == []
    assert result.curriculum.quality_score == pytest.approx(100.0)
    assert result.warnings == []


def test_low_quality_without_refinement_is_a_warning():
    synthesizer = CurriculumSynthesizer(
        config=SynthesisConfig(max_refinements=0), now_provider=fixed_now
    )

    result = synthesizer.synthesize_with_warnings(build_job())

    assert result.curriculum.quality_score == pytest.approx(70.0)
    assert result.quality.missing_skills == ["Python", "Go"]
    assert result.warnings == [
        "Curriculum quality 70 is below 80: Required skills not covered: Python, Go"
    ]
