from __future__ import annotations

import json
import threading
from pathlib import Path

import pendulum
import pytest
from dependency_injector import providers

from preptalk.container import create_container
from preptalk.core import CurriculumSynthesizer, DocumentExtractor, InsightGenerator, MatchEngine
from preptalk.errors import (
    ExtractionSchemaInvalid,
    GenerationFailed,
    GenerationCancelled,
    IllegalTransition,
    InsufficientCredits,
    JobNotFound,
    PersistenceFailed,
    ProviderTimeout,
    Unauthorized,
)
from preptalk.pipeline import AuditLogger, CurriculumPipeline, Stage, StageMachine
from preptalk.schemas import JobPosting
from preptalk.stores import InMemoryRecordStore, LocalCreditLedger

CV_TEXT = b"Jane Doe\nSenior Backend Engineer at Acme\nPython, Kubernetes, Terraform"

INSIGHT_OVERLAY = {
    "readiness": {"overallScore": 82},
    "personalizedQuestionTopics": ["Payments API reliability", "Career motivation and next steps"],
}


def fixed_now() -> pendulum.DateTime:
    return pendulum.datetime(2024, 6, 1)


def build_job(**overrides) -> JobPosting:
    values = {
        "id": "job-1",
        "title": "Backend Engineer",
        "companyName": "Acme Pay",
        "requirements": {"requiredSkills": ["Python", "Go"], "preferredSkills": ["Docker"]},
    }
    values.update(overrides)
    return JobPosting.model_validate(values)


def build_pipeline(gateway, *, store=None, credits=None, audit_logger=None) -> CurriculumPipeline:
    return CurriculumPipeline(
        extractor=DocumentExtractor(gateway, now_provider=fixed_now),
        insight_generator=InsightGenerator(gateway, now_provider=fixed_now),
        match_engine=MatchEngine(),
        synthesizer=CurriculumSynthesizer(gateway, now_provider=fixed_now),
        store=store if store is not None else InMemoryRecordStore(),
        credits=credits or LocalCreditLedger(balance=5),
        audit_logger=audit_logger,
    )


class FailingRoundsStore(InMemoryRecordStore):
    def create_record(self, table, fields):
        if table == "curriculum_rounds":
            raise OSError("disk full")
        return super().create_record(table, fields)


def test_job_only_request_yields_single_round_curriculum(stub_client, make_gateway):
    client = stub_client("ocr", [])
    gateway, _ = make_gateway(client)
    store = InMemoryRecordStore()
    credits = LocalCreditLedger(balance=1)
    pipeline = build_pipeline(gateway, store=store, credits=credits)

    result = pipeline.generate(build_job())

    assert result.curriculum.total_rounds == 1
    assert result.curriculum.rounds[0].round_type == "recruiter_screen"
    assert result.profile is None and result.insights is None and result.match is None
    assert result.stage_history == ["init", "synthesizing", "persisted"]
    assert result.cost_cents == 0.0
    assert client.requests == []
    assert credits.balance == 0

    record = store.read_record("curricula", result.curriculum_id)
    assert record["generationStatus"] == "complete"
    assert record["ownerId"] == "local-user"
    assert record["jobId"] == "job-1"
    assert record["cvAnalysisId"] is None
    assert len(record["roundIds"]) == 1
    assert store.records("cv_analyses") == []


def test_full_run_extracts_analyses_and_persists(profile_payload, stub_client, make_gateway):
    client = stub_client("ocr", [profile_payload, INSIGHT_OVERLAY])
    gateway, _ = make_gateway(client)
    store = InMemoryRecordStore()
    pipeline = build_pipeline(gateway, store=store)

    result = pipeline.generate(build_job(), CV_TEXT, "text/plain")

    assert result.stage_history == [
        "init",
        "extracting",
        "extracted",
        "insighting",
        "matching",
        "synthesizing",
        "persisted",
    ]
    assert result.profile.personal_info.full_name == "Jane Doe"
    assert result.insights.readiness.overall_score == 82.0
    assert result.match.gaps == ["Go"]
    assert result.failures == []
    assert result.warnings == ["Second page was blurry"]
    assert result.cost_cents == pytest.approx(0.5)
    assert [r.round_type for r in result.curriculum.rounds] == [
        "recruiter_screen",
        "technical",
        "behavioral",
        "onsite",
    ]
    assert "The candidate is preparing for: Backend Engineer" in client.requests[1].prompt

    analyses = store.records("cv_analyses")
    assert len(analyses) == 1
    assert analyses[0]["matchScore"] == result.match.overall_match
    loaded = pipeline.repository.load(result.curriculum_id)
    assert loaded.to_payload() == result.curriculum.to_payload()


def test_insight_outage_degrades_to_match_only(profile_payload, stub_client, make_gateway):
    client = stub_client("ocr", [profile_payload, ProviderTimeout("ocr", "timed out")])
    gateway, _ = make_gateway(client)
    pipeline = build_pipeline(gateway)

    result = pipeline.generate(build_job(), CV_TEXT, "text/plain")

    assert result.insights is None
    assert result.match is not None
    assert result.failures == [
        {
            "stage": "insighting",
            "error": "InsightGenerationFailed",
            "message": "Insight generation failed: no provider produced a response",
        }
    ]
    assert [r.round_type for r in result.curriculum.rounds] == [
        "recruiter_screen",
        "technical",
        "behavioral",
    ]
    assert result.curriculum.rounds[1].topics_to_cover[0].topic == "Go"


def test_match_failure_is_recorded_not_fatal(profile_payload, stub_client, make_gateway, monkeypatch):
    client = stub_client("ocr", [profile_payload, INSIGHT_OVERLAY])
    gateway, _ = make_gateway(client)
    pipeline = build_pipeline(gateway)

    def explode(*_args, **_kwargs):
        raise ZeroDivisionError("bad weights")

    monkeypatch.setattr(pipeline._matcher, "match", explode)

    result = pipeline.generate(build_job(), CV_TEXT, "text/plain")

    assert result.match is None
    assert result.insights is not None
    assert result.failures[0]["stage"] == "matching"
    assert result.failures[0]["error"] == "MatchComputationFailed"


def test_blank_insight_topics_are_recorded_not_fatal(profile_payload, stub_client, make_gateway):
    overlay = {"personalizedQuestionTopics": ["  ", "Payments API reliability"]}
    client = stub_client("ocr", [profile_payload, overlay])
    gateway, _ = make_gateway(client)
    pipeline = build_pipeline(gateway)

    result = pipeline.generate(build_job(), CV_TEXT, "text/plain")

    assert result.insights is None
    assert result.failures[0]["stage"] == "insighting"
    assert result.failures[0]["error"] == "InsightGenerationFailed"
    assert result.curriculum.generation_status == "complete"
    for round_ in result.curriculum.rounds:
        assert all(topic.topic.strip() for topic in round_.topics_to_cover)


def test_unexpected_error_is_wrapped_with_stage(tmp_path: Path, stub_client, make_gateway, monkeypatch):
    audit_path = tmp_path / "audit.jsonl"
    gateway, _ = make_gateway(stub_client("ocr", []))
    store = InMemoryRecordStore()
    pipeline = build_pipeline(gateway, store=store, audit_logger=AuditLogger(audit_path))

    def explode(*_args, **_kwargs):
        raise KeyError("rounds")

    monkeypatch.setattr(pipeline._synthesizer, "synthesize_with_warnings", explode)

    with pytest.raises(GenerationFailed) as excinfo:
        pipeline.generate(build_job())

    assert excinfo.value.stage == "synthesizing"
    assert isinstance(excinfo.value.__cause__, KeyError)
    assert excinfo.value.details == {"exception": "KeyError"}
    assert store.records("curricula") == []
    entries = [json.loads(line) for line in audit_path.read_text(encoding="utf-8").splitlines()]
    assert entries[0]["status"] == "failed"
    assert entries[0]["error"]["error"] == "GenerationFailed"
    assert entries[0]["history"] == ["init", "synthesizing", "failed"]


def test_persisted_quality_score_round_trips(stub_client, make_gateway):
    gateway, _ = make_gateway(stub_client("ocr", []))
    store = InMemoryRecordStore()
    pipeline = build_pipeline(gateway, store=store)

    result = pipeline.generate(build_job())

    assert store.read_record("curricula", result.curriculum_id)["qualityScore"] == pytest.approx(100.0)
    assert pipeline.repository.load(result.curriculum_id).quality_score == pytest.approx(100.0)


def test_invalid_extraction_aborts_without_store_writes(profile_payload, stub_client, make_gateway):
    del profile_payload["personalInfo"]["fullName"]
    client = stub_client("ocr", [profile_payload])
    gateway, _ = make_gateway(client)
    store = InMemoryRecordStore()
    pipeline = build_pipeline(gateway, store=store)

    with pytest.raises(ExtractionSchemaInvalid) as excinfo:
        pipeline.generate(build_job(), CV_TEXT, "text/plain")

    assert excinfo.value.stage == "extracting"
    assert excinfo.value.to_dict()["stage"] == "extracting"
    assert store.snapshot() == {}
    assert len(client.requests) == 1


def test_persistence_failure_marks_curriculum_failed(stub_client, make_gateway):
    gateway, _ = make_gateway(stub_client("ocr", []))
    store = FailingRoundsStore()
    pipeline = build_pipeline(gateway, store=store)

    with pytest.raises(PersistenceFailed) as excinfo:
        pipeline.generate(build_job())

    assert excinfo.value.stage == "persisted"
    curricula = store.records("curricula")
    assert len(curricula) == 1
    assert curricula[0]["generationStatus"] == "failed"
    assert pipeline.repository.load(curricula[0]["id"]) is None


@pytest.mark.parametrize(
    "credits, error",
    [
        (LocalCreditLedger(user_id=None), Unauthorized),
        (LocalCreditLedger(balance=0), InsufficientCredits),
    ],
)
def test_preflight_failures_make_no_provider_calls(profile_payload, stub_client, make_gateway, credits, error):
    client = stub_client("ocr", [profile_payload])
    gateway, _ = make_gateway(client)
    store = InMemoryRecordStore()
    pipeline = build_pipeline(gateway, store=store, credits=credits)

    with pytest.raises(error) as excinfo:
        pipeline.generate(build_job(), CV_TEXT, "text/plain")

    assert excinfo.value.stage == "init"
    assert client.requests == []
    assert store.snapshot() == {}


def test_job_reference_is_resolved_from_store(stub_client, make_gateway):
    gateway, _ = make_gateway(stub_client("ocr", []))
    store = InMemoryRecordStore(
        {"jobs": {"job-7": {"title": "Data Engineer", "companyName": "Globex", "level": "executive"}}}
    )
    pipeline = build_pipeline(gateway, store=store)

    result = pipeline.generate("job-7")

    assert result.curriculum.title == "Data Engineer Interview Curriculum at Globex"
    assert result.curriculum.difficulty_level == "expert"
    assert store.read_record("curricula", result.curriculum_id)["jobId"] == "job-7"


@pytest.mark.parametrize("tables", [{}, {"jobs": {"job-7": {"companyName": "No title"}}}])
def test_unknown_or_invalid_job_is_not_found(stub_client, make_gateway, tables):
    gateway, _ = make_gateway(stub_client("ocr", []))
    credits = LocalCreditLedger(balance=1)
    pipeline = build_pipeline(gateway, store=InMemoryRecordStore(tables), credits=credits)

    with pytest.raises(JobNotFound) as excinfo:
        pipeline.generate("job-7")

    assert excinfo.value.stage == "init"
    assert credits.balance == 1


def test_cancelled_request_stops_before_extraction(profile_payload, stub_client, make_gateway):
    client = stub_client("ocr", [profile_payload])
    gateway, _ = make_gateway(client)
    pipeline = build_pipeline(gateway)
    cancel = threading.Event()
    cancel.set()

    with pytest.raises(GenerationCancelled):
        pipeline.generate(build_job(), CV_TEXT, "text/plain", cancel_event=cancel)

    assert client.requests == []


def test_audit_log_records_success_and_failure(tmp_path: Path, profile_payload, stub_client, make_gateway):
    audit_path = tmp_path / "audit" / "audit.jsonl"
    gateway, _ = make_gateway(stub_client("ocr", [profile_payload, INSIGHT_OVERLAY]))
    pipeline = build_pipeline(
        gateway, credits=LocalCreditLedger(balance=1), audit_logger=AuditLogger(audit_path)
    )

    result = pipeline.generate(build_job(), CV_TEXT, "text/plain")
    with pytest.raises(InsufficientCredits):
        pipeline.generate(build_job())

    entries = [json.loads(line) for line in audit_path.read_text(encoding="utf-8").splitlines()]
    assert [entry["status"] for entry in entries] == ["persisted", "failed"]
    assert entries[0]["curriculum_id"] == result.curriculum_id
    assert entries[0]["history"][-1] == "persisted"
    assert entries[0]["app_version"]
    assert entries[1]["error"]["error"] == "InsufficientCredits"
    assert entries[1]["history"] == ["init", "failed"]


def test_container_wires_pipeline_with_overrides(stub_client, make_gateway):
    gateway, _ = make_gateway(stub_client("ocr", []))
    store = InMemoryRecordStore()
    container = create_container(settings={"synthesis": {"durations": {"recruiter_screen": 25}}})
    container.gateway.override(providers.Object(gateway))
    container.store.override(providers.Object(store))

    result = container.pipeline().generate(build_job())

    assert result.curriculum.rounds[0].duration_minutes == 25
    assert store.read_record("curricula", result.curriculum_id)["generationStatus"] == "complete"


def test_stage_machine_forks_and_joins():
    machine = StageMachine()

    machine.transition(Stage.EXTRACTING)
    machine.transition(Stage.EXTRACTED)
    machine.transition(Stage.INSIGHTING, Stage.MATCHING)
    assert machine.label == "insighting+matching"
    machine.transition(Stage.SYNTHESIZING)
    machine.transition(Stage.PERSISTED)

    assert machine.terminal is True
    machine.fail()
    assert machine.history[-1] == "persisted"


@pytest.mark.parametrize(
    "path",
    [
        [Stage.EXTRACTED],
        [Stage.EXTRACTING, Stage.SYNTHESIZING],
        [Stage.SYNTHESIZING, Stage.EXTRACTING],
    ],
)
def test_stage_machine_rejects_out_of_order_transitions(path):
    machine = StageMachine()

    with pytest.raises(IllegalTransition):
        for stage in path:
            machine.transition(stage)


def test_stage_machine_fail_from_fork():
    machine = StageMachine()
    machine.transition(Stage.EXTRACTING)
    machine.transition(Stage.EXTRACTED)
    machine.transition(Stage.INSIGHTING, Stage.MATCHING)

    machine.fail()

    assert machine.active == frozenset({Stage.FAILED})
    assert machine.terminal is True
