"\"\"\"Curriculum generation orchestration, persistence and auditing.\"\"\""

from __future__ import annotations

import json
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import pendulum
import structlog
from pydantic import ValidationError

from . import __version__
from .core import CurriculumSynthesizer, DocumentExtractor, InsightGenerator, MatchEngine
from .core.extractor import DetailLevel
from .documents import LoadedDocument
from .errors import (
    CurriculumError,
    GenerationCancelled,
    GenerationFailed,
    IllegalTransition,
    InsightGenerationFailed,
    InsufficientCredits,
    JobNotFound,
    MatchComputationFailed,
    PersistenceFailed,
    Unauthorized,
)
from .schemas import CandidateProfile, Curriculum, JobPosting, MatchResult, ProfileInsights
from .stores import CreditLedger, RecordStore


class Stage(str, Enum):
    INIT = "init"
    EXTRACTING = "extracting"
    EXTRACTED = "extracted"
    INSIGHTING = "insighting"
    MATCHING = "matching"
    SYNTHESIZING = "synthesizing"
    PERSISTED = "persisted"
    FAILED = "failed"


TRANSITIONS: dict[Stage, frozenset[Stage]] = {
    Stage.INIT: frozenset({Stage.EXTRACTING, Stage.SYNTHESIZING, Stage.FAILED}),
    Stage.EXTRACTING: frozenset({Stage.EXTRACTED, Stage.FAILED}),
    Stage.EXTRACTED: frozenset({Stage.INSIGHTING, Stage.MATCHING, Stage.FAILED}),
    Stage.INSIGHTING: frozenset({Stage.SYNTHESIZING, Stage.FAILED}),
    Stage.MATCHING: frozenset({Stage.SYNTHESIZING, Stage.FAILED}),
    Stage.SYNTHESIZING: frozenset({Stage.PERSISTED, Stage.FAILED}),
    Stage.PERSISTED: frozenset(),
    Stage.FAILED: frozenset(),
}


class StageMachine:
    """Tracks the active stage set of one run.

    Entering several stages at once forks them; leaving a forked set requires
    the target to be reachable from every active stage, which is the join.
    """

    def __init__(self) -> None:
        self._active: frozenset[Stage] = frozenset({Stage.INIT})
        self.history: list[str] = [Stage.INIT.value]
        self._logger = structlog.get_logger(__name__)

    @property
    def active(self) -> frozenset[Stage]:
        return self._active

    @property
    def label(self) -> str:
        return "+".join(sorted(stage.value for stage in self._active))

    @property
    def terminal(self) -> bool:
        return all(not TRANSITIONS[stage] for stage in self._active)

    def transition(self, *targets: Stage) -> None:
        if not targets:
            raise IllegalTransition("transition needs at least one target stage")
        for source in self._active:
            illegal = [target for target in targets if target not in TRANSITIONS[source]]
            if illegal:
                raise IllegalTransition(
                    f"{source.value} -> {', '.join(target.value for target in illegal)} is not allowed"
                )
        self._logger.info(
            "pipeline.transition",
            source=self.label,
            target="+".join(target.value for target in targets),
        )
        self._active = frozenset(targets)
        self.history.extend(target.value for target in targets)

    def fail(self) -> None:
        if not self.terminal:
            self.transition(Stage.FAILED)


@dataclass(slots=True)
class GenerationResult:
    curriculum_id: str
    curriculum: Curriculum
    profile: CandidateProfile | None = None
    insights: ProfileInsights | None = None
    match: MatchResult | None = None
    failures: list[dict[str, Any]] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    cost_cents: float = 0.0
    stage_history: list[str] = field(default_factory=list)


@dataclass
class PipelineConfig:
    """Orchestrator settings."""

    max_workers: int = 2
    detail_level: DetailLevel = "comprehensive"


class CurriculumRepository:
    """Commit sequence for a generated curriculum on top of a ``RecordStore``."""

    CV_ANALYSES = "cv_analyses"
    CURRICULA = "curricula"
    ROUNDS = "curriculum_rounds"

    def __init__(self, store: RecordStore, *, now_provider: Any | None = None) -> None:
        self._store = store
        self._now_provider = now_provider or pendulum.now
        self._logger = structlog.get_logger(__name__)

    def save(
        self,
        curriculum: Curriculum,
        owner_id: str,
        *,
        job: JobPosting | None = None,
        profile: CandidateProfile | None = None,
        insights: ProfileInsights | None = None,
        match: MatchResult | None = None,
    ) -> str:
        """Write analysis, curriculum and rounds; return the curriculum id.

        The curriculum record is created as ``generating`` and only flipped to
        ``complete`` once every round is written. Any store error raises
        ``PersistenceFailed`` after a best-effort ``failed`` status update.
        """

        now = self._now_provider().to_iso8601_string()
        curriculum_id: str | None = None
        try:
            analysis_id = None
            if profile is not None:
                analysis_id = self._store.create_record(
                    self.CV_ANALYSES,
                    {
                        "ownerId": owner_id,
                        "profile": profile.to_payload(),
                        "insights": insights.to_payload() if insights else None,
                        "match": match.to_payload() if match else None,
                        "matchScore": match.overall_match if match else None,
                        "createdAt": now,
                    },
                )
            curriculum_id = self._store.create_record(
                self.CURRICULA,
                {
                    "ownerId": owner_id,
                    "jobId": job.id if job else None,
                    "cvAnalysisId": analysis_id,
                    "title": curriculum.title,
                    "overview": curriculum.overview,
                    "difficultyLevel": curriculum.difficulty_level,
                    "totalRounds": curriculum.total_rounds,
                    "learningObjectives": list(curriculum.learning_objectives),
                    "qualityScore": curriculum.quality_score,
                    "generationStatus": "generating",
                    "createdAt": curriculum.created_at or now,
                },
            )
            round_ids = [
                self._store.create_record(
                    self.ROUNDS, {"curriculumId": curriculum_id, **round_.to_payload()}
                )
                for round_ in curriculum.rounds
            ]
            self._store.update_record(
                self.CURRICULA,
                curriculum_id,
                {"generationStatus": "complete", "roundIds": round_ids, "completedAt": now},
            )
        except Exception as exc:  # noqa: BLE001 - the store is an opaque collaborator
            if curriculum_id is not None:
                self._mark_failed(curriculum_id)
            self._logger.error("persistence.failed", curriculum_id=curriculum_id, error=str(exc))
            raise PersistenceFailed(
                f"Could not persist curriculum: {exc}",
                {"curriculumId": curriculum_id, "ownerId": owner_id},
            ) from exc

        self._logger.info(
            "persistence.completed", curriculum_id=curriculum_id, rounds=len(round_ids)
        )
        return curriculum_id

    def load(self, curriculum_id: str) -> Curriculum | None:
        """Read back a complete curriculum, or ``None``."""
        record = self._store.read_record(self.CURRICULA, curriculum_id)
        if record is None or record.get("generationStatus") != "complete":
            return None
        rounds = [self._store.read_record(self.ROUNDS, round_id) for round_id in record.get("roundIds", [])]
        if not rounds or any(round_ is None for round_ in rounds):
            return None
        return Curriculum.model_validate(
            {
                "title": record["title"],
                "overview": record["overview"],
                "difficultyLevel": record["difficultyLevel"],
                "rounds": rounds,
                "totalRounds": record["totalRounds"],
                "learningObjectives": record.get("learningObjectives", []),
                "qualityScore": record.get("qualityScore"),
                "generationStatus": "complete",
                "createdAt": record.get("createdAt"),
            }
        )

    def _mark_failed(self, curriculum_id: str) -> None:
        try:
            self._store.update_record(self.CURRICULA, curriculum_id, {"generationStatus": "failed"})
        except Exception as exc:  # noqa: BLE001
            self._logger.warning(
                "persistence.mark_failed_error", curriculum_id=curriculum_id, error=str(exc)
            )


class CurriculumPipeline:
    """End-to-end curriculum generation for one request at a time."""

    def __init__(
        self,
        *,
        extractor: DocumentExtractor,
        insight_generator: InsightGenerator,
        match_engine: MatchEngine,
        synthesizer: CurriculumSynthesizer,
        store: RecordStore,
        credits: CreditLedger,
        repository: CurriculumRepository | None = None,
        config: PipelineConfig | None = None,
        audit_logger: "AuditLogger | None" = None,
    ) -> None:
        self._extractor = extractor
        self._insights = insight_generator
        self._matcher = match_engine
        self._synthesizer = synthesizer
        self._store = store
        self._credits = credits
        self._repository = repository or CurriculumRepository(store)
        self._config = config or PipelineConfig()
        self._audit = audit_logger
        self._logger = structlog.get_logger(__name__)

    @property
    def repository(self) -> CurriculumRepository:
        return self._repository

    def generate(
        self,
        job: JobPosting | str,
        document: bytes | LoadedDocument | None = None,
        mime_type: str | None = None,
        *,
        target_role: str | None = None,
        detail_level: DetailLevel | None = None,
        cancel_event: threading.Event | None = None,
    ) -> GenerationResult:
        machine = StageMachine()
        failures: list[dict[str, Any]] = []
        warnings: list[str] = []
        job_id = job if isinstance(job, str) else job.id
        user_id: str | None = None
        stage = Stage.INIT

        try:
            posting = self._resolve_job(job)
            user_id = self._preflight()
            _check_cancelled(cancel_event)

            profile: CandidateProfile | None = None
            insights: ProfileInsights | None = None
            match: MatchResult | None = None
            cost_cents = 0.0

            if document is not None:
                stage = Stage.EXTRACTING
                machine.transition(Stage.EXTRACTING)
                profile = self._extractor.extract(
                    document,
                    mime_type,
                    detail_level or self._config.detail_level,
                    target_role,
                    cancel_event=cancel_event,
                )
                cost_cents += profile.metadata.cost_cents or 0.0
                warnings.extend(profile.metadata.warnings)
                machine.transition(Stage.EXTRACTED)
                _check_cancelled(cancel_event)

                stage = Stage.INSIGHTING
                machine.transition(Stage.INSIGHTING, Stage.MATCHING)
                insights, match = self._analyze(
                    profile, posting, target_role, failures, cancel_event
                )
                _check_cancelled(cancel_event)

            stage = Stage.SYNTHESIZING
            machine.transition(Stage.SYNTHESIZING)
            synthesis = self._synthesizer.synthesize_with_warnings(
                posting, profile, insights, match, cancel_event=cancel_event
            )
            warnings.extend(synthesis.warnings)
            _check_cancelled(cancel_event)

            stage = Stage.PERSISTED
            curriculum_id = self._repository.save(
                synthesis.curriculum,
                user_id,
                job=posting,
                profile=profile,
                insights=insights,
                match=match,
            )
            machine.transition(Stage.PERSISTED)
        except IllegalTransition:
            raise
        except CurriculumError as exc:
            if exc.stage is None:
                exc.stage = stage.value
            self._record_failure(machine, exc, job_id=job_id, user_id=user_id, failures=failures)
            raise
        except Exception as exc:  # noqa: BLE001 - surfaced as GenerationFailed
            error = GenerationFailed(
                f"Unexpected {type(exc).__name__} while {stage.value}: {exc}",
                {"exception": type(exc).__name__},
            )
            error.stage = stage.value
            self._logger.error("pipeline.unexpected_error", stage=stage.value, exc_info=True)
            self._record_failure(machine, error, job_id=job_id, user_id=user_id, failures=failures)
            raise error from exc

        result = GenerationResult(
            curriculum_id=curriculum_id,
            curriculum=synthesis.curriculum,
            profile=profile,
            insights=insights,
            match=match,
            failures=failures,
            warnings=warnings,
            cost_cents=round(cost_cents, 6),
            stage_history=list(machine.history),
        )
        self._logger.info(
            "pipeline.completed",
            curriculum_id=curriculum_id,
            rounds=result.curriculum.total_rounds,
            personalized=profile is not None,
            failures=len(failures),
            cost_cents=result.cost_cents,
        )
        self._write_audit(
            status="persisted",
            job_id=posting.id,
            user_id=user_id,
            history=machine.history,
            failures=failures,
            curriculum_id=curriculum_id,
            rounds=result.curriculum.total_rounds,
            cost_cents=result.cost_cents,
        )
        return result

    def _resolve_job(self, job: JobPosting | str) -> JobPosting:
        if isinstance(job, JobPosting):
            return job
        record = self._store.read_record("jobs", job)
        if record is None:
            raise JobNotFound(f"Job {job!r} not found", {"jobId": job})
        try:
            return JobPosting.model_validate({**record, "id": record.get("id") or job})
        except ValidationError as exc:
            raise JobNotFound(
                f"Job {job!r} is not a valid posting",
                {"jobId": job, "errors": exc.errors(include_url=False, include_context=False, include_input=False)},
            ) from exc

    def _preflight(self) -> str:
        user_id = self._credits.get_user_id()
        if not user_id:
            raise Unauthorized("No authenticated user for this request")
        if not self._credits.has_sufficient_credits(user_id):
            raise InsufficientCredits("Not enough credits to generate a curriculum", {"userId": user_id})
        debit = self._credits.debit_credit(user_id)
        if not debit.success:
            raise InsufficientCredits(
                "Credit debit was refused", {"userId": user_id, "remaining": debit.remaining}
            )
        self._logger.info("pipeline.credit_debited", user_id=user_id, remaining=debit.remaining)
        return user_id

    def _analyze(
        self,
        profile: CandidateProfile,
        job: JobPosting,
        target_role: str | None,
        failures: list[dict[str, Any]],
        cancel_event: threading.Event | None,
    ) -> tuple[ProfileInsights | None, MatchResult | None]:
        with ThreadPoolExecutor(
            max_workers=self._config.max_workers, thread_name_prefix="preptalk-analysis"
        ) as pool:
            insight_future = pool.submit(
                self._insights.analyze,
                profile,
                target_role or job.title,
                cancel_event=cancel_event,
            )
            match_future = pool.submit(
                self._matcher.match, profile.skills, profile.summary, job.requirements
            )
            insights = self._collect_insights(insight_future, failures)
            match = self._collect_match(match_future, failures)
        return insights, match

    def _collect_insights(
        self, future: Future, failures: list[dict[str, Any]]
    ) -> ProfileInsights | None:
        try:
            return future.result()
        except InsightGenerationFailed as exc:
            exc.stage = Stage.INSIGHTING.value
            failures.append(_failure_entry(exc))
            self._logger.warning("pipeline.insights_unavailable", message=exc.message)
            return None

    def _collect_match(self, future: Future, failures: list[dict[str, Any]]) -> MatchResult | None:
        try:
            return future.result()
        except Exception as exc:  # noqa: BLE001 - matcher errors are bugs, recorded not fatal
            error = MatchComputationFailed(f"Match computation failed: {exc}")
            error.stage = Stage.MATCHING.value
            failures.append(_failure_entry(error))
            self._logger.error("pipeline.match_failed", error=str(exc), exc_info=True)
            return None

    def _record_failure(
        self,
        machine: StageMachine,
        exc: CurriculumError,
        *,
        job_id: str | None,
        user_id: str | None,
        failures: list[dict[str, Any]],
    ) -> None:
        machine.fail()
        self._logger.error(
            "pipeline.failed",
            stage=exc.stage,
            error=type(exc).__name__,
            message=exc.message,
        )
        self._write_audit(
            status="failed",
            job_id=job_id,
            user_id=user_id,
            history=machine.history,
            failures=failures,
            error=exc.to_dict(),
        )

    def _write_audit(self, **record: Any) -> None:
        if self._audit is None:
            return
        self._audit.append(
            {
                "timestamp": pendulum.now().to_iso8601_string(),
                "app_version": __version__,
                **record,
            }
        )


def _failure_entry(exc: CurriculumError) -> dict[str, Any]:
    return {"stage": exc.stage, "error": type(exc).__name__, "message": exc.message}


def _check_cancelled(cancel_event: threading.Event | None) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise GenerationCancelled("generation cancelled by caller")


class AuditLogger:
    """Append-only audit logger writing JSON lines."""

    def __init__(self, path: Path):
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def append(self, record: dict) -> None:
        line = json.dumps(record, ensure_ascii=False, default=str)
        with self._lock, self._path.open("a", encoding="utf-8") as handle:
            handle.write(line)
            handle.write("\n")


__all__ = [
    "AuditLogger",
    "CurriculumPipeline",
    "CurriculumRepository",
    "GenerationResult",
    "PipelineConfig",
    "Stage",
    "StageMachine",
    "TRANSITIONS",
]
