"\"\"\"Typer CLI entrypoint for curriculum generation.\"\"\""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import typer
from dependency_injector import providers
from pydantic import ValidationError

from .config import load_yaml
from .container import create_container
from .documents import read_document
from .errors import CurriculumError
from .logging import configure_logging
from .pipeline import AuditLogger, CurriculumRepository
from .schemas import JobPosting
from .schemas.config import load_config
from .stores import JsonFileRecordStore, LocalCreditLedger

app = typer.Typer(help="Interview curriculum generation CLI.")


def _load_settings(config: Path | None) -> dict[str, Any]:
    if config is None:
        return {}
    try:
        return load_config(load_yaml(config)).to_settings()
    except (ValueError, ValidationError) as exc:
        raise typer.BadParameter(f"Invalid config: {exc}", param_hint="config") from exc


def _load_job(job: Path) -> JobPosting:
    with job.open("r", encoding="utf-8") as handle:
        try:
            data = json.load(handle)
        except json.JSONDecodeError as exc:
            raise typer.BadParameter(f"Invalid job JSON: {exc}", param_hint="job") from exc
    try:
        return JobPosting.model_validate(data)
    except ValidationError as exc:
        raise typer.BadParameter(f"Invalid job posting: {exc}", param_hint="job") from exc


@app.command()
def generate(
    store: Path = typer.Option(..., dir_okay=False, resolve_path=True, help="JSON record store path."),
    job: Optional[Path] = typer.Option(
        None, exists=True, readable=True, dir_okay=False, help="Job posting JSON path."
    ),
    job_id: Optional[str] = typer.Option(None, help="Id of a job stored in the 'jobs' table."),
    cv: Optional[Path] = typer.Option(
        None, exists=True, readable=True, dir_okay=False, help="Candidate CV (pdf, txt, md, png, jpg, webp)."
    ),
    target_role: Optional[str] = typer.Option(None, help="Role the candidate is preparing for."),
    detail_level: str = typer.Option("comprehensive", help="Extraction detail hint: basic or comprehensive."),
    config: Optional[Path] = typer.Option(None, exists=True, readable=True, dir_okay=False, help="YAML config path."),
    user_id: str = typer.Option("local-user", help="User the curriculum is generated for."),
    credits: int = typer.Option(1, min=0, help="Credits available to the local user."),
    audit_log: Optional[Path] = typer.Option(None, dir_okay=False, help="Audit log output (JSONL)."),
    log_level: str = typer.Option("INFO", help="Log level for structured logging."),
    log_json: bool = typer.Option(True, "--log-json/--log-console", help="Render logs as JSON or for a console."),
) -> None:
    """Generate a curriculum and print its id."""
    if (job is None) == (job_id is None):
        raise typer.BadParameter("Pass exactly one of --job or --job-id", param_hint="job")
    if detail_level not in ("basic", "comprehensive"):
        raise typer.BadParameter("Must be basic or comprehensive", param_hint="detail_level")

    settings = _load_settings(config)
    configure_logging(log_level, json_output=log_json)

    container = create_container(settings=settings)
    container.store.override(providers.Object(JsonFileRecordStore(store)))
    container.credits.override(providers.Object(LocalCreditLedger(user_id=user_id, balance=credits)))
    if audit_log:
        container.audit_logger.override(providers.Object(AuditLogger(audit_log)))
    pipeline = container.pipeline()

    job_ref: JobPosting | str = _load_job(job) if job is not None else job_id

    try:
        document = read_document(cv, config=container.document_config()) if cv else None
        result = pipeline.generate(
            job_ref,
            document,
            target_role=target_role,
            detail_level=detail_level,
        )
    except CurriculumError as exc:
        typer.echo(json.dumps(exc.to_dict(), ensure_ascii=False, default=str), err=True)
        raise typer.Exit(code=1) from exc

    for failure in result.failures:
        typer.echo(f"warning: {failure['stage']}: {failure['message']}", err=True)
    typer.echo(result.curriculum_id)


@app.command()
def show(
    store: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="JSON record store path."),
    curriculum_id: str = typer.Option(..., help="Curriculum id printed by 'generate'."),
) -> None:
    """Print a stored, complete curriculum as JSON."""
    repository = CurriculumRepository(JsonFileRecordStore(store))
    curriculum = repository.load(curriculum_id)
    if curriculum is None:
        typer.echo(f"Curriculum {curriculum_id} not found or not complete.", err=True)
        raise typer.Exit(code=1)
    typer.echo(json.dumps(curriculum.to_payload(), ensure_ascii=False, indent=2))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
