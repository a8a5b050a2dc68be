"\"\"\"Dependency injection container for the curriculum pipeline.\"\"\""

from __future__ import annotations

from typing import Any

from dependency_injector import containers, providers

from .core import (
    CurriculumSynthesizer,
    DocumentExtractor,
    ExtractorConfig,
    InsightConfig,
    InsightGenerator,
    MatchEngine,
    MatchEngineConfig,
    SynthesisConfig,
)
from .documents import DocumentConfig
from .pipeline import CurriculumPipeline, CurriculumRepository, PipelineConfig
from .providers import ProviderGateway
from .schemas import ProviderConfig, default_provider_config
from .stores import InMemoryRecordStore, LocalCreditLedger


class CurriculumContainer(containers.DeclarativeContainer):
    """Dependency-injector container definition."""

    provider_config = providers.Object(default_provider_config())

    gateway = providers.Singleton(ProviderGateway, config=provider_config)

    document_config = providers.Object(DocumentConfig())

    extractor = providers.Singleton(
        DocumentExtractor,
        gateway=gateway,
        document_config=document_config,
    )
    insight_generator = providers.Singleton(InsightGenerator, gateway=gateway)
    match_engine = providers.Singleton(MatchEngine)
    synthesizer = providers.Singleton(CurriculumSynthesizer, gateway=gateway)

    store = providers.Singleton(InMemoryRecordStore)
    credits = providers.Singleton(LocalCreditLedger)
    audit_logger = providers.Object(None)

    repository = providers.Singleton(CurriculumRepository, store=store)

    pipeline_config = providers.Object(PipelineConfig())

    pipeline = providers.Factory(
        CurriculumPipeline,
        extractor=extractor,
        insight_generator=insight_generator,
        match_engine=match_engine,
        synthesizer=synthesizer,
        store=store,
        credits=credits,
        repository=repository,
        config=pipeline_config,
        audit_logger=audit_logger,
    )


def create_container(*, settings: dict[str, Any] | None = None) -> CurriculumContainer:
    """Instantiate container with optional overrides.

    ``settings`` mirrors ``AppConfig.to_settings()``: a ``providers`` config
    plus plain mappings for ``extractor``, ``insights``, ``matcher``,
    ``synthesis``, ``documents`` and ``pipeline``.
    """

    container = CurriculumContainer()

    if not settings:
        return container

    provider_settings = settings.get("providers")
    if provider_settings is not None:
        if not isinstance(provider_settings, ProviderConfig):
            provider_settings = ProviderConfig.model_validate(provider_settings)
        container.provider_config.override(providers.Object(provider_settings))

    if "documents" in settings:
        document_config = DocumentConfig(**settings["documents"])
        container.document_config.override(providers.Object(document_config))

    if "extractor" in settings:
        extractor_config = ExtractorConfig(**settings["extractor"])
        container.extractor.override(
            providers.Singleton(
                DocumentExtractor,
                gateway=container.gateway,
                config=extractor_config,
                document_config=container.document_config,
            )
        )

    if "insights" in settings:
        insight_config = InsightConfig(**settings["insights"])
        container.insight_generator.override(
            providers.Singleton(InsightGenerator, gateway=container.gateway, config=insight_config)
        )

    if "matcher" in settings:
        matcher_config = MatchEngineConfig(**settings["matcher"])
        container.match_engine.override(providers.Singleton(MatchEngine, config=matcher_config))

    if "synthesis" in settings:
        synthesis_config = SynthesisConfig(**settings["synthesis"])
        container.synthesizer.override(
            providers.Singleton(
                CurriculumSynthesizer, gateway=container.gateway, config=synthesis_config
            )
        )

    if "pipeline" in settings:
        container.pipeline_config.override(providers.Object(PipelineConfig(**settings["pipeline"])))

    return container


__all__ = ["CurriculumContainer", "create_container"]
