"\"\"\"Document extraction: raw CV bytes to a validated CandidateProfile.\"\"\""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Callable, Literal

import pendulum
import structlog
from pydantic import ValidationError

from ..documents import DocumentConfig, LoadedDocument, load_document
from ..errors import ExtractionSchemaInvalid
from ..prompts import EXTRACTION_SYSTEM_PROMPT, build_extraction_prompt
from ..providers import ProviderGateway, ProviderRequest
from ..schemas import OCR_EXTRACT, CandidateProfile

DetailLevel = Literal["basic", "comprehensive"]


@dataclass
class ExtractorConfig:
    """Generation parameters for the extraction call."""

    temperature: float = 0.1
    max_tokens: int = 4000


class DocumentExtractor:
    """Turn a CV document into a strictly validated profile."""

    def __init__(
        self,
        gateway: ProviderGateway,
        *,
        config: ExtractorConfig | None = None,
        document_config: DocumentConfig | None = None,
        now_provider: Callable[[], Any] | None = None,
    ) -> None:
        self._gateway = gateway
        self._config = config or ExtractorConfig()
        self._document_config = document_config or DocumentConfig()
        self._now_provider = now_provider or pendulum.now
        self._logger = structlog.get_logger(__name__)

    def extract(
        self,
        document: bytes | LoadedDocument,
        mime_type: str | None = None,
        detail_level: DetailLevel = "comprehensive",
        target_role: str | None = None,
        *,
        cancel_event: threading.Event | None = None,
    ) -> CandidateProfile:
        """Extract and validate a profile.

        Raises ``DocumentRejected`` for unreadable input, ``ProviderExhausted``
        when no provider answers, and ``ExtractionSchemaInvalid`` when the answer
        does not validate. ``detail_level`` and ``target_role`` only shape the
        prompt.
        """

        if isinstance(document, LoadedDocument):
            loaded = document
        else:
            loaded = load_document(document, mime_type or "", config=self._document_config)

        # Text documents travel as text; only binary formats are sent as attachments.
        is_text = loaded.mime_type.startswith("text/")
        request = ProviderRequest(
            prompt=build_extraction_prompt(detail_level, target_role),
            system_prompt=EXTRACTION_SYSTEM_PROMPT,
            document=None if is_text else loaded.data,
            mime_type=loaded.mime_type,
            document_text=loaded.text,
            pages=loaded.page_count,
            temperature=self._config.temperature,
            max_tokens=self._config.max_tokens,
        )
        result = self._gateway.invoke(OCR_EXTRACT, request, cancel_event=cancel_event)

        payload = dict(result.data)
        raw_metadata = payload.get("metadata")
        metadata: dict[str, Any] = dict(raw_metadata) if isinstance(raw_metadata, dict) else {}
        defaults = {
            "extractionDate": self._now_provider().to_iso8601_string(),
            "documentType": loaded.document_type,
            "pageCount": loaded.page_count,
        }
        for key, value in defaults.items():
            if metadata.get(key) is None:
                metadata[key] = value
        metadata["processingModel"] = result.model
        metadata["provider"] = result.provider
        metadata["costCents"] = result.cost_cents
        payload["metadata"] = metadata

        try:
            profile = CandidateProfile.model_validate(payload)
        except ValidationError as exc:
            errors = exc.errors(include_url=False, include_context=False, include_input=False)
            self._logger.error(
                "extraction.schema_invalid",
                provider=result.provider,
                error_count=len(errors),
                fields=[".".join(str(part) for part in err["loc"]) for err in errors],
            )
            raise ExtractionSchemaInvalid(
                f"Extracted profile failed validation with {len(errors)} error(s)",
                [dict(err) for err in errors],
            ) from exc

        self._logger.info(
            "extraction.completed",
            provider=result.provider,
            model=result.model,
            pages=loaded.page_count,
            cost_cents=result.cost_cents,
            confidence=profile.metadata.confidence,
            experience_entries=len(profile.experience),
        )
        return profile


__all__ = ["DetailLevel", "DocumentExtractor", "ExtractorConfig"]
