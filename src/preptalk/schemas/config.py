"\"\"\"Pydantic configuration schema for provider and CLI YAML input.\"\"\""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic.alias_generators import to_camel

Capability = Literal["ocr-extract", "text-generate"]
OCR_EXTRACT: Capability = "ocr-extract"
TEXT_GENERATE: Capability = "text-generate"


class _FrozenConfig(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="forbid",
    )


class ProviderSettings(_FrozenConfig):
    """Static settings for one external model provider."""

    kind: Literal["chat_completions", "gemini"]
    model: str
    enabled: bool = True
    capabilities: tuple[Capability, ...] = (TEXT_GENERATE,)
    cost_per_unit: float = Field(default=0.0, ge=0.0)
    unit: Literal["page", "token"] = "token"
    api_key_env: str | None = None
    endpoint: str | None = None
    timeout_seconds: float = Field(default=30.0, gt=0.0)
    accepts_documents: bool = False


class ProviderConfig(_FrozenConfig):
    """Immutable provider chain configuration handed to the gateway."""

    fallback_order: tuple[str, ...]
    default_provider: str | None = None
    providers: dict[str, ProviderSettings]
    rate_limit_backoff_seconds: float = Field(default=1.0, ge=0.0)
    fail_fast_on_auth: bool = True

    @model_validator(mode="after")
    def _check_order(self) -> "ProviderConfig":
        unknown = [name for name in self.fallback_order if name not in self.providers]
        if unknown:
            raise ValueError(f"fallback order names undeclared providers: {unknown}")
        if len(set(self.fallback_order)) != len(self.fallback_order):
            raise ValueError("fallback order must not repeat providers")
        default = self.default_provider
        if default is not None:
            if default not in self.providers:
                raise ValueError(f"default provider {default!r} is not declared")
            if self.providers[default].enabled and (
                not self.fallback_order or self.fallback_order[0] != default
            ):
                raise ValueError(
                    f"enabled default provider {default!r} must be first in the fallback order"
                )
        return self

    def chain(self, capability: Capability) -> list[tuple[str, ProviderSettings]]:
        """Enabled providers supporting ``capability``, in fallback order."""
        return [
            (name, self.providers[name])
            for name in self.fallback_order
            if self.providers[name].enabled and capability in self.providers[name].capabilities
        ]


DEFAULT_PROVIDERS: dict[str, dict[str, Any]] = {
    "mistral": {
        "kind": "chat_completions",
        "model": "pixtral-large-latest",
        "capabilities": [OCR_EXTRACT],
        "cost_per_unit": 0.1,
        "unit": "page",
        "api_key_env": "MISTRAL_API_KEY",
        "endpoint": "https://api.mistral.ai/v1/chat/completions",
        "timeout_seconds": 60.0,
        "accepts_documents": True,
    },
    "gemini": {
        "kind": "gemini",
        "model": "gemini-2.5-flash",
        "capabilities": [OCR_EXTRACT, TEXT_GENERATE],
        "cost_per_unit": 0.001,
        "unit": "token",
        "api_key_env": "GOOGLE_API_KEY",
        "endpoint": "https://generativelanguage.googleapis.com/v1beta/models",
        "timeout_seconds": 45.0,
        "accepts_documents": True,
    },
    "openai": {
        "kind": "chat_completions",
        "model": "gpt-4.1-mini",
        "capabilities": [OCR_EXTRACT, TEXT_GENERATE],
        "cost_per_unit": 0.003,
        "unit": "token",
        "api_key_env": "OPENAI_API_KEY",
        "endpoint": "https://api.openai.com/v1/chat/completions",
        "timeout_seconds": 45.0,
        "accepts_documents": False,
    },
}


def default_provider_config() -> ProviderConfig:
    """Mistral first for documents, then Gemini, then OpenAI."""
    return ProviderConfig(
        fallback_order=("mistral", "gemini", "openai"),
        default_provider="mistral",
        providers=DEFAULT_PROVIDERS,
    )


class AppConfig(BaseModel):
    providers: ProviderConfig | None = None
    extractor: dict[str, Any] | None = None
    matcher: dict[str, Any] | None = None
    insights: dict[str, Any] | None = None
    synthesis: dict[str, Any] | None = None
    documents: dict[str, Any] | None = None
    pipeline: dict[str, Any] | None = None

    def to_settings(self) -> dict[str, Any]:
        settings: dict[str, Any] = {}
        if self.providers is not None:
            settings["providers"] = self.providers
        for section in ("extractor", "matcher", "insights", "synthesis", "documents", "pipeline"):
            value = getattr(self, section)
            if value:
                settings[section] = value
        return settings


def load_config(raw: Any) -> AppConfig:
    if not isinstance(raw, dict):
        raise ValidationError.from_exception_data(
            "AppConfig",
            [{"type": "dict_type", "loc": ("config",), "input": raw}],
        )
    return AppConfig.model_validate(raw)
