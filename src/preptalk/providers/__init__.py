"\"\"\"External model providers and the fallback gateway.\"\"\""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True, slots=True)
class ProviderRequest:
    """Provider-neutral request.

    ``document`` carries raw bytes for providers that read documents natively;
    ``document_text`` is the pre-rendered text for providers that only read text.
    """

    prompt: str
    system_prompt: str | None = None
    document: bytes | None = None
    mime_type: str | None = None
    document_text: str | None = None
    pages: int = 1
    temperature: float = 0.1
    max_tokens: int = 4000


@dataclass(frozen=True, slots=True)
class ProviderResponse:
    content: str
    tokens_used: int | None = None
    model: str | None = None


@runtime_checkable
class ProviderClient(Protocol):
    """Single-provider call contract.

    Implementations raise ``preptalk.errors.ProviderError`` subclasses so the
    gateway can tell timeouts, rate limits and credential problems apart.
    """

    name: str

    def complete(self, request: ProviderRequest, *, timeout: float) -> ProviderResponse:
        """Send one request and return the raw text answer."""


from .gateway import GatewayResult, ProviderGateway  # noqa: E402
from .http import ChatCompletionsClient, GeminiClient, build_client  # noqa: E402

__all__ = [
    "ChatCompletionsClient",
    "GatewayResult",
    "GeminiClient",
    "ProviderClient",
    "ProviderGateway",
    "ProviderRequest",
    "ProviderResponse",
    "build_client",
]
