"""HTTP clients for the chat-completions and Gemini provider APIs."""

from __future__ import annotations

import base64
import http.client
import json
import os
from typing import Any
from urllib import error, request

import structlog

from ..errors import (
    ProviderAuthError,
    ProviderRateLimited,
    ProviderResponseError,
    ProviderTimeout,
    ProviderUnavailable,
)
from ..schemas.config import ProviderSettings
from . import ProviderRequest, ProviderResponse


class _HTTPProviderClient:
    """Shared transport for JSON-over-HTTPS providers."""

    def __init__(self, name: str, settings: ProviderSettings, api_key: str | None):
        self.name = name
        self._settings = settings
        self._api_key = api_key
        self._logger = structlog.get_logger(__name__)

    def _require_key(self) -> str:
        if not self._api_key:
            raise ProviderAuthError(
                self.name, f"missing credential {self._settings.api_key_env or 'api key'}"
            )
        return self._api_key

    def _inline_text(self, req: ProviderRequest) -> str:
        """Prompt with the document text appended, for text-only delivery."""
        if req.document_text:
            return f"{req.prompt}\n\nDOCUMENT CONTENT:\n{req.document_text}"
        if req.document is not None:
            raise ProviderUnavailable(self.name, "provider cannot read binary documents")
        return req.prompt

    def _post_json(
        self, url: str, payload: dict[str, Any], headers: dict[str, str], timeout: float
    ) -> dict[str, Any]:
        data = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        req = request.Request(
            url,
            data=data,
            headers={"Content-Type": "application/json", **headers},
            method="POST",
        )
        try:
            with request.urlopen(req, timeout=timeout) as resp:
                raw = resp.read()
        except error.HTTPError as exc:
            raise self._classify(exc) from exc
        except error.URLError as exc:
            if isinstance(exc.reason, TimeoutError):
                raise ProviderTimeout(self.name, f"timed out after {timeout}s") from exc
            raise ProviderUnavailable(self.name, str(exc.reason)) from exc
        except TimeoutError as exc:
            raise ProviderTimeout(self.name, f"timed out after {timeout}s") from exc
        except (http.client.HTTPException, OSError) as exc:
            raise ProviderUnavailable(self.name, str(exc)) from exc

        try:
            body = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ProviderResponseError(self.name, "response body is not UTF-8") from exc
        try:
            decoded = json.loads(body) if body else {}
        except json.JSONDecodeError as exc:
            raise ProviderResponseError(self.name, "response envelope is not JSON") from exc
        if not isinstance(decoded, dict):
            raise ProviderResponseError(self.name, "response envelope is not an object")
        return decoded

    def _classify(self, exc: error.HTTPError) -> Exception:
        status = exc.code
        detail = _read_error_body(exc)
        self._logger.warning("provider.http_error", provider=self.name, status=status)
        if status in (401, 403, 404):
            return ProviderAuthError(self.name, f"HTTP {status}: {detail}")
        if status == 429:
            return ProviderRateLimited(
                self.name, f"HTTP 429: {detail}", retry_after=_retry_after(exc)
            )
        if status in (408, 504):
            return ProviderTimeout(self.name, f"HTTP {status}")
        return ProviderUnavailable(self.name, f"HTTP {status}: {detail}")


class ChatCompletionsClient(_HTTPProviderClient):
    """OpenAI-compatible ``/chat/completions`` endpoint (OpenAI, Mistral)."""

    def complete(self, req: ProviderRequest, *, timeout: float) -> ProviderResponse:
        api_key = self._require_key()

        if req.document is not None and self._settings.accepts_documents:
            encoded = base64.b64encode(req.document).decode("ascii")
            mime_type = req.mime_type or "application/octet-stream"
            content: str | list[dict[str, Any]] = [
                {"type": "text", "text": req.prompt},
                {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{encoded}"}},
            ]
        else:
            content = self._inline_text(req)

        messages: list[dict[str, Any]] = []
        if req.system_prompt:
            messages.append({"role": "system", "content": req.system_prompt})
        messages.append({"role": "user", "content": content})

        payload = {
            "model": self._settings.model,
            "messages": messages,
            "temperature": req.temperature,
            "max_tokens": req.max_tokens,
            "response_format": {"type": "json_object"},
        }
        body = self._post_json(
            self._settings.endpoint or "",
            payload,
            {"Authorization": f"Bearer {api_key}"},
            timeout,
        )

        try:
            message = body["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise ProviderResponseError(self.name, "response has no message content") from exc
        if isinstance(message, list):
            message = "".join(
                part.get("text", "") for part in message if isinstance(part, dict)
            )
        usage = body.get("usage") or {}
        return ProviderResponse(
            content=message or "",
            tokens_used=usage.get("total_tokens"),
            model=body.get("model", self._settings.model),
        )


class GeminiClient(_HTTPProviderClient):
    """Google Generative Language ``generateContent`` endpoint."""

    def complete(self, req: ProviderRequest, *, timeout: float) -> ProviderResponse:
        api_key = self._require_key()

        if req.document is not None and self._settings.accepts_documents:
            parts: list[dict[str, Any]] = [
                {"text": req.prompt},
                {
                    "inline_data": {
                        "mime_type": req.mime_type or "application/octet-stream",
                        "data": base64.b64encode(req.document).decode("ascii"),
                    }
                },
            ]
        else:
            parts = [{"text": self._inline_text(req)}]

        payload: dict[str, Any] = {
            "contents": [{"role": "user", "parts": parts}],
            "generationConfig": {
                "temperature": req.temperature,
                "maxOutputTokens": req.max_tokens,
                "responseMimeType": "application/json",
            },
        }
        if req.system_prompt:
            payload["systemInstruction"] = {"parts": [{"text": req.system_prompt}]}

        base = (self._settings.endpoint or "").rstrip("/")
        body = self._post_json(
            f"{base}/{self._settings.model}:generateContent",
            payload,
            {"x-goog-api-key": api_key},
            timeout,
        )

        try:
            candidate_parts = body["candidates"][0]["content"]["parts"]
        except (KeyError, IndexError, TypeError) as exc:
            raise ProviderResponseError(self.name, "response has no candidates") from exc
        text = "".join(part.get("text", "") for part in candidate_parts if isinstance(part, dict))
        usage = body.get("usageMetadata") or {}
        return ProviderResponse(
            content=text,
            tokens_used=usage.get("totalTokenCount"),
            model=self._settings.model,
        )


_CLIENT_KINDS: dict[str, type[_HTTPProviderClient]] = {
    "chat_completions": ChatCompletionsClient,
    "gemini": GeminiClient,
}


def build_client(name: str, settings: ProviderSettings) -> _HTTPProviderClient:
    """Construct the client for ``settings``, reading its credential from the environment."""
    api_key = os.environ.get(settings.api_key_env) if settings.api_key_env else None
    return _CLIENT_KINDS[settings.kind](name, settings, api_key)


def _read_error_body(exc: error.HTTPError) -> str:
    try:
        raw = exc.read().decode("utf-8", errors="replace")
    except OSError:
        return exc.reason if isinstance(exc.reason, str) else ""
    return raw[:200]


def _retry_after(exc: error.HTTPError) -> float | None:
    value = exc.headers.get("Retry-After") if exc.headers else None
    if value is None:
        return None
    try:
        return max(float(value), 0.0)
    except ValueError:
        return None


__all__ = ["ChatCompletionsClient", "GeminiClient", "build_client"]
