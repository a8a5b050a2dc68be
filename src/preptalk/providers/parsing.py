"""Parsing of untrusted provider output."""

from __future__ import annotations

import json
import re
from typing import Any

from ..errors import ProviderResponseError

_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def extract_json_object(provider: str, text: str | None) -> dict[str, Any]:
    """Return the JSON object in ``text``, tolerating fences and surrounding prose.

    Anything that is not a JSON object raises ``ProviderResponseError``.
    """
    raw = (text or "").strip()
    if not raw:
        raise ProviderResponseError(provider, "empty response")
    raw = _FENCE.sub("", raw).strip()

    try:
        decoded = json.loads(raw)
    except json.JSONDecodeError:
        start, end = raw.find("{"), raw.rfind("}")
        if start == -1 or end <= start:
            raise ProviderResponseError(provider, "response is not JSON") from None
        try:
            decoded = json.loads(raw[start : end + 1])
        except json.JSONDecodeError as exc:
            raise ProviderResponseError(provider, f"invalid JSON: {exc.msg}") from exc

    if not isinstance(decoded, dict):
        raise ProviderResponseError(
            provider, f"expected a JSON object, got {type(decoded).__name__}"
        )
    return decoded


def estimate_tokens(*texts: str | None) -> int:
    """Rough token estimate (characters / 4) for providers that omit usage."""
    return sum(len(text or "") for text in texts) // 4


__all__ = ["estimate_tokens", "extract_json_object"]
