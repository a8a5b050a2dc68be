"""Capability-based provider gateway with ordered fallback."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

import structlog

from ..errors import (
    GenerationCancelled,
    ProviderAuthError,
    ProviderError,
    ProviderExhausted,
    ProviderFailure,
    ProviderRateLimited,
)
from ..schemas.config import Capability, ProviderConfig, ProviderSettings
from . import ProviderClient, ProviderRequest, ProviderResponse
from .http import build_client
from .parsing import estimate_tokens, extract_json_object

MAX_RETRY_AFTER_SECONDS = 30.0


@dataclass(slots=True)
class GatewayResult:
    capability: str
    provider: str
    model: str
    data: dict[str, Any]
    units: float
    cost_cents: float
    latency_ms: float
    failures: list[ProviderFailure] = field(default_factory=list)


class ProviderGateway:
    """Routes a capability request through the configured fallback chain.

    Each eligible provider gets one attempt. A rate-limited attempt is retried
    once after a backoff before moving on. Credential failures stop the chain
    when ``fail_fast_on_auth`` is set. The first response that parses as a JSON
    object wins.

    Failures are recorded per attempt, not per provider: a provider that is
    rate limited on both of its attempts contributes two entries.
    """

    def __init__(
        self,
        config: ProviderConfig,
        clients: Mapping[str, ProviderClient] | None = None,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._config = config
        self._clients: dict[str, ProviderClient] = dict(clients) if clients is not None else {}
        if clients is None:
            for name, settings in config.providers.items():
                if settings.enabled:
                    self._clients[name] = build_client(name, settings)
        self._sleep = sleep
        self._logger = structlog.get_logger(__name__)

    @property
    def config(self) -> ProviderConfig:
        return self._config

    def invoke(
        self,
        capability: Capability,
        request: ProviderRequest,
        *,
        cancel_event: threading.Event | None = None,
    ) -> GatewayResult:
        chain = self._config.chain(capability)
        failures: list[ProviderFailure] = []
        self._logger.debug(
            "gateway.invoke", capability=capability, chain=[name for name, _ in chain]
        )

        for name, settings in chain:
            _check_cancelled(cancel_event)
            client = self._clients.get(name)
            if client is None:
                failures.append(ProviderFailure(name, "unavailable", "no client configured"))
                continue

            retried = False
            while True:
                started = time.monotonic()
                try:
                    response = client.complete(request, timeout=settings.timeout_seconds)
                    data = extract_json_object(name, response.content)
                except ProviderRateLimited as exc:
                    failures.append(_failure(name, exc))
                    self._logger.warning(
                        "gateway.rate_limited", provider=name, retried=retried
                    )
                    if retried:
                        break
                    retried = True
                    delay = (
                        exc.retry_after
                        if exc.retry_after is not None
                        else self._config.rate_limit_backoff_seconds
                    )
                    self._sleep(min(delay, MAX_RETRY_AFTER_SECONDS))
                    _check_cancelled(cancel_event)
                    continue
                except ProviderAuthError as exc:
                    failures.append(_failure(name, exc))
                    self._logger.error("gateway.auth_failed", provider=name, error=str(exc))
                    if self._config.fail_fast_on_auth:
                        raise ProviderExhausted(capability, failures, aborted=True) from exc
                    break
                except ProviderError as exc:
                    failures.append(_failure(name, exc))
                    self._logger.warning(
                        "gateway.provider_failed", provider=name, kind=exc.kind, error=str(exc)
                    )
                    break

                latency_ms = (time.monotonic() - started) * 1000.0
                units = _units(settings, request, response)
                cost = round(settings.cost_per_unit * units, 6)
                self._logger.info(
                    "gateway.success",
                    capability=capability,
                    provider=name,
                    units=units,
                    cost_cents=cost,
                    latency_ms=round(latency_ms, 1),
                    failed_attempts=len(failures),
                )
                return GatewayResult(
                    capability=capability,
                    provider=name,
                    model=response.model or settings.model,
                    data=data,
                    units=units,
                    cost_cents=cost,
                    latency_ms=latency_ms,
                    failures=failures,
                )

        self._logger.error(
            "gateway.exhausted",
            capability=capability,
            failures=[failure.to_dict() for failure in failures],
        )
        raise ProviderExhausted(capability, failures)


def _units(settings: ProviderSettings, request: ProviderRequest, response: ProviderResponse) -> float:
    if settings.unit == "page":
        return float(max(request.pages, 1))
    if response.tokens_used is not None:
        return float(response.tokens_used)
    return float(estimate_tokens(request.prompt, request.document_text, response.content))


def _failure(provider: str, exc: ProviderError) -> ProviderFailure:
    return ProviderFailure(provider=provider, kind=exc.kind, message=str(exc))


def _check_cancelled(cancel_event: threading.Event | None) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise GenerationCancelled("generation cancelled by caller")


__all__ = ["GatewayResult", "ProviderGateway"]
