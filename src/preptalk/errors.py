"""Error taxonomy for curriculum generation.

Fatal errors abort the run at the stage where they occur; the orchestrator
stamps ``stage`` on the instance before re-raising. Non-fatal errors are
recorded on the result and the corresponding output is left as ``None``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


class CurriculumError(Exception):
    """Base exception for all pipeline errors."""

    fatal: bool = True

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        self.stage: str | None = None
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": type(self).__name__,
            "stage": self.stage,
            "message": self.message,
            "details": self.details,
        }


# ============================================================================
# Provider-level errors (never leave the gateway)
# ============================================================================


class ProviderError(Exception):
    """A single provider attempt failed."""

    kind = "error"

    def __init__(self, provider: str, message: str):
        self.provider = provider
        super().__init__(message)


class ProviderTimeout(ProviderError):
    kind = "timeout"


class ProviderAuthError(ProviderError):
    """Missing or rejected credentials. Never retried."""

    kind = "auth"


class ProviderRateLimited(ProviderError):
    kind = "rate_limit"

    def __init__(self, provider: str, message: str, retry_after: float | None = None):
        super().__init__(provider, message)
        self.retry_after = retry_after


class ProviderResponseError(ProviderError):
    """The provider answered, but not with a usable JSON object."""

    kind = "malformed"


class ProviderUnavailable(ProviderError):
    """Transient transport or server-side failure, or unsupported input."""

    kind = "unavailable"


@dataclass(frozen=True, slots=True)
class ProviderFailure:
    """One failed provider attempt, as reported to callers."""

    provider: str
    kind: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"provider": self.provider, "kind": self.kind, "message": self.message}


# ============================================================================
# Fatal pipeline errors
# ============================================================================


class ProviderExhausted(CurriculumError):
    """Every eligible provider failed, or the chain was aborted on auth."""

    def __init__(
        self,
        capability: str,
        failures: list[ProviderFailure],
        *,
        aborted: bool = False,
    ):
        self.capability = capability
        self.failures = list(failures)
        self.aborted = aborted
        reasons = "; ".join(f"{f.provider}: {f.kind} ({f.message})" for f in self.failures)
        prefix = "Provider chain aborted" if aborted else "All providers failed"
        super().__init__(
            f"{prefix} for {capability}: {reasons or 'no eligible providers'}",
            {
                "capability": capability,
                "aborted": aborted,
                "failures": [f.to_dict() for f in self.failures],
            },
        )


class ExtractionSchemaInvalid(CurriculumError):
    """Extracted document data failed schema validation."""

    def __init__(self, message: str, errors: list[dict[str, Any]]):
        self.errors = errors
        super().__init__(message, {"errors": errors})


class DocumentRejected(CurriculumError):
    """The supplied document cannot be read or is not acceptable."""


class JobNotFound(CurriculumError):
    """The job reference does not resolve to a stored job posting."""


class PersistenceFailed(CurriculumError):
    """The record store refused a write during the commit sequence."""


class Unauthorized(CurriculumError):
    """No authenticated user is attached to the request."""


class InsufficientCredits(CurriculumError):
    """The user cannot pay for a generation attempt."""


class GenerationCancelled(CurriculumError):
    """The caller abandoned the request."""


class GenerationFailed(CurriculumError):
    """A stage raised something outside this taxonomy; the original is chained as ``__cause__``."""


class IllegalTransition(RuntimeError):
    """Programming error: the state machine was driven out of order."""


# ============================================================================
# Non-fatal pipeline errors
# ============================================================================


class InsightGenerationFailed(CurriculumError):
    fatal = False


class MatchComputationFailed(CurriculumError):
    fatal = False


__all__ = [
    "CurriculumError",
    "DocumentRejected",
    "ExtractionSchemaInvalid",
    "GenerationCancelled",
    "GenerationFailed",
    "IllegalTransition",
    "InsightGenerationFailed",
    "InsufficientCredits",
    "JobNotFound",
    "MatchComputationFailed",
    "PersistenceFailed",
    "ProviderAuthError",
    "ProviderError",
    "ProviderExhausted",
    "ProviderFailure",
    "ProviderRateLimited",
    "ProviderResponseError",
    "ProviderTimeout",
    "ProviderUnavailable",
    "Unauthorized",
]
