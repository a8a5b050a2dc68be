from __future__ import annotations

import json
from typing import Any, Callable

import pytest
import structlog

from preptalk.errors import ProviderUnavailable
from preptalk.providers import ProviderGateway, ProviderRequest, ProviderResponse
from preptalk.schemas import ProviderConfig


class StubClient:
    """Scripted provider client: each call consumes the next response, raising exceptions."""

    def __init__(self, name: str, responses: list[Any], *, tokens: int | None = 100) -> None:
        self.name = name
        self._responses = list(responses)
        self._tokens = tokens
        self.requests: list[ProviderRequest] = []
        self.timeouts: list[float] = []

    def complete(self, request: ProviderRequest, *, timeout: float) -> ProviderResponse:
        self.requests.append(request)
        self.timeouts.append(timeout)
        if not self._responses:
            raise ProviderUnavailable(self.name, "no scripted response left")
        item = self._responses.pop(0)
        if isinstance(item, Exception):
            raise item
        if isinstance(item, (dict, list)):
            item = json.dumps(item)
        return ProviderResponse(content=item, tokens_used=self._tokens, model=f"{self.name}-model")


def build_provider_config(*names: str, **overrides: Any) -> ProviderConfig:
    providers = {
        name: {
            "kind": "chat_completions",
            "model": f"{name}-model",
            "capabilities": ["ocr-extract", "text-generate"],
            "cost_per_unit": 0.5,
            "unit": "page",
            "accepts_documents": True,
        }
        for name in names
    }
    return ProviderConfig(fallback_order=names, providers=providers, **overrides)


@pytest.fixture(autouse=True)
def reset_structlog():
    yield
    structlog.reset_defaults()


@pytest.fixture
def stub_client() -> type[StubClient]:
    return StubClient


@pytest.fixture
def make_gateway() -> Callable[..., tuple[ProviderGateway, list[float]]]:
    """Gateway over stub clients; returns the gateway and the recorded backoff sleeps."""

    def factory(*clients: StubClient, **config_overrides: Any) -> tuple[ProviderGateway, list[float]]:
        sleeps: list[float] = []
        config = build_provider_config(*(client.name for client in clients), **config_overrides)
        gateway = ProviderGateway(
            config,
            clients={client.name: client for client in clients},
            sleep=sleeps.append,
        )
        return gateway, sleeps

    return factory


@pytest.fixture
def profile_payload() -> dict[str, Any]:
    return {
        "personalInfo": {
            "fullName": "Jane Doe",
            "email": "jane@example.com",
            "linkedIn": None,
        },
        "summary": {
            "headline": "Backend Engineer",
            "summary": "Backend engineer focused on Python services and Kubernetes.",
            "yearsOfExperience": 6,
            "currentRole": "Senior Backend Engineer",
        },
        "experience": [
            {
                "company": "Acme",
                "position": "Senior Backend Engineer",
                "startDate": "2021-03",
                "endDate": "Present",
                "responsibilities": ["Own payments API"],
                "skills": ["Python", "Kubernetes", "Terraform"],
            },
            {
                "company": "Globex",
                "position": "Backend Engineer",
                "startDate": "2018-01",
                "endDate": "2021-02",
                "responsibilities": ["Built billing jobs"],
                "skills": ["Python", "PostgreSQL"],
            },
        ],
        "education": [
            {"institution": "State University", "degree": "BSc", "field": "Computer Science", "achievements": None}
        ],
        "skills": {
            "technical": ["Python", "PostgreSQL", "k8s", "Terraform"],
            "soft": ["Mentoring"],
            "languages": None,
            "frameworks": ["FastAPI"],
            "tools": ["Docker"],
            "proficiency": {"Python": 0.9, "Docker": 0.85},
        },
        "metadata": {"confidence": 0.87, "warnings": ["Second page was blurry"]},
    }


@pytest.fixture
def make_provider_config() -> Callable[..., ProviderConfig]:
    return build_provider_config
