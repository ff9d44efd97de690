"""Pytest configuration for the services test suite."""

from __future__ import annotations

import sys
from collections.abc import AsyncIterator, Callable, Iterator
from pathlib import Path
from typing import Any

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient


def _ensure_src_on_path() -> None:
    """Add the services src directory to ``sys.path`` for imports."""

    src_dir = Path(__file__).resolve().parent.parent / "src"
    src_path = str(src_dir)
    if src_dir.is_dir() and src_path not in sys.path:
        sys.path.insert(0, src_path)


_ensure_src_on_path()

from scenariolab.services.config import ServiceSettings  # noqa: E402
from scenariolab.services.settings import ProviderCredentials  # noqa: E402

_CREDENTIAL_ENV_NAMES = (
    "OPENAI_API_KEY",
    "GEMINI_API_KEY",
    "ANTHROPIC_API_KEY",
    "SCENARIOLAB_OPENAI_API_KEY",
    "SCENARIOLAB_GEMINI_API_KEY",
    "SCENARIOLAB_ANTHROPIC_API_KEY",
)


@pytest.fixture()
def provider_credentials(monkeypatch: pytest.MonkeyPatch) -> ProviderCredentials:
    """Credentials for gemini and openai only; anthropic stays disabled."""

    for name in _CREDENTIAL_ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    return ProviderCredentials(
        _env_file=None,
        openai_api_key="sk-test-openai",
        gemini_api_key="test-gemini-key",
    )


@pytest.fixture()
def service_settings() -> ServiceSettings:
    return ServiceSettings(document_store_backend="memory")


@pytest.fixture()
def app_factory(
    service_settings: ServiceSettings,
    provider_credentials: ProviderCredentials,
) -> Callable[..., FastAPI]:
    """Build isolated applications; keyword overrides replace settings fields."""

    from scenariolab.services.app import create_app

    def _factory(**overrides: Any) -> FastAPI:
        providers = overrides.pop("providers", None)
        credentials = overrides.pop("credentials", provider_credentials)
        settings = service_settings.model_copy(update=overrides)
        return create_app(settings, credentials=credentials, providers=providers)

    return _factory


@pytest.fixture()
def service_app(app_factory: Callable[..., FastAPI]) -> Iterator[FastAPI]:
    """Provide the FastAPI application backed by an in-memory store."""

    from scenariolab.services import metrics

    metrics.reset()
    app = app_factory()
    yield app
    app.dependency_overrides.clear()


@pytest.fixture()
def test_client(service_app: FastAPI) -> Iterator[TestClient]:
    """Yield a test client bound to the shared FastAPI application."""

    with TestClient(service_app) as client:
        yield client


@pytest.fixture()
async def async_client(service_app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    """Provide an HTTPX async client bound to the FastAPI application."""

    transport = httpx.ASGITransport(app=service_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
