"""Tests for service configuration loading."""

from __future__ import annotations

import textwrap

import pytest
from pydantic import ValidationError

from scenariolab.services.config import ServiceSettings


@pytest.fixture(autouse=True)
def _clear_scenariolab_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for field_name in ServiceSettings.model_fields:
        monkeypatch.delenv(f"{ServiceSettings.ENV_PREFIX}{field_name.upper()}", raising=False)


def test_defaults(tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)

    settings = ServiceSettings.from_environment()

    assert settings.service_name == "scenario-writing-lab"
    assert settings.document_store_backend == "memory"
    assert settings.firestore_collection == "scripts"
    assert settings.firestore_project_id is None
    assert settings.advice_rate_limit == 30
    assert settings.advice_rate_window_ms == 60_000
    assert settings.advice_timeout_ms == 8_000
    assert settings.max_request_body_bytes == 512 * 1024


def test_from_environment_supports_export_and_quotes(tmp_path, monkeypatch) -> None:
    """Ensure `.env` parsing honours export prefixes and quoted values."""

    env_content = textwrap.dedent(
        """
        # comment line
          export SCENARIOLAB_SERVICE_NAME="writing lab staging"
        SCENARIOLAB_FIRESTORE_COLLECTION='drafts'
        not a pair
        """
    ).strip()
    (tmp_path / ".env").write_text(env_content, encoding="utf-8")
    monkeypatch.chdir(tmp_path)

    settings = ServiceSettings.from_environment()

    assert settings.service_name == "writing lab staging"
    assert settings.firestore_collection == "drafts"


def test_environment_overrides_env_file(tmp_path, monkeypatch) -> None:
    (tmp_path / ".env").write_text("SCENARIOLAB_ADVICE_RATE_LIMIT=5\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("SCENARIOLAB_ADVICE_RATE_LIMIT", "7")

    settings = ServiceSettings.from_environment()

    assert settings.advice_rate_limit == 7


def test_backend_is_normalised(tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("SCENARIOLAB_DOCUMENT_STORE_BACKEND", " Firestore ")
    monkeypatch.setenv("SCENARIOLAB_FIRESTORE_PROJECT_ID", "   ")

    settings = ServiceSettings.from_environment()

    assert settings.document_store_backend == "firestore"
    assert settings.firestore_project_id is None


def test_unknown_backend_rejected() -> None:
    with pytest.raises(ValidationError):
        ServiceSettings(document_store_backend="postgres")


@pytest.mark.parametrize("timeout_ms", [999, 30_001])
def test_advice_timeout_must_stay_in_range(timeout_ms: int) -> None:
    with pytest.raises(ValidationError):
        ServiceSettings(advice_timeout_ms=timeout_ms)
