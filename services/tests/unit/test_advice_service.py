from __future__ import annotations

import logging

import pytest

from scenariolab.services.advice_service import (
    MAX_CONTENT_CHARS,
    MAX_SELECTED_TEXT_CHARS,
    MAX_SYNOPSIS_CHARS,
    AdviceBody,
    AdviceService,
    parse_advice_body,
)
from scenariolab.services.models.advice import AdviceProviderName
from scenariolab.services.provider_gateway import ProviderGateway, SimulatedProvider
from scenariolab.services.rate_limit import RateLimiter
from scenariolab.services.service_errors import ServiceError
from scenariolab.services.settings import ProviderCredentials

pytestmark = pytest.mark.anyio("asyncio")


@pytest.fixture()
def anyio_backend() -> str:
    return "asyncio"


class CountingGateway(ProviderGateway):
    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.calls = 0

    async def generate(self, request):
        self.calls += 1
        return await super().generate(request)


def _service(
    credentials: ProviderCredentials,
    *,
    limit: int = 30,
    latency_seconds: float = 0.0,
    timeout_ms: int = 8_000,
) -> tuple[AdviceService, CountingGateway]:
    gateway = CountingGateway(
        credentials=credentials,
        providers={
            name: SimulatedProvider(name, latency_seconds=latency_seconds) for name in AdviceProviderName
        },
    )
    service = AdviceService(
        gateway=gateway,
        rate_limiter=RateLimiter(limit=limit, window_ms=60_000),
        timeout_ms=timeout_ms,
    )
    return service, gateway


def _body(**overrides: object) -> AdviceBody:
    fields: dict[str, object] = {
        "document_id": "doc_12345678",
        "synopsis": "Two siblings rob a diner.",
        "content": "INT. DINER - NIGHT",
        "selected_text": None,
        "panel_a_provider": AdviceProviderName.GEMINI,
        "panel_b_provider": AdviceProviderName.OPENAI,
    }
    fields.update(overrides)
    return AdviceBody(**fields)


def test_parse_advice_body_defaults_unknown_providers() -> None:
    body = parse_advice_body(
        {"documentId": "doc_1", "content": "x", "panelAProvider": "mystery", "panelBProvider": "anthropic"}
    )

    assert body.panel_a_provider is AdviceProviderName.GEMINI
    assert body.panel_b_provider is AdviceProviderName.ANTHROPIC
    assert body.synopsis == ""
    assert body.selected_text is None


@pytest.mark.parametrize(
    ("payload", "code"),
    [(None, "INVALID_ADVICE_BODY"), ([], "INVALID_ADVICE_BODY"), ({"content": "x"}, "DOCUMENT_ID_REQUIRED"), ({"documentId": ""}, "DOCUMENT_ID_REQUIRED")],
)
def test_parse_advice_body_rejects_invalid_payloads(payload: object, code: str) -> None:
    with pytest.raises(ServiceError) as exc_info:
        parse_advice_body(payload)

    assert exc_info.value.code == code
    assert exc_info.value.status_code == 400


async def test_generate_success(provider_credentials: ProviderCredentials, caplog) -> None:
    service, gateway = _service(provider_credentials)

    with caplog.at_level(logging.INFO, logger="scenariolab.services.events"):
        response = await service.generate(owner_id="writer-1", body=_body(), correlation_id="corr-ok")

    assert gateway.calls == 1
    assert response.panel_a.provider is AdviceProviderName.GEMINI
    messages = [record.getMessage() for record in caplog.records]
    assert "ADVICE_REQUEST_SUCCEEDED" in messages


async def test_rate_limit_rejects_without_calling_gateway(provider_credentials: ProviderCredentials) -> None:
    service, gateway = _service(provider_credentials, limit=2)

    for _ in range(2):
        await service.generate(owner_id="writer-1", body=_body(), correlation_id="corr")

    with pytest.raises(ServiceError) as exc_info:
        await service.generate(owner_id="writer-1", body=_body(), correlation_id="corr")

    error = exc_info.value
    assert (error.code, error.status_code) == ("ADVICE_RATE_LIMITED", 429)
    assert 0 < error.details["retryAfterMs"] <= 60_000
    assert int(error.headers["Retry-After"]) >= 1
    assert gateway.calls == 2

    other = await service.generate(owner_id="writer-2", body=_body(), correlation_id="corr")
    assert other.panel_b.provider is AdviceProviderName.OPENAI


@pytest.mark.parametrize(
    ("overrides", "code"),
    [
        ({"synopsis": "s" * (MAX_SYNOPSIS_CHARS + 1)}, "SYNOPSIS_TOO_LARGE"),
        ({"content": "c" * (MAX_CONTENT_CHARS + 1)}, "CONTENT_TOO_LARGE"),
        ({"selected_text": "t" * (MAX_SELECTED_TEXT_CHARS + 1)}, "SELECTED_TEXT_TOO_LARGE"),
    ],
)
async def test_oversized_fields_rejected_before_gateway(
    provider_credentials: ProviderCredentials, overrides: dict[str, object], code: str
) -> None:
    service, gateway = _service(provider_credentials)

    with pytest.raises(ServiceError) as exc_info:
        await service.generate(owner_id="writer-1", body=_body(**overrides), correlation_id="corr")

    assert (exc_info.value.code, exc_info.value.status_code) == (code, 400)
    assert gateway.calls == 0


async def test_fields_at_the_limit_are_accepted(provider_credentials: ProviderCredentials) -> None:
    service, _ = _service(provider_credentials)

    response = await service.generate(
        owner_id="writer-1",
        body=_body(synopsis="s" * MAX_SYNOPSIS_CHARS, selected_text="t" * MAX_SELECTED_TEXT_CHARS),
        correlation_id="corr",
    )

    assert response.panel_a.structure_feedback.startswith("[gemini/partial]")


async def test_missing_provider_key_maps_to_provider_failure(
    provider_credentials: ProviderCredentials, caplog
) -> None:
    service, _ = _service(provider_credentials)

    with caplog.at_level(logging.INFO, logger="scenariolab.services.events"):
        with pytest.raises(ServiceError) as exc_info:
            await service.generate(
                owner_id="writer-1",
                body=_body(panel_b_provider=AdviceProviderName.ANTHROPIC),
                correlation_id="corr",
            )

    assert (exc_info.value.code, exc_info.value.status_code) == ("ADVICE_PROVIDER_FAILURE", 502)
    failure = next(record for record in caplog.records if record.getMessage() == "ADVICE_REQUEST_FAILED")
    assert "ANTHROPIC_API_KEY" not in failure.extra_payload["details"]["error"]


async def test_gateway_validation_failure_maps_to_provider_failure(
    provider_credentials: ProviderCredentials, caplog
) -> None:
    service, gateway = _service(provider_credentials)

    with caplog.at_level(logging.INFO, logger="scenariolab.services.events"):
        with pytest.raises(ServiceError) as exc_info:
            await service.generate(
                owner_id="writer-1", body=_body(synopsis="", content=""), correlation_id="corr"
            )

    assert (exc_info.value.code, exc_info.value.status_code) == ("ADVICE_PROVIDER_FAILURE", 502)
    assert gateway.calls == 1
    failure = next(record for record in caplog.records if record.getMessage() == "ADVICE_REQUEST_FAILED")
    assert failure.extra_payload["details"]["error"] == "CONTEXT_REQUIRED"


async def test_timeout_maps_to_gateway_timeout(provider_credentials: ProviderCredentials, caplog) -> None:
    service, _ = _service(provider_credentials, latency_seconds=5.0, timeout_ms=1_000)

    with caplog.at_level(logging.INFO, logger="scenariolab.services.events"):
        with pytest.raises(ServiceError) as exc_info:
            await service.generate(owner_id="writer-1", body=_body(), correlation_id="corr")

    assert (exc_info.value.code, exc_info.value.status_code) == ("ADVICE_TIMEOUT", 504)
    timeout = next(record for record in caplog.records if record.getMessage() == "ADVICE_REQUEST_TIMEOUT")
    assert timeout.extra_payload["details"]["provider"] in {"gemini", "openai"}


def test_list_models_reflects_credentials(provider_credentials: ProviderCredentials) -> None:
    service, _ = _service(provider_credentials)

    models = {model.provider: model for model in service.list_models()}

    assert models[AdviceProviderName.GEMINI].enabled is True
    assert models[AdviceProviderName.OPENAI].enabled is True
    assert models[AdviceProviderName.ANTHROPIC].enabled is False
    assert models[AdviceProviderName.OPENAI].label == "OpenAI"
