"""Request-level policy for advice generation: rate limits, size caps, error mapping."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Final, Mapping, NoReturn

from .diagnostics import LogContext, log_event
from .http import raise_service_error
from .models.advice import (
    AdvicePanelConfig,
    AdviceProviderName,
    AdviceRequest,
    AdviceResponse,
    ModelDescriptor,
)
from .provider_gateway import ProviderGateway, ProviderTimeoutError
from .rate_limit import RateLimiter
from .redaction import redact_error_message

MAX_SYNOPSIS_CHARS: Final[int] = 8_000
MAX_CONTENT_CHARS: Final[int] = 50_000
MAX_SELECTED_TEXT_CHARS: Final[int] = 10_000

DEFAULT_PANEL_A_PROVIDER: Final[AdviceProviderName] = AdviceProviderName.GEMINI
DEFAULT_PANEL_B_PROVIDER: Final[AdviceProviderName] = AdviceProviderName.OPENAI


@dataclass(frozen=True)
class AdviceBody:
    """Parsed body of ``POST /api/advice/generate``."""

    document_id: str
    synopsis: str
    content: str
    selected_text: str | None
    panel_a_provider: AdviceProviderName
    panel_b_provider: AdviceProviderName


def parse_advice_body(body: Any) -> AdviceBody:
    if not isinstance(body, Mapping):
        raise_service_error(code="INVALID_ADVICE_BODY")

    def _text(key: str) -> str:
        value = body.get(key)
        return value if isinstance(value, str) else ""

    document_id = _text("documentId")
    if not document_id:
        raise_service_error(code="DOCUMENT_ID_REQUIRED")

    selected_text = body.get("selectedText")
    return AdviceBody(
        document_id=document_id,
        synopsis=_text("synopsis"),
        content=_text("content"),
        selected_text=selected_text if isinstance(selected_text, str) else None,
        panel_a_provider=AdviceProviderName.parse(body.get("panelAProvider"), DEFAULT_PANEL_A_PROVIDER),
        panel_b_provider=AdviceProviderName.parse(body.get("panelBProvider"), DEFAULT_PANEL_B_PROVIDER),
    )


def assert_request_size(value: str, max_chars: int, field_name: str) -> None:
    if len(value) > max_chars:
        raise_service_error(code=f"{field_name.upper()}_TOO_LARGE")


class AdviceService:
    """Wrap the provider gateway with per-caller policy."""

    def __init__(
        self,
        *,
        gateway: ProviderGateway,
        rate_limiter: RateLimiter,
        timeout_ms: int = 8000,
    ) -> None:
        self._gateway = gateway
        self._rate_limiter = rate_limiter
        self._timeout_ms = timeout_ms

    async def generate(
        self,
        *,
        owner_id: str,
        body: AdviceBody,
        correlation_id: str,
    ) -> AdviceResponse:
        started = time.perf_counter()
        context = LogContext.build(
            correlation_id,
            feature="advice",
            operation="handleGenerateAdvice",
            owner_id=owner_id,
            document_id=body.document_id,
        )

        decision = self._rate_limiter.check(owner_id)
        if not decision.allowed:
            log_event("warning", "ADVICE_RATE_LIMITED", context, {"retryAfterMs": decision.retry_after_ms})
            raise_service_error(
                code="ADVICE_RATE_LIMITED",
                details={"retryAfterMs": decision.retry_after_ms},
                headers={"Retry-After": str(decision.retry_after_seconds)},
            )

        assert_request_size(body.synopsis, MAX_SYNOPSIS_CHARS, "synopsis")
        assert_request_size(body.content, MAX_CONTENT_CHARS, "content")
        if body.selected_text:
            assert_request_size(body.selected_text, MAX_SELECTED_TEXT_CHARS, "selected_text")

        request = AdviceRequest(
            correlation_id=correlation_id,
            owner_id=owner_id,
            document_id=body.document_id,
            synopsis=body.synopsis,
            content=body.content,
            selected_text=body.selected_text,
            panel_a=AdvicePanelConfig(provider=body.panel_a_provider),
            panel_b=AdvicePanelConfig(provider=body.panel_b_provider),
            timeout_ms=self._timeout_ms,
        )

        try:
            response = await self._gateway.generate(request)
        except Exception as exc:
            self._raise_gateway_failure(exc, context)

        log_event(
            "info",
            "ADVICE_REQUEST_SUCCEEDED",
            context,
            {
                "panelAProvider": body.panel_a_provider.value,
                "panelBProvider": body.panel_b_provider.value,
                "elapsedMs": round((time.perf_counter() - started) * 1000, 3),
            },
        )
        return response

    def list_models(self) -> list[ModelDescriptor]:
        credentials = self._gateway.credentials
        return [
            ModelDescriptor(provider=provider, label=provider.label, enabled=credentials.has(provider))
            for provider in AdviceProviderName
        ]

    @staticmethod
    def _raise_gateway_failure(exc: Exception, context: LogContext) -> NoReturn:
        message = redact_error_message(str(exc))

        if isinstance(exc, ProviderTimeoutError) or "PROVIDER_TIMEOUT" in message:
            details: dict[str, Any] = {"error": message}
            if isinstance(exc, ProviderTimeoutError) and exc.provider is not None:
                details["provider"] = exc.provider.value
            log_event("warning", "ADVICE_REQUEST_TIMEOUT", context, details)
            raise_service_error(code="ADVICE_TIMEOUT")

        log_event("error", "ADVICE_REQUEST_FAILED", context, {"error": message})
        raise_service_error(code="ADVICE_PROVIDER_FAILURE")


__all__ = [
    "AdviceBody",
    "AdviceService",
    "MAX_CONTENT_CHARS",
    "MAX_SELECTED_TEXT_CHARS",
    "MAX_SYNOPSIS_CHARS",
    "assert_request_size",
    "parse_advice_body",
]
