"""Dual-panel advice gateway: validation, credential checks, and a shared deadline."""

from __future__ import annotations

import asyncio
import re
from typing import Mapping, Protocol

from .config import MAX_ADVICE_TIMEOUT_MS, MIN_ADVICE_TIMEOUT_MS
from .diagnostics import LogContext, log_event
from .models.advice import (
    AdvicePanelConfig,
    AdvicePanelResponse,
    AdviceProviderName,
    AdviceRequest,
    AdviceResponse,
)
from .redaction import redact_error_message
from .settings import ProviderCredentials

_WHITESPACE_RE = re.compile(r"\s+")
_PREVIEW_CHARS = 120


class AdviceGatewayError(RuntimeError):
    """Base class for gateway failures; ``code`` is the stable identifier."""

    def __init__(self, code: str) -> None:
        super().__init__(code)
        self.code = code


class AdviceValidationError(AdviceGatewayError):
    """Raised before dispatch when the request or configuration is unusable."""


class ProviderTimeoutError(AdviceGatewayError):
    """Raised when a panel does not finish before the shared deadline."""

    def __init__(self, provider: AdviceProviderName | None = None) -> None:
        super().__init__("PROVIDER_TIMEOUT")
        self.provider = provider


class AdviceProvider(Protocol):
    """A single advice backend able to review a manuscript excerpt."""

    name: AdviceProviderName

    async def generate(
        self,
        *,
        synopsis: str,
        content: str,
        selected_text: str | None,
        preset: str,
    ) -> AdvicePanelResponse: ...


class SimulatedProvider:
    """Deterministic stand-in for an external provider.

    ``latency_seconds`` is slept before answering so deadline handling can be
    exercised without a network.
    """

    def __init__(self, name: AdviceProviderName, *, latency_seconds: float = 0.0) -> None:
        self.name = name
        self._latency_seconds = latency_seconds

    async def generate(
        self,
        *,
        synopsis: str,
        content: str,
        selected_text: str | None,
        preset: str,
    ) -> AdvicePanelResponse:
        if self._latency_seconds > 0:
            await asyncio.sleep(self._latency_seconds)

        scope = "partial" if selected_text else "full"
        source = selected_text if selected_text else content
        preview = _WHITESPACE_RE.sub(" ", source[:_PREVIEW_CHARS]).strip()
        tag = f"[{self.name.value}/{scope}]"
        return AdvicePanelResponse(
            provider=self.name,
            structure_feedback=f"{tag} Consider narrative pacing and transitions. Context: {preview}",
            emotional_feedback=(
                f"{tag} Clarify emotional intent and character motivation. "
                f"Synopsis length: {len(synopsis)}"
            ),
        )


def simulated_providers(*, latency_seconds: float = 0.0) -> dict[AdviceProviderName, AdviceProvider]:
    return {
        name: SimulatedProvider(name, latency_seconds=latency_seconds) for name in AdviceProviderName
    }


class ProviderGateway:
    """Run both advice panels concurrently and join them as one operation."""

    def __init__(
        self,
        *,
        credentials: ProviderCredentials,
        providers: Mapping[AdviceProviderName, AdviceProvider] | None = None,
    ) -> None:
        self._credentials = credentials
        self._providers = dict(providers or simulated_providers())

    @property
    def credentials(self) -> ProviderCredentials:
        return self._credentials

    def validate(self, request: AdviceRequest) -> None:
        """Fail fast on an unusable request; no provider is contacted."""

        if not request.owner_id or not request.document_id:
            raise AdviceValidationError("OWNER_OR_DOCUMENT_MISSING")
        if not request.synopsis and not request.content:
            raise AdviceValidationError("CONTEXT_REQUIRED")
        if not MIN_ADVICE_TIMEOUT_MS <= request.timeout_ms <= MAX_ADVICE_TIMEOUT_MS:
            raise AdviceValidationError("INVALID_TIMEOUT_RANGE")
        # Both panels are checked before either call is dispatched.
        for panel in (request.panel_a, request.panel_b):
            self._require_provider(panel.provider)

    async def generate(self, request: AdviceRequest) -> AdviceResponse:
        self.validate(request)

        context = LogContext.build(
            request.correlation_id,
            feature="advice",
            operation="generateDualAdvice",
            owner_id=request.owner_id,
            document_id=request.document_id,
        )

        loop = asyncio.get_running_loop()
        deadline = loop.time() + request.timeout_ms / 1000
        tasks = [
            asyncio.create_task(self._run_panel(panel, request, deadline))
            for panel in (request.panel_a, request.panel_b)
        ]
        try:
            panel_a, panel_b = await asyncio.gather(*tasks)
        except Exception as exc:
            log_event(
                "error",
                "ADVICE_GENERATION_FAILED",
                context,
                {"error": redact_error_message(str(exc))},
            )
            raise
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
            # Collect the sibling's outcome so no task exception goes unretrieved.
            await asyncio.gather(*tasks, return_exceptions=True)

        log_event(
            "info",
            "ADVICE_GENERATED",
            context,
            {
                "panelAProvider": request.panel_a.provider.value,
                "panelBProvider": request.panel_b.provider.value,
                "selectedText": bool(request.selected_text),
            },
        )
        return AdviceResponse(panel_a=panel_a, panel_b=panel_b)

    def _require_provider(self, provider: AdviceProviderName) -> AdviceProvider:
        if not self._credentials.has(provider):
            raise AdviceValidationError(f"PROVIDER_KEY_MISSING:{provider.env_key}")
        try:
            return self._providers[provider]
        except KeyError as exc:
            raise AdviceValidationError(f"PROVIDER_UNAVAILABLE:{provider.value}") from exc

    async def _run_panel(
        self,
        panel: AdvicePanelConfig,
        request: AdviceRequest,
        deadline: float,
    ) -> AdvicePanelResponse:
        provider = self._providers[panel.provider]
        try:
            async with asyncio.timeout_at(deadline):
                return await provider.generate(
                    synopsis=request.synopsis,
                    content=request.content,
                    selected_text=request.selected_text,
                    preset=panel.preset,
                )
        except TimeoutError as exc:
            raise ProviderTimeoutError(panel.provider) from exc


__all__ = [
    "AdviceGatewayError",
    "AdviceProvider",
    "AdviceValidationError",
    "ProviderGateway",
    "ProviderTimeoutError",
    "SimulatedProvider",
    "simulated_providers",
]
