"""FastAPI application factory for the Scenario Writing Lab services."""

from __future__ import annotations

import logging
from contextvars import ContextVar
from typing import Final, Mapping

from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.datastructures import MutableHeaders
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from .advice_service import AdviceService
from .config import ServiceSettings
from .document_service import DocumentService
from .http import (
    CORRELATION_ID_HEADER,
    default_error_responses,
    ensure_correlation_id,
    get_correlation_context,
    http_exception_to_response,
    internal_error_response,
    request_validation_response,
    resolve_correlation_id,
    service_error_response,
)
from .metrics import record_request
from .middleware import BodySizeLimitMiddleware
from .models.advice import AdviceProviderName
from .persistence import DocumentStore, build_document_store
from .provider_gateway import AdviceProvider, ProviderGateway
from .rate_limit import RateLimiter
from .routers import api_router, health_router
from .service_errors import ServiceError
from .settings import ProviderCredentials

LOGGER = logging.getLogger(__name__)

SERVICE_VERSION: Final[str] = "1.0.0"


class TraceMiddleware:
    """ASGI middleware that applies correlation ids and unified error handling."""

    def __init__(self, app: ASGIApp, *, correlation_context: ContextVar[str]) -> None:
        self.app = app
        self._correlation_context = correlation_context

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive)
        correlation_id = resolve_correlation_id(request.headers.get(CORRELATION_ID_HEADER))
        token = self._correlation_context.set(correlation_id)
        scope.setdefault("state", {})
        scope["state"]["correlation_id"] = correlation_id  # type: ignore[index]

        status_holder: dict[str, int | None] = {"status": None}

        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                headers.setdefault(CORRELATION_ID_HEADER, correlation_id)
                status_holder["status"] = message.get("status")
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except ServiceError as exc:
            status_holder["status"] = exc.status_code
            await service_error_response(exc, correlation_id)(scope, receive, send)
        except StarletteHTTPException as exc:
            status_holder["status"] = exc.status_code
            await http_exception_to_response(exc, correlation_id)(scope, receive, send)
        except RequestValidationError as exc:
            status_holder["status"] = status.HTTP_400_BAD_REQUEST
            await request_validation_response(exc, correlation_id)(scope, receive, send)
        except Exception:
            LOGGER.exception("Unhandled error processing %s %s", request.method, request.url.path)
            status_holder["status"] = status.HTTP_500_INTERNAL_SERVER_ERROR
            await internal_error_response(correlation_id)(scope, receive, send)
        finally:
            self._correlation_context.reset(token)
            record_request(
                request.method,
                status_holder["status"] or status.HTTP_500_INTERNAL_SERVER_ERROR,
            )


def create_app(
    settings: ServiceSettings | None = None,
    *,
    credentials: ProviderCredentials | None = None,
    providers: Mapping[AdviceProviderName, AdviceProvider] | None = None,
    document_store: DocumentStore | None = None,
) -> FastAPI:
    """Construct the FastAPI application.

    Every application owns its store, rate limiter, and gateway; nothing is
    shared between instances.
    """

    service_settings = settings or ServiceSettings.from_environment()
    store = document_store or build_document_store(service_settings)
    gateway = ProviderGateway(
        credentials=credentials or ProviderCredentials(),
        providers=providers,
    )
    rate_limiter = RateLimiter(
        limit=service_settings.advice_rate_limit,
        window_ms=service_settings.advice_rate_window_ms,
    )

    application = FastAPI(
        title="Scenario Writing Lab Services",
        version=SERVICE_VERSION,
        responses=default_error_responses(),
    )
    application.state.settings = service_settings
    application.state.service_version = SERVICE_VERSION
    application.state.document_store = store
    application.state.document_service = DocumentService(store)
    application.state.advice_service = AdviceService(
        gateway=gateway,
        rate_limiter=rate_limiter,
        timeout_ms=service_settings.advice_timeout_ms,
    )

    LOGGER.info(
        "service.configured",
        extra={
            "extra_payload": {
                "service": service_settings.service_name,
                "documentStore": store.backend,
                "adviceRateLimit": service_settings.advice_rate_limit,
                "adviceTimeoutMs": service_settings.advice_timeout_ms,
            }
        },
    )

    async def service_error_handler(_: Request, exc: Exception) -> Response:
        correlation_id = ensure_correlation_id()
        if isinstance(exc, ServiceError):
            return service_error_response(exc, correlation_id)
        return internal_error_response(correlation_id)

    async def http_exception_handler(_: Request, exc: Exception) -> Response:
        correlation_id = ensure_correlation_id()
        if isinstance(exc, StarletteHTTPException):
            return http_exception_to_response(exc, correlation_id)
        return internal_error_response(correlation_id)

    async def validation_exception_handler(_: Request, exc: Exception) -> Response:
        correlation_id = ensure_correlation_id()
        if isinstance(exc, RequestValidationError):
            return request_validation_response(exc, correlation_id)
        return internal_error_response(correlation_id)

    application.add_exception_handler(ServiceError, service_error_handler)
    application.add_exception_handler(StarletteHTTPException, http_exception_handler)
    application.add_exception_handler(RequestValidationError, validation_exception_handler)

    application.add_middleware(
        BodySizeLimitMiddleware,
        limit=service_settings.max_request_body_bytes,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=[],
        allow_origin_regex=r"^https?://(?:127\.0\.0\.1|localhost)(?::\d+)?$",
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[CORRELATION_ID_HEADER, "Retry-After"],
    )

    application.add_middleware(
        TraceMiddleware,
        correlation_context=get_correlation_context(),
    )

    application.include_router(health_router)
    application.include_router(api_router)

    return application


app = create_app()


__all__ = ["SERVICE_VERSION", "TraceMiddleware", "app", "create_app"]
