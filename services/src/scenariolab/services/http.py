"""HTTP utilities shared across the Scenario Writing Lab service stack."""

from __future__ import annotations

import logging
import re
from contextvars import ContextVar
from typing import Any, Final, NoReturn
from uuid import uuid4

from fastapi import status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .models.errors import ErrorResponse
from .service_errors import DEFAULT_ERROR_DEFINITION, ERROR_DEFINITIONS, ServiceError, code_for_status

LOGGER = logging.getLogger(__name__)

CORRELATION_ID_HEADER: Final[str] = "x-correlation-id"
USER_ID_HEADER: Final[str] = "x-user-id"
_CORRELATION_ID_CONTEXT: ContextVar[str] = ContextVar("scenariolab_correlation_id", default="")
_CORRELATION_ID_RE = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")

DEFAULT_ERROR_RESPONSES: Final[dict[int | str, dict[str, Any]]] = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
    status.HTTP_401_UNAUTHORIZED: {"model": ErrorResponse},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
}


def default_error_responses() -> dict[int | str, dict[str, Any]]:
    """Return a copy of the default error response mapping for routers."""

    return {status_code: dict(schema) for status_code, schema in DEFAULT_ERROR_RESPONSES.items()}


def resolve_correlation_id(candidate: str | None) -> str:
    """Return the caller's correlation id when well formed, else a fresh one."""

    if candidate:
        candidate = candidate.strip()
        if _CORRELATION_ID_RE.match(candidate):
            return candidate
        LOGGER.debug("Ignoring malformed correlation identifier")
    return str(uuid4())


def ensure_correlation_id() -> str:
    """Return the active correlation identifier, creating one if absent."""

    correlation_id = _CORRELATION_ID_CONTEXT.get()
    if not correlation_id:
        correlation_id = str(uuid4())
        _CORRELATION_ID_CONTEXT.set(correlation_id)
    return correlation_id


def current_correlation_id() -> str:
    """Return the active correlation identifier without creating one."""

    return _CORRELATION_ID_CONTEXT.get()


def get_correlation_context() -> ContextVar[str]:
    """Expose the correlation identifier context variable for middleware use."""

    return _CORRELATION_ID_CONTEXT


def build_error_payload(
    *, code: str, correlation_id: str, details: dict[str, Any] | None = None
) -> ErrorResponse:
    """Construct an error payload following the locked contract."""

    return ErrorResponse(error=code, correlation_id=correlation_id, details=details or None)


def error_response(
    *,
    status_code: int,
    code: str,
    correlation_id: str,
    details: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    payload = build_error_payload(code=code, correlation_id=correlation_id, details=details)
    response_headers = dict(headers or {})
    response_headers[CORRELATION_ID_HEADER] = correlation_id
    return JSONResponse(
        status_code=status_code,
        content=payload.to_payload(),
        headers=response_headers,
    )


def service_error_response(exc: ServiceError, correlation_id: str) -> JSONResponse:
    """Render a ``ServiceError`` using the shared envelope."""

    return error_response(
        status_code=exc.status_code,
        code=exc.code,
        correlation_id=correlation_id,
        details=exc.details,
        headers=exc.headers,
    )


def http_exception_to_response(exc: StarletteHTTPException, correlation_id: str) -> JSONResponse:
    """Translate an ``HTTPException`` into the error envelope.

    A string ``detail`` that names a known error code is used as the code;
    any other detail is dropped so framework messages never reach clients.
    """

    detail = exc.detail
    if isinstance(detail, str) and detail in ERROR_DEFINITIONS:
        code = detail
    else:
        code = code_for_status(exc.status_code)
    return error_response(
        status_code=exc.status_code,
        code=code,
        correlation_id=correlation_id,
        headers=dict(exc.headers or {}),
    )


def request_validation_response(exc: RequestValidationError, correlation_id: str) -> JSONResponse:
    """Render framework-level validation failures (for example malformed JSON)."""

    LOGGER.info(
        "request.validation_failed",
        extra={"extra_payload": {"errors": len(exc.errors())}},
    )
    return error_response(
        status_code=status.HTTP_400_BAD_REQUEST,
        code="INVALID_REQUEST",
        correlation_id=correlation_id,
    )


def internal_error_response(correlation_id: str) -> JSONResponse:
    """Generate a generic internal error response with correlation context."""

    return error_response(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        code="INTERNAL_ERROR",
        correlation_id=correlation_id,
    )


def raise_service_error(
    *,
    code: str,
    status_code: int | None = None,
    details: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> NoReturn:
    """Raise a structured ``ServiceError`` resolved against the error table."""

    definition = ERROR_DEFINITIONS.get(code, DEFAULT_ERROR_DEFINITION)
    raise ServiceError(
        code=code,
        status_code=status_code or definition.status_code,
        details=details,
        headers=headers,
    )


__all__: list[str] = [
    "CORRELATION_ID_HEADER",
    "DEFAULT_ERROR_RESPONSES",
    "USER_ID_HEADER",
    "build_error_payload",
    "current_correlation_id",
    "default_error_responses",
    "ensure_correlation_id",
    "error_response",
    "get_correlation_context",
    "http_exception_to_response",
    "internal_error_response",
    "raise_service_error",
    "request_validation_response",
    "resolve_correlation_id",
    "service_error_response",
]
