"""Central service error definitions and helper exception types."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from fastapi import status

# Newer Starlette releases renamed the 413 constant.
HTTP_STATUS_PAYLOAD_TOO_LARGE = getattr(status, "HTTP_413_CONTENT_TOO_LARGE", 413)


@dataclass(frozen=True)
class ErrorDefinition:
    code: str
    status_code: int


def _define(code: str, status_code: int) -> tuple[str, ErrorDefinition]:
    return code, ErrorDefinition(code, status_code)


ERROR_DEFINITIONS: Dict[str, ErrorDefinition] = dict(
    [
        _define("AUTH_REQUIRED", status.HTTP_401_UNAUTHORIZED),
        _define("INVALID_REQUEST", status.HTTP_400_BAD_REQUEST),
        _define("NOT_FOUND", status.HTTP_404_NOT_FOUND),
        _define("METHOD_NOT_ALLOWED", status.HTTP_405_METHOD_NOT_ALLOWED),
        _define("PAYLOAD_TOO_LARGE", HTTP_STATUS_PAYLOAD_TOO_LARGE),
        _define("INTERNAL_ERROR", status.HTTP_500_INTERNAL_SERVER_ERROR),
        # documents
        _define("INVALID_DOCUMENT_BODY", status.HTTP_400_BAD_REQUEST),
        _define("INVALID_DOCUMENT_PATCH", status.HTTP_400_BAD_REQUEST),
        _define("TITLE_REQUIRED", status.HTTP_400_BAD_REQUEST),
        _define("AUTHOR_NAME_REQUIRED", status.HTTP_400_BAD_REQUEST),
        _define("INVALID_TITLE", status.HTTP_400_BAD_REQUEST),
        _define("INVALID_AUTHOR_NAME", status.HTTP_400_BAD_REQUEST),
        _define("INVALID_SYNOPSIS", status.HTTP_400_BAD_REQUEST),
        _define("INVALID_CONTENT", status.HTTP_400_BAD_REQUEST),
        _define("INVALID_SETTINGS", status.HTTP_400_BAD_REQUEST),
        _define("INVALID_LINE_LENGTH", status.HTTP_400_BAD_REQUEST),
        _define("INVALID_PAGE_COUNT", status.HTTP_400_BAD_REQUEST),
        _define("INVALID_CHARACTERS", status.HTTP_400_BAD_REQUEST),
        _define("INVALID_CHARACTER_ITEM", status.HTTP_400_BAD_REQUEST),
        _define("INVALID_EXPECTED_VERSION", status.HTTP_400_BAD_REQUEST),
        _define("DOCUMENT_NOT_FOUND", status.HTTP_404_NOT_FOUND),
        _define("DOCUMENT_ACCESS_DENIED", status.HTTP_403_FORBIDDEN),
        _define("DOCUMENT_VERSION_CONFLICT", status.HTTP_409_CONFLICT),
        _define("DOCUMENT_INTERNAL_ERROR", status.HTTP_500_INTERNAL_SERVER_ERROR),
        # advice
        _define("INVALID_ADVICE_BODY", status.HTTP_400_BAD_REQUEST),
        _define("DOCUMENT_ID_REQUIRED", status.HTTP_400_BAD_REQUEST),
        _define("SYNOPSIS_TOO_LARGE", status.HTTP_400_BAD_REQUEST),
        _define("CONTENT_TOO_LARGE", status.HTTP_400_BAD_REQUEST),
        _define("SELECTED_TEXT_TOO_LARGE", status.HTTP_400_BAD_REQUEST),
        _define("ADVICE_RATE_LIMITED", status.HTTP_429_TOO_MANY_REQUESTS),
        _define("ADVICE_PROVIDER_FAILURE", status.HTTP_502_BAD_GATEWAY),
        _define("ADVICE_TIMEOUT", status.HTTP_504_GATEWAY_TIMEOUT),
        # export
        _define("INVALID_EXPORT_BODY", status.HTTP_400_BAD_REQUEST),
        _define("EXPORT_METADATA_REQUIRED", status.HTTP_400_BAD_REQUEST),
        _define("EXPORT_CONTENT_REQUIRED", status.HTTP_400_BAD_REQUEST),
    ]
)

DEFAULT_ERROR_DEFINITION = ErrorDefinition("INVALID_REQUEST", status.HTTP_400_BAD_REQUEST)

_STATUS_CODES: Dict[int, str] = {
    status.HTTP_400_BAD_REQUEST: "INVALID_REQUEST",
    status.HTTP_401_UNAUTHORIZED: "AUTH_REQUIRED",
    status.HTTP_404_NOT_FOUND: "NOT_FOUND",
    status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
    HTTP_STATUS_PAYLOAD_TOO_LARGE: "PAYLOAD_TOO_LARGE",
}


def code_for_status(status_code: int) -> str:
    """Return the stable error code used for a bare HTTP status."""

    return _STATUS_CODES.get(status_code, "INTERNAL_ERROR" if status_code >= 500 else "INVALID_REQUEST")


class ServiceError(Exception):
    """Structured error for router responses.

    ``code`` is the stable string surfaced to clients. ``details`` carries
    machine-readable hints only (for example ``retryAfterMs``), never
    internal messages.
    """

    def __init__(
        self,
        *,
        code: str,
        status_code: int,
        details: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__(code)
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        self.headers = headers or {}
