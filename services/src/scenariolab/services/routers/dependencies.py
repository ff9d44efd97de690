"""Dependency injection helpers for FastAPI routers."""

from __future__ import annotations

from typing import cast

from fastapi import Request

from ..advice_service import AdviceService
from ..config import ServiceSettings
from ..document_service import DocumentService
from ..http import USER_ID_HEADER, ensure_correlation_id, raise_service_error

__all__ = [
    "get_advice_service",
    "get_correlation_id",
    "get_document_service",
    "get_settings",
    "require_owner_id",
]


def get_settings(request: Request) -> ServiceSettings:
    """Return the service settings configured for the application."""

    return cast(ServiceSettings, request.app.state.settings)


def get_document_service(request: Request) -> DocumentService:
    """Return the document service bound to this application's store."""

    return cast(DocumentService, request.app.state.document_service)


def get_advice_service(request: Request) -> AdviceService:
    """Return the advice service holding this application's rate limiter."""

    return cast(AdviceService, request.app.state.advice_service)


def get_correlation_id(request: Request) -> str:
    state_value = getattr(request.state, "correlation_id", None)
    if isinstance(state_value, str) and state_value:
        return state_value
    return ensure_correlation_id()


def require_owner_id(request: Request) -> str:
    """Return the caller identity from ``x-user-id`` or fail with 401."""

    owner_id = (request.headers.get(USER_ID_HEADER) or "").strip()
    if not owner_id:
        raise_service_error(code="AUTH_REQUIRED")
    return owner_id
