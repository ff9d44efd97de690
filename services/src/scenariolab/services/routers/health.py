"""Health and metrics endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response

from ..config import ServiceSettings
from ..metrics import render
from .dependencies import get_settings

__all__ = ["router", "get_service_version", "health", "metrics_endpoint"]


router = APIRouter(tags=["health"])


_METRICS_MEDIA_TYPE = "text/plain; version=0.0.4"


def get_service_version(request: Request) -> str:
    """Return the service version attached to the application state."""

    return getattr(request.app.state, "service_version", "unknown")


@router.get("/health")
async def health(settings: ServiceSettings = Depends(get_settings)) -> dict[str, str]:
    return {"status": "ok", "service": settings.service_name}


@router.get("/metrics")
async def metrics_endpoint(
    settings: ServiceSettings = Depends(get_settings),
    version: str = Depends(get_service_version),
) -> Response:
    """Return the Prometheus metrics payload without implicit charsets."""

    response = Response(content=render(settings.service_name, version).encode("utf-8"))
    response.headers["Content-Type"] = _METRICS_MEDIA_TYPE
    return response
