"""Dual-panel advice endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends

from ..advice_service import AdviceService, parse_advice_body
from ..models.advice import AdviceResponse, ModelDescriptor
from .dependencies import get_advice_service, get_correlation_id, require_owner_id

router = APIRouter(prefix="/advice", tags=["advice"])


@router.post("/generate", response_model=AdviceResponse, response_model_by_alias=True)
async def generate_advice(
    payload: Any = Body(None),
    owner_id: str = Depends(require_owner_id),
    service: AdviceService = Depends(get_advice_service),
    correlation_id: str = Depends(get_correlation_id),
) -> AdviceResponse:
    return await service.generate(
        owner_id=owner_id,
        body=parse_advice_body(payload),
        correlation_id=correlation_id,
    )


@router.get("/models", response_model=list[ModelDescriptor], response_model_by_alias=True)
async def list_models(
    _owner_id: str = Depends(require_owner_id),
    service: AdviceService = Depends(get_advice_service),
) -> list[ModelDescriptor]:
    """Report which advice providers this deployment has credentials for."""

    return service.list_models()


__all__ = ["router"]
