"""Manuscript export endpoint."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, status

from ..export_service import export_document, parse_export_body
from ..models.export import ExportPayload
from .dependencies import get_correlation_id, require_owner_id

router = APIRouter(prefix="/documents", tags=["export"])


@router.post(
    "/{document_id}/export",
    response_model=ExportPayload,
    response_model_by_alias=True,
    status_code=status.HTTP_200_OK,
)
async def export_manuscript(
    document_id: str,
    payload: Any = Body(None),
    owner_id: str = Depends(require_owner_id),
    correlation_id: str = Depends(get_correlation_id),
) -> ExportPayload:
    """Render the posted title, author, and body as a ``.docx`` labelled payload."""

    return export_document(
        owner_id=owner_id,
        document_id=document_id,
        body=parse_export_body(payload),
        correlation_id=correlation_id,
    )


__all__ = ["router"]
