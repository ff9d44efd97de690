"""Document catalog and editing endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, status

from ..document_service import DocumentService
from ..models.documents import DocumentSummary, ScriptDocument
from .dependencies import get_correlation_id, get_document_service, require_owner_id

router = APIRouter(prefix="/documents", tags=["documents"])


@router.get("", response_model=list[DocumentSummary], response_model_by_alias=True)
async def list_documents(
    owner_id: str = Depends(require_owner_id),
    service: DocumentService = Depends(get_document_service),
) -> list[DocumentSummary]:
    """Return the caller's documents, most recently updated first."""

    return await service.list_documents(owner_id)


@router.post(
    "",
    response_model=ScriptDocument,
    response_model_by_alias=True,
    status_code=status.HTTP_201_CREATED,
)
async def create_document(
    payload: Any = Body(None),
    owner_id: str = Depends(require_owner_id),
    service: DocumentService = Depends(get_document_service),
) -> ScriptDocument:
    return await service.create_document(owner_id, payload)


@router.get("/{document_id}", response_model=ScriptDocument, response_model_by_alias=True)
async def get_document(
    document_id: str,
    owner_id: str = Depends(require_owner_id),
    service: DocumentService = Depends(get_document_service),
    correlation_id: str = Depends(get_correlation_id),
) -> ScriptDocument:
    return await service.get_document(owner_id, document_id, correlation_id=correlation_id)


@router.patch("/{document_id}", response_model=ScriptDocument, response_model_by_alias=True)
async def update_document(
    document_id: str,
    payload: Any = Body(None),
    owner_id: str = Depends(require_owner_id),
    service: DocumentService = Depends(get_document_service),
    correlation_id: str = Depends(get_correlation_id),
) -> ScriptDocument:
    """Apply a sparse patch guarded by an optional ``expectedVersion``."""

    return await service.update_document(
        owner_id, document_id, payload, correlation_id=correlation_id
    )


__all__ = ["router"]
