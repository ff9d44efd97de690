"""Pydantic models exposed by the service package."""

from __future__ import annotations

from .advice import (
    AdvicePanelConfig,
    AdvicePanelResponse,
    AdviceProviderName,
    AdviceRequest,
    AdviceResponse,
    ModelDescriptor,
)
from .documents import (
    CharacterProfile,
    DocumentSettings,
    DocumentSummary,
    ScriptDocument,
    ScriptDocumentPatch,
)
from .errors import ErrorResponse
from .export import ExportPayload

__all__ = [
    "AdvicePanelConfig",
    "AdvicePanelResponse",
    "AdviceProviderName",
    "AdviceRequest",
    "AdviceResponse",
    "CharacterProfile",
    "DocumentSettings",
    "DocumentSummary",
    "ErrorResponse",
    "ExportPayload",
    "ModelDescriptor",
    "ScriptDocument",
    "ScriptDocumentPatch",
]
