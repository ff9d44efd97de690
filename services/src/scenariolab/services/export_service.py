"""Export helpers that render a manuscript into a downloadable payload."""

from __future__ import annotations

import re
import time
from dataclasses import dataclass
from typing import Any, Mapping

from .diagnostics import LogContext, log_event
from .http import raise_service_error
from .models.export import DOCX_MIME_TYPE, ExportPayload

__all__ = [
    "ExportBody",
    "ExportRequestError",
    "create_export_payload",
    "export_document",
    "parse_export_body",
    "sanitize_file_name",
]

_UNSAFE_FILE_CHARS = re.compile(r"[^A-Za-z0-9_-]")


class ExportRequestError(ValueError):
    """Raised when export input is incomplete; ``code`` is client-facing."""

    def __init__(self, code: str) -> None:
        super().__init__(code)
        self.code = code


@dataclass(frozen=True)
class ExportBody:
    title: str
    author_name: str
    content: str


def sanitize_file_name(value: str) -> str:
    return _UNSAFE_FILE_CHARS.sub("_", value)


def parse_export_body(body: Any) -> ExportBody:
    """Read title, author and content; non-string values count as empty."""

    if not isinstance(body, Mapping):
        raise_service_error(code="INVALID_EXPORT_BODY")

    def _text(key: str) -> str:
        value = body.get(key)
        return value if isinstance(value, str) else ""

    return ExportBody(
        title=_text("title"),
        author_name=_text("authorName"),
        content=_text("content"),
    )


def create_export_payload(title: str, author_name: str, content: str) -> ExportPayload:
    if not title.strip() or not author_name.strip():
        raise ExportRequestError("EXPORT_METADATA_REQUIRED")
    if not content.strip():
        raise ExportRequestError("EXPORT_CONTENT_REQUIRED")

    return ExportPayload(
        file_name=f"{sanitize_file_name(title)}.docx",
        mime_type=DOCX_MIME_TYPE,
        content="\n".join([f"# {title}", f"Author: {author_name}", "", content]),
    )


def export_document(
    *,
    owner_id: str,
    document_id: str,
    body: ExportBody,
    correlation_id: str | None = None,
) -> ExportPayload:
    """Build the export payload and log the outcome."""

    started = time.perf_counter()
    context = LogContext.build(
        correlation_id,
        feature="export",
        operation="handleExportDocument",
        owner_id=owner_id,
        document_id=document_id,
    )

    try:
        payload = create_export_payload(body.title, body.author_name, body.content)
    except ExportRequestError as exc:
        log_event("error", "EXPORT_FAILED", context, {"error": exc.code})
        raise_service_error(code=exc.code)

    log_event(
        "info",
        "EXPORT_SUCCEEDED",
        context,
        {
            "fileName": payload.file_name,
            "byteLength": len(payload.content),
            "elapsedMs": round((time.perf_counter() - started) * 1000, 3),
        },
    )
    return payload
