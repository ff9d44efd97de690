"""Domain event logging for document, advice, and export operations."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Literal

from .http import ensure_correlation_id

LOGGER = logging.getLogger("scenariolab.services.events")

LogLevel = Literal["debug", "info", "warning", "error"]

_LEVELS: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


@dataclass(frozen=True)
class LogContext:
    """Identifiers threaded through every event for one logical request."""

    correlation_id: str
    feature: str | None = None
    operation: str | None = None
    owner_id: str | None = None
    document_id: str | None = None
    provider: str | None = None

    @classmethod
    def build(cls, correlation_id: str | None = None, **fields: str | None) -> "LogContext":
        return cls(correlation_id=correlation_id or ensure_correlation_id(), **fields)

    def as_payload(self) -> dict[str, str]:
        wire_names = {
            "correlation_id": "correlationId",
            "owner_id": "ownerId",
            "document_id": "documentId",
        }
        return {
            wire_names.get(key, key): value
            for key, value in asdict(self).items()
            if value is not None
        }


def log_event(
    level: LogLevel,
    message: str,
    context: LogContext,
    details: dict[str, Any] | None = None,
) -> None:
    """Emit a structured event; payloads are scrubbed by the JSON formatter."""

    payload: dict[str, Any] = {"context": context.as_payload()}
    if details:
        payload["details"] = details
    LOGGER.log(
        _LEVELS[level],
        message,
        extra={"extra_payload": payload, "correlation_id": context.correlation_id},
    )


def log_document_load(
    context: LogContext,
    *,
    version: int | None = None,
    elapsed_ms: float | None = None,
) -> None:
    log_event("info", "DOCUMENT_LOAD", context, {"version": version, "elapsedMs": elapsed_ms})


def log_document_save(
    context: LogContext,
    *,
    version: int | None = None,
    changed_fields: list[str] | None = None,
    elapsed_ms: float | None = None,
) -> None:
    log_event(
        "info",
        "DOCUMENT_SAVE",
        context,
        {"version": version, "changedFields": changed_fields or [], "elapsedMs": elapsed_ms},
    )


__all__ = ["LogContext", "LogLevel", "log_document_load", "log_document_save", "log_event"]
