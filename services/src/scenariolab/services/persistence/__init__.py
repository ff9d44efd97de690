"""Document persistence backends and the startup-time backend selector."""

from __future__ import annotations

import logging

from ..config import ServiceSettings
from ..redaction import redact_error_message
from .base import (
    DocumentNotFoundError,
    DocumentStore,
    DocumentVersionConflictError,
    apply_patch,
    check_version,
    make_document_id,
    new_document,
    sort_by_recency,
    utc_now,
)
from .firestore import FirestoreDocumentStore
from .memory import InMemoryDocumentStore

LOGGER = logging.getLogger(__name__)


def build_document_store(settings: ServiceSettings) -> DocumentStore:
    """Construct the configured store; never raises.

    A Firestore backend that fails to initialise (missing credentials,
    unknown project) degrades to the in-memory store with a warning.
    """

    if settings.document_store_backend == "firestore":
        try:
            return FirestoreDocumentStore(
                collection=settings.firestore_collection,
                project_id=settings.firestore_project_id,
            )
        except Exception as exc:  # noqa: BLE001 - startup must not fail on store selection
            LOGGER.warning(
                "document_store.fallback",
                extra={
                    "extra_payload": {
                        "requested": "firestore",
                        "selected": "memory",
                        "error": redact_error_message(str(exc)),
                    }
                },
            )
    return InMemoryDocumentStore()


__all__ = [
    "DocumentNotFoundError",
    "DocumentStore",
    "DocumentVersionConflictError",
    "FirestoreDocumentStore",
    "InMemoryDocumentStore",
    "apply_patch",
    "build_document_store",
    "check_version",
    "make_document_id",
    "new_document",
    "sort_by_recency",
    "utc_now",
]
