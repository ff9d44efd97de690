"""Document store contract shared by every backend."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Protocol, runtime_checkable
from uuid import uuid4

from ..models.documents import DocumentSettings, ScriptDocument, ScriptDocumentPatch

_TICK = timedelta(microseconds=1)


class DocumentNotFoundError(LookupError):
    """Raised by a store when an update targets an unknown document."""

    code = "DOCUMENT_NOT_FOUND"

    def __init__(self, document_id: str) -> None:
        super().__init__(self.code)
        self.document_id = document_id


class DocumentVersionConflictError(RuntimeError):
    """Raised by a store when the stored version differs from the expected one."""

    code = "DOCUMENT_VERSION_CONFLICT"

    def __init__(self, document_id: str, *, expected: int, actual: int) -> None:
        super().__init__(self.code)
        self.document_id = document_id
        self.expected = expected
        self.actual = actual


@runtime_checkable
class DocumentStore(Protocol):
    """Owner-partitioned, versioned storage for script documents."""

    backend: str

    async def list_by_owner(self, owner_id: str) -> list[ScriptDocument]: ...

    async def get_by_id(self, document_id: str) -> ScriptDocument | None: ...

    async def create(
        self,
        owner_id: str,
        *,
        title: str,
        author_name: str,
        settings: DocumentSettings,
    ) -> ScriptDocument: ...

    async def update(
        self,
        document_id: str,
        patch: ScriptDocumentPatch,
        *,
        expected_version: int | None = None,
    ) -> ScriptDocument: ...


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


def make_document_id() -> str:
    return f"doc_{uuid4().hex[:8]}"


def new_document(
    owner_id: str,
    *,
    title: str,
    author_name: str,
    settings: DocumentSettings,
    document_id: str | None = None,
) -> ScriptDocument:
    """Build a version-1 document with empty body fields."""

    created_at = utc_now()
    return ScriptDocument(
        id=document_id or make_document_id(),
        owner_id=owner_id,
        title=title,
        author_name=author_name,
        synopsis="",
        content="",
        settings=settings,
        characters=[],
        created_at=created_at,
        updated_at=created_at,
        version=1,
    )


def apply_patch(current: ScriptDocument, patch: ScriptDocumentPatch) -> ScriptDocument:
    """Merge ``patch`` over ``current`` and advance the version by exactly one.

    ``updated_at`` strictly increases even when the clock has not moved.
    """

    updated_at = max(utc_now(), current.updated_at + _TICK)
    return current.model_copy(
        update={
            **patch.changes(),
            "updated_at": updated_at,
            "version": current.version + 1,
        },
        deep=True,
    )


def check_version(current: ScriptDocument, expected_version: int | None) -> None:
    """Reject the write unless ``expected_version`` matches the stored version."""

    if expected_version is not None and expected_version != current.version:
        raise DocumentVersionConflictError(
            current.id, expected=expected_version, actual=current.version
        )


def sort_by_recency(documents: list[ScriptDocument]) -> list[ScriptDocument]:
    return sorted(documents, key=lambda document: document.updated_at, reverse=True)


__all__ = [
    "DocumentNotFoundError",
    "DocumentStore",
    "DocumentVersionConflictError",
    "apply_patch",
    "check_version",
    "make_document_id",
    "new_document",
    "sort_by_recency",
    "utc_now",
]
