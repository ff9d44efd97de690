"""In-memory document store used for local development and tests."""

from __future__ import annotations

from ..models.documents import DocumentSettings, ScriptDocument, ScriptDocumentPatch
from .base import DocumentNotFoundError, apply_patch, check_version, new_document, sort_by_recency


class InMemoryDocumentStore:
    """Dictionary-backed store.

    Methods are coroutines for contract parity but never suspend, so each
    read-modify-write completes before another request can observe the map.
    """

    backend = "memory"

    def __init__(self) -> None:
        self._documents: dict[str, ScriptDocument] = {}

    async def list_by_owner(self, owner_id: str) -> list[ScriptDocument]:
        return sort_by_recency(
            [document for document in self._documents.values() if document.owner_id == owner_id]
        )

    async def get_by_id(self, document_id: str) -> ScriptDocument | None:
        return self._documents.get(document_id)

    async def create(
        self,
        owner_id: str,
        *,
        title: str,
        author_name: str,
        settings: DocumentSettings,
    ) -> ScriptDocument:
        document = new_document(owner_id, title=title, author_name=author_name, settings=settings)
        self._documents[document.id] = document
        return document

    async def update(
        self,
        document_id: str,
        patch: ScriptDocumentPatch,
        *,
        expected_version: int | None = None,
    ) -> ScriptDocument:
        current = self._documents.get(document_id)
        if current is None:
            raise DocumentNotFoundError(document_id)
        check_version(current, expected_version)
        updated = apply_patch(current, patch)
        self._documents[document_id] = updated
        return updated

    def __len__(self) -> int:
        return len(self._documents)


__all__ = ["InMemoryDocumentStore"]
