"""Firestore-backed document store with transactional updates."""

from __future__ import annotations

import logging
from typing import Any

from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from ..models.documents import DocumentSettings, ScriptDocument, ScriptDocumentPatch
from .base import (
    DocumentNotFoundError,
    apply_patch,
    check_version,
    make_document_id,
    new_document,
    sort_by_recency,
)

LOGGER = logging.getLogger(__name__)


class FirestoreDocumentStore:
    """Store documents in a Firestore collection, one document per script.

    ``update`` runs inside a Firestore transaction. The current version is
    read and compared against ``expected_version`` before the next document
    is written, and Firestore retries the transaction when a concurrent
    writer commits first.
    """

    backend = "firestore"

    def __init__(
        self,
        *,
        collection: str,
        project_id: str | None = None,
        client: Any | None = None,
    ) -> None:
        self._client = client if client is not None else firestore.AsyncClient(project=project_id)
        self._collection = self._client.collection(collection)
        self._collection_name = collection

    @property
    def collection_name(self) -> str:
        return self._collection_name

    async def list_by_owner(self, owner_id: str) -> list[ScriptDocument]:
        query = self._collection.where(filter=FieldFilter("ownerId", "==", owner_id))
        documents = [
            ScriptDocument.from_record(snapshot.id, snapshot.to_dict() or {})
            async for snapshot in query.stream()
        ]
        return sort_by_recency(documents)

    async def get_by_id(self, document_id: str) -> ScriptDocument | None:
        snapshot = await self._collection.document(document_id).get()
        if not snapshot.exists:
            return None
        return ScriptDocument.from_record(snapshot.id, snapshot.to_dict() or {})

    async def create(
        self,
        owner_id: str,
        *,
        title: str,
        author_name: str,
        settings: DocumentSettings,
    ) -> ScriptDocument:
        reference = self._collection.document(make_document_id())
        document = new_document(
            owner_id,
            title=title,
            author_name=author_name,
            settings=settings,
            document_id=reference.id,
        )
        await reference.create(document.to_record())
        return document

    async def update(
        self,
        document_id: str,
        patch: ScriptDocumentPatch,
        *,
        expected_version: int | None = None,
    ) -> ScriptDocument:
        reference = self._collection.document(document_id)

        @firestore.async_transactional
        async def _apply(transaction: firestore.AsyncTransaction) -> ScriptDocument:
            snapshot = await reference.get(transaction=transaction)
            if not snapshot.exists:
                raise DocumentNotFoundError(document_id)
            current = ScriptDocument.from_record(snapshot.id, snapshot.to_dict() or {})
            check_version(current, expected_version)
            updated = apply_patch(current, patch)
            transaction.set(reference, updated.to_record())
            return updated

        updated = await _apply(self._client.transaction())
        LOGGER.debug(
            "firestore.document_updated",
            extra={"extra_payload": {"documentId": document_id, "version": updated.version}},
        )
        return updated


__all__ = ["FirestoreDocumentStore"]
