"""Document handlers: body parsing, ownership checks, and optimistic concurrency."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Mapping, NoReturn

from .diagnostics import LogContext, log_document_load, log_document_save
from .http import raise_service_error
from .models.documents import (
    CharacterProfile,
    DocumentSettings,
    DocumentSummary,
    ScriptDocument,
    ScriptDocumentPatch,
)
from .persistence import DocumentNotFoundError, DocumentStore, DocumentVersionConflictError
from .redaction import redact_error_message
from .service_errors import ServiceError

LOGGER = logging.getLogger(__name__)

_OPTIONAL_CHARACTER_FIELDS = ("age", "traits", "background", "relationships", "notes")


class DocumentRequestError(ValueError):
    """Raised when a request body fails validation; carries a stable code."""

    def __init__(self, code: str) -> None:
        super().__init__(code)
        self.code = code


@dataclass(frozen=True)
class CreateDocumentInput:
    title: str
    author_name: str
    settings: DocumentSettings


@dataclass(frozen=True)
class ParsedPatch:
    patch: ScriptDocumentPatch
    expected_version: int | None

    @property
    def changed_fields(self) -> list[str]:
        return self.patch.changed_fields


def _as_record(value: Any, code: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise DocumentRequestError(code)
    return value


def _optional_string(record: Mapping[str, Any], key: str, field: str) -> str | None:
    if key not in record:
        return None
    value = record[key]
    if not isinstance(value, str):
        raise DocumentRequestError(f"INVALID_{field.upper()}")
    return value


def _positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def parse_settings(value: Any) -> DocumentSettings:
    record = _as_record(value, "INVALID_SETTINGS")
    line_length = record.get("lineLength")
    page_count = record.get("pageCount")
    if not _positive_int(line_length):
        raise DocumentRequestError("INVALID_LINE_LENGTH")
    if not _positive_int(page_count):
        raise DocumentRequestError("INVALID_PAGE_COUNT")
    return DocumentSettings(line_length=line_length, page_count=page_count)


def parse_characters(value: Any) -> list[CharacterProfile]:
    if not isinstance(value, list):
        raise DocumentRequestError("INVALID_CHARACTERS")

    characters: list[CharacterProfile] = []
    for item in value:
        record = _as_record(item, "INVALID_CHARACTER_ITEM")
        fields: dict[str, str] = {}
        for key in ("id", "name", *_OPTIONAL_CHARACTER_FIELDS):
            raw = record.get(key)
            if raw is None:
                continue
            if not isinstance(raw, str):
                raise DocumentRequestError("INVALID_CHARACTER_ITEM")
            fields[key] = raw
        if not fields.get("id") or not fields.get("name"):
            raise DocumentRequestError("INVALID_CHARACTER_ITEM")
        characters.append(CharacterProfile(**fields))
    return characters


def parse_create_body(body: Any) -> CreateDocumentInput:
    record = _as_record(body, "INVALID_DOCUMENT_BODY")
    title = record.get("title")
    author_name = record.get("authorName")
    if not isinstance(title, str) or not title.strip():
        raise DocumentRequestError("TITLE_REQUIRED")
    if not isinstance(author_name, str) or not author_name.strip():
        raise DocumentRequestError("AUTHOR_NAME_REQUIRED")
    return CreateDocumentInput(
        title=title,
        author_name=author_name,
        settings=parse_settings(record.get("settings")),
    )


def parse_patch_body(body: Any) -> ParsedPatch:
    """Parse a sparse patch; absent keys are left untouched by the update."""

    record = _as_record(body, "INVALID_DOCUMENT_PATCH")
    fields: dict[str, Any] = {}

    for key, field, attribute in (
        ("title", "title", "title"),
        ("authorName", "author_name", "author_name"),
        ("synopsis", "synopsis", "synopsis"),
        ("content", "content", "content"),
    ):
        value = _optional_string(record, key, field)
        if value is not None:
            fields[attribute] = value

    if "settings" in record:
        fields["settings"] = parse_settings(record["settings"])
    if "characters" in record:
        fields["characters"] = parse_characters(record["characters"])

    expected_version: int | None = None
    if "expectedVersion" in record:
        if not _positive_int(record["expectedVersion"]):
            raise DocumentRequestError("INVALID_EXPECTED_VERSION")
        expected_version = record["expectedVersion"]

    return ParsedPatch(patch=ScriptDocumentPatch(**fields), expected_version=expected_version)


def _fail(code: str) -> NoReturn:
    raise_service_error(code=code)


class DocumentService:
    """Translate wire requests into store calls with ownership enforcement."""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    @property
    def store(self) -> DocumentStore:
        return self._store

    async def list_documents(self, owner_id: str) -> list[DocumentSummary]:
        try:
            documents = await self._store.list_by_owner(owner_id)
        except Exception as exc:
            self._internal_error("listDocuments", owner_id, None, exc)
        return [document.summary() for document in documents]

    async def create_document(self, owner_id: str, body: Any) -> ScriptDocument:
        try:
            parsed = parse_create_body(body)
            return await self._store.create(
                owner_id,
                title=parsed.title,
                author_name=parsed.author_name,
                settings=parsed.settings,
            )
        except DocumentRequestError as exc:
            _fail(exc.code)
        except Exception as exc:
            self._internal_error("createDocument", owner_id, None, exc)

    async def get_document(
        self, owner_id: str, document_id: str, *, correlation_id: str | None = None
    ) -> ScriptDocument:
        started = time.perf_counter()
        try:
            document = await self._load_owned(owner_id, document_id)
        except ServiceError:
            raise
        except Exception as exc:
            self._internal_error("getDocument", owner_id, document_id, exc)

        log_document_load(
            self._context("getDocument", owner_id, document_id, correlation_id),
            version=document.version,
            elapsed_ms=_elapsed_ms(started),
        )
        return document

    async def update_document(
        self,
        owner_id: str,
        document_id: str,
        body: Any,
        *,
        correlation_id: str | None = None,
    ) -> ScriptDocument:
        context = self._context("updateDocument", owner_id, document_id, correlation_id)
        try:
            existing = await self._load_owned(owner_id, document_id)
            parsed = parse_patch_body(body)
            if parsed.expected_version is not None and parsed.expected_version != existing.version:
                _fail("DOCUMENT_VERSION_CONFLICT")

            changed_fields = parsed.changed_fields
            if not changed_fields:
                return existing

            started = time.perf_counter()
            updated = await self._store.update(
                document_id, parsed.patch, expected_version=parsed.expected_version
            )
        except DocumentRequestError as exc:
            _fail(exc.code)
        except DocumentNotFoundError:
            _fail("DOCUMENT_NOT_FOUND")
        except DocumentVersionConflictError:
            _fail("DOCUMENT_VERSION_CONFLICT")
        except ServiceError:
            raise
        except Exception as exc:
            self._internal_error("updateDocument", owner_id, document_id, exc)

        log_document_save(
            context,
            version=updated.version,
            changed_fields=changed_fields,
            elapsed_ms=_elapsed_ms(started),
        )
        return updated

    async def _load_owned(self, owner_id: str, document_id: str) -> ScriptDocument:
        document = await self._store.get_by_id(document_id)
        if document is None:
            _fail("DOCUMENT_NOT_FOUND")
        if document.owner_id != owner_id:
            _fail("DOCUMENT_ACCESS_DENIED")
        return document

    @staticmethod
    def _context(
        operation: str, owner_id: str, document_id: str | None, correlation_id: str | None
    ) -> LogContext:
        return LogContext.build(
            correlation_id,
            feature="documents",
            operation=operation,
            owner_id=owner_id,
            document_id=document_id,
        )

    def _internal_error(
        self, operation: str, owner_id: str, document_id: str | None, exc: Exception
    ) -> NoReturn:
        LOGGER.error(
            "DOCUMENT_INTERNAL_ERROR",
            extra={
                "extra_payload": {
                    "context": self._context(operation, owner_id, document_id, None).as_payload(),
                    "error": redact_error_message(str(exc)),
                    "errorType": type(exc).__name__,
                }
            },
        )
        _fail("DOCUMENT_INTERNAL_ERROR")


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 3)


__all__ = [
    "CreateDocumentInput",
    "DocumentRequestError",
    "DocumentService",
    "ParsedPatch",
    "parse_characters",
    "parse_create_body",
    "parse_patch_body",
    "parse_settings",
]
