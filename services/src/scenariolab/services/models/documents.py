"""Models for persisted script documents."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

__all__ = [
    "CharacterProfile",
    "DocumentSettings",
    "DocumentSummary",
    "PATCHABLE_FIELDS",
    "ScriptDocument",
    "ScriptDocumentPatch",
]

_WIRE_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DocumentSettings(BaseModel):
    """Display settings; replaced as a whole on patch."""

    model_config = _WIRE_CONFIG

    line_length: int = Field(gt=0)
    page_count: int = Field(gt=0)

    @property
    def capacity(self) -> int:
        """Number of characters the vertical editor can display."""

        return self.line_length * self.page_count


class CharacterProfile(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    age: str | None = None
    traits: str | None = None
    background: str | None = None
    relationships: str | None = None
    notes: str | None = None


class ScriptDocument(BaseModel):
    """The persisted unit of work for a writer."""

    model_config = _WIRE_CONFIG

    id: str
    owner_id: str
    title: str
    author_name: str
    synopsis: str = ""
    content: str = ""
    settings: DocumentSettings
    characters: list[CharacterProfile] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
    version: int = Field(default=1, ge=1)

    def to_record(self) -> dict[str, Any]:
        """Return the storage representation (camelCase, id excluded)."""

        return self.model_dump(by_alias=True, exclude={"id"}, exclude_none=True)

    @classmethod
    def from_record(cls, document_id: str, record: dict[str, Any]) -> "ScriptDocument":
        return cls.model_validate({**record, "id": document_id})

    def summary(self) -> "DocumentSummary":
        return DocumentSummary(
            id=self.id,
            title=self.title,
            author_name=self.author_name,
            updated_at=self.updated_at,
            version=self.version,
        )


class DocumentSummary(BaseModel):
    """Listing row; never carries content."""

    model_config = _WIRE_CONFIG

    id: str
    title: str
    author_name: str
    updated_at: datetime
    version: int


PATCHABLE_FIELDS: tuple[str, ...] = (
    "title",
    "author_name",
    "synopsis",
    "content",
    "settings",
    "characters",
)


class ScriptDocumentPatch(BaseModel):
    """Sparse set of changed fields. Only explicitly set fields are applied."""

    model_config = _WIRE_CONFIG

    title: str | None = None
    author_name: str | None = None
    synopsis: str | None = None
    content: str | None = None
    settings: DocumentSettings | None = None
    characters: list[CharacterProfile] | None = None

    @property
    def changed_fields(self) -> list[str]:
        """Wire names of the fields this patch sets, in declaration order."""

        return [to_camel(name) for name in PATCHABLE_FIELDS if name in self.model_fields_set]

    def changes(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in PATCHABLE_FIELDS if name in self.model_fields_set}
