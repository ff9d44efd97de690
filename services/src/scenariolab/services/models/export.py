"""Export payload model."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

__all__ = ["DOCX_MIME_TYPE", "ExportPayload"]

DOCX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


class ExportPayload(BaseModel):
    """Plaintext manuscript labelled as a Word document for download."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    file_name: str
    mime_type: str = DOCX_MIME_TYPE
    content: str
