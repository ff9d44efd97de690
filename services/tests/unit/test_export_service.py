from __future__ import annotations

import logging

import pytest

from scenariolab.services.export_service import (
    ExportBody,
    ExportRequestError,
    create_export_payload,
    export_document,
    parse_export_body,
    sanitize_file_name,
)
from scenariolab.services.models.export import DOCX_MIME_TYPE
from scenariolab.services.service_errors import ServiceError


@pytest.mark.parametrize(
    ("title", "expected"),
    [("My Script!", "My_Script_"), ("draft-2_final", "draft-2_final"), ("À bout", "__bout")],
)
def test_sanitize_file_name(title: str, expected: str) -> None:
    assert sanitize_file_name(title) == expected


def test_create_export_payload_renders_manuscript() -> None:
    payload = create_export_payload("My Script!", "Ana", "INT. DINER - NIGHT")

    assert payload.file_name == "My_Script_.docx"
    assert payload.mime_type == DOCX_MIME_TYPE
    assert payload.content == "# My Script!\nAuthor: Ana\n\nINT. DINER - NIGHT"
    assert payload.model_dump(by_alias=True) == {
        "fileName": "My_Script_.docx",
        "mimeType": DOCX_MIME_TYPE,
        "content": "# My Script!\nAuthor: Ana\n\nINT. DINER - NIGHT",
    }


@pytest.mark.parametrize(
    ("args", "code"),
    [
        (("  ", "Ana", "body"), "EXPORT_METADATA_REQUIRED"),
        (("Title", "", "body"), "EXPORT_METADATA_REQUIRED"),
        (("Title", "Ana", " \n "), "EXPORT_CONTENT_REQUIRED"),
    ],
)
def test_create_export_payload_requires_fields(args: tuple[str, str, str], code: str) -> None:
    with pytest.raises(ExportRequestError) as exc_info:
        create_export_payload(*args)

    assert exc_info.value.code == code


def test_parse_export_body_treats_non_strings_as_empty() -> None:
    body = parse_export_body({"title": "T", "authorName": 3, "content": "c"})

    assert body == ExportBody(title="T", author_name="", content="c")


def test_parse_export_body_rejects_non_object() -> None:
    with pytest.raises(ServiceError) as exc_info:
        parse_export_body("text")

    assert exc_info.value.code == "INVALID_EXPORT_BODY"


def test_export_document_logs_outcome(caplog) -> None:
    with caplog.at_level(logging.INFO, logger="scenariolab.services.events"):
        payload = export_document(
            owner_id="writer-1",
            document_id="doc_12345678",
            body=ExportBody(title="Pilot", author_name="Ana", content="FADE IN."),
            correlation_id="corr-export",
        )
        with pytest.raises(ServiceError) as exc_info:
            export_document(
                owner_id="writer-1",
                document_id="doc_12345678",
                body=ExportBody(title="Pilot", author_name="Ana", content=""),
                correlation_id="corr-export",
            )

    assert payload.file_name == "Pilot.docx"
    assert (exc_info.value.code, exc_info.value.status_code) == ("EXPORT_CONTENT_REQUIRED", 400)
    events = {record.getMessage(): record for record in caplog.records}
    assert events["EXPORT_SUCCEEDED"].extra_payload["details"]["byteLength"] == len(payload.content)
    assert events["EXPORT_FAILED"].extra_payload["details"]["error"] == "EXPORT_CONTENT_REQUIRED"
