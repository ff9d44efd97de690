"""Error response models shared across service HTTP endpoints."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

__all__ = ["ErrorResponse"]


class ErrorResponse(BaseModel):
    """Standardised error payload emitted by the Scenario Writing Lab services."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    error: str = Field(min_length=1)
    correlation_id: str = Field(min_length=1, alias="correlationId")
    details: dict[str, Any] | None = None

    def to_payload(self) -> dict[str, Any]:
        """Return the wire representation, omitting empty details."""

        return self.model_dump(by_alias=True, exclude_none=True)
