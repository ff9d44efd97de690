"""Request and response models for dual-panel advice generation."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

__all__ = [
    "AdvicePanelConfig",
    "AdvicePanelResponse",
    "AdviceProviderName",
    "AdviceRequest",
    "AdviceResponse",
    "ModelDescriptor",
]

_WIRE_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AdviceProviderName(str, Enum):
    """Providers a panel can be configured with."""

    GEMINI = "gemini"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"

    @property
    def env_key(self) -> str:
        return f"{self.name}_API_KEY"

    @property
    def label(self) -> str:
        return {"gemini": "Gemini", "openai": "OpenAI", "anthropic": "Anthropic"}[self.value]

    @classmethod
    def parse(cls, value: object, default: "AdviceProviderName") -> "AdviceProviderName":
        """Return the provider named by ``value`` or ``default`` when unrecognised."""

        if isinstance(value, str):
            try:
                return cls(value)
            except ValueError:
                return default
        return default


class AdvicePanelConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    provider: AdviceProviderName
    preset: str = "standard"


class AdviceRequest(BaseModel):
    """Ephemeral request bundling context and both panel configurations."""

    model_config = _WIRE_CONFIG

    correlation_id: str
    owner_id: str
    document_id: str
    synopsis: str = ""
    content: str = ""
    selected_text: str | None = None
    panel_a: AdvicePanelConfig
    panel_b: AdvicePanelConfig
    timeout_ms: int = 8000


class AdvicePanelResponse(BaseModel):
    model_config = _WIRE_CONFIG

    provider: AdviceProviderName
    structure_feedback: str
    emotional_feedback: str


class AdviceResponse(BaseModel):
    model_config = _WIRE_CONFIG

    panel_a: AdvicePanelResponse
    panel_b: AdvicePanelResponse


class ModelDescriptor(BaseModel):
    provider: AdviceProviderName
    label: str = Field(min_length=1)
    enabled: bool
