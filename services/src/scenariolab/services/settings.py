"""Provider credential settings loaded with pydantic-settings."""

from __future__ import annotations

import logging
from typing import ClassVar, Optional

from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models.advice import AdviceProviderName

logger = logging.getLogger(__name__)


class ProviderCredentials(BaseSettings):
    """Credentials for the advice providers.

    Values are opaque to the service: only their presence decides whether a
    provider may be dispatched.
    """

    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    openai_api_key: Optional[SecretStr] = Field(
        default=None,
        validation_alias=AliasChoices("SCENARIOLAB_OPENAI_API_KEY", "OPENAI_API_KEY"),
    )
    gemini_api_key: Optional[SecretStr] = Field(
        default=None,
        validation_alias=AliasChoices("SCENARIOLAB_GEMINI_API_KEY", "GEMINI_API_KEY"),
    )
    anthropic_api_key: Optional[SecretStr] = Field(
        default=None,
        validation_alias=AliasChoices("SCENARIOLAB_ANTHROPIC_API_KEY", "ANTHROPIC_API_KEY"),
    )

    def for_provider(self, provider: AdviceProviderName) -> SecretStr | None:
        """Return the credential for ``provider`` when one is configured."""

        value: SecretStr | None = getattr(self, provider.env_key.lower())
        if value is None or not value.get_secret_value().strip():
            return None
        return value

    def has(self, provider: AdviceProviderName) -> bool:
        return self.for_provider(provider) is not None

    def model_post_init(self, __context: object) -> None:
        super().model_post_init(__context)
        missing = [provider.value for provider in AdviceProviderName if not self.has(provider)]
        if missing:
            logger.info(
                "provider_credentials.missing",
                extra={"extra_payload": {"providers": missing}},
            )


__all__ = ["ProviderCredentials"]
