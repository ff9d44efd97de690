"""Service configuration utilities."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, ClassVar, Literal, cast

from pydantic import BaseModel, ConfigDict, Field, field_validator

DocumentStoreBackend = Literal["memory", "firestore"]

MIN_ADVICE_TIMEOUT_MS = 1_000
MAX_ADVICE_TIMEOUT_MS = 30_000


class ServiceSettings(BaseModel):
    """Runtime configuration for the FastAPI services."""

    ENV_PREFIX: ClassVar[str] = "SCENARIOLAB_"
    ENV_FILE: ClassVar[str | None] = ".env"
    ENV_FILE_ENCODING: ClassVar[str] = "utf-8"

    model_config: ClassVar[ConfigDict] = cast(
        ConfigDict,
        {
            "extra": "ignore",
            "env_prefix": ENV_PREFIX,
        },
    )

    service_name: str = Field(
        default="scenario-writing-lab",
        min_length=1,
        description="Service identifier reported by the health endpoint.",
    )
    document_store_backend: DocumentStoreBackend = Field(
        default="memory",
        description="Document store implementation selected at startup.",
    )
    firestore_collection: str = Field(
        default="scripts",
        min_length=1,
        description="Firestore collection holding script documents.",
    )
    firestore_project_id: str | None = Field(
        default=None,
        description="Google Cloud project for Firestore; falls back to ambient credentials when unset.",
    )
    advice_rate_limit: int = Field(
        default=30,
        ge=1,
        description="Advice requests allowed per caller within one rate window.",
    )
    advice_rate_window_ms: int = Field(
        default=60_000,
        ge=1,
        description="Length of the fixed advice rate-limit window in milliseconds.",
    )
    advice_timeout_ms: int = Field(
        default=8_000,
        ge=MIN_ADVICE_TIMEOUT_MS,
        le=MAX_ADVICE_TIMEOUT_MS,
        description="Shared deadline for both advice provider calls in milliseconds.",
    )
    max_request_body_bytes: int = Field(
        default=512 * 1024,
        ge=16 * 1024,
        description="Maximum allowed size in bytes for incoming request bodies.",
    )

    @field_validator("document_store_backend", mode="before")
    @classmethod
    def _normalise_backend(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("firestore_project_id", mode="before")
    @classmethod
    def _blank_project_is_unset(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @staticmethod
    def _parse_env_file(path: Path, encoding: str) -> dict[str, str]:
        """Parse an environment file supporting `export` and quoted values."""

        parsed: dict[str, str] = {}

        for raw_line in path.read_text(encoding=encoding).splitlines():
            line = raw_line.strip()
            if not line or line.startswith("#"):
                continue
            if line.startswith("export "):
                line = line[len("export ") :].strip()

            if "=" not in line:
                continue

            key, raw_value = line.split("=", 1)
            key = key.strip()
            value = raw_value.strip()

            if value and value[0] == value[-1] and value[0] in {'"', "'"}:
                value = value[1:-1]

            parsed[key] = value

        return parsed

    @classmethod
    def from_environment(cls) -> "ServiceSettings":
        """Load settings from environment variables or a `.env` file."""

        file_values: dict[str, str] = {}
        if cls.ENV_FILE:
            env_file_path = Path(cls.ENV_FILE)
            if not env_file_path.is_absolute():
                env_file_path = Path.cwd() / env_file_path
            if env_file_path.exists():
                file_values = cls._parse_env_file(env_file_path, cls.ENV_FILE_ENCODING)

        overrides: dict[str, str] = {}
        for field_name in cls.model_fields:
            env_key = f"{cls.ENV_PREFIX}{field_name.upper()}"
            if env_key in os.environ:
                overrides[field_name] = os.environ[env_key]
            elif env_key in file_values:
                overrides[field_name] = file_values[env_key]

        return cls(**cast(dict[str, Any], overrides))


__all__: list[str] = [
    "DocumentStoreBackend",
    "MAX_ADVICE_TIMEOUT_MS",
    "MIN_ADVICE_TIMEOUT_MS",
    "ServiceSettings",
]
