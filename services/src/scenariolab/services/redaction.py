"""Redaction helpers applied to error messages and structured log payloads."""

from __future__ import annotations

import re
from typing import Any, Mapping

REDACTED = "[REDACTED]"

CREDENTIAL_ENV_NAMES: tuple[str, ...] = (
    "OPENAI_API_KEY",
    "GEMINI_API_KEY",
    "ANTHROPIC_API_KEY",
)

_SENSITIVE_PATTERNS: tuple[re.Pattern[str], ...] = (
    *(re.compile(re.escape(name), re.IGNORECASE) for name in CREDENTIAL_ENV_NAMES),
    re.compile(r"Bearer\s+[A-Za-z0-9_.-]+", re.IGNORECASE),
)

_EMAIL_RE = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
_SECRET_KEY_NAMES = {
    "api_key",
    "apikey",
    "auth",
    "authorization",
    "bearer",
    "secret",
    "token",
}
_SECRET_VALUE_RE = re.compile(r"sk-[A-Za-z0-9_-]{20,}")


def redact_error_message(message: str) -> str:
    """Replace credential names and bearer tokens in ``message`` with a placeholder."""

    for pattern in _SENSITIVE_PATTERNS:
        message = pattern.sub(REDACTED, message)
    return message


def _scrub_value(value: Any, *, key: str | None = None) -> Any:
    if isinstance(value, Mapping):
        return {
            inner_key: _scrub_value(inner_value, key=str(inner_key))
            for inner_key, inner_value in value.items()
        }
    if isinstance(value, (list, tuple, set)):
        container_type = type(value)
        return container_type(_scrub_value(item, key=key) for item in value)
    if isinstance(value, str):
        if key and key.lower() in _SECRET_KEY_NAMES:
            return REDACTED
        sanitized = _EMAIL_RE.sub("[REDACTED_EMAIL]", value)
        sanitized = _SECRET_VALUE_RE.sub("[REDACTED_SECRET]", sanitized)
        return redact_error_message(sanitized)
    return value


def scrub_payload(payload: Mapping[str, Any]) -> dict[str, Any]:
    """Return a sanitized copy of ``payload`` suitable for logging."""

    return {key: _scrub_value(value, key=str(key)) for key, value in payload.items()}


__all__ = ["CREDENTIAL_ENV_NAMES", "REDACTED", "redact_error_message", "scrub_payload"]
