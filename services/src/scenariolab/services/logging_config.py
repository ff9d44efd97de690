"""Structured logging helpers for the Scenario Writing Lab services."""

from __future__ import annotations

import json
import logging
import logging.config
from datetime import datetime, timezone
from typing import Any, Dict

from .http import current_correlation_id
from .redaction import redact_error_message, scrub_payload


class JsonFormatter(logging.Formatter):
    """JSON formatter that stamps every line with the active correlation id."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": redact_error_message(record.getMessage()),
        }
        correlation_id = getattr(record, "correlation_id", None) or current_correlation_id()
        if correlation_id:
            payload["correlationId"] = correlation_id
        if record.exc_info:
            payload["exc_info"] = redact_error_message(self.formatException(record.exc_info))
        extra = getattr(record, "extra_payload", None)
        if isinstance(extra, dict):
            payload.update(scrub_payload(extra))
        return json.dumps(payload, ensure_ascii=False, default=str)


LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "json": {
            "()": "scenariolab.services.logging_config.JsonFormatter",
        }
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "json",
        }
    },
    "loggers": {
        "uvicorn.access": {"handlers": ["console"], "level": "INFO", "propagate": False},
        "uvicorn.error": {"handlers": ["console"], "level": "INFO", "propagate": False},
        "scenariolab.services": {"handlers": ["console"], "level": "INFO", "propagate": False},
    },
    "root": {
        "handlers": ["console"],
        "level": "WARNING",
    },
}


def configure_logging() -> None:
    """Apply the structured logging configuration."""

    logging.config.dictConfig(LOGGING_CONFIG)


__all__ = ["JsonFormatter", "LOGGING_CONFIG", "configure_logging"]
