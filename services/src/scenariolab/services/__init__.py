"""Scenario Writing Lab backend service."""

from __future__ import annotations

from .__main__ import main
from .app import SERVICE_VERSION, app, create_app

__all__ = ["SERVICE_VERSION", "app", "create_app", "main"]
