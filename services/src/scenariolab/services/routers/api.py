"""Aggregate router for the authenticated ``/api`` surface."""

from __future__ import annotations

from fastapi import APIRouter

from .advice import router as advice_router
from .documents import router as documents_router
from .export import router as export_router

router = APIRouter(prefix="/api")
router.include_router(documents_router)
router.include_router(export_router)
router.include_router(advice_router)

__all__ = ["router"]
