"""Health check endpoints."""

from typing import Any, Dict

from fastapi import APIRouter

from recipe_ai import __version__
from recipe_ai.config import settings

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health_check() -> Dict[str, str]:
    """
    Health check endpoint.

    Returns:
        Health status
    """
    return {"status": "healthy"}


@router.get("/ready")
async def readiness_check() -> Dict[str, Any]:
    """Readiness check: reports the configured model backend."""
    return {
        "status": "ready",
        "version": __version__,
        "modelProvider": settings.model_provider,
    }
