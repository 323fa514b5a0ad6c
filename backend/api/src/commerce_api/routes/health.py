"""Health check endpoints."""

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter

from commerce_api import __version__

router = APIRouter(tags=["health"])


@router.get("/health", summary="Health check")
async def health() -> dict[str, Any]:
    """Report service liveness."""
    return {
        "status": "healthy",
        "timestamp": datetime.now(UTC).isoformat(),
        "version": __version__,
    }
