"""Health check endpoint — no dependencies, always available."""

import time
from datetime import datetime, timezone

from fastapi import APIRouter

_STARTED_AT = time.monotonic()

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check() -> dict:
    """Liveness only; the datastores are not contacted."""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": round(time.monotonic() - _STARTED_AT, 3),
    }
