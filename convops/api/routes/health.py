"""Health check endpoints."""

from typing import Any

import structlog
from fastapi import APIRouter

from convops.api.dependencies import SentimentDep, StorageDep
from convops.core.config import settings
from convops.models import utcnow

logger = structlog.get_logger()

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
@router.get("/")
async def health_check() -> dict[str, Any]:
    """Basic health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": utcnow().isoformat(),
        "environment": settings.app_env,
    }


@router.get("/ready")
async def readiness_check(
    storage: StorageDep,
    sentiment: SentimentDep,
) -> dict[str, Any]:
    """Readiness check - verifies the document store is reachable."""
    checks = {"storage": False}

    try:
        checks["storage"] = await storage.health_check()
    except Exception as e:
        logger.error("Storage readiness check failed", error=str(e))

    return {
        "status": "ready" if all(checks.values()) else "degraded",
        "timestamp": utcnow().isoformat(),
        "checks": checks,
        "sentiment_backend": sentiment.method,
        "mail_configured": settings.mail_configured,
    }


@router.get("/live")
async def liveness_check() -> dict[str, str]:
    """Liveness check - basic endpoint for kubernetes probes."""
    return {"status": "alive"}
