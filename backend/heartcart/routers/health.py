"""
Health and readiness probes (mounted without the /api prefix).
"""
from datetime import datetime, timezone
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy import text

from heartcart.core.config import settings
from heartcart.core.database import DbSession
from heartcart.core.logging import get_logger
from heartcart.routers.deps import Store
from heartcart.services.llm_client import LLMClient, get_llm_client

logger = get_logger(__name__)

router = APIRouter(tags=["health"])


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/")
async def root() -> dict[str, Any]:
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "status": "running",
        "docs": "/docs" if settings.debug else None,
    }


@router.get("/health")
async def health() -> dict[str, Any]:
    return {"status": "healthy", "version": settings.app_version, "timestamp": _now()}


@router.get("/health/live")
async def liveness() -> dict[str, Any]:
    """The process is up; dependencies are not checked."""
    return {"status": "alive", "timestamp": _now()}


@router.get("/health/ready")
async def readiness(
    response: Response,
    session: DbSession,
    store: Store,
    llm: Annotated[LLMClient, Depends(get_llm_client)],
) -> dict[str, Any]:
    """
    Ready to serve traffic: the database answers and the object store is readable.

    AI configuration is reported but does not affect readiness.
    """
    checks: dict[str, str] = {}
    try:
        await session.execute(text("SELECT 1"))
        checks["database"] = "connected"
    except Exception as e:
        logger.warning("Database readiness check failed", error=str(e))
        checks["database"] = f"error: {e}"

    try:
        await store.list("", recursive=False)
        checks["storage"] = "ok"
    except Exception as e:
        logger.warning("Storage readiness check failed", error=str(e))
        checks["storage"] = f"error: {e}"

    checks["ai"] = "configured" if llm.is_configured else "not_configured"

    ready = checks["database"] == "connected" and checks["storage"] == "ok"
    if not ready:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return {"status": "ready" if ready else "not_ready", "checks": checks, "timestamp": _now()}
