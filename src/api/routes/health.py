"""
Health check endpoints.

Provides system health information for monitoring.
"""

from fastapi import APIRouter, HTTPException
import structlog

from src.core.config import settings

log = structlog.get_logger(__name__)

router = APIRouter()


def check_data_root() -> dict:
    """Report whether the dataset root directory is present."""
    data_root = settings.data_dir
    if data_root.is_dir():
        return {"status": "healthy", "path": str(data_root)}
    return {"status": "unhealthy", "path": str(data_root), "error": "missing"}


@router.get("/health")
async def health_check():
    """
    Health check endpoint.

    Returns:
        System health status including data directory availability.
    """
    data_health = check_data_root()

    overall_status = "healthy" if data_health["status"] == "healthy" else "unhealthy"

    return {
        "status": overall_status,
        "version": "0.1.0",
        "debug": settings.debug,
        "components": {"data": data_health},
    }


@router.get("/health/live")
async def liveness():
    """
    Kubernetes-style liveness probe.

    Returns 200 if the application is running.
    """
    return {"status": "alive"}


@router.get("/health/ready")
async def readiness():
    """
    Kubernetes-style readiness probe.

    Returns 200 if the data directory can be served.
    """
    if check_data_root()["status"] != "healthy":
        raise HTTPException(status_code=503, detail="Data directory not ready")

    return {"status": "ready"}
