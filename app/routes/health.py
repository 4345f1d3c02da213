"""
Health check and monitoring endpoints.
"""
import time
import logging
from fastapi import APIRouter

from app.config import is_firebase_initialized
from app.db import check_database_health
from app.core.settings import settings

logger = logging.getLogger("app.health")
router = APIRouter()

@router.get("/health")
async def health_check():
    """Basic health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": time.time(),
        "environment": settings.environment,
        "version": "1.0.0"
    }

@router.get("/health/detailed")
async def detailed_health_check():
    """Detailed health check with service status."""
    start_time = time.time()

    health_status = {
        "status": "healthy",
        "timestamp": time.time(),
        "environment": settings.environment,
        "services": {}
    }

    try:
        db_health = await check_database_health()
        health_status["services"]["database"] = db_health
        if db_health["status"] != "healthy":
            health_status["status"] = "degraded"
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        health_status["services"]["database"] = {
            "status": "unhealthy",
            "error": str(e)
        }
        health_status["status"] = "degraded"

    if is_firebase_initialized():
        health_status["services"]["fcm"] = {"status": "configured", "provider": "firebase"}
    else:
        health_status["services"]["fcm"] = {
            "status": "not_configured",
            "note": "Push delivery unavailable"
        }
        health_status["status"] = "degraded"

    response_time = (time.time() - start_time) * 1000
    health_status["response_time_ms"] = round(response_time, 2)

    return health_status

@router.get("/ready")
async def readiness_check():
    """Kubernetes-style readiness probe."""
    try:
        db_health = await check_database_health()
        if db_health["status"] != "healthy":
            return {"status": "not_ready", "reason": "database_unavailable"}

        return {"status": "ready"}
    except Exception as e:
        logger.error(f"Readiness check failed: {e}")
        return {"status": "not_ready", "reason": str(e)}

@router.get("/live")
async def liveness_check():
    """Kubernetes-style liveness probe."""
    return {"status": "alive", "timestamp": time.time()}
