"""
Health check and monitoring endpoints.
"""
import time
import logging
from fastapi import APIRouter
from gatherease.db import check_database_health
from gatherease.services.email import get_sendgrid_client
from gatherease.services.push_notification import is_fcm_available
from gatherease.core.settings import settings

logger = logging.getLogger("gatherease.health")
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

    # Check database
    try:
        db_health = await check_database_health()
        health_status["services"]["database"] = db_health
        if db_health.get("status") != "healthy":
            health_status["status"] = "degraded"
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        health_status["services"]["database"] = {
            "status": "unhealthy",
            "error": str(e)
        }
        health_status["status"] = "degraded"

    # Check SendGrid
    try:
        sendgrid_client = get_sendgrid_client()
        health_status["services"]["email"] = (
            {"status": "configured", "provider": "sendgrid"}
            if sendgrid_client else
            {"status": "not_configured", "note": "Email deliveries will be skipped"}
        )
    except Exception as e:
        health_status["services"]["email"] = {
            "status": "error",
            "error": str(e)
        }

    health_status["services"]["whatsapp"] = {
        "status": "configured" if settings.whatsapp_configured else "not_configured"
    }
    health_status["services"]["sms"] = {
        "status": "configured" if settings.sms_configured else "not_configured"
    }
    health_status["services"]["push"] = {
        "status": "configured" if is_fcm_available() else "not_configured",
        "provider": "fcm"
    }
    health_status["dispatch"] = {
        "window_minutes": settings.dispatch_window_minutes,
        "event_reminder_lead_hours": settings.event_reminder_lead_hours,
        "dedup_enabled": settings.dispatch_dedup_enabled
    }

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
