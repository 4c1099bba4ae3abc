# portal/routers/health.py
"""
Health Check Endpoints

Provides endpoints for monitoring system health, database connectivity,
configuration status, and readiness checks.
"""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
import logging
from typing import Dict, Any

from portal.config import Settings
from portal.database import get_db, utcnow
from portal.dependencies import get_settings

logger = logging.getLogger(__name__)

router = APIRouter()


# =============================================================================
# HEALTH CHECK ENDPOINTS
# =============================================================================

@router.get("")
@router.get("/")
async def health_check(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings)
) -> Dict[str, Any]:
    """
    Comprehensive health check endpoint.

    Checks:
    - API status
    - Database connectivity
    - Configuration status

    Returns:
        Health status with component details
    """
    health_status = {
        "status": "healthy",
        "timestamp": utcnow().isoformat(),
        "environment": settings.ENVIRONMENT,
        "version": settings.APP_VERSION,
        "checks": {}
    }

    # Check database connectivity
    try:
        db.execute(text("SELECT 1"))
        health_status["checks"]["database"] = {
            "status": "healthy",
            "message": "Database connection successful"
        }
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        health_status["status"] = "unhealthy"
        health_status["checks"]["database"] = {
            "status": "unhealthy",
            "message": "Database connection failed"
        }

    # Check critical configuration
    config_issues = []

    if not settings.OPENAI_API_KEY:
        config_issues.append("OPENAI_API_KEY not configured")

    if not settings.EMAIL_WEBHOOK_URL:
        config_issues.append("EMAIL_WEBHOOK_URL not configured")

    if config_issues:
        health_status["checks"]["configuration"] = {
            "status": "warning",
            "message": "Some configuration is missing",
            "issues": config_issues
        }
    else:
        health_status["checks"]["configuration"] = {
            "status": "healthy",
            "message": "All critical configuration present"
        }

    # Onboarding webhook
    health_status["checks"]["n8n"] = {
        "status": "configured" if settings.N8N_WEBHOOK_URL else "not_configured"
    }

    return health_status


@router.get("/ready")
async def readiness_check(db: Session = Depends(get_db)):
    """
    Kubernetes-style readiness probe.

    Returns 200 if the application is ready to serve traffic.
    Returns 503 if not ready.
    """
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Readiness check failed: {e}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "timestamp": utcnow().isoformat()}
        )

    return {
        "status": "ready",
        "timestamp": utcnow().isoformat()
    }


@router.get("/live")
async def liveness_check() -> Dict[str, str]:
    """
    Kubernetes-style liveness probe.

    Simple check that doesn't verify external dependencies.
    """
    return {
        "status": "alive",
        "timestamp": utcnow().isoformat()
    }


@router.get("/version")
async def version_info(settings: Settings = Depends(get_settings)) -> Dict[str, str]:
    """Application version information."""
    return {
        "version": settings.APP_VERSION,
        "name": settings.APP_NAME,
        "environment": settings.ENVIRONMENT
    }
