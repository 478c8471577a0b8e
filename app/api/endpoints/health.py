"""
Health check endpoints.

Provides health status for the database and the task broker.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, Any

from fastapi import APIRouter, Depends, status
from kombu import Connection
from sqlalchemy import text
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.database import get_db

router = APIRouter(tags=["Health"])
logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@router.get("/health", status_code=status.HTTP_200_OK)
def health_check() -> Dict[str, str]:
    """
    Basic health check endpoint.

    Returns 200 OK if the service is running.
    """
    return {"status": "healthy", "timestamp": _now()}


@router.get("/health/detailed", status_code=status.HTTP_200_OK)
def detailed_health_check(
    db: Session = Depends(get_db),
    config: Settings = Depends(get_settings)
) -> Dict[str, Any]:
    """
    Detailed health check with dependency status.

    Checks:
    - Database connectivity
    - Redis broker (only when notification e-mails are enabled)
    """
    health_status: Dict[str, Any] = {
        "status": "healthy",
        "timestamp": _now(),
        "checks": {}
    }

    try:
        db.execute(text("SELECT 1"))
        health_status["checks"]["database"] = {
            "status": "healthy",
            "message": "Database connection successful"
        }
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        health_status["status"] = "unhealthy"
        health_status["checks"]["database"] = {
            "status": "unhealthy",
            "message": f"Database error: {str(e)}"
        }

    if config.NOTIFICATION_EMAILS_ENABLED:
        try:
            with Connection(config.REDIS_URL, connect_timeout=2) as conn:
                conn.ensure_connection(max_retries=1)
            health_status["checks"]["broker"] = {"status": "healthy", "message": "Redis reachable"}
        except Exception as e:
            # The broker only carries e-mails, so the service stays usable
            logger.error(f"Broker health check failed: {e}")
            health_status["status"] = "degraded"
            health_status["checks"]["broker"] = {"status": "unhealthy", "message": f"Broker error: {str(e)}"}
    else:
        health_status["checks"]["broker"] = {"status": "disabled", "message": "Notification e-mails disabled"}

    return health_status
