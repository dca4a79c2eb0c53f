"""
API router for health checks

Provides endpoints for monitoring the health of the API and its transaction store.
"""

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
import logging
from datetime import datetime, timezone
import platform
import psutil

from retail_dashboard.config.settings import settings
from retail_dashboard.db.session import check_database_connection, get_db_session
from retail_dashboard.models.models import Transaction

# Create router
router = APIRouter()
logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _database_component() -> dict:
    """Connectivity and record count of the transaction store"""
    if not check_database_connection():
        return {"status": "error", "message": "Failed to connect"}

    try:
        with get_db_session() as session:
            count = session.query(func.count(Transaction.id)).scalar()
    except SQLAlchemyError as e:
        logger.error(f"Transaction count failed: {str(e)}")
        return {"status": "error", "message": str(e)}

    component = {
        "status": "ok",
        "message": "Connected",
        "transaction_count": count,
    }
    if count == 0:
        component["message"] = "Connected; no transactions loaded"
    return component


@router.get(
    "/health",
    summary="Health check",
    description="Check API and transaction store health status"
)
def health_check():
    """
    Check API and component health status

    Returns:
        Dict: Health status of API components
    """
    health_data = {
        "status": "ok",
        "timestamp": _now(),
        "version": settings.APP_VERSION,
        "components": {
            "database": _database_component(),
        },
    }

    if health_data["components"]["database"]["status"] != "ok":
        health_data["status"] = "degraded"

    # System metrics
    health_data["system"] = {
        "cpu_usage": psutil.cpu_percent(interval=None),
        "memory_usage_percent": psutil.virtual_memory().percent,
        "disk_usage_percent": psutil.disk_usage('/').percent,
        "python_version": platform.python_version(),
        "platform": platform.platform(),
    }

    return health_data


@router.get(
    "/readiness",
    summary="Readiness probe",
    description="Check if the API is ready to receive traffic"
)
def readiness_check():
    """
    Check if the API is ready to receive traffic

    Returns:
        Dict: API readiness status
    """
    if not check_database_connection():
        logger.error("Readiness check failed: transaction store unreachable")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Transaction store unavailable"
        )

    return {
        "status": "ready",
        "timestamp": _now(),
    }


@router.get(
    "/liveness",
    summary="Liveness probe",
    description="Check if the API is running properly"
)
async def liveness_check():
    """Respond as long as the process is serving requests"""
    return {
        "status": "alive",
        "timestamp": _now(),
    }
