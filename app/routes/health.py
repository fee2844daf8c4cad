"""
Health check endpoints.
Used for monitoring, deployment readiness checks, and basic connectivity tests.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException
import logging

from app.core.settings import settings
from app.routes.dependencies import get_database, get_storage
from app.services.media_storage import MediaStorage
from app.services.report_service import REPORTS_COLLECTION
from app.utils.firestore_helpers import count_query

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
async def health_check(storage: MediaStorage = Depends(get_storage)):
    """
    Basic health check endpoint.
    Returns 200 if service is running.
    """
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "media_storage": storage.name,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


@router.get("/db")
async def database_health(db=Depends(get_database)):
    """
    Document store check: one count aggregation over the reports collection.
    """
    try:
        reports = count_query(db.collection(REPORTS_COLLECTION))
    except Exception as e:
        logger.error(f"Database health check failed: {e}", exc_info=True)
        raise HTTPException(
            status_code=503,
            detail=f"Database connection failed: {str(e)}"
        )

    return {
        "status": "healthy",
        "database": "mock" if settings.USE_MOCK_DB else "firestore",
        "connected": True,
        "reports_count": reports,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }
