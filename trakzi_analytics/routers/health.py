"""
Health Check Router
Simple health check endpoint
"""
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from trakzi_analytics.core.config import settings
from trakzi_analytics.db.store import RecordStore, get_record_store

router = APIRouter()


@router.get("/health")
async def health_check(store: RecordStore = Depends(get_record_store)):
    """
    Health check endpoint.
    Returns API status and the version of the snapshot being served.
    """
    return {
        "status": "healthy" if store.is_loaded else "loading",
        "service": settings.PROJECT_NAME,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "snapshot_version": store.version,
    }
