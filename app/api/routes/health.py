"""
Health check endpoint for deployment monitoring.
"""
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_db, get_usage_cache
from app.core.exceptions import CacheUnavailable
from app.services.usage_cache import UsageCache

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
def health_check(
    db: Session = Depends(get_db),
    cache: UsageCache = Depends(get_usage_cache),
):
    """
    Health check endpoint for deployment monitoring.

    The cache is optional: an unreachable cache degrades, it never fails.
    """
    status = "healthy"

    try:
        db.execute(text("SELECT 1"))
        db_status = "connected"
    except SQLAlchemyError as e:
        db_status = f"error: {e.__class__.__name__}"
        status = "degraded"

    if not cache.enabled:
        cache_status = "disabled"
    else:
        try:
            cache.ping()
            cache_status = "connected"
        except CacheUnavailable:
            cache_status = "unreachable"
            status = "degraded"

    return {
        "status": status,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": db_status,
        "cache": cache_status,
        "version": "1.0.0",
    }
