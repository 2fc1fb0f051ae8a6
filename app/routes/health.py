"""
Health check endpoints.
Used for monitoring, deployment readiness checks, and basic connectivity tests.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException

from app.core.context import AppContext
from app.core.errors import StoreFailure
from app.core.settings import settings
from app.routes.dependencies import get_context

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
def health_check():
    """
    Basic health check endpoint.
    Returns 200 if service is running.
    """
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


@router.get("/db")
def database_health(context: AppContext = Depends(get_context)):
    """
    Database connectivity check.
    Performs a lightweight read against the report store.
    """
    try:
        details = context.store.ping()
    except StoreFailure:
        raise HTTPException(status_code=503, detail="Database connection failed")

    return {
        "status": "healthy",
        **details,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }
