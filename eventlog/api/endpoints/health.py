# eventlog/api/endpoints/health.py
"""
Health check endpoints for monitoring system status.
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError

from eventlog.api.deps import get_log_store
from eventlog.db.session import LogStore

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
def health_check():
    """Basic health check - API is responding."""
    return {"status": "healthy", "service": "event-log-api"}


@router.get("/db")
def database_health(log_store: LogStore = Depends(get_log_store)):
    """Check log store connectivity."""
    try:
        log_store.ping()
        return {"status": "healthy", "component": "database"}
    except SQLAlchemyError as e:
        raise HTTPException(
            status_code=503,
            detail=f"Database unhealthy: {str(e)}",
        )
