# driverqueue/routers/health.py
"""
System health check endpoint.
Returns status of backend + DB, SMS configuration and queue counts.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy import text
from driverqueue.database import get_db
from driverqueue.config import settings
from driverqueue.services.queue_service import count_by_status
from datetime import datetime

router = APIRouter()


@router.get("/health", summary="System health check")
def health_check(db: Session = Depends(get_db)):
    """
    Returns:
    - Backend status
    - Database connectivity
    - Whether SMS sending is configured
    - Driver counts per status
    """
    result = {
        "status": "ok",
        "timestamp": datetime.utcnow().isoformat(),
        "backend": "ok",
        "database": "unknown",
        "sms": "configured" if settings.sms_configured else "disabled",
        "queue": {},
    }

    try:
        db.execute(text("SELECT 1"))
        result["database"] = "ok"
        result["queue"] = count_by_status(db)
    except SQLAlchemyError as e:
        result["database"] = f"error: {str(e)}"
        result["status"] = "degraded"

    return result
