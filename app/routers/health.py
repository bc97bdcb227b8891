"""
System health check endpoint.
Returns status of backend + DB + freshness of the latest snapshot.
"""

from datetime import datetime, timezone
from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from app.database import get_db
from app.services.occupancy_store import latest_timestamp
from app.utils.exceptions import StoreReadFailure

router = APIRouter()


@router.get("/health", summary="System health check")
def health_check(request: Request, db: Session = Depends(get_db)):
    """
    Returns:
    - Backend status
    - Database connectivity
    - Timestamp of the latest stored snapshot (null before the first scrape)
    - Whether the scrape scheduler is running
    """
    result = {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "backend": "ok",
        "database": "unknown",
        "latest_snapshot": None,
        "scheduler": "disabled",
    }

    try:
        db.execute(text("SELECT 1"))
        result["database"] = "ok"
        latest = latest_timestamp(db)
        if latest is not None:
            result["latest_snapshot"] = latest.replace(tzinfo=timezone.utc).isoformat()
    except (SQLAlchemyError, StoreReadFailure):
        result["database"] = "error"
        result["status"] = "degraded"

    scheduler = getattr(request.app.state, "scheduler", None)
    if scheduler is not None:
        result["scheduler"] = "running" if scheduler.running else "stopped"

    return result
