"""Read API: current snapshot, history range, and pool catalog."""

from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.catalog import list_pools
from app.database import get_db
from app.schemas.occupancy import OccupancyRecordOut, PoolOut
from app.services.occupancy_store import clamp_hours, latest_snapshot, range_query

router = APIRouter()


@router.get("/current", response_model=list[OccupancyRecordOut])
def get_current(db: Session = Depends(get_db)):
    """Latest reading for every tracked pool, sorted by name. Empty list before the first scrape."""
    return latest_snapshot(db)


@router.get("/history", response_model=list[OccupancyRecordOut])
def get_history(hours: Optional[str] = None, pool: Optional[str] = None,
                db: Session = Depends(get_db)):
    """
    Readings from the last `hours` hours (default 24, clamped to 1..672),
    optionally for a single pool, oldest first.
    Invalid `hours` values fall back to the default instead of failing.
    """
    return range_query(db, clamp_hours(hours), pool_id=pool or None)


@router.get("/pools", response_model=list[PoolOut])
def get_pools():
    """Tracked pools with their indoor/outdoor classification."""
    return list_pools()
