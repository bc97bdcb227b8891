# app/services/occupancy_store.py
"""
Occupancy store — append-only persistence of scrape results plus retention.

Writers only append whole snapshots (one transaction per scrape) and the daily
cleanup deletes rows past the retention window. Readers only select.
"""

import math
from datetime import datetime, timedelta
from typing import Iterable, Optional
from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from app.config import settings
from app.models.occupancy import Occupancy
from app.services.occupancy_service import OccupancyReading, utc_now
from app.utils.exceptions import StoreReadFailure, StoreWriteFailure
from app.utils.logger import get_logger

logger = get_logger(__name__)


def clamp_hours(raw) -> int:
    """
    Normalize a history window in hours. Never raises:
    missing/blank/non-numeric → HISTORY_DEFAULT_HOURS, otherwise truncated and
    clamped to [HISTORY_MIN_HOURS, HISTORY_MAX_HOURS].
    """
    default = settings.HISTORY_DEFAULT_HOURS
    if raw is None or isinstance(raw, bool):
        return default
    if isinstance(raw, str):
        raw = raw.strip()
        if not raw:
            return default
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return default
    if math.isnan(value):
        return default
    if math.isinf(value):
        hours = settings.HISTORY_MAX_HOURS if value > 0 else settings.HISTORY_MIN_HOURS
    else:
        hours = int(value)
    return min(max(hours, settings.HISTORY_MIN_HOURS), settings.HISTORY_MAX_HOURS)


def append_records(db: Session, readings: Iterable[OccupancyReading]) -> int:
    """Insert one snapshot atomically. Either every row lands or none do."""
    rows = [
        Occupancy(
            timestamp=r.timestamp,
            pool_id=r.pool_id,
            pool_name=r.pool_name,
            current_fill=r.current_fill,
            max_capacity=r.max_capacity,
            occupancy_percent=r.occupancy_percent,
            occupancy_level=r.occupancy_level,
        )
        for r in readings
    ]
    if not rows:
        return 0

    try:
        db.add_all(rows)
        db.commit()
    except (SQLAlchemyError, OverflowError) as e:
        db.rollback()
        raise StoreWriteFailure(f"Failed to store {len(rows)} occupancy records: {e}") from e
    return len(rows)


def delete_older_than(db: Session, cutoff: datetime) -> int:
    """Delete every row strictly older than cutoff. Returns the number removed."""
    try:
        result = db.execute(delete(Occupancy).where(Occupancy.timestamp < cutoff))
        db.commit()
    except (SQLAlchemyError, OverflowError) as e:
        db.rollback()
        raise StoreWriteFailure(f"Retention delete failed: {e}") from e
    return result.rowcount or 0


def cleanup_old_data(db: Session, now: Optional[datetime] = None,
                     retention_days: Optional[int] = None) -> int:
    """Apply the retention window (default RETENTION_DAYS). Idempotent."""
    retention_days = settings.RETENTION_DAYS if retention_days is None else retention_days
    cutoff = (now or utc_now()) - timedelta(days=retention_days)
    deleted = delete_older_than(db, cutoff)
    if deleted > 0:
        logger.info(f"🧹 Cleaned up {deleted} records older than {cutoff.isoformat()}")
    return deleted


def latest_timestamp(db: Session) -> Optional[datetime]:
    try:
        return db.execute(select(func.max(Occupancy.timestamp))).scalar()
    except SQLAlchemyError as e:
        raise StoreReadFailure(f"Latest timestamp query failed: {e}") from e


def latest_snapshot(db: Session) -> list[Occupancy]:
    """All rows of the most recent scrape, ordered by pool name."""
    newest = select(func.max(Occupancy.timestamp)).scalar_subquery()
    stmt = (
        select(Occupancy)
        .where(Occupancy.timestamp == newest)
        .order_by(Occupancy.pool_name)
    )
    try:
        return list(db.execute(stmt).scalars().all())
    except SQLAlchemyError as e:
        raise StoreReadFailure(f"Latest snapshot query failed: {e}") from e


def range_query(db: Session, hours, pool_id: Optional[str] = None,
                now: Optional[datetime] = None) -> list[Occupancy]:
    """Rows captured within the last `hours` (clamped), oldest first."""
    since = (now or utc_now()) - timedelta(hours=clamp_hours(hours))
    stmt = select(Occupancy).where(Occupancy.timestamp >= since)
    if pool_id:
        stmt = stmt.where(Occupancy.pool_id == pool_id)
    stmt = stmt.order_by(Occupancy.timestamp.asc(), Occupancy.pool_name.asc())
    try:
        return list(db.execute(stmt).scalars().all())
    except SQLAlchemyError as e:
        raise StoreReadFailure(f"History query failed: {e}") from e
