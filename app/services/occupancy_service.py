# app/services/occupancy_service.py
"""
Occupancy derivation: turns one upstream snapshot into OccupancyReading rows.

Percent: round(fill / capacity * 10000) / 100, or 0 when capacity <= 0.
Level:   min(4, floor(percent / 25) + 1), or 0 when capacity <= 0 or fill < 0.
         1 = 0-25%, 2 = 25-50%, 3 = 50-75%, 4 = 75%+
"""

import json
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Union

from pydantic import ValidationError as PydanticValidationError

from app.catalog import is_tracked, pool_name
from app.schemas.occupancy import CrowdMonitorEntry
from app.utils.exceptions import ParseError
from app.utils.logger import get_logger

logger = get_logger(__name__)

Number = Union[int, float]

# Counts are stored in 64-bit INTEGER columns
MAX_COUNT = 2**63 - 1


@dataclass(frozen=True)
class OccupancyReading:
    timestamp: datetime       # naive UTC, shared by the whole snapshot
    pool_id: str
    pool_name: str
    current_fill: Number
    max_capacity: Number
    occupancy_percent: float
    occupancy_level: int      # 0 = unknown capacity or negative fill


def utc_now() -> datetime:
    """Current time as naive UTC, the form stored in the occupancy table."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def calculate_occupancy_percent(current_fill: Number, max_capacity: Number) -> float:
    if max_capacity <= 0:
        return 0.0
    return _round_half_up((current_fill / max_capacity) * 10000) / 100


def calculate_occupancy_level(current_fill: Number, max_capacity: Number) -> int:
    if max_capacity <= 0 or current_fill < 0:
        return 0
    percent = calculate_occupancy_percent(current_fill, max_capacity)
    return min(4, math.floor(percent / 25) + 1)


def _as_count(value: Number) -> int:
    """Whole number that fits the INTEGER columns, or ValueError."""
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError(f"non-finite value {value!r}")
        if not value.is_integer():
            raise ValueError(f"non-integral count {value!r}")
        value = int(value)
    if abs(value) > MAX_COUNT:
        raise ValueError(f"count {value} out of range")
    return value


def build_reading(entry: CrowdMonitorEntry, timestamp: datetime) -> OccupancyReading:
    current_fill = _as_count(entry.currentfill)
    max_capacity = _as_count(entry.maxspace)
    return OccupancyReading(
        timestamp=timestamp,
        pool_id=entry.uid,
        pool_name=pool_name(entry.uid),
        current_fill=current_fill,
        max_capacity=max_capacity,
        occupancy_percent=calculate_occupancy_percent(current_fill, max_capacity),
        occupancy_level=calculate_occupancy_level(current_fill, max_capacity),
    )


def parse_snapshot(message: Union[str, bytes], timestamp: datetime) -> list[OccupancyReading]:
    """
    Parse one upstream message into readings for tracked pools only.
    Untracked ids are dropped before validation, so a malformed entry for a pool
    we do not track never fails the snapshot. Raises ParseError otherwise.
    """
    if isinstance(message, bytes):
        try:
            message = message.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ParseError(f"Snapshot is not valid UTF-8: {e}") from e

    try:
        data = json.loads(message)
    except json.JSONDecodeError as e:
        raise ParseError(f"Snapshot is not valid JSON: {e}", payload=message[:500]) from e

    if not isinstance(data, list):
        raise ParseError(
            f"Snapshot must be a JSON array, got {type(data).__name__}", payload=message[:500]
        )

    readings = []
    skipped = 0
    for raw in data:
        if not isinstance(raw, dict):
            raise ParseError(f"Snapshot entry must be an object, got {type(raw).__name__}")
        uid = raw.get("uid", raw.get("id"))
        if not is_tracked(uid):
            skipped += 1
            continue
        try:
            entry = CrowdMonitorEntry.model_validate(raw)
            readings.append(build_reading(entry, timestamp))
        except (PydanticValidationError, ValueError) as e:
            raise ParseError(f"Invalid entry for pool {uid}: {e}") from e

    logger.debug(f"Parsed snapshot: {len(readings)} tracked, {skipped} untracked entries skipped")
    return readings
