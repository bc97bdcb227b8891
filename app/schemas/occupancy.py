from pydantic import AliasChoices, BaseModel, Field, field_serializer
from datetime import datetime, timezone
from typing import Union


Number = Union[int, float]


class CrowdMonitorEntry(BaseModel):
    """One entry of the upstream snapshot array. Accepts CrowdMonitor and short field names."""

    uid: str = Field(validation_alias=AliasChoices("uid", "id"))
    maxspace: Number = Field(validation_alias=AliasChoices("maxspace", "capacity"))
    currentfill: Number = Field(validation_alias=AliasChoices("currentfill", "fill"))

    model_config = {"extra": "ignore"}


class OccupancyRecordOut(BaseModel):
    id: int
    timestamp: datetime
    pool_id: str
    pool_name: str
    current_fill: Number
    max_capacity: Number
    occupancy_percent: float
    occupancy_level: int

    model_config = {"from_attributes": True}

    @field_serializer("timestamp")
    def serialize_timestamp(self, value: datetime) -> str:
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat()


class PoolOut(BaseModel):
    pool_id: str
    pool_name: str
    type: str
