# app/models/occupancy.py
"""
Occupancy time series table.
One row per tracked pool per scrape; every row of a scrape shares its timestamp.
Rows are append-only and removed only by the retention cleanup.
"""

from sqlalchemy import Column, Integer, String, DateTime, Float, Index
from app.database import Base


class Occupancy(Base):
    __tablename__ = "occupancy"

    id = Column(Integer, primary_key=True, autoincrement=True)
    timestamp = Column(DateTime, nullable=False)        # naive UTC capture time
    pool_id = Column(String(50), nullable=False)
    pool_name = Column(String(200), nullable=False)     # name at capture time
    current_fill = Column(Integer, nullable=False)
    max_capacity = Column(Integer, nullable=False)      # <= 0 means unknown capacity
    occupancy_percent = Column(Float, nullable=False)
    occupancy_level = Column(Integer, nullable=False)   # 0 = unknown, 1-4 = quartile

    __table_args__ = (
        Index("idx_occupancy_pool_time", "pool_id", "timestamp"),
        Index("idx_occupancy_time", "timestamp"),
    )

    def __repr__(self):
        return f"<Occupancy {self.pool_id} {self.current_fill}/{self.max_capacity} at {self.timestamp}>"
