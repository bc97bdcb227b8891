"""Shared fixtures: in-memory SQLite store, API client, fake CrowdMonitor socket."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import json
import pytest
from unittest.mock import AsyncMock, MagicMock
from datetime import datetime
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from app.database import Base, create_tables, get_db
from app.main import app
from app.services.occupancy_service import OccupancyReading, calculate_occupancy_level, calculate_occupancy_percent
from app.catalog import pool_name


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_tables(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_reading(pool_id="SSD-4", fill=100, capacity=400, timestamp=None):
    return OccupancyReading(
        timestamp=timestamp or datetime(2026, 7, 1, 12, 0, 0),
        pool_id=pool_id,
        pool_name=pool_name(pool_id),
        current_fill=fill,
        max_capacity=capacity,
        occupancy_percent=calculate_occupancy_percent(fill, capacity),
        occupancy_level=calculate_occupancy_level(fill, capacity),
    )


def make_socket(payload=None, recv=None):
    """Fake WebSocket connection. `payload` is JSON-encoded unless already str/bytes."""
    ws = MagicMock()
    ws.send = AsyncMock()
    ws.close = AsyncMock()
    if recv is not None:
        ws.recv = recv
    else:
        message = payload if isinstance(payload, (str, bytes)) else json.dumps(payload)
        ws.recv = AsyncMock(return_value=message)
    return ws
