"""HTTP surface tests: routes, CORS, method/route errors, and end-to-end ingestion."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import asyncio
import pytest
from unittest.mock import AsyncMock, patch
from datetime import timedelta
from fastapi.testclient import TestClient
from app.main import app
from app.services.occupancy_service import utc_now
from app.services.occupancy_store import append_records
from app.services.scheduler import run_tick
from app.utils.exceptions import StoreReadFailure
from conftest import make_reading, make_socket


def assert_cors(response):
    assert response.headers["access-control-allow-origin"] == "*"
    assert "GET" in response.headers["access-control-allow-methods"]


class TestCurrent:
    def test_empty_store_returns_empty_list(self, client):
        response = client.get("/api/current")
        assert response.status_code == 200
        assert response.json() == []
        assert_cors(response)

    def test_latest_snapshot_sorted_by_name(self, client, db):
        now = utc_now()
        append_records(db, [make_reading("SSD-4", timestamp=now - timedelta(minutes=5))])
        append_records(db, [
            make_reading("SSD-7", fill=300, capacity=400, timestamp=now),
            make_reading("BADI-1", fill=0, capacity=0, timestamp=now),
        ])

        body = client.get("/api/current").json()
        assert [r["pool_name"] for r in body] == ["Enge", "Hallenbad Oerlikon"]
        assert body[0]["occupancy_level"] == 0
        assert body[1]["occupancy_percent"] == 75.0
        assert body[1]["timestamp"].endswith("+00:00")
        assert set(body[0]) == {
            "id", "timestamp", "pool_id", "pool_name", "current_fill",
            "max_capacity", "occupancy_percent", "occupancy_level",
        }

    def test_store_failure_is_generic_500(self, client):
        with patch("app.routers.occupancy.latest_snapshot",
                   side_effect=StoreReadFailure("no such table: occupancy")):
            response = client.get("/api/current")
        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}
        assert_cors(response)


class TestHistory:
    def test_default_window_and_pool_filter(self, client, db):
        now = utc_now()
        append_records(db, [
            make_reading("SSD-4", timestamp=now - timedelta(hours=30)),
            make_reading("SSD-4", timestamp=now - timedelta(hours=2)),
            make_reading("SSD-7", timestamp=now - timedelta(hours=1)),
            make_reading("SSD-4", timestamp=now - timedelta(minutes=10)),
        ])

        body = client.get("/api/history", params={"pool": "SSD-4"}).json()
        assert len(body) == 2
        assert body[0]["timestamp"] < body[1]["timestamp"]

        assert len(client.get("/api/history").json()) == 3

    @pytest.mark.parametrize("hours,expected", [("0", 1), ("abc", 3), ("99999", 4), ("", 3)])
    def test_hours_normalized(self, client, db, hours, expected):
        now = utc_now()
        append_records(db, [
            make_reading("SSD-4", timestamp=now - timedelta(minutes=30)),
            make_reading("SSD-4", timestamp=now - timedelta(hours=5)),
            make_reading("SSD-4", timestamp=now - timedelta(hours=20)),
            make_reading("SSD-4", timestamp=now - timedelta(days=20)),
            make_reading("SSD-4", timestamp=now - timedelta(days=40)),
        ])
        response = client.get("/api/history", params={"hours": hours})
        assert response.status_code == 200
        assert len(response.json()) == expected

    def test_store_failure_is_generic_500(self, client):
        with patch("app.routers.occupancy.range_query", side_effect=StoreReadFailure("boom")):
            response = client.get("/api/history?hours=5")
        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}


class TestPools:
    def test_catalog(self, client):
        body = client.get("/api/pools").json()
        assert len(body) == 6
        city = next(p for p in body if p["pool_id"] == "SSD-4")
        assert city == {"pool_id": "SSD-4", "pool_name": "Hallenbad City", "type": "indoor"}
        assert {p["type"] for p in body} == {"indoor", "outdoor"}


class TestSurface:
    def test_options_preflight(self, client):
        response = client.options("/api/anything")
        assert response.status_code == 204
        assert response.content == b""
        assert_cors(response)

    @pytest.mark.parametrize("method", ["post", "put", "delete", "patch"])
    def test_write_methods_rejected(self, client, method):
        response = getattr(client, method)("/api/current")
        assert response.status_code == 405
        assert response.json() == {"error": "Method not allowed"}
        assert_cors(response)

    def test_unknown_route(self, client):
        response = client.get("/api/nope")
        assert response.status_code == 404
        assert response.json() == {"error": "Not found"}
        assert_cors(response)

    def test_unhandled_error_hides_detail(self):
        client = TestClient(app, raise_server_exceptions=False)
        with patch("app.routers.occupancy.list_pools", side_effect=KeyError("secret")):
            response = client.get("/api/pools")
        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}
        assert_cors(response)

    def test_health(self, client, db):
        append_records(db, [make_reading("SSD-4", timestamp=utc_now())])
        body = client.get("/api/health").json()
        assert body["status"] == "ok"
        assert body["database"] == "ok"
        assert body["latest_snapshot"] is not None


class TestEndToEnd:
    def test_ingested_snapshot_is_served(self, client, session_factory):
        ws = make_socket([
            {"id": "SSD-4", "capacity": 500, "fill": 125},
            {"id": "UNTRACKED-9", "capacity": 50, "fill": 5},
        ])
        with patch("app.services.crowdmonitor_client.connect", new=AsyncMock(return_value=ws)), \
             patch("app.services.crowdmonitor_client.settings.SCRAPE_SEND_DELAY_SECONDS", 0):
            result = asyncio.run(run_tick(session_factory=session_factory))
        assert result.scraped == 1

        body = client.get("/api/current").json()
        assert len(body) == 1
        assert body[0]["pool_id"] == "SSD-4"
        assert body[0]["pool_name"] == "Hallenbad City"
        assert body[0]["occupancy_percent"] == 25.0
        assert body[0]["occupancy_level"] == 2
        assert all(r["pool_id"] != "UNTRACKED-9" for r in client.get("/api/history").json())
