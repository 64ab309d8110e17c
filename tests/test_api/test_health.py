"""Tests for the health endpoint and app-wide envelopes."""

from __future__ import annotations

import logging
from unittest.mock import MagicMock, patch


class TestHealthEndpoint:
    """GET /api/health — always open."""

    def test_degraded_in_json_fallback(self, client):
        resp = client.get("/api/health")
        # In fallback mode (DB patched away) health reports degraded / 503
        assert resp.status_code == 503
        data = resp.json()
        assert data["status"] == "degraded"
        assert data["mode"] == "json_fallback"
        assert data["database_connected"] is False
        assert data["version"] == "0.1.0"

    def test_record_counts(self, client):
        data = client.get("/api/health").json()
        assert data["record_counts"] == {
            "hospitals": 6,
            "blood_camps": 7,
            "civic_alerts": 5,
            "community_posts": 5,
        }

    def test_contains_uptime(self, client):
        data = client.get("/api/health").json()
        assert isinstance(data["uptime_seconds"], int)
        assert data["uptime_seconds"] >= 0
        assert data["started_at"] == "2026-10-01T00:00:00+00:00"

    def test_contains_checks_block(self, client):
        data = client.get("/api/health").json()
        assert data["checks"]["database"] == {"status": "down", "latency_ms": None}

    def test_healthy_in_database_mode(self, client):
        cursor = MagicMock()
        cursor.fetchone.return_value = (3,)
        conn = MagicMock()
        conn.cursor.return_value.__enter__.return_value = cursor
        get_conn = MagicMock()
        get_conn.return_value.__enter__.return_value = conn
        with (
            patch("lifelink.api.db.is_available", return_value=True),
            patch("lifelink.api.db.get_conn", get_conn),
        ):
            resp = client.get("/api/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "healthy"
        assert data["mode"] == "database"
        assert data["record_counts"]["hospitals"] == 3
        assert data["checks"]["database"]["status"] == "up"

    def test_failed_probe_is_degraded(self, client):
        with (
            patch("lifelink.api.db.is_available", return_value=True),
            patch("lifelink.api.db.get_conn", side_effect=RuntimeError("server closed the connection")),
        ):
            resp = client.get("/api/health")
        assert resp.status_code == 503
        assert resp.json()["mode"] == "json_fallback"


class TestEnvelopes:
    def test_unknown_route(self, client):
        resp = client.get("/api/nowhere")
        assert resp.status_code == 404
        assert resp.json() == {"success": False, "message": "Not Found"}

    def test_request_is_logged(self, client, caplog):
        with caplog.at_level(logging.INFO, logger="lifelink.requests"):
            client.get("/api/geolocation/nearby-hospitals", params={"latitude": "17.7", "longitude": "83.3"})
        messages = [r.getMessage() for r in caplog.records if r.name == "lifelink.requests"]
        assert any("path=/api/geolocation/nearby-hospitals" in m and "status=200" in m for m in messages)
