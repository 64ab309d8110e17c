"""Tests for hospital coordination endpoints."""

from __future__ import annotations

from unittest.mock import patch


class TestHospitalNearbyCamps:
    """GET /api/hospitals/{hospital_id}/nearby-camps"""

    def test_supplying_camps(self, client):
        resp = client.get("/api/hospitals/hosp-central/nearby-camps")
        assert resp.status_code == 200
        body = resp.json()
        assert body["message"] == "Nearby camps retrieved successfully"
        data = body["data"]
        assert data["hospitalLocation"] == {"coordinates": [83.3, 17.709], "address": "1 Beach Road"}
        assert data["searchRadius"] == 50.0
        assert [c["id"] for c in data["nearbyCamps"]] == ["camp-live", "camp-done"]

    def test_transfer_estimates(self, client):
        resp = client.get("/api/hospitals/hosp-central/nearby-camps")
        live, done = resp.json()["data"]["nearbyCamps"]
        assert (live["distance"], live["estimatedTransferTime"], live["totalUnitsCollected"]) == (0, 0, 20)
        assert (done["distance"], done["estimatedTransferTime"], done["totalUnitsCollected"]) == (5, 8, 80)
        assert done["status"] == "completed"
        assert done["venue"]["name"] == "Done Camp Hall"

    def test_radius_in_metres(self, client):
        resp = client.get("/api/hospitals/hosp-central/nearby-camps", params={"radius": "1000"})
        data = resp.json()["data"]
        assert [c["id"] for c in data["nearbyCamps"]] == ["camp-live"]
        assert data["searchRadius"] == 1.0

    def test_unknown_hospital(self, client):
        resp = client.get("/api/hospitals/nope/nearby-camps")
        assert resp.status_code == 404
        assert resp.json() == {"success": False, "message": "Hospital not found"}

    def test_hospital_without_location(self, client):
        resp = client.get("/api/hospitals/hosp-unmapped/nearby-camps")
        assert resp.status_code == 400
        assert resp.json()["message"] == "Hospital location not configured"

    def test_storage_failure(self, client):
        with patch("lifelink.api.routes.hospitals.find_nearby", side_effect=RuntimeError("boom")):
            resp = client.get("/api/hospitals/hosp-central/nearby-camps")
        assert resp.status_code == 500
        assert resp.json()["message"] == "Failed to retrieve nearby camps"
