"""Tests for community post endpoints."""

from __future__ import annotations

from lifelink.api.routes.community import rank_posts

from .conftest import CENTER


class TestNearbyPosts:
    """GET /api/community/nearby"""

    def test_active_posts_by_urgency(self, client):
        resp = client.get("/api/community/nearby", params=CENTER)
        assert resp.status_code == 200
        body = resp.json()
        assert body["message"] == "Nearby posts retrieved successfully"
        assert [p["id"] for p in body["data"]["posts"]] == [
            "post-critical-new",
            "post-critical-old",
            "post-low",
        ]
        assert body["data"]["count"] == 3

    def test_post_shape(self, client):
        resp = client.get("/api/community/nearby", params=CENTER)
        post = resp.json()["data"]["posts"][0]
        assert post["authorName"] == "Kiran"
        assert post["bloodGroup"] == "B+"
        assert post["urgency"] == "critical"
        assert post["distance"] == 4.0
        assert post["location"] == {"type": "Point", "coordinates": [83.3, 17.736]}

    def test_wider_radius(self, client):
        resp = client.get("/api/community/nearby", params={**CENTER, "radius": "100"})
        assert [p["id"] for p in resp.json()["data"]["posts"]] == [
            "post-critical-new",
            "post-critical-old",
            "post-far",
            "post-low",
        ]

    def test_missing_coordinates(self, client):
        resp = client.get("/api/community/nearby")
        assert resp.status_code == 400
        assert resp.json() == {"success": False, "message": "Location coordinates required"}

    def test_invalid_coordinates(self, client):
        resp = client.get("/api/community/nearby", params={"latitude": "17.7", "longitude": "x"})
        assert resp.status_code == 400
        assert resp.json()["message"] == "Invalid coordinates"


class TestRankPosts:
    def test_unknown_urgency_sorts_last(self):
        posts = [
            {"id": "a", "urgency": "someday", "created_at": "2026-10-03"},
            {"id": "b", "urgency": "low", "created_at": "2026-10-01"},
            {"id": "c", "urgency": "high", "created_at": "2026-10-02"},
        ]
        assert [p["id"] for p in rank_posts(posts)] == ["c", "b", "a"]

    def test_newest_first_across_offsets(self):
        posts = [
            {"id": "ist", "urgency": "high", "created_at": "2026-10-01T10:00:00+05:30"},
            {"id": "utc", "urgency": "high", "created_at": "2026-10-01T05:00:00+00:00"},
            {"id": "zulu", "urgency": "high", "created_at": "2026-10-01T04:45:00Z"},
        ]
        assert [p["id"] for p in rank_posts(posts)] == ["utc", "zulu", "ist"]
