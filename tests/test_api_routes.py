"""
tests/test_api_routes.py — FastAPI Route Integration Tests
===========================================================
Drives the HTTP surface end to end against the in-memory database:

- Health endpoint and auth guards
- Registration / login / profile
- The registration → post → like → check-in points journey
- Rewards, shop and leaderboards over HTTP
- Error mapping (domain errors → status codes)
"""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from conftest import auth_header, make_token, user_row
from onlytalk.services import checkin_service


def _register(client, username: str) -> tuple[int, dict]:
    resp = client.post(
        "/api/auth/register",
        json={"username": username, "email": f"{username}@example.com", "password": "secret123"},
    )
    assert resp.status_code == 201, resp.text
    body = resp.json()
    return body["user"]["id"], auth_header(body["token"])


def _me(client, headers) -> dict:
    resp = client.get("/api/auth/me", headers=headers)
    assert resp.status_code == 200
    return resp.json()["user"]


def _points(engine, user_id: int) -> int:
    return user_row(engine, user_id).points


# ===========================================================================
# Health endpoint
# ===========================================================================
class TestHealthEndpoint:
    def test_health_returns_ok(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}


# ===========================================================================
# Auth guards
# ===========================================================================
class TestAuthGuards:
    PROTECTED = [
        ("get", "/api/auth/me"),
        ("post", "/api/checkin"),
        ("get", "/api/checkin/status"),
        ("get", "/api/notifications"),
        ("post", "/api/likes/posts/1"),
        ("post", "/api/follows/1"),
        ("get", "/api/favorites"),
        ("get", "/api/rewards"),
    ]

    @pytest.mark.parametrize(("method", "endpoint"), PROTECTED)
    def test_no_token_returns_401(self, client, method, endpoint):
        resp = getattr(client, method)(endpoint)
        assert resp.status_code == 401

    @pytest.mark.parametrize(("method", "endpoint"), PROTECTED)
    def test_invalid_token_returns_401(self, client, method, endpoint):
        resp = getattr(client, method)(endpoint, headers=auth_header("not.a.jwt"))
        assert resp.status_code == 401

    def test_reward_without_token(self, client):
        resp = client.post(
            "/api/rewards", json={"related_type": "post", "related_id": 1, "points": 5},
        )
        assert resp.status_code == 401

    def test_token_for_deleted_user_is_404(self, client):
        resp = client.get("/api/auth/me", headers=auth_header(make_token(999)))
        assert resp.status_code == 404


# ===========================================================================
# Accounts
# ===========================================================================
class TestAccounts:
    def test_register_and_login(self, client):
        uid, _ = _register(client, "alice")
        resp = client.post("/api/auth/login", json={"username": "alice", "password": "secret123"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["user"]["id"] == uid
        assert body["user"]["points"] == 10
        assert body["token"]

    def test_duplicate_registration_conflicts(self, client):
        _register(client, "alice")
        resp = client.post(
            "/api/auth/register",
            json={"username": "alice", "email": "x@example.com", "password": "secret123"},
        )
        assert resp.status_code == 409

    def test_short_password_is_400(self, client):
        resp = client.post(
            "/api/auth/register",
            json={"username": "alice", "email": "alice@example.com", "password": "123"},
        )
        assert resp.status_code == 400

    def test_wrong_password_is_401(self, client):
        _register(client, "alice")
        resp = client.post("/api/auth/login", json={"username": "alice", "password": "nope"})
        assert resp.status_code == 401

    def test_update_profile(self, client):
        _, headers = _register(client, "alice")
        resp = client.patch("/api/auth/me", json={"bio": "hi there"}, headers=headers)
        assert resp.status_code == 200
        assert resp.json()["user"]["bio"] == "hi there"


# ===========================================================================
# Points journey
# ===========================================================================
class TestPointsJourney:
    def test_register_post_like_checkin(self, client, db_engine, monkeypatch):
        alice, alice_h = _register(client, "alice")
        _, bob_h = _register(client, "bob")
        assert _points(db_engine, alice) == 10

        resp = client.post("/api/posts", json={"title": "Hello", "content": "World"}, headers=alice_h)
        assert resp.status_code == 201
        post_id = resp.json()["post"]["id"]
        assert _points(db_engine, alice) == 15

        resp = client.post(f"/api/likes/posts/{post_id}", headers=bob_h)
        assert resp.json() == {"liked": True, "likes": 1}
        me = _me(client, alice_h)
        assert (me["points"], me["level"]) == (16, 1)

        day_1 = date(2026, 6, 1)
        monkeypatch.setattr(checkin_service, "local_today", lambda: day_1)
        resp = client.post("/api/checkin", headers=alice_h)
        assert resp.status_code == 200
        assert resp.json()["checkin"] == {
            "date": "2026-06-01", "consecutive_days": 1, "points_earned": 10,
        }
        assert _points(db_engine, alice) == 26

        resp = client.post("/api/checkin", headers=alice_h)
        assert resp.status_code == 400
        assert _points(db_engine, alice) == 26

        monkeypatch.setattr(checkin_service, "local_today", lambda: day_1 + timedelta(days=1))
        resp = client.post("/api/checkin", headers=alice_h)
        assert resp.json()["checkin"]["consecutive_days"] == 2
        assert _points(db_engine, alice) == 36

        status = client.get("/api/checkin/status", headers=alice_h).json()
        assert status["checked_in_today"] is True
        assert status["consecutive_days"] == 2

    def test_unlike_restores_points(self, client, db_engine):
        alice, alice_h = _register(client, "alice")
        _, bob_h = _register(client, "bob")
        post_id = client.post(
            "/api/posts", json={"title": "Hi", "content": "x"}, headers=alice_h,
        ).json()["post"]["id"]

        client.post(f"/api/likes/posts/{post_id}", headers=bob_h)
        resp = client.post(f"/api/likes/posts/{post_id}", headers=bob_h)
        assert resp.json() == {"liked": False, "likes": 0}
        assert _points(db_engine, alice) == 15
        status = client.get(f"/api/likes/posts/{post_id}/status", headers=bob_h).json()
        assert status == {"liked": False}

    def test_post_detail_viewer_flags(self, client):
        _, alice_h = _register(client, "alice")
        _, bob_h = _register(client, "bob")
        post_id = client.post(
            "/api/posts", json={"title": "Hi", "content": "x"}, headers=alice_h,
        ).json()["post"]["id"]
        client.post(f"/api/likes/posts/{post_id}", headers=bob_h)

        anonymous = client.get(f"/api/posts/{post_id}").json()["post"]
        assert "is_liked" not in anonymous
        viewer = client.get(f"/api/posts/{post_id}", headers=bob_h).json()["post"]
        assert viewer["is_liked"] is True
        assert viewer["is_favorited"] is False


# ===========================================================================
# Rewards
# ===========================================================================
class TestRewards:
    def _setup(self, client, db_engine):
        from sqlalchemy.orm import Session

        from onlytalk.database.models import User

        alice, alice_h = _register(client, "alice")
        bob, bob_h = _register(client, "bob")
        with Session(db_engine) as session:
            session.get(User, alice).points = 50
            session.get(User, bob).points = 0
            session.commit()
        post_id = client.post(
            "/api/posts", json={"title": "Hi", "content": "x"}, headers=alice_h,
        ).json()["post"]["id"]
        comment_id = client.post(
            "/api/comments", json={"post_id": post_id, "content": "Nice"}, headers=bob_h,
        ).json()["comment"]["id"]
        return alice, alice_h, bob, bob_h, comment_id

    def test_reward_comment(self, client, db_engine):
        alice, alice_h, bob, bob_h, comment_id = self._setup(client, db_engine)
        alice_before = _points(db_engine, alice)
        bob_before = _points(db_engine, bob)

        resp = client.post(
            "/api/rewards",
            json={"related_type": "comment", "related_id": comment_id, "points": 30, "message": "nice"},
            headers=alice_h,
        )
        assert resp.status_code == 200, resp.text
        assert resp.json()["reward"]["to_user_id"] == bob
        assert _points(db_engine, alice) == alice_before - 30
        assert _points(db_engine, bob) == bob_before + 30

        inbox = client.get("/api/notifications", headers=bob_h).json()
        reward_notes = [n for n in inbox["notifications"] if n["type"] == "reward"]
        assert reward_notes[0]["content"] == "alice rewarded you 30 points: nice"

        received = client.get("/api/rewards?direction=received", headers=bob_h).json()
        assert [r["points"] for r in received["rewards"]] == [30]

    def test_insufficient_points_is_400(self, client, db_engine):
        alice, alice_h, bob, _, comment_id = self._setup(client, db_engine)
        before = (_points(db_engine, alice), _points(db_engine, bob))
        resp = client.post(
            "/api/rewards",
            json={"related_type": "comment", "related_id": comment_id, "points": 1000},
            headers=alice_h,
        )
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Not enough points"
        assert (_points(db_engine, alice), _points(db_engine, bob)) == before

    def test_self_reward_is_400(self, client, db_engine):
        _, _, _, bob_h, comment_id = self._setup(client, db_engine)
        resp = client.post(
            "/api/rewards",
            json={"related_type": "comment", "related_id": comment_id, "points": 1},
            headers=bob_h,
        )
        assert resp.status_code == 400

    def test_missing_target_is_404(self, client, db_engine):
        _, alice_h, _, _, _ = self._setup(client, db_engine)
        resp = client.post(
            "/api/rewards",
            json={"related_type": "post", "related_id": 999, "points": 1},
            headers=alice_h,
        )
        assert resp.status_code == 404

    @pytest.mark.parametrize(
        "body",
        [
            {"related_type": "post", "related_id": 1, "points": 0},
            {"related_type": "post", "related_id": 1, "points": 1001},
            {"related_type": "user", "related_id": 1, "points": 5},
            {"related_type": "post", "related_id": 1, "points": 5, "message": "x" * 101},
        ],
    )
    def test_invalid_body_is_400(self, client, db_engine, body):
        _, alice_h, _, _, _ = self._setup(client, db_engine)
        resp = client.post("/api/rewards", json=body, headers=alice_h)
        assert resp.status_code == 400


# ===========================================================================
# Shop, social & leaderboards
# ===========================================================================
class TestShopAndBoards:
    def test_shop_items_public(self, client):
        resp = client.get("/api/shop/items")
        assert resp.status_code == 200
        assert len(resp.json()["items"]) == 5

    def test_purchase_without_points(self, client):
        _, headers = _register(client, "alice")
        item_id = client.get("/api/shop/items").json()["items"][0]["id"]
        resp = client.post("/api/shop/purchase", json={"item_id": item_id}, headers=headers)
        assert resp.status_code == 400

    def test_follow_self_is_400(self, client):
        uid, headers = _register(client, "alice")
        assert client.post(f"/api/follows/{uid}", headers=headers).status_code == 400

    def test_leaderboard(self, client):
        _register(client, "alice")
        _register(client, "bob")
        resp = client.get("/api/leaderboard/points?limit=500")
        assert resp.status_code == 200
        rows = resp.json()["leaderboard"]
        assert {r["username"] for r in rows} == {"alice", "bob"}
        assert {"post_count", "comment_count", "level"} <= rows[0].keys()

    def test_categories_seeded(self, client):
        resp = client.get("/api/categories")
        assert resp.status_code == 200
        assert len(resp.json()["categories"]) == 4
        assert client.get("/api/categories/999").status_code == 404
