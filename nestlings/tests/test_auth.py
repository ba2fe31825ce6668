from __future__ import annotations

from fastapi.testclient import TestClient

from nestlings.app import app
from nestlings.db.models import User
from nestlings.db.session import SessionLocal

client = TestClient(app)


def _login_user(c):
    c.post("/auth/login", json={"username": "user", "password": "user123"})


def _login_admin(c):
    c.post("/auth/login", json={"username": "admin", "password": "admin123"})


# ── Login / Logout ───────────────────────────────────────────────────────


def test_login_success_user():
    resp = client.post("/auth/login", json={"username": "user", "password": "user123"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert body["user"]["username"] == "user"
    assert body["user"]["role"] == "user"
    assert body["user"]["id"]


def test_login_success_admin():
    resp = client.post("/auth/login", json={"username": "admin", "password": "admin123"})
    assert resp.status_code == 200
    assert resp.json()["user"]["role"] == "admin"


def test_login_wrong_password():
    resp = client.post("/auth/login", json={"username": "user", "password": "wrong"})
    assert resp.status_code == 401


def test_login_unknown_user():
    resp = client.post("/auth/login", json={"username": "nobody", "password": "x"})
    assert resp.status_code == 401


def test_auth_me_when_logged_in():
    _login_user(client)
    resp = client.get("/auth/me")
    assert resp.status_code == 200
    assert resp.json()["username"] == "user"


def test_auth_me_not_logged_in():
    c = TestClient(app)  # fresh client, no session
    resp = c.get("/auth/me")
    assert resp.status_code == 401


def test_logout():
    _login_user(client)
    resp = client.post("/auth/logout")
    assert resp.status_code == 200
    assert resp.json()["status"] == "logged_out"
    # Session should be cleared
    resp = client.get("/auth/me")
    assert resp.status_code == 401


# ── Route protection ─────────────────────────────────────────────────────


def test_public_routes_need_no_login():
    c = TestClient(app)
    assert c.get("/health").json() == {"status": "ok"}
    assert c.get("/milestones").status_code == 200
    assert c.get("/ai-categories").status_code == 200


def test_products_require_login():
    c = TestClient(app)
    assert c.get("/products").status_code == 401
    assert c.post("/products", json={"name": "x", "category": "play"}).status_code == 401
    assert c.delete("/products/abc").status_code == 401


def test_recommendations_require_login():
    c = TestClient(app)
    assert c.post("/recommendations", json={}).status_code == 401
    assert c.get("/recommendations/history").status_code == 401


def test_profile_requires_login():
    c = TestClient(app)
    assert c.get("/profile").status_code == 401


def test_cache_stats_requires_admin():
    c = TestClient(app)
    assert c.get("/cache/stats").status_code == 401
    _login_user(c)
    assert c.get("/cache/stats").status_code == 403


def test_cache_stats_as_admin():
    c = TestClient(app)
    _login_admin(c)
    resp = c.get("/cache/stats")
    assert resp.status_code == 200
    assert set(resp.json()) == {"size", "hits", "misses", "hit_rate"}


def test_passwords_are_stored_hashed():
    with SessionLocal() as db:
        user = db.query(User).filter(User.username == "user").one()
    assert user.password_hash != "user123"
    assert user.password_hash.startswith("$2")
