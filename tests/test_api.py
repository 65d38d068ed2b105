"""Tests for the FastAPI routes."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from src.api.server import create_app, init_state
from src.config import Settings
from src.sessions.store import Session


@pytest.fixture
def client(store, prober):
    app = create_app()
    init_state(app, Settings(sweep_interval_seconds=3, retention_days=2), store=store)
    app.state.sweeper.prober = prober
    return TestClient(app)


def _register(client: TestClient, username: str = "alice", password: str = "secret"):
    return client.post("/api/register", json={"username": username, "password": password})


def test_uses_the_given_store(store, accounts_path) -> None:
    app = create_app()
    init_state(app, Settings(), store=store)
    assert app.state.account_store is store

    _register(TestClient(app))
    assert accounts_path.exists()


class TestAuthRoutes:
    def test_register_sets_cookie(self, client) -> None:
        resp = _register(client)
        assert resp.status_code == 200
        assert "sessionId" in resp.cookies
        assert "httponly" in resp.headers["set-cookie"].lower()
        data = resp.json()
        assert data["username"] == "alice"
        assert "password_hash" not in data

    def test_register_missing_fields(self, client) -> None:
        resp = client.post("/api/register", json={"username": "alice"})
        assert resp.status_code == 400

    def test_register_duplicate(self, client) -> None:
        _register(client)
        resp = _register(client, password="other")
        assert resp.status_code == 409

    def test_login_and_me(self, client) -> None:
        _register(client)
        client.cookies.clear()
        assert client.get("/api/me").status_code == 401

        resp = client.post("/api/login", json={"username": "alice", "password": "secret"})
        assert resp.status_code == 200
        me = client.get("/api/me")
        assert me.status_code == 200
        assert me.json()["username"] == "alice"
        assert me.json()["sweep_interval_seconds"] == 3

    def test_login_bad_password(self, client) -> None:
        _register(client)
        resp = client.post("/api/login", json={"username": "alice", "password": "nope"})
        assert resp.status_code == 401

    def test_login_for_reaped_account(self, client, store) -> None:
        _register(client)
        real_find = store.find_by_username

        def find_then_reap(username):
            found = real_find(username)
            store.remove_inactive(datetime.now(timezone.utc) + timedelta(days=1))
            return found

        with patch.object(store, "find_by_username", side_effect=find_then_reap):
            resp = client.post("/api/login", json={"username": "alice", "password": "secret"})
        assert resp.status_code == 401

    def test_logout(self, client) -> None:
        _register(client)
        assert client.post("/api/logout").status_code == 200
        assert client.get("/api/me").status_code == 401

    def test_expired_session_cookie(self, client) -> None:
        account = _register(client).json()
        sessions = client.app.state.session_store
        sessions.insert("stale", Session(
            account_id=account["id"],
            expires_at=datetime.now(timezone.utc) - timedelta(seconds=1),
        ))
        client.cookies.clear()

        resp = client.get("/api/me", headers={"Cookie": "sessionId=stale"})
        assert resp.status_code == 401
        assert "stale" not in sessions


class TestTargetRoutes:
    def test_add_and_remove(self, client) -> None:
        _register(client)
        resp = client.post("/api/targets", json={"url": "https://example.com"})
        assert resp.status_code == 200
        assert [t["url"] for t in resp.json()["targets"]] == ["https://example.com"]

        resp = client.post("/api/targets", json={"url": "https://example.com"})
        assert resp.json()["target_count"] == 1

        resp = client.post("/api/targets/remove", json={"url": "https://example.com"})
        assert resp.json()["targets"] == []

    def test_add_invalid_url(self, client) -> None:
        _register(client)
        resp = client.post("/api/targets", json={"url": "ftp://bad"})
        assert resp.status_code == 400
        assert client.post("/api/targets", json={"url": " https://example.com"}).status_code == 400
        assert client.get("/api/me").json()["target_count"] == 0

    def test_targets_require_login(self, client) -> None:
        resp = client.post("/api/targets", json={"url": "https://example.com"})
        assert resp.status_code == 401

    def test_ping_now(self, client, prober) -> None:
        _register(client)
        client.post("/api/targets", json={"url": "https://example.com"})

        resp = client.post("/api/ping-now")

        assert resp.status_code == 200
        target = resp.json()["targets"][0]
        assert target["status"] == "200 OK (42ms)"
        assert target["last_ping"]
        assert prober.calls == ["https://example.com"]


class TestStatusRoutes:
    def test_status(self, client) -> None:
        _register(client)
        client.app.state.sweeper.sweep_all()

        data = client.get("/api/status").json()
        assert data["status"] == "ok"
        assert data["accounts"] == 1
        assert data["sessions"] == 1
        assert data["sweep"]["last"]["accounts"] == 1
        assert data["sweep"]["running"] is False

    def test_dashboard_page(self, client) -> None:
        resp = client.get("/")
        assert resp.status_code == 200
        assert "Auto Ping" in resp.text
