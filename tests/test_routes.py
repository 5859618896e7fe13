import sys
from datetime import timedelta
from importlib import import_module

import pytest
from fastapi.testclient import TestClient


def _fresh_app_with_env(monkeypatch, tmp_db_path: str):
    """
    Import the FastAPI app with a fresh environment:
    - Uses SQLite file DB for isolation
    - Sets a test JWT secret
    Ensures modules are imported AFTER env is set so settings pick up new values.
    """
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_db_path}")
    monkeypatch.setenv("JWT_SECRET", "test-secret")
    monkeypatch.setenv("ENV", "test")

    # Remove possibly cached modules to ensure settings are read from env
    for mod in list(sys.modules.keys()):
        if mod.startswith("src.auth_logins"):
            sys.modules.pop(mod)

    main = import_module("src.auth_logins.main")
    security = import_module("src.auth_logins.security")
    token = security.create_service_token("idp-hook", timedelta(minutes=5))
    return main.app, {"Authorization": f"Bearer {token}"}


@pytest.fixture
def api(monkeypatch, tmp_path):
    app, headers = _fresh_app_with_env(monkeypatch, str(tmp_path / "api_test.db"))
    client = TestClient(app)
    client.headers.update(headers)
    return client


PAYLOAD = {
    "user_id": "auth0|123",
    "name": "Ada Lovelace",
    "nickname": "ada",
    "username": "ada",
    "email": "a@b.com",
    "picture": "https://example.com/ada.png",
    "login_provider": "github",
    "last_login": "2026-01-01T12:00:00+00:00",
    "last_ip": "10.0.0.1",
    "logins_count": 0,
}


def test_health_check_needs_no_token(monkeypatch, tmp_path):
    app, _ = _fresh_app_with_env(monkeypatch, str(tmp_path / "health.db"))
    resp = TestClient(app).get("/")
    assert resp.status_code == 200
    assert resp.json() == {"message": "Healthy"}


def test_requests_without_token_are_rejected(api):
    resp = api.get("/auth-logins", headers={"Authorization": ""})
    assert resp.status_code == 401, resp.text

    resp = api.get("/auth-logins", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401, resp.text


def test_create_and_fetch_record(api):
    resp = api.post("/auth-logins", json=PAYLOAD)
    assert resp.status_code == 201, resp.text
    created = resp.json()
    assert isinstance(created["id"], int)
    assert created["company"] == ""
    assert created["email_verified"] is False

    resp = api.get("/auth-logins/auth0|123")
    assert resp.status_code == 200, resp.text
    assert resp.json()["id"] == created["id"]


def test_create_duplicate_returns_409(api):
    assert api.post("/auth-logins", json=PAYLOAD).status_code == 201

    second = api.post("/auth-logins", json=PAYLOAD)
    assert second.status_code == 409, second.text
    assert second.json()["error"] == "DuplicateKeyError"
    assert "already" in second.json()["message"]


def test_create_with_empty_provider_returns_422(api):
    resp = api.post("/auth-logins", json=dict(PAYLOAD, login_provider=""))
    assert resp.status_code == 422, resp.text


def test_unknown_user_returns_404(api):
    resp = api.get("/auth-logins/auth0|missing")
    assert resp.status_code == 404, resp.text
    assert resp.json()["error"] == "RecordNotFoundError"

    resp = api.post("/auth-logins/auth0|missing/logins", json={"ip": "1.2.3.4"})
    assert resp.status_code == 404, resp.text


def test_record_login_increments_counter(api):
    api.post("/auth-logins", json=PAYLOAD)

    resp = api.post(
        "/auth-logins/auth0|123/logins",
        json={"ip": "1.2.3.4", "timestamp": "2026-02-01T08:00:00+00:00"},
    )
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["logins_count"] == 1
    assert data["last_ip"] == "1.2.3.4"
    assert data["last_login"].startswith("2026-02-01T08:00:00")


def test_patch_updates_fields_and_rejects_null(api):
    api.post("/auth-logins", json=PAYLOAD)

    resp = api.patch("/auth-logins/auth0|123", json={"phone": "+1 555 0100", "phone_verified": True})
    assert resp.status_code == 200, resp.text
    assert resp.json()["phone"] == "+1 555 0100"
    assert resp.json()["phone_verified"] is True

    resp = api.patch("/auth-logins/auth0|123", json={"email": None})
    assert resp.status_code == 422, resp.text
    assert resp.json()["error"] == "ConstraintViolationError"


def test_profile_login_creates_then_counts(api):
    body = {
        "ip": "1.1.1.1",
        "profile": {
            "user_id": "github|42",
            "name": "Grace Hopper",
            "email": "grace@example.com",
            "login_provider": "github",
        },
    }
    first = api.post("/auth-logins/logins", json=body)
    assert first.status_code == 200, first.text
    assert first.json()["logins_count"] == 1

    body["ip"] = "2.2.2.2"
    second = api.post("/auth-logins/logins", json=body)
    assert second.status_code == 200, second.text
    assert second.json()["logins_count"] == 2
    assert second.json()["last_ip"] == "2.2.2.2"
    assert second.json()["id"] == first.json()["id"]

    listing = api.get("/auth-logins")
    assert [r["user_id"] for r in listing.json()] == ["github|42"]


def test_profile_login_keeps_patched_fields(api):
    api.post("/auth-logins", json=PAYLOAD)
    resp = api.patch("/auth-logins/auth0|123", json={"company": "Oxide", "phone_verified": True})
    assert resp.status_code == 200, resp.text

    body = {
        "ip": "3.3.3.3",
        "profile": {
            "user_id": "auth0|123",
            "email": "a@b.com",
            "login_provider": "github",
            "picture": "https://example.com/new.png",
        },
    }
    resp = api.post("/auth-logins/logins", json=body)
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["company"] == "Oxide"
    assert data["phone_verified"] is True
    assert data["name"] == "Ada Lovelace"
    assert data["picture"] == "https://example.com/new.png"
    assert data["logins_count"] == 1
