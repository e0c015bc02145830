"""
Pytest tests for GET/POST /api/settings and the auth error paths.
"""

from __future__ import annotations

from conftest import AUTH, WEBHOOK_URL


def test_settings_requires_identity(client):
    r = client.get("/api/settings")
    assert r.status_code == 401
    assert r.json() == {"success": False, "error": "Unauthorized"}


def test_settings_unknown_user(client, db):
    r = client.get("/api/settings", headers={"X-User-Email": "ghost@example.com"})
    assert r.status_code == 404
    assert r.json()["error"] == "User not found"


def test_get_settings_defaults(client, user):
    r = client.get("/api/settings", headers=AUTH)
    assert r.status_code == 200
    assert r.json()["settings"] == {
        "spikeWebhookUrl": "",
        "spikeEnabled": False,
        "spikeAlertOnCritical": True,
        "spikeAlertOnHigh": False,
        "slackWebhookUrl": "",
        "slackEnabled": False,
        "emailAlerts": True,
        "alertThreshold": "CRITICAL",
    }


def test_post_settings_upsert_twice(client, user, db):
    """Posting the same body twice leaves the same settings."""
    body = {"spikeWebhookUrl": WEBHOOK_URL, "spikeEnabled": True, "spikeAlertOnHigh": True}
    r1 = client.post("/api/settings", json=body, headers=AUTH)
    r2 = client.post("/api/settings", json=body, headers=AUTH)
    assert r1.status_code == r2.status_code == 200
    assert r1.json()["settings"] == r2.json()["settings"]
    assert r2.json()["message"] == "Settings saved successfully"
    stored = db.get_settings(user.id)
    assert stored.spike_webhook_url == WEBHOOK_URL
    assert stored.spike_alert_on_high is True


def test_post_settings_partial(client, user):
    client.post("/api/settings", json={"spikeWebhookUrl": WEBHOOK_URL, "spikeEnabled": True}, headers=AUTH)
    r = client.post("/api/settings", json={"alertThreshold": "high"}, headers=AUTH)
    settings = r.json()["settings"]
    assert settings["spikeWebhookUrl"] == WEBHOOK_URL
    assert settings["spikeEnabled"] is True
    assert settings["alertThreshold"] == "HIGH"


def test_post_settings_rejects_bad_url(client, user):
    r = client.post("/api/settings", json={"spikeWebhookUrl": "ftp://example.com/x"}, headers=AUTH)
    assert r.status_code == 400
    assert r.json()["success"] is False
    assert r.json()["error"] == "Invalid request body"


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}
    assert r.headers["X-Request-ID"]


def test_request_id_is_echoed(client):
    r = client.get("/health", headers={"X-Request-ID": "abc-123"})
    assert r.headers["X-Request-ID"] == "abc-123"


def test_unhandled_error_keeps_request_id(db, alert_service):
    """A route that blows up still answers with the JSON error body and the caller's request id."""
    from fastapi.testclient import TestClient

    from cloudguard.api_server.auth import HeaderIdentityProvider
    from cloudguard.api_server.server import create_app
    from cloudguard.config import Settings

    app = create_app(Settings(), db, HeaderIdentityProvider(), alert_service)

    @app.get("/boom")
    def boom():
        raise RuntimeError("kaboom")

    r = TestClient(app).get("/boom", headers={"X-Request-ID": "req-500"})
    assert r.status_code == 500
    assert r.json() == {"success": False, "error": "Internal server error"}
    assert r.headers["X-Request-ID"] == "req-500"
