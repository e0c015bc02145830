"""
Pytest fixtures for CloudGuard tests. Uses a temporary SQLite DB per test and
a mocked webhook dispatcher, so nothing leaves the process.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

USER_EMAIL = "alice@example.com"
OTHER_EMAIL = "bob@example.com"
WEBHOOK_URL = "https://hooks.spike.sh/abc123/push-events"
AUTH = {"X-User-Email": USER_EMAIL}


@pytest.fixture
def db(tmp_path):
    """Fresh Database over a temporary SQLite file, schema created."""
    from cloudguard.database import get_database

    return get_database(tmp_path / "cloudguard.db")


@pytest.fixture
def user(db):
    return db.create_user(USER_EMAIL, "Alice")


@pytest.fixture
def other_user(db):
    return db.create_user(OTHER_EMAIL, "Bob")


@pytest.fixture
def enabled_settings(db, user):
    """Spike.sh integration on, critical and high alerts enabled."""
    return db.upsert_settings(
        user.id,
        {
            "spike_webhook_url": WEBHOOK_URL,
            "spike_enabled": True,
            "spike_alert_on_critical": True,
            "spike_alert_on_high": True,
        },
    )


@pytest.fixture
def dispatcher():
    """WebhookDispatcher stand-in; send() succeeds unless a test says otherwise."""
    from cloudguard.alerts import WebhookDispatcher

    mock = MagicMock(spec=WebhookDispatcher)
    mock.send.return_value = True
    return mock


@pytest.fixture
def pacer():
    from cloudguard.alerts import NoPacer

    return MagicMock(wraps=NoPacer())


@pytest.fixture
def alert_service(dispatcher, pacer):
    from cloudguard.alerts import AlertService

    return AlertService(dispatcher=dispatcher, pacer_factory=lambda: pacer)


@pytest.fixture
def client(db, alert_service):
    """FastAPI TestClient around the temp DB, header identity and mocked dispatcher."""
    from fastapi.testclient import TestClient

    from cloudguard.api_server.auth import HeaderIdentityProvider
    from cloudguard.api_server.server import create_app
    from cloudguard.config import Settings

    app = create_app(
        settings=Settings(),
        db=db,
        identity=HeaderIdentityProvider(),
        alert_service=alert_service,
    )
    return TestClient(app)
