"""
Pytest tests for GET /api/dashboard.
"""

from __future__ import annotations

from cloudguard.alerts import CloudProvider, Finding
from conftest import AUTH


def test_dashboard_without_accounts(client, user):
    r = client.get("/api/dashboard", headers=AUTH)
    assert r.status_code == 200
    body = r.json()
    assert body["stats"]["accountName"] == "No accounts"
    assert body["stats"]["totalFindings"] == 0
    assert body["findings"] == []
    assert body["accounts"] == []


def test_dashboard_stats_and_history(client, db, user):
    account = db.add_account(user.id, CloudProvider.AWS, "prod", external_id="123456789012")
    db.add_account(user.id, CloudProvider.AWS, "staging")
    for n in range(1, 4):
        db.record_audit(
            account.id,
            CloudProvider.AWS,
            [Finding(severity="HIGH", title=f"issue {i}", resource=f"r{i}") for i in range(n)],
            risk_score=10.0 * n,
            completed_at=2000 + n,
        )

    body = client.get("/api/dashboard", headers=AUTH).json()
    assert body["stats"]["accountName"] == "prod"
    assert body["stats"]["totalFindings"] == 3
    assert body["stats"]["high"] == 3
    assert body["stats"]["riskScore"] == 30.0
    assert body["stats"]["lastScanAt"] == 2003
    assert len(body["findings"]) == 3
    assert [a["completedAt"] for a in body["historicalAudits"]] == [2001, 2002, 2003]
    assert len(body["recentActivity"]) == 6
    assert body["recentActivity"][0]["accountName"] == "prod"
    assert [a["name"] for a in body["accounts"]] == ["prod", "staging"]
    assert body["accounts"][0]["provider"] == "AWS"


def test_dashboard_per_provider(client, db, user):
    gcp = db.add_account(user.id, CloudProvider.GCP, "analytics")
    db.record_audit(gcp.id, CloudProvider.GCP, [Finding(severity="CRITICAL", title="x", resource="y")])
    assert client.get("/api/dashboard", headers=AUTH).json()["accounts"] == []
    body = client.get("/api/dashboard", params={"provider": "GCP"}, headers=AUTH).json()
    assert body["stats"]["critical"] == 1
    assert body["stats"]["accountName"] == "analytics"


def test_dashboard_requires_identity(client):
    assert client.get("/api/dashboard").status_code == 401
