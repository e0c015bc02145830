"""
Pytest tests for the alert policy: severity gating, priority/status mapping,
and finding / summary / test payload construction.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from cloudguard.alerts import (
    AlertContext,
    AlertSettings,
    AuditSummary,
    CloudProvider,
    Finding,
    build_finding_alert,
    build_summary_alert,
    build_test_alert,
    priority_for,
    should_alert,
    status_for,
)
from cloudguard.alerts.policy import (
    SKIP_CRITICAL_OFF,
    SKIP_DISABLED,
    SKIP_HIGH_OFF,
    SKIP_SEVERITY_NOT_ALERTABLE,
    iso_timestamp,
    skip_reason,
)

URL = "https://hooks.example.com/x"
ALL_ON = AlertSettings(webhook_url=URL, enabled=True, alert_on_critical=True, alert_on_high=True)
NOW = datetime(2026, 3, 1, 12, 30, 0, tzinfo=timezone.utc)


# --- should_alert ---


@pytest.mark.parametrize("severity", ["MEDIUM", "LOW", "medium", "low"])
@pytest.mark.parametrize(
    "settings",
    [
        None,
        ALL_ON,
        AlertSettings(webhook_url=URL, enabled=True, alert_on_critical=False, alert_on_high=False),
        AlertSettings(webhook_url=None, enabled=False),
    ],
)
def test_medium_and_low_never_alert(settings, severity):
    """MEDIUM/LOW are skipped whatever the settings say."""
    assert should_alert(settings, severity) is False


def test_critical_gating():
    """CRITICAL alerts unless the flag is off, the integration is disabled, or the URL is missing."""
    assert should_alert(ALL_ON, "CRITICAL") is True
    assert should_alert(ALL_ON, "critical") is True
    assert should_alert(AlertSettings(URL, True, alert_on_critical=False, alert_on_high=True), "CRITICAL") is False
    assert should_alert(AlertSettings(URL, False, True, True), "CRITICAL") is False
    assert should_alert(AlertSettings(None, True, True, True), "CRITICAL") is False
    assert should_alert(AlertSettings("   ", True, True, True), "CRITICAL") is False
    assert should_alert(None, "CRITICAL") is False


def test_high_gating():
    """HIGH follows alert_on_high independently of alert_on_critical."""
    assert should_alert(ALL_ON, "HIGH") is True
    assert should_alert(AlertSettings(URL, True, alert_on_critical=True, alert_on_high=False), "HIGH") is False
    assert should_alert(AlertSettings(URL, True, alert_on_critical=False, alert_on_high=True), "HIGH") is True


def test_unknown_severity_is_skipped_without_raising():
    assert should_alert(ALL_ON, "SEVERE") is False
    assert should_alert(ALL_ON, "") is False
    assert should_alert(ALL_ON, None) is False


def test_skip_reasons():
    assert skip_reason(None, "CRITICAL") == SKIP_DISABLED
    assert skip_reason(AlertSettings(URL, True, False, True), "CRITICAL") == SKIP_CRITICAL_OFF
    assert skip_reason(AlertSettings(URL, True, True, False), "HIGH") == SKIP_HIGH_OFF
    assert skip_reason(ALL_ON, "LOW") == SKIP_SEVERITY_NOT_ALERTABLE
    assert skip_reason(ALL_ON, "HIGH") is None


# --- priority / status ---


@pytest.mark.parametrize(
    "severity,expected",
    [
        ("CRITICAL", "P1"),
        ("HIGH", "P2"),
        ("MEDIUM", "P3"),
        ("LOW", "P4"),
        ("critical", "P1"),
        ("High", "P2"),
        ("low ", "P4"),
        ("INFO", "P3"),
        ("", "P3"),
        (None, "P3"),
    ],
)
def test_priority_for(severity, expected):
    assert priority_for(severity) == expected


@pytest.mark.parametrize(
    "severity,expected",
    [("CRITICAL", "CRITICAL"), ("critical", "CRITICAL"), ("HIGH", "WARNING"), ("LOW", "WARNING"), ("bogus", "WARNING")],
)
def test_status_for(severity, expected):
    assert status_for(severity) == expected


# --- payloads ---


def test_build_finding_alert():
    """Title carries provider and upper-cased severity; metadata carries resource identity."""
    finding = Finding(
        severity="critical",
        title="S3 bucket is public",
        resource="s3://prod-logs",
        description="Bucket ACL grants AllUsers READ.",
        resource_type="AWS::S3::Bucket",
        region="eu-west-1",
        recommendation="Enable S3 Block Public Access.",
    )
    payload = build_finding_alert(finding, AlertContext(CloudProvider.AWS, "prod"), now=NOW)
    assert payload.title == "[AWS] CRITICAL: S3 bucket is public"
    assert payload.message == "Bucket ACL grants AllUsers READ."
    assert payload.status == "CRITICAL"
    assert payload.priority == "P1"
    assert payload.source == "CloudGuard Security Dashboard"
    assert payload.timestamp == "2026-03-01T12:30:00.000Z"
    assert payload.metadata == {
        "type": "finding",
        "severity": "critical",
        "cloudProvider": "AWS",
        "resource": "s3://prod-logs",
        "resourceType": "AWS::S3::Bucket",
        "region": "eu-west-1",
        "accountName": "prod",
        "recommendation": "Enable S3 Block Public Access.",
    }


def test_build_finding_alert_message_falls_back_to_title():
    finding = Finding(severity="HIGH", title="Open SSH port", resource="sg-123")
    payload = build_finding_alert(finding, AlertContext(CloudProvider.GCP, "proj"), now=NOW)
    assert payload.message == "Open SSH port"
    assert payload.status == "WARNING"
    assert payload.priority == "P2"
    assert payload.to_dict()["metadata"]["region"] is None


def test_summary_without_critical_or_high_is_none():
    summary = AuditSummary(critical=0, high=0, medium=5, low=2, total=7)
    assert build_summary_alert(summary, AlertContext(CloudProvider.AWS, "prod")) is None


def test_summary_with_critical():
    summary = AuditSummary(critical=1, high=0, medium=0, low=0, total=1)
    payload = build_summary_alert(summary, AlertContext(CloudProvider.AWS, "prod"), now=NOW)
    assert payload is not None
    assert payload.status == "CRITICAL"
    assert payload.priority == "P1"
    assert payload.title == "[AWS] Audit Complete - 1 Critical, 0 High findings"
    assert payload.message == (
        "Security audit completed for prod. Found 1 total findings: "
        "1 Critical, 0 High, 0 Medium, 0 Low."
    )
    assert payload.metadata["type"] == "audit_summary"
    assert payload.metadata["total"] == 1


def test_summary_high_only_is_warning():
    summary = AuditSummary(critical=0, high=3, medium=1, low=0, total=4)
    payload = build_summary_alert(summary, AlertContext(CloudProvider.AZURE, "sub-1"), now=NOW)
    assert payload.status == "WARNING"
    assert payload.priority == "P2"
    assert payload.metadata == {
        "type": "audit_summary",
        "cloudProvider": "AZURE",
        "accountName": "sub-1",
        "critical": 0,
        "high": 3,
        "medium": 1,
        "low": 0,
        "total": 4,
    }


def test_audit_summary_rejects_negative_counts():
    with pytest.raises(ValueError, match="critical"):
        AuditSummary(critical=-1)


def test_build_test_alert():
    payload = build_test_alert("alice@example.com", now=NOW).to_dict()
    assert payload["status"] == "INFO"
    assert payload["priority"] == "LOW"
    assert payload["title"] == "CloudGuard Test Alert"
    assert payload["metadata"] == {"type": "test", "user": "alice@example.com"}
    assert set(payload) == {"title", "message", "status", "priority", "source", "timestamp", "metadata"}


def test_iso_timestamp_naive_is_utc():
    assert iso_timestamp(datetime(2026, 1, 2, 3, 4, 5)) == "2026-01-02T03:04:05.000Z"
    assert iso_timestamp().endswith("Z")
