"""
Domain models for database entities.

Users, alert settings, cloud accounts, audits and findings as returned by the
persistence layer. No ORM coupling, so callers never hold a live session.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from cloudguard.alerts.models import AlertSettings, AuditSummary, CloudProvider, Finding

# Values used when a user has no settings row yet, and as create-time defaults
SETTINGS_DEFAULTS: dict[str, Any] = {
    "spike_webhook_url": None,
    "spike_enabled": False,
    "spike_alert_on_critical": True,
    "spike_alert_on_high": False,
    "slack_webhook_url": None,
    "slack_enabled": False,
    "email_alerts": True,
    "alert_threshold": "CRITICAL",
}

SETTINGS_FIELDS = tuple(SETTINGS_DEFAULTS)


@dataclass
class User:
    id: int
    email: str
    name: str | None = None
    created_at: int | None = None


@dataclass
class UserSettings:
    """Per-user alert configuration: the Spike.sh webhook plus Slack and email channels."""

    user_id: int | None
    spike_webhook_url: str | None = None
    spike_enabled: bool = False
    spike_alert_on_critical: bool = True
    spike_alert_on_high: bool = False
    slack_webhook_url: str | None = None
    slack_enabled: bool = False
    email_alerts: bool = True
    alert_threshold: str = "CRITICAL"
    updated_at: int | None = None

    @classmethod
    def defaults(cls, user_id: int | None = None) -> "UserSettings":
        return cls(user_id=user_id, **SETTINGS_DEFAULTS)

    def alert_settings(self) -> AlertSettings:
        """The webhook-integration view read by the alert policy."""
        return AlertSettings(
            webhook_url=self.spike_webhook_url,
            enabled=self.spike_enabled,
            alert_on_critical=self.spike_alert_on_critical,
            alert_on_high=self.spike_alert_on_high,
        )


@dataclass
class CloudAccount:
    """An AWS account, GCP project or Azure subscription connected by a user."""

    id: int
    provider: CloudProvider
    user_id: int
    name: str
    external_id: str | None = None
    created_at: int | None = None


@dataclass
class FindingRecord:
    """Stored finding row (one security issue within an audit)."""

    id: int
    audit_id: int
    severity: str
    title: str
    resource: str
    description: str | None = None
    resource_type: str | None = None
    region: str | None = None
    recommendation: str | None = None
    status: str = "open"
    created_at: int | None = None
    account_name: str | None = None
    """Set on cross-audit reads (recent activity); None otherwise."""

    def to_finding(self) -> Finding:
        return Finding(
            severity=self.severity,
            title=self.title,
            resource=self.resource,
            description=self.description,
            resource_type=self.resource_type,
            region=self.region,
            recommendation=self.recommendation,
        )


@dataclass
class AuditRecord:
    """One audit run of a cloud account with its severity counts."""

    id: int
    provider: CloudProvider
    account_id: int
    account_name: str
    status: str
    summary: AuditSummary
    risk_score: float = 0.0
    created_at: int | None = None
    completed_at: int | None = None
    findings: list[FindingRecord] = field(default_factory=list)
