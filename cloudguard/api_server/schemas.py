"""
Request and response bodies for the dashboard API.

Field names are snake_case in Python and camelCase on the wire.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from cloudguard.alerts.models import CloudProvider
from cloudguard.database import AuditRecord, CloudAccount, FindingRecord, UserSettings


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def dump(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


def _check_webhook_url(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    if value and not value.startswith(("http://", "https://")):
        raise ValueError("webhook URL must start with http:// or https://")
    return value


# -----------------------------------------------------------------------------
# Settings
# -----------------------------------------------------------------------------


class SettingsUpdate(CamelModel):
    """POST /api/settings body. Omitted or null fields keep their stored value."""

    spike_webhook_url: str | None = Field(None, max_length=2048)
    spike_enabled: bool | None = None
    spike_alert_on_critical: bool | None = None
    spike_alert_on_high: bool | None = None
    slack_webhook_url: str | None = Field(None, max_length=2048)
    slack_enabled: bool | None = None
    email_alerts: bool | None = None
    alert_threshold: Literal["CRITICAL", "HIGH", "MEDIUM", "LOW"] | None = None

    @field_validator("spike_webhook_url", "slack_webhook_url")
    @classmethod
    def _webhook_url(cls, value: str | None) -> str | None:
        return _check_webhook_url(value)

    @field_validator("alert_threshold", mode="before")
    @classmethod
    def _upper_threshold(cls, value: Any) -> Any:
        return value.strip().upper() if isinstance(value, str) else value


class SettingsOut(CamelModel):
    spike_webhook_url: str = ""
    spike_enabled: bool
    spike_alert_on_critical: bool
    spike_alert_on_high: bool
    slack_webhook_url: str = ""
    slack_enabled: bool
    email_alerts: bool
    alert_threshold: str

    @classmethod
    def from_settings(cls, s: UserSettings) -> "SettingsOut":
        return cls(
            spike_webhook_url=s.spike_webhook_url or "",
            spike_enabled=s.spike_enabled,
            spike_alert_on_critical=s.spike_alert_on_critical,
            spike_alert_on_high=s.spike_alert_on_high,
            slack_webhook_url=s.slack_webhook_url or "",
            slack_enabled=s.slack_enabled,
            email_alerts=s.email_alerts,
            alert_threshold=s.alert_threshold,
        )


# -----------------------------------------------------------------------------
# Spike.sh alert triggers
# -----------------------------------------------------------------------------


class WebhookTestRequest(CamelModel):
    webhook_url: str | None = None

    @field_validator("webhook_url")
    @classmethod
    def _webhook_url(cls, value: str | None) -> str | None:
        return _check_webhook_url(value)


class FindingAlertRequest(CamelModel):
    """POST /api/spike/alert body: one finding plus where it came from."""

    severity: str = Field(..., min_length=1, max_length=16)
    title: str = Field(..., min_length=1, max_length=512)
    description: str | None = None
    resource: str = Field(..., min_length=1)
    resource_type: str | None = None
    region: str | None = None
    recommendation: str | None = None
    cloud_provider: CloudProvider
    account_name: str | None = None


class AuditAlertRequest(CamelModel):
    audit_id: int | None = None
    cloud_provider: CloudProvider | None = None
    send_individual_alerts: bool = False


class DispatchCounts(CamelModel):
    sent: int = 0
    skipped: int = 0


class AuditAlertResponse(CamelModel):
    success: bool = True
    summary_alert_sent: bool
    individual_alerts: DispatchCounts
    message: str


# -----------------------------------------------------------------------------
# Dashboard
# -----------------------------------------------------------------------------


class FindingOut(CamelModel):
    id: int
    audit_id: int
    severity: str
    title: str
    description: str | None = None
    resource: str
    resource_type: str | None = None
    region: str | None = None
    recommendation: str | None = None
    status: str
    created_at: int | None = None
    account_name: str | None = None

    @classmethod
    def from_record(cls, f: FindingRecord) -> "FindingOut":
        return cls(
            id=f.id,
            audit_id=f.audit_id,
            severity=f.severity,
            title=f.title,
            description=f.description,
            resource=f.resource,
            resource_type=f.resource_type,
            region=f.region,
            recommendation=f.recommendation,
            status=f.status,
            created_at=f.created_at,
            account_name=f.account_name,
        )


class AuditHistoryOut(CamelModel):
    id: int
    critical: int
    high: int
    medium: int
    low: int
    total_findings: int
    risk_score: float
    completed_at: int | None = None
    account_name: str

    @classmethod
    def from_record(cls, a: AuditRecord) -> "AuditHistoryOut":
        return cls(
            id=a.id,
            critical=a.summary.critical,
            high=a.summary.high,
            medium=a.summary.medium,
            low=a.summary.low,
            total_findings=a.summary.total,
            risk_score=a.risk_score,
            completed_at=a.completed_at,
            account_name=a.account_name,
        )


class AccountOut(CamelModel):
    id: int
    provider: CloudProvider
    name: str
    external_id: str | None = None
    created_at: int | None = None

    @classmethod
    def from_account(cls, a: CloudAccount) -> "AccountOut":
        return cls(id=a.id, provider=a.provider, name=a.name, external_id=a.external_id, created_at=a.created_at)


class DashboardStats(CamelModel):
    total_findings: int = 0
    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0
    risk_score: float = 0.0
    account_name: str = "No accounts"
    last_scan_at: int | None = None


class DashboardResponse(CamelModel):
    stats: DashboardStats
    findings: list[FindingOut] = Field(default_factory=list)
    historical_audits: list[AuditHistoryOut] = Field(default_factory=list)
    recent_activity: list[FindingOut] = Field(default_factory=list)
    accounts: list[AccountOut] = Field(default_factory=list)
