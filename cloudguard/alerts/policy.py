"""
Alert policy: whether to alert for a severity, and what the payload says.

Pure functions over settings, findings and summaries. Nothing here performs
I/O or raises on an unrecognised severity label; unknown labels fall back to
P3 / WARNING and are never alerted on.
"""

from __future__ import annotations

from datetime import datetime, timezone

from cloudguard.alerts.models import (
    ALERTABLE_SEVERITIES,
    AlertContext,
    AlertPayload,
    AlertSettings,
    AuditSummary,
    Finding,
    Severity,
)

PRIORITY_FROM_SEVERITY = {
    Severity.CRITICAL: "P1",
    Severity.HIGH: "P2",
    Severity.MEDIUM: "P3",
    Severity.LOW: "P4",
}
DEFAULT_PRIORITY = "P3"

STATUS_CRITICAL = "CRITICAL"
STATUS_WARNING = "WARNING"
STATUS_INFO = "INFO"

ALERT_TYPE_FINDING = "finding"
ALERT_TYPE_SUMMARY = "audit_summary"
ALERT_TYPE_TEST = "test"

TEST_ALERT_TITLE = "CloudGuard Test Alert"
TEST_ALERT_MESSAGE = (
    "This is a test alert from CloudGuard Security Dashboard. "
    "If you see this, your Spike.sh integration is working correctly!"
)
TEST_ALERT_PRIORITY = "LOW"

# Reasons returned by skip_reason(); the API layer turns these into messages
SKIP_DISABLED = "disabled"
SKIP_CRITICAL_OFF = "critical_disabled"
SKIP_HIGH_OFF = "high_disabled"
SKIP_SEVERITY_NOT_ALERTABLE = "severity_not_alertable"


def iso_timestamp(now: datetime | None = None) -> str:
    """UTC ISO-8601 with millisecond precision and a Z suffix."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def is_alertable(severity: str | Severity | None) -> bool:
    return Severity.parse(severity) in ALERTABLE_SEVERITIES


def integration_ready(settings: AlertSettings | None) -> bool:
    """True when the webhook integration is switched on and has a URL."""
    return bool(settings and settings.enabled and (settings.webhook_url or "").strip())


def skip_reason(settings: AlertSettings | None, severity: str | Severity | None) -> str | None:
    """
    Return why an alert for this severity would be skipped, or None if it should be sent.

    MEDIUM, LOW and unknown severities are always skipped; there is no setting
    that turns them on.
    """
    if not integration_ready(settings):
        return SKIP_DISABLED
    sev = Severity.parse(severity)
    if sev is Severity.CRITICAL and not settings.alert_on_critical:
        return SKIP_CRITICAL_OFF
    if sev is Severity.HIGH and not settings.alert_on_high:
        return SKIP_HIGH_OFF
    if sev not in ALERTABLE_SEVERITIES:
        return SKIP_SEVERITY_NOT_ALERTABLE
    return None


def should_alert(settings: AlertSettings | None, severity: str | Severity | None) -> bool:
    return skip_reason(settings, severity) is None


def priority_for(severity: str | Severity | None) -> str:
    """CRITICAL→P1, HIGH→P2, MEDIUM→P3, LOW→P4; anything else→P3."""
    sev = Severity.parse(severity)
    return PRIORITY_FROM_SEVERITY.get(sev, DEFAULT_PRIORITY) if sev else DEFAULT_PRIORITY


def status_for(severity: str | Severity | None) -> str:
    return STATUS_CRITICAL if Severity.parse(severity) is Severity.CRITICAL else STATUS_WARNING


def _severity_label(severity: str | Severity | None) -> str:
    sev = Severity.parse(severity)
    if sev:
        return sev.value
    return (str(severity or "")).strip().upper()


def build_finding_alert(
    finding: Finding,
    context: AlertContext,
    now: datetime | None = None,
) -> AlertPayload:
    """Payload for a single finding: title carries provider and severity, message the description."""
    label = _severity_label(finding.severity)
    title = f"[{context.cloud_provider.value}] {label}: {finding.title}"
    return AlertPayload(
        title=title,
        message=finding.description or finding.title,
        status=status_for(finding.severity),
        priority=priority_for(finding.severity),
        timestamp=iso_timestamp(now),
        metadata={
            "type": ALERT_TYPE_FINDING,
            "severity": finding.severity,
            "cloudProvider": context.cloud_provider.value,
            "resource": finding.resource,
            "resourceType": finding.resource_type,
            "region": finding.region,
            "accountName": context.account_name,
            "recommendation": finding.recommendation,
        },
    )


def build_summary_alert(
    summary: AuditSummary,
    context: AlertContext,
    now: datetime | None = None,
) -> AlertPayload | None:
    """
    Payload for a completed audit, or None when it has no critical or high findings.

    Any critical finding makes the whole summary CRITICAL/P1; otherwise WARNING/P2.
    """
    if summary.critical == 0 and summary.high == 0:
        return None
    has_critical = summary.critical > 0
    provider = context.cloud_provider.value
    return AlertPayload(
        title=(
            f"[{provider}] Audit Complete - "
            f"{summary.critical} Critical, {summary.high} High findings"
        ),
        message=(
            f"Security audit completed for {context.account_name}. "
            f"Found {summary.total} total findings: {summary.critical} Critical, "
            f"{summary.high} High, {summary.medium} Medium, {summary.low} Low."
        ),
        status=STATUS_CRITICAL if has_critical else STATUS_WARNING,
        priority=PRIORITY_FROM_SEVERITY[Severity.CRITICAL if has_critical else Severity.HIGH],
        timestamp=iso_timestamp(now),
        metadata={
            "type": ALERT_TYPE_SUMMARY,
            "cloudProvider": provider,
            "accountName": context.account_name,
            "critical": summary.critical,
            "high": summary.high,
            "medium": summary.medium,
            "low": summary.low,
            "total": summary.total,
        },
    )


def build_test_alert(user: str, now: datetime | None = None) -> AlertPayload:
    """Fixed INFO/LOW payload used to check a webhook URL before enabling it."""
    return AlertPayload(
        title=TEST_ALERT_TITLE,
        message=TEST_ALERT_MESSAGE,
        status=STATUS_INFO,
        priority=TEST_ALERT_PRIORITY,
        timestamp=iso_timestamp(now),
        metadata={"type": ALERT_TYPE_TEST, "user": user},
    )
