"""
FastAPI router for /spike: Spike.sh incident webhook triggers.

- POST /spike/test: send a fixed INFO alert to a URL before enabling it.
- POST /spike/alert: alert on a single finding, subject to the user's settings.
- POST /spike/audit-alert: summary alert for one audit, plus optional
  per-finding alerts for its critical and high findings.

Disabled integrations and policy skips are reported, not raised. A webhook
that rejects the alert or cannot be reached surfaces as success=false.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request

from cloudguard.alerts import AlertContext, AlertService, DispatchResult, Finding
from cloudguard.alerts.policy import (
    SKIP_CRITICAL_OFF,
    SKIP_DISABLED,
    SKIP_HIGH_OFF,
    integration_ready,
)
from cloudguard.api_server.auth import current_identity, current_user, get_db
from cloudguard.api_server.schemas import (
    AuditAlertRequest,
    AuditAlertResponse,
    DispatchCounts,
    FindingAlertRequest,
    WebhookTestRequest,
)
from cloudguard.cloudguard_logging import get_logger
from cloudguard.core.exceptions import (
    DispatchFailedError,
    IntegrationDisabledError,
    NotFoundError,
    ValidationError,
)
from cloudguard.database import Database, User

logger = get_logger(__name__)

router = APIRouter(prefix="/spike", tags=["spike"])


def get_alert_service(request: Request) -> AlertService:
    return request.app.state.alert_service


def _skip_message(reason: str, severity: str) -> str:
    if reason == SKIP_CRITICAL_OFF:
        return "Alert skipped - Critical alerts are disabled"
    if reason == SKIP_HIGH_OFF:
        return "Alert skipped - High alerts are disabled"
    return f"Alert skipped - {severity.strip().upper()} alerts are not enabled"


@router.post("/test")
def send_test_alert(
    body: WebhookTestRequest,
    email: str = Depends(current_identity),
    alerts: AlertService = Depends(get_alert_service),
) -> dict[str, Any]:
    if not body.webhook_url:
        raise ValidationError("Webhook URL is required")
    if not alerts.send_test_alert(body.webhook_url, email):
        raise DispatchFailedError("Failed to send test alert to Spike.sh")
    logger.info("test_alert_sent", user=email)
    return {"success": True, "message": "Test alert sent successfully"}


@router.post("/alert")
def send_finding_alert(
    body: FindingAlertRequest,
    user: User = Depends(current_user),
    db: Database = Depends(get_db),
    alerts: AlertService = Depends(get_alert_service),
) -> dict[str, Any]:
    settings = db.get_settings_or_defaults(user.id).alert_settings()
    if not integration_ready(settings):
        raise IntegrationDisabledError("Spike.sh integration is not enabled")

    reason = alerts.evaluate_finding(settings, body.severity)
    if reason is not None and reason != SKIP_DISABLED:
        logger.info("finding_alert_skipped", user_id=user.id, severity=body.severity, reason=reason)
        return {"success": True, "sent": False, "message": _skip_message(reason, body.severity)}

    finding = Finding(
        severity=body.severity,
        title=body.title,
        resource=body.resource,
        description=body.description,
        resource_type=body.resource_type,
        region=body.region,
        recommendation=body.recommendation,
    )
    context = AlertContext(cloud_provider=body.cloud_provider, account_name=body.account_name or "")
    if not alerts.send_finding_alert(settings, finding, context):
        raise DispatchFailedError("Failed to send alert to Spike.sh")
    return {"success": True, "sent": True, "message": "Alert sent to Spike.sh successfully"}


@router.post("/audit-alert")
def send_audit_alert(
    body: AuditAlertRequest,
    user: User = Depends(current_user),
    db: Database = Depends(get_db),
    alerts: AlertService = Depends(get_alert_service),
) -> dict[str, Any]:
    if body.audit_id is None or body.cloud_provider is None:
        raise ValidationError("auditId and cloudProvider are required")

    audit = db.get_audit(user.id, body.cloud_provider, body.audit_id)
    if audit is None:
        raise NotFoundError("Audit not found")

    settings = db.get_settings_or_defaults(user.id).alert_settings()
    context = AlertContext(cloud_provider=body.cloud_provider, account_name=audit.account_name)

    summary_sent = alerts.send_summary_alert(settings, audit.summary, context)

    individual = DispatchResult()
    if body.send_individual_alerts and audit.findings:
        individual = alerts.batch_dispatch(
            settings,
            [f.to_finding() for f in audit.findings],
            context,
        )

    logger.info(
        "audit_alerts_processed",
        user_id=user.id,
        audit_id=audit.id,
        cloud_provider=body.cloud_provider.value,
        summary_sent=summary_sent,
        individual_sent=individual.sent,
        individual_skipped=individual.skipped,
    )
    return AuditAlertResponse(
        summary_alert_sent=summary_sent,
        individual_alerts=DispatchCounts(sent=individual.sent, skipped=individual.skipped),
        message=f"Alerts processed for {audit.account_name}",
    ).dump()
