"""
Alert service: policy gate, payload build, dispatch, pacing.

Runs inside the request that triggered it. Batch sends are sequential and
paced between consecutive calls by a pacer built for that batch alone; a
failed send is counted as skipped and the batch carries on.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable

from cloudguard.alerts.dispatcher import WebhookDispatcher
from cloudguard.alerts.models import (
    AlertContext,
    AlertSettings,
    AuditSummary,
    DispatchResult,
    Finding,
)
from cloudguard.alerts.pacing import NoPacer, Pacer
from cloudguard.alerts.policy import (
    build_finding_alert,
    build_summary_alert,
    build_test_alert,
    integration_ready,
    is_alertable,
    skip_reason,
)
from cloudguard.cloudguard_logging import get_logger

logger = get_logger(__name__)


@dataclass
class AlertService:
    """Entry point the API uses to send finding, summary, batch and test alerts."""

    dispatcher: WebhookDispatcher
    pacer_factory: Callable[[], Pacer] = NoPacer

    def evaluate_finding(self, settings: AlertSettings | None, severity: str) -> str | None:
        """Skip reason for a finding of this severity, or None if it would be sent."""
        return skip_reason(settings, severity)

    def send_finding_alert(
        self,
        settings: AlertSettings | None,
        finding: Finding,
        context: AlertContext,
    ) -> bool:
        reason = skip_reason(settings, finding.severity)
        if reason is not None:
            logger.debug(
                "finding_alert_skipped",
                reason=reason,
                severity=finding.severity,
                cloud_provider=context.cloud_provider.value,
            )
            return False
        payload = build_finding_alert(finding, context)
        sent = self.dispatcher.send(settings.webhook_url, payload)
        if sent:
            logger.info(
                "finding_alert_sent",
                severity=finding.severity,
                title=finding.title,
                cloud_provider=context.cloud_provider.value,
            )
        return sent

    def send_summary_alert(
        self,
        settings: AlertSettings | None,
        summary: AuditSummary,
        context: AlertContext,
    ) -> bool:
        if not integration_ready(settings):
            logger.debug("summary_alert_skipped", reason="disabled")
            return False
        payload = build_summary_alert(summary, context)
        if payload is None:
            logger.debug("summary_alert_skipped", reason="no_critical_or_high")
            return False
        sent = self.dispatcher.send(settings.webhook_url, payload)
        if sent:
            logger.info(
                "summary_alert_sent",
                account_name=context.account_name,
                cloud_provider=context.cloud_provider.value,
                critical=summary.critical,
                high=summary.high,
            )
        return sent

    def batch_dispatch(
        self,
        settings: AlertSettings | None,
        findings: Iterable[Finding],
        context: AlertContext,
    ) -> DispatchResult:
        """
        Send one alert per CRITICAL/HIGH finding, in order.

        MEDIUM/LOW findings are dropped before dispatch and not counted, so
        sent + skipped always equals the number of alertable findings.
        """
        result = DispatchResult()
        pacer = self.pacer_factory()
        alertable = [f for f in findings if is_alertable(f.severity)]
        for i, finding in enumerate(alertable):
            if i > 0:
                pacer.wait()
            if self.send_finding_alert(settings, finding, context):
                result.sent += 1
            else:
                result.skipped += 1
        logger.info(
            "batch_dispatch_done",
            cloud_provider=context.cloud_provider.value,
            account_name=context.account_name,
            sent=result.sent,
            skipped=result.skipped,
        )
        return result

    def send_test_alert(self, webhook_url: str, user: str) -> bool:
        return self.dispatcher.send(webhook_url, build_test_alert(user))
