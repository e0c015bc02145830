"""
Alerting: severity policy, webhook payloads, dispatch and pacing.

Decides which findings and audit summaries become alerts, builds the JSON
payload, and POSTs it to the user's incident webhook.
"""

from cloudguard.alerts.dispatcher import WebhookDispatcher
from cloudguard.alerts.engine import AlertService
from cloudguard.alerts.models import (
    AlertContext,
    AlertPayload,
    AlertSettings,
    AuditSummary,
    CloudProvider,
    DispatchResult,
    Finding,
    Severity,
)
from cloudguard.alerts.pacing import (
    FixedDelayPacer,
    NoPacer,
    Pacer,
    TokenBucketPacer,
    pacer_factory,
    pacer_from_settings,
)
from cloudguard.alerts.policy import (
    build_finding_alert,
    build_summary_alert,
    build_test_alert,
    priority_for,
    should_alert,
    status_for,
)

__all__ = [
    "AlertContext",
    "AlertPayload",
    "AlertService",
    "AlertSettings",
    "AuditSummary",
    "CloudProvider",
    "DispatchResult",
    "Finding",
    "FixedDelayPacer",
    "NoPacer",
    "Pacer",
    "Severity",
    "TokenBucketPacer",
    "WebhookDispatcher",
    "build_finding_alert",
    "build_summary_alert",
    "build_test_alert",
    "pacer_factory",
    "pacer_from_settings",
    "priority_for",
    "should_alert",
    "status_for",
]
