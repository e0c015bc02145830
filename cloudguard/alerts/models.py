"""
Alerting domain types: severities, findings, audit summaries and the wire payload.

Plain dataclasses and enums; no I/O and no ORM coupling.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

ALERT_SOURCE = "CloudGuard Security Dashboard"


class Severity(str, Enum):
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"

    @classmethod
    def parse(cls, value: "str | Severity | None") -> "Severity | None":
        """Case-insensitive lookup; None for unknown labels."""
        if isinstance(value, Severity):
            return value
        try:
            return cls((value or "").strip().upper())
        except ValueError:
            return None


class CloudProvider(str, Enum):
    AWS = "AWS"
    GCP = "GCP"
    AZURE = "AZURE"


# Only these severities ever produce an outbound alert
ALERTABLE_SEVERITIES = (Severity.CRITICAL, Severity.HIGH)


@dataclass(frozen=True)
class Finding:
    """One security issue produced by an audit. Immutable once recorded."""

    severity: str
    title: str
    resource: str
    description: str | None = None
    resource_type: str | None = None
    region: str | None = None
    recommendation: str | None = None


@dataclass(frozen=True)
class AuditSummary:
    """Severity counts for one audit run."""

    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0
    total: int = 0

    def __post_init__(self) -> None:
        for name in ("critical", "high", "medium", "low", "total"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0")


@dataclass(frozen=True)
class AlertSettings:
    """The subset of user settings the alert policy reads."""

    webhook_url: str | None = None
    enabled: bool = False
    alert_on_critical: bool = True
    alert_on_high: bool = False


@dataclass(frozen=True)
class AlertContext:
    """Where a finding or summary came from."""

    cloud_provider: CloudProvider
    account_name: str = ""


@dataclass(frozen=True)
class AlertPayload:
    """Normalized alert sent to the incident webhook; to_dict() is the JSON body."""

    title: str
    message: str
    status: str
    priority: str
    timestamp: str
    source: str = ALERT_SOURCE
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "message": self.message,
            "status": self.status,
            "priority": self.priority,
            "source": self.source,
            "timestamp": self.timestamp,
            "metadata": dict(self.metadata),
        }


@dataclass
class DispatchResult:
    """Outcome counts of a batch dispatch."""

    sent: int = 0
    skipped: int = 0

    def to_dict(self) -> dict[str, int]:
        return {"sent": self.sent, "skipped": self.skipped}
