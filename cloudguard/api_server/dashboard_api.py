"""
FastAPI router for GET /dashboard: security overview for the caller's first account.

Stats come from the account's latest audit; history is the last completed
audits in chronological order; recent activity is the newest findings across
all of the account's audits.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query

from cloudguard.alerts.models import CloudProvider
from cloudguard.api_server.auth import current_user, get_db
from cloudguard.api_server.schemas import (
    AccountOut,
    AuditHistoryOut,
    DashboardResponse,
    DashboardStats,
    FindingOut,
)
from cloudguard.database import Database, User

router = APIRouter(prefix="/dashboard", tags=["dashboard"])

HISTORY_AUDITS = 7
RECENT_FINDINGS = 10


@router.get("")
def get_dashboard(
    provider: CloudProvider = Query(CloudProvider.AWS),
    user: User = Depends(current_user),
    db: Database = Depends(get_db),
) -> dict[str, Any]:
    accounts = db.list_accounts(user.id, provider)
    if not accounts:
        return DashboardResponse(stats=DashboardStats()).dump()

    first = accounts[0]
    latest = db.get_latest_audit(first.id, provider)
    history = db.get_audit_history(first.id, provider, limit=HISTORY_AUDITS)
    recent = db.get_recent_findings(first.id, provider, limit=RECENT_FINDINGS)

    stats = DashboardStats()
    if latest is not None:
        stats = DashboardStats(
            total_findings=latest.summary.total,
            critical=latest.summary.critical,
            high=latest.summary.high,
            medium=latest.summary.medium,
            low=latest.summary.low,
            risk_score=latest.risk_score,
            account_name=latest.account_name,
            last_scan_at=latest.completed_at,
        )

    return DashboardResponse(
        stats=stats,
        findings=[FindingOut.from_record(f) for f in (latest.findings if latest else [])],
        historical_audits=[AuditHistoryOut.from_record(a) for a in reversed(history)],
        recent_activity=[FindingOut.from_record(f) for f in recent],
        accounts=[AccountOut.from_account(a) for a in accounts],
    ).dump()
