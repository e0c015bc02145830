"""
SQLAlchemy tables.

Users and their alert settings, plus one owner/audit/finding table triple per
cloud provider. Each provider's audits join to their owner through a
provider-specific foreign key: aws_audits.account_id, gcp_audits.project_id,
azure_audits.subscription_id.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Column, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import declarative_base

from cloudguard.alerts.models import CloudProvider

Base = declarative_base()


class UserRow(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(320), unique=True, nullable=False, index=True)
    name = Column(String(256), nullable=True)
    created_at = Column(Integer, nullable=True)  # Unix


class UserSettingsRow(Base):
    """One row per user; upserted by the settings API, never deleted."""

    __tablename__ = "user_settings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    spike_webhook_url = Column(String(2048), nullable=True)
    spike_enabled = Column(Boolean, nullable=False, default=False)
    spike_alert_on_critical = Column(Boolean, nullable=False, default=True)
    spike_alert_on_high = Column(Boolean, nullable=False, default=False)
    slack_webhook_url = Column(String(2048), nullable=True)
    slack_enabled = Column(Boolean, nullable=False, default=False)
    email_alerts = Column(Boolean, nullable=False, default=True)
    alert_threshold = Column(String(16), nullable=False, default="CRITICAL")
    created_at = Column(Integer, nullable=True)
    updated_at = Column(Integer, nullable=True)


# -----------------------------------------------------------------------------
# Shared columns for the per-provider tables
# -----------------------------------------------------------------------------


class _OwnerColumns:
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(256), nullable=False)
    external_id = Column(String(256), nullable=True)  # AWS account number, GCP project id, Azure subscription id
    created_at = Column(Integer, nullable=True)


class _AuditColumns:
    id = Column(Integer, primary_key=True, autoincrement=True)
    status = Column(String(32), nullable=False, default="completed", index=True)
    critical = Column(Integer, nullable=False, default=0)
    high = Column(Integer, nullable=False, default=0)
    medium = Column(Integer, nullable=False, default=0)
    low = Column(Integer, nullable=False, default=0)
    total_findings = Column(Integer, nullable=False, default=0)
    risk_score = Column(Float, nullable=False, default=0.0)
    created_at = Column(Integer, nullable=False, index=True)
    completed_at = Column(Integer, nullable=True, index=True)


class _FindingColumns:
    id = Column(Integer, primary_key=True, autoincrement=True)
    severity = Column(String(16), nullable=False, index=True)
    title = Column(String(512), nullable=False)
    description = Column(Text, nullable=True)
    resource = Column(String(1024), nullable=False)
    resource_type = Column(String(256), nullable=True)
    region = Column(String(64), nullable=True)
    recommendation = Column(Text, nullable=True)
    status = Column(String(32), nullable=False, default="open")
    created_at = Column(Integer, nullable=False, index=True)


# --- AWS ---


class AwsAccount(_OwnerColumns, Base):
    __tablename__ = "aws_accounts"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)


class AwsAudit(_AuditColumns, Base):
    __tablename__ = "aws_audits"

    account_id = Column(Integer, ForeignKey("aws_accounts.id", ondelete="CASCADE"), nullable=False, index=True)


class AwsFinding(_FindingColumns, Base):
    __tablename__ = "aws_findings"

    audit_id = Column(Integer, ForeignKey("aws_audits.id", ondelete="CASCADE"), nullable=False, index=True)


# --- GCP ---


class GcpProject(_OwnerColumns, Base):
    __tablename__ = "gcp_projects"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)


class GcpAudit(_AuditColumns, Base):
    __tablename__ = "gcp_audits"

    project_id = Column(Integer, ForeignKey("gcp_projects.id", ondelete="CASCADE"), nullable=False, index=True)


class GcpFinding(_FindingColumns, Base):
    __tablename__ = "gcp_findings"

    audit_id = Column(Integer, ForeignKey("gcp_audits.id", ondelete="CASCADE"), nullable=False, index=True)


# --- Azure ---


class AzureSubscription(_OwnerColumns, Base):
    __tablename__ = "azure_subscriptions"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)


class AzureAudit(_AuditColumns, Base):
    __tablename__ = "azure_audits"

    subscription_id = Column(Integer, ForeignKey("azure_subscriptions.id", ondelete="CASCADE"), nullable=False, index=True)


class AzureFinding(_FindingColumns, Base):
    __tablename__ = "azure_findings"

    audit_id = Column(Integer, ForeignKey("azure_audits.id", ondelete="CASCADE"), nullable=False, index=True)


@dataclass(frozen=True)
class ProviderTables:
    """The owner/audit/finding models for one provider and the audit→owner FK column name."""

    owner: Any
    audit: Any
    finding: Any
    owner_fk: str

    def audit_owner_id(self) -> Any:
        return getattr(self.audit, self.owner_fk)


PROVIDER_TABLES: dict[CloudProvider, ProviderTables] = {
    CloudProvider.AWS: ProviderTables(AwsAccount, AwsAudit, AwsFinding, "account_id"),
    CloudProvider.GCP: ProviderTables(GcpProject, GcpAudit, GcpFinding, "project_id"),
    CloudProvider.AZURE: ProviderTables(AzureSubscription, AzureAudit, AzureFinding, "subscription_id"),
}
