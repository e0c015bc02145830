"""
Database abstraction layer: users, alert settings, cloud accounts, audits, findings.

All access goes through the abstract DatabaseBackend. SQLAlchemyBackend works
against SQLite (default, one file) or any DATABASE_URL SQLAlchemy understands,
e.g. PostgreSQL. The API receives a Database instance explicitly, so tests
pass one built over a temporary SQLite file.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterable, Iterator

from sqlalchemy import case, create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from cloudguard.alerts.models import (
    ALERTABLE_SEVERITIES,
    AuditSummary,
    CloudProvider,
    Finding,
    Severity,
)
from cloudguard.cloudguard_logging import get_logger
from cloudguard.database.models import (
    SETTINGS_DEFAULTS,
    SETTINGS_FIELDS,
    AuditRecord,
    CloudAccount,
    FindingRecord,
    User,
    UserSettings,
)
from cloudguard.database.tables import PROVIDER_TABLES, Base, ProviderTables, UserRow, UserSettingsRow

logger = get_logger(__name__)

AUDIT_STATUS_COMPLETED = "completed"
DEFAULT_HISTORY_LIMIT = 7
DEFAULT_RECENT_FINDINGS_LIMIT = 10

# Severity sort order for finding lists (most severe first)
_SEVERITY_RANK = {Severity.CRITICAL.value: 0, Severity.HIGH.value: 1, Severity.MEDIUM.value: 2, Severity.LOW.value: 3}


def summarize_findings(findings: Iterable[Finding]) -> AuditSummary:
    """Count findings per severity. Unknown severities count toward total only."""
    counts = {sev: 0 for sev in Severity}
    total = 0
    for f in findings:
        total += 1
        sev = Severity.parse(f.severity)
        if sev is not None:
            counts[sev] += 1
    return AuditSummary(
        critical=counts[Severity.CRITICAL],
        high=counts[Severity.HIGH],
        medium=counts[Severity.MEDIUM],
        low=counts[Severity.LOW],
        total=total,
    )


def _normalize_severity(severity: str) -> str:
    sev = Severity.parse(severity)
    return sev.value if sev else str(severity or "").strip().upper()


def _clean_url(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip() or None
    return value


# -----------------------------------------------------------------------------
# Abstract backend
# -----------------------------------------------------------------------------


class DatabaseBackend(ABC):
    """Persistence port; implement for another store to swap it in."""

    @abstractmethod
    def ensure_schema(self) -> None:
        """Create tables and indexes if they do not exist."""
        ...

    @abstractmethod
    def create_user(self, email: str, name: str | None = None) -> User:
        ...

    @abstractmethod
    def get_user_by_email(self, email: str) -> User | None:
        ...

    @abstractmethod
    def get_settings(self, user_id: int) -> UserSettings | None:
        """Return the stored settings for a user, or None if never saved."""
        ...

    @abstractmethod
    def upsert_settings(self, user_id: int, changes: dict[str, Any]) -> UserSettings:
        """
        Create the settings row (defaults + changes) or overwrite only the
        fields present in changes. None values mean "not provided".
        """
        ...

    @abstractmethod
    def add_account(
        self,
        user_id: int,
        provider: CloudProvider,
        name: str,
        external_id: str | None = None,
    ) -> CloudAccount:
        ...

    @abstractmethod
    def list_accounts(self, user_id: int, provider: CloudProvider) -> list[CloudAccount]:
        ...

    @abstractmethod
    def record_audit(
        self,
        account_id: int,
        provider: CloudProvider,
        findings: list[Finding],
        *,
        summary: AuditSummary,
        status: str,
        risk_score: float,
        completed_at: int | None,
    ) -> AuditRecord:
        ...

    @abstractmethod
    def get_audit(
        self,
        user_id: int,
        provider: CloudProvider,
        audit_id: int,
        severities: tuple[Severity, ...] | None,
    ) -> AuditRecord | None:
        """Return the audit if it belongs to one of the user's accounts, else None."""
        ...

    @abstractmethod
    def get_latest_audit(self, account_id: int, provider: CloudProvider) -> AuditRecord | None:
        ...

    @abstractmethod
    def get_audit_history(self, account_id: int, provider: CloudProvider, limit: int) -> list[AuditRecord]:
        """Completed audits for an account, newest first, without findings."""
        ...

    @abstractmethod
    def get_recent_findings(self, account_id: int, provider: CloudProvider, limit: int) -> list[FindingRecord]:
        """Findings across all of an account's audits, newest first."""
        ...


# -----------------------------------------------------------------------------
# SQLAlchemy backend
# -----------------------------------------------------------------------------


class SQLAlchemyBackend(DatabaseBackend):
    """SQLAlchemy implementation; one session per operation."""

    def __init__(self, url: str) -> None:
        self._url = url
        connect_args: dict[str, Any] = {}
        engine_kwargs: dict[str, Any] = {"pool_pre_ping": True}
        if url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
            if url in ("sqlite://", "sqlite:///:memory:"):
                engine_kwargs["poolclass"] = StaticPool
        self._engine = create_engine(url, connect_args=connect_args, **engine_kwargs)
        self._sessions = sessionmaker(autocommit=False, autoflush=False, bind=self._engine)

    @property
    def engine(self) -> Any:
        return self._engine

    @contextmanager
    def _session_scope(self) -> Iterator[Session]:
        """Commits on success, rolls back on error."""
        session = self._sessions()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def ensure_schema(self) -> None:
        Base.metadata.create_all(bind=self._engine)
        logger.info("database_schema_ready", url=self._url.split("?")[0].split("//")[-1])

    # --- Users ---

    def create_user(self, email: str, name: str | None = None) -> User:
        email = (email or "").strip().lower()
        if not email:
            raise ValueError("email must be non-empty")
        try:
            with self._session_scope() as session:
                row = UserRow(email=email, name=name, created_at=int(time.time()))
                session.add(row)
                session.flush()
                return User(id=row.id, email=row.email, name=row.name, created_at=row.created_at)
        except IntegrityError as e:
            raise ValueError(f"user already exists: {email}") from e

    def get_user_by_email(self, email: str) -> User | None:
        email = (email or "").strip().lower()
        if not email:
            return None
        with self._session_scope() as session:
            row = session.query(UserRow).filter(UserRow.email == email).first()
            if row is None:
                return None
            return User(id=row.id, email=row.email, name=row.name, created_at=row.created_at)

    # --- Settings ---

    @staticmethod
    def _settings_from_row(row: UserSettingsRow) -> UserSettings:
        return UserSettings(
            user_id=row.user_id,
            updated_at=row.updated_at,
            **{name: getattr(row, name) for name in SETTINGS_FIELDS},
        )

    def get_settings(self, user_id: int) -> UserSettings | None:
        with self._session_scope() as session:
            row = session.query(UserSettingsRow).filter(UserSettingsRow.user_id == user_id).first()
            return self._settings_from_row(row) if row else None

    def upsert_settings(self, user_id: int, changes: dict[str, Any]) -> UserSettings:
        unknown = set(changes) - set(SETTINGS_FIELDS)
        if unknown:
            raise ValueError(f"unknown settings fields: {', '.join(sorted(unknown))}")
        provided = {k: v for k, v in changes.items() if v is not None}
        for key in ("spike_webhook_url", "slack_webhook_url"):
            if key in provided:
                provided[key] = _clean_url(provided[key])
        now = int(time.time())
        with self._session_scope() as session:
            row = session.query(UserSettingsRow).filter(UserSettingsRow.user_id == user_id).first()
            if row is None:
                row = UserSettingsRow(user_id=user_id, created_at=now, **{**SETTINGS_DEFAULTS, **provided})
                session.add(row)
                created = True
            else:
                for key, value in provided.items():
                    setattr(row, key, value)
                created = False
            row.updated_at = now
            session.flush()
            logger.info(
                "user_settings_upserted",
                user_id=user_id,
                created=created,
                fields=sorted(provided),
            )
            return self._settings_from_row(row)

    # --- Accounts ---

    @staticmethod
    def _tables(provider: CloudProvider) -> ProviderTables:
        return PROVIDER_TABLES[CloudProvider(provider)]

    def add_account(
        self,
        user_id: int,
        provider: CloudProvider,
        name: str,
        external_id: str | None = None,
    ) -> CloudAccount:
        provider = CloudProvider(provider)
        t = self._tables(provider)
        with self._session_scope() as session:
            row = t.owner(user_id=user_id, name=name, external_id=external_id, created_at=int(time.time()))
            session.add(row)
            session.flush()
            return CloudAccount(
                id=row.id,
                provider=provider,
                user_id=row.user_id,
                name=row.name,
                external_id=row.external_id,
                created_at=row.created_at,
            )

    def list_accounts(self, user_id: int, provider: CloudProvider) -> list[CloudAccount]:
        provider = CloudProvider(provider)
        t = self._tables(provider)
        with self._session_scope() as session:
            rows = session.query(t.owner).filter(t.owner.user_id == user_id).order_by(t.owner.id).all()
            return [
                CloudAccount(
                    id=r.id,
                    provider=provider,
                    user_id=r.user_id,
                    name=r.name,
                    external_id=r.external_id,
                    created_at=r.created_at,
                )
                for r in rows
            ]

    # --- Audits ---

    @staticmethod
    def _finding_record(row: Any, account_name: str | None = None) -> FindingRecord:
        return FindingRecord(
            id=row.id,
            audit_id=row.audit_id,
            severity=row.severity,
            title=row.title,
            resource=row.resource,
            description=row.description,
            resource_type=row.resource_type,
            region=row.region,
            recommendation=row.recommendation,
            status=row.status,
            created_at=row.created_at,
            account_name=account_name,
        )

    def _audit_record(
        self,
        provider: CloudProvider,
        t: ProviderTables,
        audit: Any,
        account_name: str,
        findings: list[Any] | None = None,
    ) -> AuditRecord:
        return AuditRecord(
            id=audit.id,
            provider=provider,
            account_id=getattr(audit, t.owner_fk),
            account_name=account_name,
            status=audit.status,
            summary=AuditSummary(
                critical=audit.critical,
                high=audit.high,
                medium=audit.medium,
                low=audit.low,
                total=audit.total_findings,
            ),
            risk_score=audit.risk_score,
            created_at=audit.created_at,
            completed_at=audit.completed_at,
            findings=[self._finding_record(f) for f in (findings or [])],
        )

    def _severity_order(self, finding_model: Any) -> Any:
        return case(_SEVERITY_RANK, value=finding_model.severity, else_=len(_SEVERITY_RANK))

    def record_audit(
        self,
        account_id: int,
        provider: CloudProvider,
        findings: list[Finding],
        *,
        summary: AuditSummary,
        status: str,
        risk_score: float,
        completed_at: int | None,
    ) -> AuditRecord:
        provider = CloudProvider(provider)
        t = self._tables(provider)
        now = int(time.time())
        with self._session_scope() as session:
            owner = session.get(t.owner, account_id)
            if owner is None:
                raise ValueError(f"{provider.value} account {account_id} not found")
            audit = t.audit(
                status=status,
                critical=summary.critical,
                high=summary.high,
                medium=summary.medium,
                low=summary.low,
                total_findings=summary.total,
                risk_score=risk_score,
                created_at=now,
                completed_at=completed_at,
                **{t.owner_fk: account_id},
            )
            session.add(audit)
            session.flush()
            rows = []
            for f in findings:
                row = t.finding(
                    audit_id=audit.id,
                    severity=_normalize_severity(f.severity),
                    title=f.title,
                    description=f.description,
                    resource=f.resource,
                    resource_type=f.resource_type,
                    region=f.region,
                    recommendation=f.recommendation,
                    created_at=now,
                )
                session.add(row)
                rows.append(row)
            session.flush()
            logger.info(
                "audit_recorded",
                audit_id=audit.id,
                cloud_provider=provider.value,
                account_id=account_id,
                total=summary.total,
                critical=summary.critical,
                high=summary.high,
            )
            return self._audit_record(provider, t, audit, owner.name, rows)

    def get_audit(
        self,
        user_id: int,
        provider: CloudProvider,
        audit_id: int,
        severities: tuple[Severity, ...] | None,
    ) -> AuditRecord | None:
        provider = CloudProvider(provider)
        t = self._tables(provider)
        with self._session_scope() as session:
            hit = (
                session.query(t.audit, t.owner)
                .select_from(t.audit)
                .join(t.owner, t.owner.id == t.audit_owner_id())
                .filter(t.audit.id == audit_id, t.owner.user_id == user_id)
                .first()
            )
            if hit is None:
                return None
            audit, owner = hit
            q = session.query(t.finding).filter(t.finding.audit_id == audit.id)
            if severities is not None:
                q = q.filter(t.finding.severity.in_([s.value for s in severities]))
            findings = q.order_by(self._severity_order(t.finding), t.finding.id).all()
            return self._audit_record(provider, t, audit, owner.name, findings)

    def get_latest_audit(self, account_id: int, provider: CloudProvider) -> AuditRecord | None:
        provider = CloudProvider(provider)
        t = self._tables(provider)
        with self._session_scope() as session:
            hit = (
                session.query(t.audit, t.owner)
                .select_from(t.audit)
                .join(t.owner, t.owner.id == t.audit_owner_id())
                .filter(t.audit_owner_id() == account_id)
                .order_by(t.audit.created_at.desc(), t.audit.id.desc())
                .first()
            )
            if hit is None:
                return None
            audit, owner = hit
            findings = (
                session.query(t.finding)
                .filter(t.finding.audit_id == audit.id)
                .order_by(self._severity_order(t.finding), t.finding.created_at.desc(), t.finding.id.desc())
                .all()
            )
            return self._audit_record(provider, t, audit, owner.name, findings)

    def get_audit_history(self, account_id: int, provider: CloudProvider, limit: int) -> list[AuditRecord]:
        provider = CloudProvider(provider)
        t = self._tables(provider)
        with self._session_scope() as session:
            hits = (
                session.query(t.audit, t.owner)
                .select_from(t.audit)
                .join(t.owner, t.owner.id == t.audit_owner_id())
                .filter(t.audit_owner_id() == account_id, t.audit.status == AUDIT_STATUS_COMPLETED)
                .order_by(t.audit.completed_at.desc(), t.audit.id.desc())
                .limit(limit)
                .all()
            )
            return [self._audit_record(provider, t, audit, owner.name) for audit, owner in hits]

    def get_recent_findings(self, account_id: int, provider: CloudProvider, limit: int) -> list[FindingRecord]:
        provider = CloudProvider(provider)
        t = self._tables(provider)
        with self._session_scope() as session:
            hits = (
                session.query(t.finding, t.owner.name)
                .select_from(t.finding)
                .join(t.audit, t.audit.id == t.finding.audit_id)
                .join(t.owner, t.owner.id == t.audit_owner_id())
                .filter(t.audit_owner_id() == account_id)
                .order_by(t.finding.created_at.desc(), t.finding.id.desc())
                .limit(limit)
                .all()
            )
            return [self._finding_record(f, account_name=name) for f, name in hits]


# -----------------------------------------------------------------------------
# Database facade
# -----------------------------------------------------------------------------


class Database:
    """
    Single entrypoint for persistence used by the API and alerting paths.

    Wraps a DatabaseBackend; supplies defaults (alertable-only finding filter,
    history limits, summary computed from findings).
    """

    def __init__(self, backend: DatabaseBackend) -> None:
        self._backend = backend

    def ensure_schema(self) -> None:
        self._backend.ensure_schema()

    # --- Users ---

    def create_user(self, email: str, name: str | None = None) -> User:
        return self._backend.create_user(email, name)

    def get_user_by_email(self, email: str) -> User | None:
        return self._backend.get_user_by_email(email)

    # --- Settings ---

    def get_settings(self, user_id: int) -> UserSettings | None:
        return self._backend.get_settings(user_id)

    def get_settings_or_defaults(self, user_id: int) -> UserSettings:
        return self._backend.get_settings(user_id) or UserSettings.defaults(user_id)

    def upsert_settings(self, user_id: int, changes: dict[str, Any]) -> UserSettings:
        return self._backend.upsert_settings(user_id, changes)

    # --- Accounts and audits ---

    def add_account(
        self,
        user_id: int,
        provider: CloudProvider,
        name: str,
        external_id: str | None = None,
    ) -> CloudAccount:
        return self._backend.add_account(user_id, provider, name, external_id)

    def list_accounts(self, user_id: int, provider: CloudProvider) -> list[CloudAccount]:
        return self._backend.list_accounts(user_id, provider)

    def record_audit(
        self,
        account_id: int,
        provider: CloudProvider,
        findings: list[Finding],
        *,
        summary: AuditSummary | None = None,
        status: str = AUDIT_STATUS_COMPLETED,
        risk_score: float = 0.0,
        completed_at: int | None = None,
    ) -> AuditRecord:
        """Store an audit and its findings. summary defaults to counts over findings."""
        if summary is None:
            summary = summarize_findings(findings)
        if completed_at is None and status == AUDIT_STATUS_COMPLETED:
            completed_at = int(time.time())
        return self._backend.record_audit(
            account_id,
            provider,
            list(findings),
            summary=summary,
            status=status,
            risk_score=risk_score,
            completed_at=completed_at,
        )

    def get_audit(
        self,
        user_id: int,
        provider: CloudProvider,
        audit_id: int,
        severities: tuple[Severity, ...] | None = ALERTABLE_SEVERITIES,
    ) -> AuditRecord | None:
        """Audit scoped to the user; findings limited to `severities` (None = all)."""
        return self._backend.get_audit(user_id, provider, audit_id, severities)

    def get_latest_audit(self, account_id: int, provider: CloudProvider) -> AuditRecord | None:
        return self._backend.get_latest_audit(account_id, provider)

    def get_audit_history(
        self,
        account_id: int,
        provider: CloudProvider,
        limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> list[AuditRecord]:
        return self._backend.get_audit_history(account_id, provider, limit)

    def get_recent_findings(
        self,
        account_id: int,
        provider: CloudProvider,
        limit: int = DEFAULT_RECENT_FINDINGS_LIMIT,
    ) -> list[FindingRecord]:
        return self._backend.get_recent_findings(account_id, provider, limit)


def get_database(url: str | Path | None = None) -> Database:
    """
    Return a Database over SQLAlchemy with the schema created.

    url: SQLAlchemy URL, or a filesystem path for a SQLite file.
    Default: "sqlite:///cloudguard.db" in cwd.
    """
    if url is None:
        url = "sqlite:///cloudguard.db"
    url = str(url)
    if "://" not in url:
        path = Path(url)
        path.parent.mkdir(parents=True, exist_ok=True)
        url = f"sqlite:///{path}"
    db = Database(SQLAlchemyBackend(url))
    db.ensure_schema()
    return db
