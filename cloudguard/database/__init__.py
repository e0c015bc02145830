"""
Database abstraction layer: users, alert settings, cloud accounts, audits and findings.

SQLAlchemy over SQLite by default; any DATABASE_URL SQLAlchemy supports works.
"""

from cloudguard.database.database import (
    Database,
    DatabaseBackend,
    SQLAlchemyBackend,
    get_database,
    summarize_findings,
)
from cloudguard.database.models import (
    AuditRecord,
    CloudAccount,
    FindingRecord,
    User,
    UserSettings,
)

__all__ = [
    "AuditRecord",
    "CloudAccount",
    "Database",
    "DatabaseBackend",
    "FindingRecord",
    "SQLAlchemyBackend",
    "User",
    "UserSettings",
    "get_database",
    "summarize_findings",
]
