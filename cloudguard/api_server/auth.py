"""
Caller identity.

Session issuance lives outside this service; an authenticating proxy in front
of it forwards the signed-in user's email in a header. IdentityProvider is
the seam: tests and other deployments substitute their own.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from fastapi import Depends, Request

from cloudguard.cloudguard_logging import get_logger
from cloudguard.config.settings import DEFAULT_IDENTITY_HEADER
from cloudguard.core.exceptions import NotFoundError, UnauthorizedError
from cloudguard.database import Database, User

logger = get_logger(__name__)


class IdentityProvider(ABC):
    @abstractmethod
    def identify(self, request: Request) -> str | None:
        """Return the caller's email, or None when there is no valid session."""
        ...


class HeaderIdentityProvider(IdentityProvider):
    """Trusts an upstream proxy to set the authenticated user's email in a header."""

    def __init__(self, header: str = DEFAULT_IDENTITY_HEADER) -> None:
        self.header = header

    def identify(self, request: Request) -> str | None:
        email = (request.headers.get(self.header) or "").strip().lower()
        return email or None


def get_db(request: Request) -> Database:
    return request.app.state.db


def current_identity(request: Request) -> str:
    """Dependency: caller email; 401 when missing."""
    email = request.app.state.identity.identify(request)
    if not email:
        logger.info("request_unauthorized", path=request.url.path)
        raise UnauthorizedError()
    return email


def current_user(
    email: str = Depends(current_identity),
    db: Database = Depends(get_db),
) -> User:
    """Dependency: the caller's user row; 404 when the identity has no account."""
    user = db.get_user_by_email(email)
    if user is None:
        raise NotFoundError("User not found")
    return user
