"""
Application-level exceptions.

Each carries the HTTP status the API layer renders it with, so handlers raise
and a single exception handler produces the JSON error body.
"""

from __future__ import annotations


class CloudGuardError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(CloudGuardError):
    """Malformed or incomplete request body."""

    status_code = 400


class UnauthorizedError(CloudGuardError):
    """No valid session / identity for the caller."""

    status_code = 401

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class NotFoundError(CloudGuardError):
    """A prerequisite entity (user, audit) does not exist or is not the caller's."""

    status_code = 404


class IntegrationDisabledError(CloudGuardError):
    """Alert integration is off or has no webhook URL."""

    status_code = 400


class DispatchFailedError(CloudGuardError):
    """The remote webhook rejected the alert or could not be reached."""

    status_code = 502


def error_body(message: str, **extra: object) -> dict[str, object]:
    """JSON body for every error response: {"success": false, "error": message, ...}."""
    return {"success": False, "error": message, **extra}
