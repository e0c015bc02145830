"""
FastAPI server: alert settings, alert triggers and the dashboard read model.

create_app() wires the persistence, identity and alerting collaborators onto
app.state; routes reach them through dependencies, so tests build an app
around a temporary database, a fixed identity and a mocked dispatcher.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from cloudguard import __version__
from cloudguard.alerts import AlertService, WebhookDispatcher, pacer_factory
from cloudguard.api_server.auth import HeaderIdentityProvider, IdentityProvider
from cloudguard.api_server.dashboard_api import router as dashboard_router
from cloudguard.api_server.middleware import request_logging_middleware
from cloudguard.api_server.settings_api import router as settings_router
from cloudguard.api_server.spike_api import router as spike_router
from cloudguard.cloudguard_logging import get_logger
from cloudguard.config import Settings, get_settings
from cloudguard.core.exceptions import CloudGuardError, error_body
from cloudguard.database import Database, get_database

logger = get_logger(__name__)


def cloudguard_error_handler(request: Request, exc: CloudGuardError) -> JSONResponse:
    """Render application errors as {"success": false, "error": ...} with their status."""
    if exc.status_code >= 500:
        logger.warning("api_error", status_code=exc.status_code, error=exc.message)
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message))


def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {"loc": [str(p) for p in err.get("loc", ())], "msg": err.get("msg", "")}
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content=error_body("Invalid request body", details=details))


def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("api_unhandled_error", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=500, content=error_body("Internal server error"))


def create_app(
    settings: Settings | None = None,
    db: Database | None = None,
    identity: IdentityProvider | None = None,
    alert_service: AlertService | None = None,
) -> FastAPI:
    """Build the API app. Collaborators not passed in are built from settings."""
    settings = settings or get_settings()
    if db is None:
        db = get_database(settings.database_url)
    if identity is None:
        identity = HeaderIdentityProvider(settings.identity_header)
    if alert_service is None:
        alert_service = AlertService(
            dispatcher=WebhookDispatcher(timeout_sec=settings.webhook_timeout_sec),
            pacer_factory=pacer_factory(settings),
        )

    app = FastAPI(
        title="CloudGuard API",
        description="Alert settings, Spike.sh alert dispatch and dashboard data for cloud security audits.",
        version=__version__,
    )
    app.state.settings = settings
    app.state.db = db
    app.state.identity = identity
    app.state.alert_service = alert_service

    app.middleware("http")(request_logging_middleware)
    app.add_exception_handler(CloudGuardError, cloudguard_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(settings_router, prefix="/api")
    app.include_router(spike_router, prefix="/api")
    app.include_router(dashboard_router, prefix="/api")

    @app.get("/health")
    def health() -> dict[str, str]:
        """Liveness probe: API is up."""
        return {"status": "ok"}

    logger.info(
        "api_app_created",
        alert_pacing=settings.alert_pacing,
        webhook_timeout_sec=settings.webhook_timeout_sec,
    )
    return app
