"""
Main entrypoint: run the CloudGuard API with uvicorn.

Env: DATABASE_URL, API_HOST, API_PORT, LOG_LEVEL, WEBHOOK_TIMEOUT_SEC,
ALERT_PACING, ALERT_PACING_SEC, ALERT_RATE_PER_SEC, ALERT_BURST, IDENTITY_HEADER
(see cloudguard.config).

Equivalent: uvicorn cloudguard.api_server.app:app --host 0.0.0.0 --port 8000
"""

# Configure structured JSON logging before other imports that may log
from cloudguard.cloudguard_logging import get_logger

logger = get_logger("main")


def main() -> None:
    """Build the app from env settings and serve it in the main thread."""
    from cloudguard.config import get_settings
    from cloudguard.api_server.server import create_app
    import uvicorn

    settings = get_settings()
    app = create_app(settings)
    logger.info("main_server_starting", host=settings.api_host, port=settings.api_port)
    uvicorn.run(app, host=settings.api_host, port=settings.api_port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
