"""
structlog setup for CloudGuard.

Every line carries timestamp, level, logger and event_type, plus whatever the
request middleware bound (request_id, method, path). Webhook URLs embed the
receiver's secret token, so any field holding one is masked before rendering.

No other cloudguard imports here; everything else imports this module.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog

SECRET_FIELDS = frozenset({"webhook_url", "spike_webhook_url", "slack_webhook_url"})
MASK = "***"


def _mask_webhook_urls(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    for key in SECRET_FIELDS.intersection(event_dict):
        if event_dict[key]:
            event_dict[key] = MASK
    return event_dict


def configure_structlog() -> None:
    """Configure structlog once at import from LOG_LEVEL and LOG_FORMAT (json | console)."""
    level = (os.getenv("LOG_LEVEL") or "INFO").strip().upper()
    fmt = (os.getenv("LOG_FORMAT") or "json").strip().lower()

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        _mask_webhook_urls,
    ]
    if fmt == "console":
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))
    else:
        processors.append(structlog.processors.EventRenamer("event_type"))
        processors.append(structlog.processors.JSONRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level, logging.INFO)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )


if not structlog.is_configured():
    configure_structlog()


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Module logger; the first positional argument is the event_type.

        logger = get_logger(__name__)
        logger.info("summary_alert_sent", account_name="prod", critical=2)
    """
    return structlog.get_logger(name).bind(logger=name)


def bind_request(request_id: str, **fields: Any) -> None:
    """Start a fresh per-request context: request_id plus fields on every line until the next call."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id, **fields)
