"""
Webhook dispatcher: POST an alert payload as JSON and report success as a bool.

Failures never propagate. A non-2xx response or any transport error (DNS,
timeout, connection reset) is logged and turned into False. No retries; each
alert is attempted exactly once.
"""

from __future__ import annotations

from typing import Any

import requests

from cloudguard.alerts.models import AlertPayload
from cloudguard.cloudguard_logging import get_logger
from cloudguard.config.settings import DEFAULT_WEBHOOK_TIMEOUT_SEC

logger = get_logger(__name__)

# Truncate logged response bodies; some receivers echo whole HTML error pages
MAX_LOGGED_BODY = 500


def _redact_url(url: str) -> str:
    """Drop the path/query of a webhook URL for logs; they often embed a secret token."""
    scheme, sep, rest = url.partition("://")
    if not sep:
        return "***"
    host = rest.split("/", 1)[0]
    return f"{scheme}://{host}/***"


class WebhookDispatcher:
    """Sends AlertPayloads to user-configured webhook URLs with requests."""

    def __init__(
        self,
        timeout_sec: float = DEFAULT_WEBHOOK_TIMEOUT_SEC,
        session: requests.Session | None = None,
    ) -> None:
        self.timeout_sec = timeout_sec
        self._session = session

    def _post(self, url: str, body: dict[str, Any]) -> requests.Response:
        poster = self._session or requests
        return poster.post(
            url,
            json=body,
            headers={"Content-Type": "application/json"},
            timeout=self.timeout_sec,
        )

    def send(self, url: str, payload: AlertPayload) -> bool:
        """POST payload to url. True only for a 2xx response."""
        target = _redact_url(url)
        try:
            resp = self._post(url, payload.to_dict())
        except requests.RequestException as e:
            logger.warning(
                "webhook_send_error",
                url=target,
                error_type=type(e).__name__,
                error=str(e),
                alert_status=payload.status,
            )
            return False

        if not 200 <= resp.status_code < 300:
            logger.warning(
                "webhook_send_rejected",
                url=target,
                status_code=resp.status_code,
                body=(resp.text or "")[:MAX_LOGGED_BODY],
                alert_status=payload.status,
            )
            return False

        logger.info(
            "webhook_send_ok",
            url=target,
            status_code=resp.status_code,
            alert_status=payload.status,
            priority=payload.priority,
        )
        return True
