"""
HTTP middleware: request correlation IDs and access logging.

Every request gets a request_id (taken from X-Request-ID when the caller sends
one) bound into the structlog context, echoed back in the response header,
and logged with method, path, status and duration. An exception that escapes
the routes and their handlers is logged here and answered with a 500 that
still carries the request_id.
"""

from __future__ import annotations

import time
import uuid
from typing import Awaitable, Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse

from cloudguard.cloudguard_logging import bind_request, get_logger
from cloudguard.core.exceptions import error_body

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


async def request_logging_middleware(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    request_id = (request.headers.get(REQUEST_ID_HEADER) or "").strip()[:64] or uuid.uuid4().hex
    bind_request(request_id, method=request.method, path=request.url.path)
    started = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception as e:
        logger.exception("api_unhandled_error", error_type=type(e).__name__, error=str(e))
        response = JSONResponse(status_code=500, content=error_body("Internal server error"))
    duration_ms = (time.perf_counter() - started) * 1000.0
    response.headers[REQUEST_ID_HEADER] = request_id
    logger.info(
        "http_request",
        status_code=response.status_code,
        duration_ms=round(duration_ms, 2),
    )
    return response
