"""
Structured logging for CloudGuard.

JSON logs with timestamp, event_type and request context.
Use get_logger() in every module.
"""

from cloudguard.cloudguard_logging.logger import bind_request, get_logger

__all__ = ["bind_request", "get_logger"]
