"""
Configuration management for CloudGuard.

Loads settings from environment variables and an optional .env file.
Exposes a single source of truth for service configuration.
"""

from cloudguard.config.settings import Settings, get_settings  # noqa: F401

__all__ = ["Settings", "get_settings"]
