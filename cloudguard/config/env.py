"""
Environment variable loading for CloudGuard.

- Loads .env from the project root when available.
- Small typed readers so settings.py stays declarative.
"""

from __future__ import annotations

import os
from pathlib import Path

# Project root: config is cloudguard/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_PACKAGE_DIR = _CONFIG_DIR.parent
_ROOT = _PACKAGE_DIR.parent
_ENV_PATH = _ROOT / ".env"


def load_cloudguard_env() -> None:
    """Load .env from project root without overriding real env vars. Safe to call multiple times."""
    from dotenv import load_dotenv

    load_dotenv(_ENV_PATH, override=False)


def env_str(name: str, default: str = "") -> str:
    return (os.getenv(name) or default).strip() or default


def env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    return int(raw) if raw else default


def env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    return float(raw) if raw else default
