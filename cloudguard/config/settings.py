"""
Application settings.

Typed, immutable view over the environment: database URL, API bind address,
webhook timeout and alert pacing. Read once per process via get_settings();
tests build Settings directly or through from_overrides().
"""

from __future__ import annotations

import functools
from dataclasses import asdict, dataclass, fields
from typing import Any

from cloudguard.config.env import env_float, env_int, env_str, load_cloudguard_env

DEFAULT_DATABASE_URL = "sqlite:///cloudguard.db"
DEFAULT_WEBHOOK_TIMEOUT_SEC = 10.0
# Delay between consecutive alerts in a batch; keeps the receiver under its rate limit
DEFAULT_ALERT_PACING_SEC = 0.1
DEFAULT_IDENTITY_HEADER = "X-User-Email"

PACING_FIXED = "fixed"
PACING_TOKEN_BUCKET = "token_bucket"
PACING_NONE = "none"
PACING_MODES = (PACING_FIXED, PACING_TOKEN_BUCKET, PACING_NONE)


@dataclass(frozen=True)
class Settings:
    # -------- Persistence ------
    database_url: str = DEFAULT_DATABASE_URL

    # -------- API --------------
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    log_level: str = "INFO"
    identity_header: str = DEFAULT_IDENTITY_HEADER

    # -------- Alerting ---------
    webhook_timeout_sec: float = DEFAULT_WEBHOOK_TIMEOUT_SEC
    alert_pacing: str = PACING_FIXED
    alert_pacing_sec: float = DEFAULT_ALERT_PACING_SEC
    alert_rate_per_sec: float = 10.0
    alert_burst: int = 1

    def __post_init__(self) -> None:
        if self.alert_pacing not in PACING_MODES:
            raise ValueError(
                f"alert_pacing must be one of {', '.join(PACING_MODES)}; got {self.alert_pacing!r}"
            )
        if self.alert_pacing_sec < 0:
            raise ValueError("alert_pacing_sec must be >= 0")
        if self.webhook_timeout_sec <= 0:
            raise ValueError("webhook_timeout_sec must be > 0")

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_env() -> "Settings":
        load_cloudguard_env()
        return Settings(
            database_url=env_str("DATABASE_URL", DEFAULT_DATABASE_URL),
            api_host=env_str("API_HOST", "0.0.0.0"),
            api_port=env_int("API_PORT", 8000),
            log_level=env_str("LOG_LEVEL", "INFO").upper(),
            identity_header=env_str("IDENTITY_HEADER", DEFAULT_IDENTITY_HEADER),
            webhook_timeout_sec=env_float("WEBHOOK_TIMEOUT_SEC", DEFAULT_WEBHOOK_TIMEOUT_SEC),
            alert_pacing=env_str("ALERT_PACING", PACING_FIXED).lower(),
            alert_pacing_sec=env_float("ALERT_PACING_SEC", DEFAULT_ALERT_PACING_SEC),
            alert_rate_per_sec=env_float("ALERT_RATE_PER_SEC", 10.0),
            alert_burst=env_int("ALERT_BURST", 1),
        )

    @staticmethod
    def from_overrides(**kwargs: Any) -> "Settings":
        """
        Build Settings from env and apply runtime overrides (e.g. parsed CLI flags).
        Only keys that match fields are applied; None values are ignored.
        """
        base = Settings.from_env()
        names = {f.name for f in fields(Settings)}
        current = base.to_dict()
        current.update({k: v for k, v in kwargs.items() if k in names and v is not None})
        return Settings(**current)


@functools.lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings, read from the environment on first call."""
    return Settings.from_env()
