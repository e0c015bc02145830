"""
Outbound alert pacing.

Batch dispatch builds a fresh pacer per batch and calls pacer.wait() before
every send except the first, so the receiving webhook is not hit faster than
it tolerates. Clock and sleep are
injectable; tests drive them with virtual time instead of real sleeps.
"""

from __future__ import annotations

import functools
import threading
import time
from typing import Callable, Protocol

from cloudguard.cloudguard_logging import get_logger
from cloudguard.config.settings import PACING_NONE, PACING_TOKEN_BUCKET, Settings

logger = get_logger(__name__)


class Pacer(Protocol):
    def wait(self) -> None:
        """Block until the next send is allowed."""
        ...


class NoPacer:
    """Never waits."""

    def wait(self) -> None:
        return None


class FixedDelayPacer:
    """Sleep a fixed delay between consecutive sends."""

    def __init__(self, delay_sec: float, sleep: Callable[[float], None] = time.sleep) -> None:
        if delay_sec < 0:
            raise ValueError("delay_sec must be >= 0")
        self.delay_sec = delay_sec
        self._sleep = sleep

    def wait(self) -> None:
        if self.delay_sec > 0:
            self._sleep(self.delay_sec)


class TokenBucketPacer:
    """
    Token bucket: up to `capacity` sends back to back, refilled at `rate_per_sec`.

    wait() reserves one token under a lock, then sleeps outside it for as long
    as that token takes to arrive. The balance goes negative while callers are
    queued, so concurrent callers get consecutive slots, never the same one.
    """

    def __init__(
        self,
        rate_per_sec: float,
        capacity: int = 1,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if rate_per_sec <= 0:
            raise ValueError("rate_per_sec must be > 0")
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.rate_per_sec = rate_per_sec
        self.capacity = capacity
        self._clock = clock
        self._sleep = sleep
        self._tokens = float(capacity)
        self._updated_at = clock()
        self._lock = threading.Lock()

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self._updated_at)
        self._tokens = min(float(self.capacity), self._tokens + elapsed * self.rate_per_sec)
        self._updated_at = now

    def _reserve(self) -> float:
        """Take one token and return how long the caller must sleep for it."""
        with self._lock:
            self._refill()
            self._tokens -= 1.0
            if self._tokens >= 0.0:
                return 0.0
            return -self._tokens / self.rate_per_sec

    def wait(self) -> None:
        delay = self._reserve()
        if delay > 0:
            self._sleep(delay)


def pacer_from_settings(settings: Settings) -> Pacer:
    """Build the pacer selected by ALERT_PACING."""
    if settings.alert_pacing == PACING_NONE:
        return NoPacer()
    if settings.alert_pacing == PACING_TOKEN_BUCKET:
        logger.debug(
            "alert_pacer_token_bucket",
            rate_per_sec=settings.alert_rate_per_sec,
            capacity=settings.alert_burst,
        )
        return TokenBucketPacer(settings.alert_rate_per_sec, settings.alert_burst)
    return FixedDelayPacer(settings.alert_pacing_sec)


def pacer_factory(settings: Settings) -> Callable[[], Pacer]:
    """Zero-arg factory for the configured pacer; AlertService calls it once per batch."""
    return functools.partial(pacer_from_settings, settings)
