"""
Pytest tests for alert pacing, driven with a virtual clock (no real sleeps).
"""

from __future__ import annotations

import threading

import pytest

from cloudguard.alerts import FixedDelayPacer, NoPacer, TokenBucketPacer, pacer_factory, pacer_from_settings
from cloudguard.config import Settings


class VirtualTime:
    """Clock whose sleep() just advances time."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def clock(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def test_fixed_delay_sleeps_every_wait():
    vt = VirtualTime()
    pacer = FixedDelayPacer(0.1, sleep=vt.sleep)
    pacer.wait()
    pacer.wait()
    assert vt.sleeps == [0.1, 0.1]


def test_fixed_delay_zero_never_sleeps():
    vt = VirtualTime()
    FixedDelayPacer(0, sleep=vt.sleep).wait()
    assert vt.sleeps == []


def test_fixed_delay_rejects_negative():
    with pytest.raises(ValueError):
        FixedDelayPacer(-1)


def test_token_bucket_allows_burst_then_paces():
    """Capacity 2 at 2/s: two immediate sends, then one every 0.5s."""
    vt = VirtualTime()
    pacer = TokenBucketPacer(rate_per_sec=2.0, capacity=2, clock=vt.clock, sleep=vt.sleep)
    pacer.wait()
    pacer.wait()
    assert vt.sleeps == []
    pacer.wait()
    assert vt.sleeps == [pytest.approx(0.5)]
    pacer.wait()
    assert vt.sleeps == [pytest.approx(0.5), pytest.approx(0.5)]


def test_token_bucket_refills_while_idle():
    """Idle time refills the bucket, capped at capacity."""
    vt = VirtualTime()
    pacer = TokenBucketPacer(rate_per_sec=1.0, capacity=2, clock=vt.clock, sleep=vt.sleep)
    pacer.wait()
    pacer.wait()
    vt.now += 100.0
    pacer.wait()
    pacer.wait()
    assert vt.sleeps == []
    pacer.wait()
    assert vt.sleeps == [pytest.approx(1.0)]


def test_token_bucket_validates_arguments():
    with pytest.raises(ValueError):
        TokenBucketPacer(rate_per_sec=0)
    with pytest.raises(ValueError):
        TokenBucketPacer(rate_per_sec=1, capacity=0)


def test_pacer_from_settings():
    assert isinstance(pacer_from_settings(Settings(alert_pacing="none")), NoPacer)
    fixed = pacer_from_settings(Settings(alert_pacing="fixed", alert_pacing_sec=0.25))
    assert isinstance(fixed, FixedDelayPacer)
    assert fixed.delay_sec == 0.25
    bucket = pacer_from_settings(Settings(alert_pacing="token_bucket", alert_rate_per_sec=5, alert_burst=3))
    assert isinstance(bucket, TokenBucketPacer)
    assert bucket.capacity == 3


def test_token_bucket_concurrent_callers_get_distinct_slots():
    """Two threads waiting on an empty bucket at once are queued 1s and 2s out, not both at 1s."""
    delays: list[float] = []
    both_sleeping = threading.Barrier(2, timeout=5)

    def sleep(seconds: float) -> None:
        delays.append(seconds)
        both_sleeping.wait()

    pacer = TokenBucketPacer(rate_per_sec=1.0, capacity=1, clock=lambda: 0.0, sleep=sleep)
    pacer.wait()

    threads = [threading.Thread(target=pacer.wait) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=5)

    assert sorted(delays) == [pytest.approx(1.0), pytest.approx(2.0)]


def test_pacer_factory_builds_a_fresh_pacer_each_call():
    make = pacer_factory(Settings(alert_pacing="token_bucket", alert_rate_per_sec=1, alert_burst=1))
    first, second = make(), make()
    assert isinstance(first, TokenBucketPacer)
    assert first is not second
