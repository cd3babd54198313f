"""
Tests for rolling provider health.
"""

from artisan_match.errors import EmbeddingQuotaError, EmbeddingTimeoutError
from artisan_match.services.provider_health import ProviderHealth


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def make_health(clock: FakeClock) -> ProviderHealth:
    return ProviderHealth(
        window=10,
        min_samples=3,
        failure_threshold=0.5,
        latency_budget_ms=1000,
        cooldown=30,
        clock=clock,
    )


def test_new_tracker_is_healthy():
    health = make_health(FakeClock())
    assert health.is_healthy()
    assert health.failure_rate() == 0.0


def test_failures_below_min_samples_keep_provider_healthy():
    health = make_health(FakeClock())
    health.record_failure(EmbeddingTimeoutError("slow"))
    health.record_failure(EmbeddingTimeoutError("slow"))
    assert health.is_healthy()


def test_failure_rate_over_threshold_marks_unhealthy():
    health = make_health(FakeClock())
    health.record_success(50)
    health.record_failure(EmbeddingQuotaError("quota"))
    health.record_failure(EmbeddingTimeoutError("slow"))

    assert not health.is_healthy()
    assert health.snapshot()["last_error"] == "EmbeddingTimeoutError"


def test_slow_success_marks_unhealthy():
    health = make_health(FakeClock())
    health.record_success(5000)
    assert not health.is_healthy()


def test_cooldown_allows_probe_and_success_recovers():
    clock = FakeClock()
    health = make_health(clock)
    for _ in range(3):
        health.record_failure("transport")
    assert not health.is_healthy()

    clock.now += 30
    assert health.is_healthy()

    health.record_success(20)
    assert health.is_healthy()
    assert health.failure_rate() == 0.0


def test_failed_probe_restarts_cooldown():
    clock = FakeClock()
    health = make_health(clock)
    for _ in range(3):
        health.record_failure("transport")

    clock.now += 30
    health.record_failure("transport")

    assert not health.is_healthy()
    clock.now += 29
    assert not health.is_healthy()
    clock.now += 1
    assert health.is_healthy()


def test_reset_clears_state():
    health = make_health(FakeClock())
    for _ in range(3):
        health.record_failure("transport")
    health.reset()

    assert health.is_healthy()
    assert health.snapshot()["samples"] == 0
