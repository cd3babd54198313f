"""Rolling health tracking for the embedding provider."""

import logging
import threading
import time
from collections import deque
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)


class ProviderHealth:
    """Tracks recent provider outcomes and decides whether it is usable.

    The provider is unhealthy when, over the last ``window`` calls (with at
    least ``min_samples`` recorded), the failure rate reaches
    ``failure_threshold``, or when the last successful call was slower than
    ``latency_budget_ms``. After ``cooldown`` seconds in the unhealthy state
    one probe is let through; its outcome decides the next state.
    """

    def __init__(
        self,
        window: int = 20,
        min_samples: int = 3,
        failure_threshold: float = 0.5,
        latency_budget_ms: float = 3000.0,
        cooldown: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._outcomes: deque[bool] = deque(maxlen=window)
        self._min_samples = min_samples
        self._failure_threshold = failure_threshold
        self._latency_budget_ms = latency_budget_ms
        self._cooldown = cooldown
        self._clock = clock
        self._lock = threading.Lock()
        self._last_latency_ms: float | None = None
        self._last_error: str | None = None
        self._unhealthy_since: float | None = None

    def record_success(self, latency_ms: float) -> None:
        """Record a successful provider call and its latency."""
        with self._lock:
            self._outcomes.append(True)
            self._last_latency_ms = latency_ms
            self._update_state()

    def record_failure(self, error: BaseException | str) -> None:
        """Record a failed provider call (transport, timeout, quota, auth...)."""
        with self._lock:
            self._outcomes.append(False)
            self._last_error = error if isinstance(error, str) else type(error).__name__
            self._update_state()

    def is_healthy(self) -> bool:
        """Check whether the provider should be used for the next request."""
        with self._lock:
            if self._unhealthy_since is None:
                return True
            # Half-open: allow a probe once the cooldown has elapsed
            return self._clock() - self._unhealthy_since >= self._cooldown

    def failure_rate(self) -> float:
        with self._lock:
            return self._failure_rate()

    def snapshot(self) -> dict[str, Any]:
        """Get a point-in-time view of the health counters."""
        healthy = self.is_healthy()
        with self._lock:
            return {
                "healthy": healthy,
                "failure_rate": self._failure_rate(),
                "samples": len(self._outcomes),
                "last_latency_ms": self._last_latency_ms,
                "last_error": self._last_error,
            }

    def reset(self) -> None:
        with self._lock:
            self._outcomes.clear()
            self._last_latency_ms = None
            self._last_error = None
            self._unhealthy_since = None

    def _failure_rate(self) -> float:
        if not self._outcomes:
            return 0.0
        return self._outcomes.count(False) / len(self._outcomes)

    def _update_state(self) -> None:
        unhealthy = self._evaluate()
        if unhealthy:
            if self._unhealthy_since is None:
                logger.warning(
                    "Embedding provider marked unhealthy (failure_rate=%.2f, last_latency_ms=%s, last_error=%s)",
                    self._failure_rate(),
                    self._last_latency_ms,
                    self._last_error,
                )
            # Restart the cooldown on every failure while open
            self._unhealthy_since = self._clock()
        elif self._unhealthy_since is not None:
            logger.info("Embedding provider recovered")
            self._unhealthy_since = None

    def _evaluate(self) -> bool:
        if self._outcomes and self._outcomes[-1] and self._unhealthy_since is not None:
            # A successful probe closes the breaker; start a fresh window
            last_latency = self._last_latency_ms or 0.0
            if last_latency <= self._latency_budget_ms:
                self._outcomes.clear()
                self._outcomes.append(True)
                return False

        if self._last_latency_ms is not None and self._last_latency_ms > self._latency_budget_ms:
            return True
        if len(self._outcomes) < self._min_samples:
            # Too few samples for a rate, but a failed probe keeps the breaker open
            return self._unhealthy_since is not None and not self._outcomes[-1]
        return self._failure_rate() >= self._failure_threshold
