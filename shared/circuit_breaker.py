"""
Circuit breaker pattern implementation for resilient upstream calls.

One breaker instance tracks failures for many endpoints. Each endpoint key
gets a lazily created ``FailureRecord``; the breaker opens once the record's
count exceeds the threshold and closes again when a success deletes the
record or when the cool-down window measured from the tripping failure has
elapsed. Expiry is evaluated on access against an injectable clock, so no
timers run in the background.
"""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

from shared.logging import get_logger


class CircuitBreakerState(Enum):
    """Circuit breaker states."""
    CLOSED = "closed"      # Normal operation
    OPEN = "open"          # Failing, requests blocked


@dataclass
class FailureRecord:
    """Failure bookkeeping for a single endpoint."""
    endpoint_key: str
    count: int
    last_failure_at: float
    tripped_at: Optional[float] = None


class CircuitBreaker:
    """Per-endpoint failure counter with a trip threshold and cool-down."""

    def __init__(self,
                 failure_threshold: int = 3,
                 cooldown_seconds: float = 120.0,
                 name: str = "upstream",
                 clock: Callable[[], float] = time.monotonic,
                 on_trip: Optional[Callable[[str], None]] = None):
        self.failure_threshold = failure_threshold
        self.cooldown_seconds = cooldown_seconds
        self.name = name
        self.logger = get_logger(f"proxy.circuit_breaker.{name}")
        self._clock = clock
        self._on_trip = on_trip
        self._records: Dict[str, FailureRecord] = {}

    def _current(self, key: str) -> Optional[FailureRecord]:
        """Return the live record for ``key``, dropping it if its window has passed."""
        record = self._records.get(key)
        if record is None:
            return None

        started = record.tripped_at if record.tripped_at is not None else record.last_failure_at
        if self._clock() - started >= self.cooldown_seconds:
            del self._records[key]
            if record.tripped_at is not None:
                self.logger.info(
                    "Circuit breaker cool-down elapsed, closing",
                    endpoint=key,
                    failure_count=record.count
                )
            return None
        return record

    def is_open(self, key: str) -> bool:
        """True iff the endpoint's failure count exceeds the threshold."""
        record = self._current(key)
        return record is not None and record.count > self.failure_threshold

    def state(self, key: str) -> CircuitBreakerState:
        return CircuitBreakerState.OPEN if self.is_open(key) else CircuitBreakerState.CLOSED

    def record_failure(self, key: str) -> FailureRecord:
        """Count a qualifying failure against ``key``."""
        now = self._clock()
        record = self._current(key)
        if record is None:
            record = FailureRecord(endpoint_key=key, count=0, last_failure_at=now)
            self._records[key] = record

        record.count += 1
        record.last_failure_at = now

        if record.count > self.failure_threshold and record.tripped_at is None:
            record.tripped_at = now
            self.logger.warning(
                "Circuit breaker opened due to failures",
                endpoint=key,
                failure_count=record.count,
                threshold=self.failure_threshold
            )
            if self._on_trip is not None:
                self._on_trip(key)
        else:
            self.logger.debug("Failure recorded", endpoint=key, failure_count=record.count)

        return record

    def record_success(self, key: str) -> None:
        """Forget every failure recorded for ``key``."""
        record = self._records.pop(key, None)
        if record is not None and record.tripped_at is not None:
            self.logger.info("Circuit breaker reset to CLOSED after successful call", endpoint=key)

    def get_state(self, key: str) -> Dict[str, Any]:
        """Get current circuit breaker state for one endpoint."""
        record = self._current(key)
        remaining = None
        if record is not None and record.tripped_at is not None:
            remaining = max(0.0, self.cooldown_seconds - (self._clock() - record.tripped_at))

        return {
            "endpoint": key,
            "state": self.state(key).value,
            "failure_count": record.count if record else 0,
            "failure_threshold": self.failure_threshold,
            "cooldown_seconds": self.cooldown_seconds,
            "cooldown_remaining": remaining,
        }

    def get_all_states(self) -> Dict[str, Dict[str, Any]]:
        """Get states of every endpoint with a live failure record."""
        return {key: self.get_state(key) for key in list(self._records) if self._current(key)}
