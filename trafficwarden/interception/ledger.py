"""
Traffic ledger: byte and request counters for one session.

The ledger is the only mutable state shared by concurrently handled
requests.  All updates go through one ``threading.Lock`` so that
responses arriving from the event loop or from driver threads never
lose or double-apply an update.  Counters only ever grow.
"""

from __future__ import annotations

import collections
import threading

from trafficwarden.models.requests import DecisionKind, ResourceCategory
from trafficwarden.models.summary import LedgerSnapshot


def _check_non_negative(value: int, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")
    return value


class TrafficLedger:
    """Monotonic counters for allowed and blocked traffic."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._bytes_allowed = 0
        self._bytes_blocked_estimate = 0
        self._requests_by_outcome: collections.Counter[str] = collections.Counter()
        self._requests_by_reason: collections.Counter[str] = collections.Counter()
        self._bytes_by_category: collections.Counter[str] = collections.Counter()

    def record_outcome(self, kind: DecisionKind | str) -> None:
        """Count one decision of *kind*."""
        key = DecisionKind(kind).value
        with self._lock:
            self._requests_by_outcome[key] += 1

    def record_allowed(self, byte_count: int, category: ResourceCategory | str | None = None) -> None:
        """Add the size of a response that crossed the network."""
        _check_non_negative(byte_count, "byte_count")
        with self._lock:
            self._bytes_allowed += byte_count
            if category is not None:
                self._bytes_by_category[ResourceCategory.parse(category).value] += byte_count

    def record_blocked(self, estimated_bytes: int = 0, reason: str | None = None) -> None:
        """Add the estimated size of a request that was never sent.

        Drivers cannot measure a request that never left the browser, so
        the estimate is usually 0.
        """
        _check_non_negative(estimated_bytes, "estimated_bytes")
        with self._lock:
            self._bytes_blocked_estimate += estimated_bytes
            if reason:
                self._requests_by_reason[reason] += 1

    @property
    def bytes_allowed(self) -> int:
        with self._lock:
            return self._bytes_allowed

    @property
    def bytes_blocked_estimate(self) -> int:
        with self._lock:
            return self._bytes_blocked_estimate

    def snapshot(self) -> LedgerSnapshot:
        """Return a consistent copy of every counter."""
        with self._lock:
            return LedgerSnapshot(
                bytes_allowed=self._bytes_allowed,
                bytes_blocked_estimate=self._bytes_blocked_estimate,
                requests_by_outcome=dict(self._requests_by_outcome),
                requests_by_reason=dict(self._requests_by_reason),
                bytes_by_category=dict(self._bytes_by_category),
            )
