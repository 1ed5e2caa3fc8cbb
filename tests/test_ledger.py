"""Tests for trafficwarden.interception.ledger: counters and thread safety."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest

from trafficwarden.interception.ledger import TrafficLedger
from trafficwarden.models.requests import DecisionKind, ResourceCategory


class TestTrafficLedger:
    def test_starts_at_zero(self) -> None:
        snapshot = TrafficLedger().snapshot()
        assert snapshot.bytes_allowed == 0
        assert snapshot.bytes_blocked_estimate == 0
        assert snapshot.requests_by_outcome == {}
        assert snapshot.total_requests == 0

    def test_record_allowed(self) -> None:
        ledger = TrafficLedger()
        ledger.record_allowed(100, ResourceCategory.SCRIPT)
        ledger.record_allowed(50, "script")
        ledger.record_allowed(25)
        assert ledger.bytes_allowed == 175
        assert ledger.snapshot().bytes_by_category == {"script": 150}

    def test_record_blocked_defaults_to_zero_bytes(self) -> None:
        ledger = TrafficLedger()
        ledger.record_blocked(reason="blocked-domain")
        ledger.record_blocked(2048, "blocked-category")
        snapshot = ledger.snapshot()
        assert snapshot.bytes_blocked_estimate == 2048
        assert snapshot.requests_by_reason == {"blocked-domain": 1, "blocked-category": 1}

    def test_record_outcome(self) -> None:
        ledger = TrafficLedger()
        ledger.record_outcome(DecisionKind.CONTINUE)
        ledger.record_outcome("abort")
        ledger.record_outcome("abort")
        assert ledger.snapshot().requests_by_outcome == {"continue": 1, "abort": 2}

    def test_unknown_outcome_rejected(self) -> None:
        with pytest.raises(ValueError):
            TrafficLedger().record_outcome("skip")

    @pytest.mark.parametrize("bad", [-1, -1024])
    def test_negative_rejected(self, bad: int) -> None:
        ledger = TrafficLedger()
        with pytest.raises(ValueError):
            ledger.record_allowed(bad)
        with pytest.raises(ValueError):
            ledger.record_blocked(bad)
        assert ledger.snapshot().bytes_allowed == 0

    @pytest.mark.parametrize("bad", [1.5, "10", True])
    def test_non_int_rejected(self, bad: object) -> None:
        with pytest.raises(TypeError):
            TrafficLedger().record_allowed(bad)  # type: ignore[arg-type]

    def test_snapshot_is_a_copy(self) -> None:
        ledger = TrafficLedger()
        ledger.record_outcome("continue")
        snapshot = ledger.snapshot()
        ledger.record_outcome("continue")
        assert snapshot.requests_by_outcome == {"continue": 1}

    def test_concurrent_updates_not_lost(self) -> None:
        ledger = TrafficLedger()

        def work(_: int) -> None:
            for _ in range(500):
                ledger.record_outcome("continue")
                ledger.record_allowed(3, "image")
                ledger.record_blocked(1, "blocked-path")

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(work, range(8)))

        snapshot = ledger.snapshot()
        assert snapshot.requests_by_outcome == {"continue": 4000}
        assert snapshot.bytes_allowed == 12000
        assert snapshot.bytes_by_category == {"image": 12000}
        assert snapshot.bytes_blocked_estimate == 4000
        assert snapshot.requests_by_reason == {"blocked-path": 4000}
