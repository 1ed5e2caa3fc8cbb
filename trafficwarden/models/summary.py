"""Pydantic models for ledger snapshots and the end-of-session summary."""

from __future__ import annotations

from typing import Any

import pydantic

from trafficwarden.utils import serialization

_MODEL_CONFIG = pydantic.ConfigDict(
    alias_generator=serialization.snake_to_camel,
    populate_by_name=True,
    frozen=True,
)


class LedgerSnapshot(pydantic.BaseModel):
    """Point-in-time copy of the traffic ledger counters."""

    model_config = _MODEL_CONFIG

    bytes_allowed: int = 0
    bytes_blocked_estimate: int = 0
    requests_by_outcome: dict[str, int] = pydantic.Field(default_factory=dict)
    requests_by_reason: dict[str, int] = pydantic.Field(default_factory=dict)
    bytes_by_category: dict[str, int] = pydantic.Field(default_factory=dict)

    @property
    def total_requests(self) -> int:
        return sum(self.requests_by_outcome.values())


class SessionSummary(pydantic.BaseModel):
    """Immutable report produced once when a session closes."""

    model_config = _MODEL_CONFIG

    url: str | None = None
    device_name: str | None = None
    bytes_allowed: int = 0
    bytes_blocked_estimate: int = 0
    requests_by_outcome: dict[str, int] = pydantic.Field(default_factory=dict)
    requests_by_reason: dict[str, int] = pydantic.Field(default_factory=dict)
    bytes_by_category: dict[str, int] = pydantic.Field(default_factory=dict)
    elapsed_ms: int = 0
    partial: bool = False
    extraction_error: str | None = None
    data: Any = None

    @classmethod
    def from_snapshot(
        cls,
        snapshot: LedgerSnapshot,
        *,
        url: str | None,
        device_name: str | None,
        elapsed_ms: int,
        partial: bool,
        extraction_error: str | None,
        data: Any,
    ) -> SessionSummary:
        return cls(
            url=url,
            device_name=device_name,
            bytes_allowed=snapshot.bytes_allowed,
            bytes_blocked_estimate=snapshot.bytes_blocked_estimate,
            requests_by_outcome=dict(snapshot.requests_by_outcome),
            requests_by_reason=dict(snapshot.requests_by_reason),
            bytes_by_category=dict(snapshot.bytes_by_category),
            elapsed_ms=elapsed_ms,
            partial=partial,
            extraction_error=extraction_error,
            data=data,
        )
