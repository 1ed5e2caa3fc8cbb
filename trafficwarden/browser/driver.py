"""
Browser driver contract consumed by the session orchestrator.

The orchestrator calls ``apply_decision`` exactly once for every request
id it receives through the request callback; the driver only needs to
pause requests, report finished responses, navigate and close.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, Protocol, runtime_checkable

from trafficwarden.models.browser import LoadWaitPolicy
from trafficwarden.models.requests import Decision, PendingRequest

RequestCallback = Callable[[PendingRequest], Awaitable[None]]
ResponseCallback = Callable[[str, int, int], None]


@runtime_checkable
class BrowserDriver(Protocol):
    """Narrow interface over a controlled browser page."""

    @property
    def navigation_started(self) -> bool:
        """True once ``navigate`` has been issued on the page."""
        ...

    @property
    def page(self) -> Any:
        """Opaque page handle handed to the content extractor."""
        ...

    def on_request(self, callback: RequestCallback) -> None:
        """Register the callback receiving every paused request."""
        ...

    def on_response(self, callback: ResponseCallback) -> None:
        """Register the callback receiving ``(request_id, byte_count, hop)``.

        ``hop`` is 0 for the routed request and counts up along its
        redirect chain, so one request id may report several hops.
        """
        ...

    async def apply_decision(self, request_id: str, decision: Decision) -> None:
        """Resume, fail or fulfil the paused request *request_id*."""
        ...

    async def navigate(self, url: str, wait_policy: LoadWaitPolicy, timeout_ms: int) -> None:
        """Load *url*; raise ``TimeoutError`` when the wait policy is not met in time."""
        ...

    async def close(self) -> None:
        """Release every browser resource held by the driver."""
        ...
