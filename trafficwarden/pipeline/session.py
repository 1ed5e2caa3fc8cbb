"""
Interception session: wires the decision engine and traffic ledger to a
browser driver's event stream for one page and one navigation.

Lifecycle::

    CREATED -> NAVIGATING -> LOADED -> EXTRACTING -> CLOSED

Interception is attached before navigation is issued, every request id
receives exactly one decision, each redirect hop of a response counts
toward ``bytes_allowed`` at most once and only for requests that were
continued, and closing releases the driver exactly once from any state.
Events arriving after close are dropped.
"""

from __future__ import annotations

import asyncio
import enum
import inspect
import threading
import time
import types
from collections.abc import Mapping
from typing import Any

from trafficwarden.browser.driver import BrowserDriver
from trafficwarden.browser.extractor import PageExtractor
from trafficwarden.interception.decision_engine import DecisionEngine
from trafficwarden.interception.ledger import TrafficLedger
from trafficwarden.models.browser import DeviceContext, LoadWaitPolicy
from trafficwarden.models.requests import (
    Decision,
    DecisionKind,
    PendingRequest,
    ResourceCategory,
)
from trafficwarden.models.summary import SessionSummary
from trafficwarden.utils import logger
from trafficwarden.utils.errors import (
    ConfigurationError,
    DuplicateDecisionError,
    DuplicateRequestError,
    LateAttachError,
    NavigationError,
    ProtocolViolationError,
    UnknownRequestError,
    get_error_message,
)
from trafficwarden.utils.serialization import format_bytes

log = logger.create_logger("Session")

DEFAULT_NAVIGATION_TIMEOUT_MS = 30000


class SessionState(enum.StrEnum):
    CREATED = "created"
    NAVIGATING = "navigating"
    LOADED = "loaded"
    EXTRACTING = "extracting"
    CLOSED = "closed"


class InterceptionSession:
    """Applies per-request decisions for one page and reports a summary."""

    def __init__(
        self,
        driver: BrowserDriver,
        engine: DecisionEngine,
        *,
        extractor: PageExtractor | None = None,
        device_context: DeviceContext | None = None,
        navigation_timeout_ms: int = DEFAULT_NAVIGATION_TIMEOUT_MS,
        load_wait_policy: LoadWaitPolicy = LoadWaitPolicy.DOM_READY,
        blocked_size_estimates: Mapping[ResourceCategory | str, int] | None = None,
        ledger: TrafficLedger | None = None,
    ) -> None:
        if navigation_timeout_ms <= 0:
            raise ConfigurationError(f"navigation_timeout_ms must be positive, got {navigation_timeout_ms}")
        self._driver = driver
        self._engine = engine
        self._extractor = extractor
        self._device_context = device_context or DeviceContext()
        self._timeout_ms = navigation_timeout_ms
        self._wait_policy = LoadWaitPolicy(load_wait_policy)
        self._size_estimates: dict[ResourceCategory, int] = {}
        for category, size in (blocked_size_estimates or {}).items():
            if isinstance(size, bool) or not isinstance(size, int) or size < 0:
                raise ConfigurationError(
                    f"blocked size estimate for {category!s} must be a non-negative int, got {size!r}"
                )
            self._size_estimates[ResourceCategory.parse(category)] = size
        self._ledger = ledger or TrafficLedger()

        self._state = SessionState.CREATED
        self._attached = False
        self._url: str | None = None
        self._created_at = time.monotonic()
        self._started_at: float | None = None

        self._received: dict[str, ResourceCategory] = {}
        self._decisions: dict[str, Decision] = {}
        self._accounted: set[tuple[str, int]] = set()
        self._response_lock = threading.Lock()

        self._partial = False
        self._extraction_error: str | None = None
        self._data: Any = None
        self._summary: SessionSummary | None = None

    # ==========================================================================
    # State Getters
    # ==========================================================================

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def partial(self) -> bool:
        return self._partial

    @property
    def ledger(self) -> TrafficLedger:
        return self._ledger

    @property
    def decisions(self) -> Mapping[str, Decision]:
        """Read-only view of request id -> applied decision."""
        return types.MappingProxyType(self._decisions)

    @property
    def summary(self) -> SessionSummary | None:
        """The final summary, available once the session is closed."""
        return self._summary

    # ==========================================================================
    # Lifecycle
    # ==========================================================================

    def attach(self) -> None:
        """Register the interception callbacks on the driver.

        Raises:
            LateAttachError: If navigation already started or callbacks
                were already attached.
        """
        if self._attached:
            raise LateAttachError("Interception is already attached to this session")
        if self._state is not SessionState.CREATED or self._driver.navigation_started:
            raise LateAttachError(
                f"Interception must be attached before navigation (state={self._state.value})"
            )
        self._driver.on_request(self._handle_request)
        self._driver.on_response(self._handle_response)
        self._attached = True
        log.debug("Interception attached", self._engine.rule_set.describe())

    async def start(self, url: str) -> None:
        """Attach (if needed) and navigate to *url*.

        A navigation timeout is not an error: the session moves to
        ``LOADED`` with ``partial=True``.  Any other driver failure is
        raised as ``NavigationError``.
        """
        if self._state is not SessionState.CREATED:
            raise RuntimeError(f"Session cannot start from state {self._state.value}")
        if not self._attached:
            self.attach()

        self._url = url
        self._started_at = time.monotonic()
        self._state = SessionState.NAVIGATING
        log.info("Navigating", {
            "url": url,
            "device": self._device_context.device_name,
            "waitPolicy": self._wait_policy.value,
            "timeoutMs": self._timeout_ms,
        })
        log.start_timer("navigation")
        try:
            async with asyncio.timeout(self._timeout_ms / 1000):
                await self._driver.navigate(url, self._wait_policy, self._timeout_ms)
        except TimeoutError:
            self._partial = True
            log.warn("Navigation timed out, continuing with partial page", {"timeoutMs": self._timeout_ms})
        except ProtocolViolationError:
            log.end_timer("navigation", "Navigation aborted")
            raise
        except Exception as exc:
            log.end_timer("navigation", "Navigation failed")
            log.error("Navigation error", {"url": url, "error": get_error_message(exc)})
            raise NavigationError(url, get_error_message(exc)) from exc
        log.end_timer("navigation", "Navigation complete")

        if self._state is SessionState.NAVIGATING:
            self._state = SessionState.LOADED

    async def extract(self) -> Any:
        """Run the content extractor once on the loaded page.

        Extraction failures are recorded in the summary, never raised.
        """
        if self._state is not SessionState.LOADED:
            raise RuntimeError(f"Session cannot extract from state {self._state.value}")
        self._state = SessionState.EXTRACTING
        if self._extractor is None:
            return None

        log.start_timer("extraction")
        try:
            result = self._extractor.extract(self._driver.page)
            if inspect.isawaitable(result):
                result = await result
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            self._extraction_error = get_error_message(exc)
            log.warn("Extraction failed", {"error": self._extraction_error})
            log.end_timer("extraction", "Extraction aborted")
            return None
        log.end_timer("extraction", "Extraction complete")
        self._data = result
        return result

    async def close(self) -> SessionSummary:
        """Release the driver and return the summary.  Safe to call repeatedly."""
        if self._summary is not None:
            return self._summary

        previous = self._state
        self._state = SessionState.CLOSED
        self._summary = self._build_summary()
        self._log_summary(previous)

        try:
            await self._driver.close()
        except Exception as exc:
            log.warn("Driver close failed", {"error": get_error_message(exc)})
        return self._summary

    async def run(self, url: str) -> SessionSummary:
        """Navigate, extract and close, releasing the driver on every exit path."""
        try:
            await self.start(url)
            await self.extract()
        finally:
            await self.close()
        assert self._summary is not None
        return self._summary

    async def __aenter__(self) -> InterceptionSession:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # ==========================================================================
    # Driver callbacks
    # ==========================================================================

    async def _handle_request(self, request: PendingRequest) -> None:
        if self._state is SessionState.CLOSED:
            log.debug("Dropping request after close", {"id": request.id})
            return
        if request.id in self._received:
            raise DuplicateRequestError(f"Request id {request.id!r} was reported twice")
        self._received[request.id] = request.category

        decision = self._engine.decide(request, self._device_context)
        await self._apply(request.id, decision)

    async def _apply(self, request_id: str, decision: Decision) -> None:
        """Record and apply the one decision for *request_id*."""
        if request_id not in self._received:
            raise UnknownRequestError(f"Decision for unknown request id {request_id!r}")
        if request_id in self._decisions:
            raise DuplicateDecisionError(f"Request {request_id!r} already has a decision")
        self._decisions[request_id] = decision

        self._ledger.record_outcome(decision.kind)
        if decision.kind is DecisionKind.ABORT:
            category = self._received[request_id]
            self._ledger.record_blocked(self._size_estimates.get(category, 0), decision.reason)

        await self._driver.apply_decision(request_id, decision)

    def _handle_response(self, request_id: str, byte_count: int, hop: int = 0) -> None:
        if self._state is SessionState.CLOSED:
            return
        decision = self._decisions.get(request_id)
        if decision is None:
            log.debug("Response for unknown request ignored", {"id": request_id})
            return
        if decision.kind is not DecisionKind.CONTINUE:
            return
        if byte_count < 0:
            log.warn("Negative byte count from driver, counting 0", {"id": request_id, "bytes": byte_count})
            byte_count = 0
        with self._response_lock:
            if (request_id, hop) in self._accounted:
                return
            self._accounted.add((request_id, hop))
        self._ledger.record_allowed(byte_count, self._received.get(request_id))

    # ==========================================================================
    # Summary
    # ==========================================================================

    def _build_summary(self) -> SessionSummary:
        started = self._started_at if self._started_at is not None else self._created_at
        return SessionSummary.from_snapshot(
            self._ledger.snapshot(),
            url=self._url,
            device_name=self._device_context.device_name,
            elapsed_ms=int((time.monotonic() - started) * 1000),
            partial=self._partial,
            extraction_error=self._extraction_error,
            data=self._data,
        )

    def _log_summary(self, previous: SessionState) -> None:
        assert self._summary is not None
        undecided = len(self._received) - len(self._decisions)
        if undecided:
            log.warn("Requests closed without a decision", {"count": undecided})
        log.success("Session closed", {
            "from": previous.value,
            "requests": len(self._decisions),
            "allowed": format_bytes(self._summary.bytes_allowed),
            "blocked": self._summary.requests_by_outcome.get(DecisionKind.ABORT.value, 0),
            "partial": self._summary.partial,
            "elapsedMs": self._summary.elapsed_ms,
        })
