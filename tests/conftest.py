"""Shared fixtures for the test suite."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterator, Sequence

import pytest

from trafficwarden.browser.driver import RequestCallback, ResponseCallback
from trafficwarden.interception.decision_engine import DecisionEngine
from trafficwarden.interception.rule_set import RuleSet
from trafficwarden.models.browser import LoadWaitPolicy
from trafficwarden.models.requests import Decision, PendingRequest, ResourceCategory
from trafficwarden.utils import logger

# ── Fake driver ─────────────────────────────────────────────────


class FakePage:
    """Stand-in page handle; extractors in tests read ``url``."""

    def __init__(self, url: str = "https://example.com/") -> None:
        self.url = url


class FakeDriver:
    """Scripted in-memory driver.

    During ``navigate`` it emits every scripted request through the
    registered request callback, then every scripted ``(id, bytes)``
    response, then optionally sleeps and/or raises.
    """

    def __init__(
        self,
        requests: Sequence[PendingRequest] = (),
        responses: Sequence[tuple[str, int]] = (),
        *,
        navigate_delay: float = 0.0,
        navigate_error: BaseException | None = None,
        close_error: BaseException | None = None,
        page: object | None = None,
    ) -> None:
        self.requests = list(requests)
        self.responses = list(responses)
        self.navigate_delay = navigate_delay
        self.navigate_error = navigate_error
        self.close_error = close_error
        self.page = page if page is not None else FakePage()

        self.applied: list[tuple[str, Decision]] = []
        self.navigations: list[tuple[str, LoadWaitPolicy, int]] = []
        self.close_calls = 0
        self._navigation_started = False
        self._request_callback: RequestCallback | None = None
        self._response_callback: ResponseCallback | None = None

    @property
    def navigation_started(self) -> bool:
        return self._navigation_started

    def on_request(self, callback: RequestCallback) -> None:
        self._request_callback = callback

    def on_response(self, callback: ResponseCallback) -> None:
        self._response_callback = callback

    async def apply_decision(self, request_id: str, decision: Decision) -> None:
        self.applied.append((request_id, decision))

    async def navigate(self, url: str, wait_policy: LoadWaitPolicy, timeout_ms: int) -> None:
        self._navigation_started = True
        self.navigations.append((url, wait_policy, timeout_ms))
        for request in self.requests:
            await self.emit_request(request)
        for request_id, byte_count in self.responses:
            self.emit_response(request_id, byte_count)
        if self.navigate_delay:
            await asyncio.sleep(self.navigate_delay)
        if self.navigate_error is not None:
            raise self.navigate_error

    async def close(self) -> None:
        self.close_calls += 1
        if self.close_error is not None:
            raise self.close_error

    # Helpers for driving callbacks directly from tests.

    async def emit_request(self, request: PendingRequest) -> None:
        assert self._request_callback is not None, "interception not attached"
        await self._request_callback(request)

    def emit_response(self, request_id: str, byte_count: int, hop: int = 0) -> None:
        assert self._response_callback is not None, "interception not attached"
        self._response_callback(request_id, byte_count, hop)


# ── Factories ───────────────────────────────────────────────────


def make_request(
    request_id: str,
    url: str,
    category: ResourceCategory | str = ResourceCategory.DOCUMENT,
) -> PendingRequest:
    return PendingRequest(id=request_id, url=url, category=category)


@pytest.fixture()
def scenario_rule_set() -> RuleSet:
    """Blocks heavy assets by category and Google Analytics by domain."""
    return RuleSet(
        blocked_categories={"image", "font", "media"},
        blocked_domains={"google-analytics.com"},
    )


@pytest.fixture()
def scenario_engine(scenario_rule_set: RuleSet) -> DecisionEngine:
    return DecisionEngine(scenario_rule_set)


@pytest.fixture()
def scenario_requests() -> list[PendingRequest]:
    return [
        make_request("r1", "https://example.com/", ResourceCategory.DOCUMENT),
        make_request("r2", "https://example.com/logo.png", ResourceCategory.IMAGE),
        make_request("r3", "https://google-analytics.com/ga.js", ResourceCategory.SCRIPT),
        make_request("r4", "https://example.com/app.js", ResourceCategory.SCRIPT),
    ]


@pytest.fixture(autouse=True)
def _clean_log_state(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.delenv("TRAFFICWARDEN_LOG_LEVEL", raising=False)
    logger.clear_log_buffer()
    yield
    logger.clear_log_buffer()


@pytest.fixture()
def make_driver() -> type[FakeDriver]:
    """The scripted driver class; call it with requests/responses."""
    return FakeDriver


@pytest.fixture()
def make_pending() -> Callable[..., PendingRequest]:
    return make_request
