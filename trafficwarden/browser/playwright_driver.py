"""
Playwright implementation of the browser driver contract.

Every request is paused with ``page.route("**/*")`` and held until the
orchestrator applies a decision.  Byte counts come from
``requestfinished`` events via ``request.sizes()``, one report per redirect
hop, falling back to the ``content-length`` header when sizes are
unavailable.
"""

from __future__ import annotations

import itertools
from typing import Any

from playwright import async_api

from trafficwarden.browser.driver import RequestCallback, ResponseCallback
from trafficwarden.models.browser import DeviceProfile, LoadWaitPolicy
from trafficwarden.models.requests import Decision, DecisionKind, PendingRequest
from trafficwarden.utils import logger
from trafficwarden.utils.errors import UnknownRequestError

log = logger.create_logger("PlaywrightDriver")

# Playwright error code reported to the page for aborted requests.
ABORT_ERROR_CODE = "blockedbyclient"

LAUNCH_ARGS = [
    "--no-first-run",
    "--no-default-browser-check",
    "--disable-dev-shm-usage",
    "--disable-extensions",
]


class PlaywrightDriver:
    """Drives one Playwright page and pauses its requests for decisions."""

    def __init__(
        self,
        page: async_api.Page,
        *,
        context: async_api.BrowserContext | None = None,
        browser: async_api.Browser | None = None,
        playwright: async_api.Playwright | None = None,
    ) -> None:
        self._page: async_api.Page | None = page
        self._context = context
        self._browser = browser
        self._playwright = playwright

        self._request_callback: RequestCallback | None = None
        self._response_callback: ResponseCallback | None = None
        self._routes: dict[str, async_api.Route] = {}
        self._request_ids: dict[async_api.Request, str] = {}
        self._ids = itertools.count(1)
        self._navigation_started = False
        self._installed = False
        self._closed = False

    # ==========================================================================
    # Lifecycle
    # ==========================================================================

    @classmethod
    async def launch(
        cls,
        profile: DeviceProfile | None = None,
        *,
        headless: bool = True,
    ) -> PlaywrightDriver:
        """Start Playwright, open a Chromium page emulating *profile* and install interception."""
        pw = await async_api.async_playwright().start()
        try:
            browser = await pw.chromium.launch(headless=headless, args=LAUNCH_ARGS)
            context_options = profile.to_context_options() if profile else {}
            context = await browser.new_context(**context_options)  # type: ignore[arg-type]
            page = await context.new_page()
        except Exception:
            await pw.stop()
            raise

        log.info("Browser launched", {
            "device": profile.name if profile else None,
            "headless": headless,
        })
        driver = cls(page, context=context, browser=browser, playwright=pw)
        await driver.install()
        return driver

    async def install(self) -> None:
        """Route every request of the page through this driver."""
        if self._installed or self._page is None:
            return
        await self._page.route("**/*", self._handle_route)
        self._page.on("requestfinished", self._on_request_finished)
        self._installed = True

    async def close(self) -> None:
        """Close the page, context, browser and Playwright, in that order."""
        if self._closed:
            return
        self._closed = True
        log.debug("Closing driver", {"heldRoutes": len(self._routes)})

        if self._page is not None:
            self._page.remove_listener("requestfinished", self._on_request_finished)
            self._page = None
        self._routes.clear()
        self._request_ids.clear()

        if self._context is not None:
            try:
                await self._context.close()
            except Exception as exc:
                log.debug("Context close error (non-fatal)", {"error": str(exc)})
            self._context = None

        if self._browser is not None:
            try:
                await self._browser.close()
            except Exception as exc:
                log.debug("Browser close error (non-fatal)", {"error": str(exc)})
            self._browser = None

        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except Exception as exc:
                log.debug("Playwright stop error (non-fatal)", {"error": str(exc)})
            self._playwright = None

    # ==========================================================================
    # Driver contract
    # ==========================================================================

    @property
    def navigation_started(self) -> bool:
        return self._navigation_started

    @property
    def page(self) -> async_api.Page | None:
        return self._page

    def on_request(self, callback: RequestCallback) -> None:
        self._request_callback = callback

    def on_response(self, callback: ResponseCallback) -> None:
        self._response_callback = callback

    async def navigate(self, url: str, wait_policy: LoadWaitPolicy, timeout_ms: int) -> None:
        if self._page is None:
            raise RuntimeError("Driver is closed")
        self._navigation_started = True
        log.debug("Navigating", {"url": url, "waitUntil": wait_policy.playwright_state, "timeout": timeout_ms})
        try:
            await self._page.goto(url, wait_until=wait_policy.playwright_state, timeout=timeout_ms)  # type: ignore[arg-type]
        except async_api.TimeoutError as exc:
            raise TimeoutError(str(exc)) from exc

    async def apply_decision(self, request_id: str, decision: Decision) -> None:
        route = self._routes.pop(request_id, None)
        if route is None:
            raise UnknownRequestError(f"No paused request with id {request_id!r}")
        try:
            if decision.kind is DecisionKind.CONTINUE:
                await route.continue_()
            elif decision.kind is DecisionKind.ABORT:
                await route.abort(ABORT_ERROR_CODE)
            else:
                await route.fulfill(
                    status=decision.status_code,
                    headers=decision.headers or None,
                    body=decision.body,
                    content_type=decision.content_type,
                )
        except async_api.Error as exc:
            # The page navigated away or closed while the request was paused.
            log.debug("Route already handled", {"id": request_id, "error": str(exc)})

    # ==========================================================================
    # Playwright event handlers
    # ==========================================================================

    async def _handle_route(self, route: async_api.Route) -> None:
        request = route.request
        if self._request_callback is None or self._closed:
            await route.continue_()
            return

        request_id = f"req-{next(self._ids)}"
        self._routes[request_id] = route
        self._request_ids[request] = request_id
        pending = PendingRequest(
            id=request_id,
            url=request.url,
            category=request.resource_type,
            headers=dict(request.headers),
            method=request.method,
        )
        await self._request_callback(pending)

    def _lookup_id(self, request: async_api.Request) -> tuple[str, int] | None:
        """Return the routed request id and the redirect hop of *request*."""
        # Redirect hops are not routed, so walk back to the routed request.
        hop = 0
        current: async_api.Request | None = request
        while current is not None:
            request_id = self._request_ids.get(current)
            if request_id is not None:
                return request_id, hop
            current = current.redirected_from
            hop += 1
        return None

    async def _on_request_finished(self, request: async_api.Request) -> None:
        if self._response_callback is None or self._closed:
            return
        found = self._lookup_id(request)
        if found is None:
            return
        request_id, hop = found
        byte_count = await self._measure(request)
        if not self._closed:
            self._response_callback(request_id, byte_count, hop)

    @staticmethod
    async def _measure(request: async_api.Request) -> int:
        """Response size in bytes (headers + body) for a finished request."""
        try:
            sizes: dict[str, Any] = dict(await request.sizes())
            body = max(int(sizes.get("responseBodySize", 0)), 0)
            headers = max(int(sizes.get("responseHeadersSize", 0)), 0)
            return body + headers
        except Exception as exc:
            log.debug("request.sizes() unavailable, using content-length", {"error": str(exc)})

        try:
            response = await request.response()
        except Exception:
            return 0
        if response is None:
            return 0
        content_length = response.headers.get("content-length")
        try:
            return max(int(content_length), 0) if content_length else 0
        except ValueError:
            return 0
