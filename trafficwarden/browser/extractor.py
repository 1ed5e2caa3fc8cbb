"""
Page content extraction.

The orchestrator treats extraction as an opaque downstream step: it hands
the driver's page handle to a ``PageExtractor`` once the page is loaded and
stores whatever comes back in the session summary.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

import pydantic

from trafficwarden.utils import logger, serialization
from trafficwarden.utils.errors import ExtractionError

log = logger.create_logger("Extractor")

MAX_TEXT_EXCERPT_CHARS = 2000


@runtime_checkable
class PageExtractor(Protocol):
    """Turns a loaded page into structured data."""

    async def extract(self, page: Any) -> Any:
        """Return extracted data or raise ``ExtractionError``."""
        ...


class PageSnapshot(pydantic.BaseModel):
    """Minimal structured view of a loaded page."""

    model_config = pydantic.ConfigDict(
        alias_generator=serialization.snake_to_camel, populate_by_name=True
    )

    url: str
    title: str
    text_excerpt: str
    link_count: int


class PageSnapshotExtractor:
    """Default extractor: title, final URL, a bounded text excerpt, link count."""

    def __init__(self, max_chars: int = MAX_TEXT_EXCERPT_CHARS) -> None:
        self._max_chars = max_chars

    async def extract(self, page: Any) -> dict[str, Any]:
        if page is None:
            raise ExtractionError("No page available for extraction")
        try:
            title = await page.title()
            text = await page.evaluate("() => document.body ? document.body.innerText : ''")
            link_count = await page.locator("a[href]").count()
        except Exception as exc:
            raise ExtractionError(f"Page extraction failed: {exc}") from exc

        text = " ".join(str(text or "").split())
        snapshot = PageSnapshot(
            url=page.url,
            title=title or "",
            text_excerpt=text[: self._max_chars],
            link_count=link_count,
        )
        log.debug("Page extracted", {"title": snapshot.title, "links": link_count, "chars": len(text)})
        return snapshot.model_dump(by_alias=True)
