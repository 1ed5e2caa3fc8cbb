"""Pydantic models for intercepted requests and the decisions applied to them."""

from __future__ import annotations

import enum
from typing import Annotated, Literal

import pydantic

from trafficwarden.utils import serialization


class ResourceCategory(enum.StrEnum):
    """Kind of asset a request fetches, as reported by the driver."""

    DOCUMENT = "document"
    SCRIPT = "script"
    STYLESHEET = "stylesheet"
    IMAGE = "image"
    FONT = "font"
    MEDIA = "media"
    XHR = "xhr"
    FETCH = "fetch"
    WEBSOCKET = "websocket"
    EVENTSOURCE = "eventsource"
    MANIFEST = "manifest"
    PREFETCH = "prefetch"
    PREFLIGHT = "preflight"
    OTHER = "other"

    @classmethod
    def parse(cls, raw: object) -> ResourceCategory:
        """Map a driver-reported resource type onto a category.

        Anything unrecognised (``texttrack``, ``ping``, ``cspreport``,
        empty values) becomes ``OTHER``.
        """
        if isinstance(raw, cls):
            return raw
        if isinstance(raw, str):
            try:
                return cls(raw.strip().lower())
            except ValueError:
                return cls.OTHER
        return cls.OTHER


class DecisionKind(enum.StrEnum):
    """Discriminator for the three decision variants."""

    CONTINUE = "continue"
    ABORT = "abort"
    RESPOND = "respond"


# Abort reasons, one per rule group.
REASON_BLOCKED_CATEGORY = "blocked-category"
REASON_BLOCKED_DOMAIN = "blocked-domain"
REASON_BLOCKED_PATH = "blocked-path"
REASON_BLOCKED_KEYWORD = "blocked-keyword"

_MODEL_CONFIG = pydantic.ConfigDict(
    alias_generator=serialization.snake_to_camel,
    populate_by_name=True,
    frozen=True,
)


class PendingRequest(pydantic.BaseModel):
    """An outgoing request paused by the driver until a decision is applied."""

    model_config = _MODEL_CONFIG

    id: str = pydantic.Field(min_length=1)
    url: str
    category: ResourceCategory = ResourceCategory.OTHER
    headers: dict[str, str] = pydantic.Field(default_factory=dict)
    method: str = "GET"
    phase: Literal["pending"] = "pending"

    @pydantic.field_validator("category", mode="before")
    @classmethod
    def _coerce_category(cls, value: object) -> ResourceCategory:
        return ResourceCategory.parse(value)


class ContinueDecision(pydantic.BaseModel):
    """Let the request reach the network unchanged."""

    model_config = _MODEL_CONFIG

    kind: Literal[DecisionKind.CONTINUE] = DecisionKind.CONTINUE


class AbortDecision(pydantic.BaseModel):
    """Fail the request before it leaves the browser."""

    model_config = _MODEL_CONFIG

    kind: Literal[DecisionKind.ABORT] = DecisionKind.ABORT
    reason: str = pydantic.Field(min_length=1)


class RespondDecision(pydantic.BaseModel):
    """Fulfil the request locally with a substituted response."""

    model_config = _MODEL_CONFIG

    kind: Literal[DecisionKind.RESPOND] = DecisionKind.RESPOND
    status_code: int = pydantic.Field(ge=100, le=599)
    body: str | bytes
    headers: dict[str, str] = pydantic.Field(default_factory=dict)
    content_type: str | None = None


Decision = Annotated[
    ContinueDecision | AbortDecision | RespondDecision,
    pydantic.Field(discriminator="kind"),
]

CONTINUE = ContinueDecision()


def abort(reason: str) -> AbortDecision:
    """Build an Abort decision carrying *reason*."""
    return AbortDecision(reason=reason)
