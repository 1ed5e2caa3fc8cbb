"""
Per-request decision engine.

Maps a pending request onto exactly one ``Decision`` using the rule set
and the active device context.  Evaluation is pure and bounded: no I/O,
no shared mutable state, so the engine may be invoked concurrently for
any number of in-flight requests.
"""

from __future__ import annotations

from collections.abc import Sequence

import pydantic

from trafficwarden.interception.rule_set import RuleKind, RuleMatch, RuleSet
from trafficwarden.models.browser import DeviceContext
from trafficwarden.models.requests import (
    CONTINUE,
    REASON_BLOCKED_CATEGORY,
    REASON_BLOCKED_DOMAIN,
    REASON_BLOCKED_KEYWORD,
    REASON_BLOCKED_PATH,
    AbortDecision,
    Decision,
    PendingRequest,
    RespondDecision,
)
from trafficwarden.utils import logger

log = logger.create_logger("DecisionEngine")

_ABORT_BY_RULE: dict[RuleKind, AbortDecision] = {
    RuleKind.CATEGORY: AbortDecision(reason=REASON_BLOCKED_CATEGORY),
    RuleKind.DOMAIN: AbortDecision(reason=REASON_BLOCKED_DOMAIN),
    RuleKind.PATH: AbortDecision(reason=REASON_BLOCKED_PATH),
    RuleKind.KEYWORD: AbortDecision(reason=REASON_BLOCKED_KEYWORD),
}

_NO_DEVICE = DeviceContext()


class ResponseOverride(pydantic.BaseModel):
    """Caller opt-in: answer matching requests with a stubbed response.

    Matching is a case-insensitive substring test against the full URL.
    """

    model_config = pydantic.ConfigDict(frozen=True)

    url_contains: str = pydantic.Field(min_length=1)
    status_code: int = pydantic.Field(default=200, ge=100, le=599)
    body: str | bytes
    headers: dict[str, str] = pydantic.Field(default_factory=dict)
    content_type: str | None = None

    def matches(self, url: str) -> bool:
        return self.url_contains.lower() in url.lower()

    def to_decision(self) -> RespondDecision:
        return RespondDecision(
            status_code=self.status_code,
            body=self.body,
            headers=dict(self.headers),
            content_type=self.content_type,
        )


class DecisionEngine:
    """Evaluate pending requests against a rule set.

    Overrides are consulted first, then the block rules in the fixed
    precedence category, domain, path, keyword.  Without overrides the
    engine only ever produces Continue or Abort.
    """

    def __init__(
        self,
        rule_set: RuleSet,
        overrides: Sequence[ResponseOverride] = (),
    ) -> None:
        self._rule_set = rule_set
        self._overrides = tuple(overrides)

    @property
    def rule_set(self) -> RuleSet:
        return self._rule_set

    @property
    def overrides(self) -> tuple[ResponseOverride, ...]:
        return self._overrides

    def explain(
        self,
        request: PendingRequest,
        device_context: DeviceContext | None = None,
    ) -> RuleMatch:
        """Return the rule match behind a request's block/allow outcome."""
        ctx = device_context or _NO_DEVICE
        return self._rule_set.evaluate(request.category, request.url, is_mobile=ctx.is_mobile)

    def decide(
        self,
        request: PendingRequest,
        device_context: DeviceContext | None = None,
    ) -> Decision:
        """Produce the single decision for *request*."""
        for override in self._overrides:
            if override.matches(request.url):
                log.debug("Request substituted", {"id": request.id, "url": request.url})
                return override.to_decision()

        match = self.explain(request, device_context)
        if match.blocked and match.rule is not None:
            log.debug(
                "Request blocked",
                {"id": request.id, "rule": match.rule_id, "category": request.category.value},
            )
            return _ABORT_BY_RULE[match.rule]
        return CONTINUE
