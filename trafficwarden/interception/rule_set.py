"""
Declarative blocking rules over resource category and URL.

A ``RuleSet`` is built once from plain configuration data and is
immutable afterwards, so one instance can be shared by any number of
concurrent sessions.  Matching semantics, one per rule group:

- categories: exact ``ResourceCategory`` membership (``other`` is never
  blockable by category)
- domains: case-insensitive substring of the URL host (port excluded)
- paths: case-insensitive substring of the request target (path + query)
- keywords: case-insensitive substring of the whole URL

Groups are checked in the fixed order category, domain, path, keyword,
and evaluation stops at the first match.
"""

from __future__ import annotations

import dataclasses
import enum
from collections.abc import Iterable

from trafficwarden.models.requests import ResourceCategory
from trafficwarden.utils import url as url_mod
from trafficwarden.utils.errors import ConfigurationError


class RuleKind(enum.StrEnum):
    """Rule groups in evaluation order."""

    CATEGORY = "category"
    DOMAIN = "domain"
    PATH = "path"
    KEYWORD = "keyword"


@dataclasses.dataclass(frozen=True, slots=True)
class RuleMatch:
    """Outcome of evaluating one request against a rule set."""

    blocked: bool
    rule: RuleKind | None = None
    pattern: str | None = None

    @property
    def rule_id(self) -> str | None:
        """Stable identifier of the matching rule, e.g. ``domain:doubleclick.net``."""
        if self.rule is None:
            return None
        return f"{self.rule.value}:{self.pattern}"


NO_MATCH = RuleMatch(blocked=False)


def _normalise_categories(values: Iterable[ResourceCategory | str], label: str) -> frozenset[ResourceCategory]:
    categories: set[ResourceCategory] = set()
    for value in values:
        try:
            category = ResourceCategory(value.strip().lower() if isinstance(value, str) else value)
        except ValueError:
            raise ConfigurationError(f"{label}: unknown resource category {value!r}") from None
        if category is ResourceCategory.OTHER:
            raise ConfigurationError(f"{label}: the 'other' category cannot be blocked by category rules")
        categories.add(category)
    return frozenset(categories)


def _normalise_patterns(values: Iterable[str], label: str) -> tuple[str, ...]:
    patterns: list[str] = []
    seen: set[str] = set()
    for value in values:
        if not isinstance(value, str):
            raise ConfigurationError(f"{label}: pattern must be a string, got {type(value).__name__}")
        pattern = value.strip().lower()
        if not pattern:
            raise ConfigurationError(f"{label}: empty pattern")
        if pattern not in seen:
            seen.add(pattern)
            patterns.append(pattern)
    # Sorted so the reported matching pattern is deterministic.
    return tuple(sorted(patterns))


def _validate_domains(domains: tuple[str, ...]) -> None:
    for domain in domains:
        # Hosts are matched without their port.
        if "/" in domain or ":" in domain or any(ch.isspace() for ch in domain):
            raise ConfigurationError(
                f"blocked_domains: {domain!r} is not a host pattern (drop the scheme, port and path)"
            )


class RuleSet:
    """Immutable collection of category, domain, path and keyword rules."""

    __slots__ = ("_categories", "_mobile_categories", "_domains", "_paths", "_keywords")

    def __init__(
        self,
        blocked_categories: Iterable[ResourceCategory | str] = (),
        blocked_domains: Iterable[str] = (),
        blocked_paths: Iterable[str] = (),
        blocked_keywords: Iterable[str] = (),
        mobile_blocked_categories: Iterable[ResourceCategory | str] = (),
    ) -> None:
        self._categories = _normalise_categories(blocked_categories, "blocked_categories")
        self._mobile_categories = _normalise_categories(mobile_blocked_categories, "mobile_blocked_categories")
        self._domains = _normalise_patterns(blocked_domains, "blocked_domains")
        _validate_domains(self._domains)
        self._paths = _normalise_patterns(blocked_paths, "blocked_paths")
        self._keywords = _normalise_patterns(blocked_keywords, "blocked_keywords")

    @classmethod
    def empty(cls) -> RuleSet:
        """A rule set that blocks nothing."""
        return cls()

    # ==========================================================================
    # Accessors
    # ==========================================================================

    @property
    def blocked_categories(self) -> frozenset[ResourceCategory]:
        return self._categories

    @property
    def mobile_blocked_categories(self) -> frozenset[ResourceCategory]:
        return self._mobile_categories

    @property
    def blocked_domains(self) -> tuple[str, ...]:
        return self._domains

    @property
    def blocked_paths(self) -> tuple[str, ...]:
        return self._paths

    @property
    def blocked_keywords(self) -> tuple[str, ...]:
        return self._keywords

    def is_empty(self) -> bool:
        return not (self._categories or self._mobile_categories or self._domains or self._paths or self._keywords)

    def describe(self) -> dict[str, object]:
        """Rule counts per group, for log output."""
        return {
            "categories": sorted(c.value for c in self._categories),
            "mobileCategories": sorted(c.value for c in self._mobile_categories),
            "domains": len(self._domains),
            "paths": len(self._paths),
            "keywords": len(self._keywords),
        }

    # ==========================================================================
    # Composition
    # ==========================================================================

    def merge(self, other: RuleSet) -> RuleSet:
        """Return a new rule set holding the union of both."""
        return RuleSet(
            blocked_categories=self._categories | other._categories,
            blocked_domains=self._domains + other._domains,
            blocked_paths=self._paths + other._paths,
            blocked_keywords=self._keywords + other._keywords,
            mobile_blocked_categories=self._mobile_categories | other._mobile_categories,
        )

    # ==========================================================================
    # Evaluation
    # ==========================================================================

    def evaluate(
        self,
        category: ResourceCategory | str,
        url: str,
        is_mobile: bool = False,
    ) -> RuleMatch:
        """Check a request against every rule group in precedence order."""
        category = ResourceCategory.parse(category)
        if category in self._categories or (is_mobile and category in self._mobile_categories):
            return RuleMatch(blocked=True, rule=RuleKind.CATEGORY, pattern=category.value)

        lowered = url.lower()

        if self._domains:
            host = url_mod.extract_host(url)
            for domain in self._domains:
                if url_mod.host_contains(host, domain):
                    return RuleMatch(blocked=True, rule=RuleKind.DOMAIN, pattern=domain)

        if self._paths:
            target = url_mod.request_target(lowered)
            for path in self._paths:
                if path in target:
                    return RuleMatch(blocked=True, rule=RuleKind.PATH, pattern=path)

        for keyword in self._keywords:
            if keyword in lowered:
                return RuleMatch(blocked=True, rule=RuleKind.KEYWORD, pattern=keyword)

        return NO_MATCH

    def __repr__(self) -> str:
        return f"RuleSet({self.describe()!r})"
