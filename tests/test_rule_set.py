"""Tests for trafficwarden.interception.rule_set: construction and matching."""

from __future__ import annotations

import pytest

from trafficwarden.interception.rule_set import NO_MATCH, RuleKind, RuleSet
from trafficwarden.models.requests import ResourceCategory
from trafficwarden.utils.errors import ConfigurationError

# ── Construction ────────────────────────────────────────────────


class TestConstruction:
    def test_empty(self) -> None:
        rules = RuleSet.empty()
        assert rules.is_empty()
        assert rules.evaluate("image", "https://example.com/a.png") is NO_MATCH

    def test_patterns_normalised(self) -> None:
        rules = RuleSet(blocked_domains=[" DoubleClick.NET ", "doubleclick.net"], blocked_paths=["/Ads/"])
        assert rules.blocked_domains == ("doubleclick.net",)
        assert rules.blocked_paths == ("/ads/",)

    def test_categories_from_strings(self) -> None:
        rules = RuleSet(blocked_categories=["Image", ResourceCategory.FONT])
        assert rules.blocked_categories == frozenset({ResourceCategory.IMAGE, ResourceCategory.FONT})

    @pytest.mark.parametrize("bad", ["", "   "])
    def test_empty_pattern_rejected(self, bad: str) -> None:
        with pytest.raises(ConfigurationError, match="empty pattern"):
            RuleSet(blocked_keywords=[bad])

    def test_non_string_pattern_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            RuleSet(blocked_paths=[42])  # type: ignore[list-item]

    def test_unknown_category_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="unknown resource category"):
            RuleSet(blocked_categories=["gif"])

    def test_other_category_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="other"):
            RuleSet(blocked_categories=["other"])

    @pytest.mark.parametrize("bad", ["https://doubleclick.net", "doubleclick.net/ads", "double click.net", "tracker.example:8443"])
    def test_malformed_domain_rejected(self, bad: str) -> None:
        with pytest.raises(ConfigurationError, match="host pattern"):
            RuleSet(blocked_domains=[bad])

    def test_describe(self) -> None:
        rules = RuleSet(blocked_categories=["font"], blocked_domains=["a.com", "b.com"])
        assert rules.describe() == {
            "categories": ["font"],
            "mobileCategories": [],
            "domains": 2,
            "paths": 0,
            "keywords": 0,
        }

    def test_merge_is_union(self) -> None:
        left = RuleSet(blocked_categories=["image"], blocked_domains=["a.com"])
        right = RuleSet(blocked_categories=["font"], blocked_domains=["a.com", "b.com"], blocked_keywords=["ads"])
        merged = left.merge(right)
        assert merged.blocked_categories == frozenset({ResourceCategory.IMAGE, ResourceCategory.FONT})
        assert merged.blocked_domains == ("a.com", "b.com")
        assert merged.blocked_keywords == ("ads",)
        # Inputs unchanged.
        assert left.blocked_domains == ("a.com",)


# ── Matching ────────────────────────────────────────────────────


class TestEvaluate:
    def test_category_blocks_regardless_of_url(self) -> None:
        rules = RuleSet(blocked_categories=["image"])
        match = rules.evaluate(ResourceCategory.IMAGE, "https://example.com/logo.png")
        assert match.blocked is True
        assert match.rule is RuleKind.CATEGORY
        assert match.rule_id == "category:image"

    def test_domain_substring_of_host(self) -> None:
        rules = RuleSet(blocked_domains=["google-analytics.com"])
        match = rules.evaluate("script", "https://www.google-analytics.com/analytics.js")
        assert match.rule is RuleKind.DOMAIN
        assert match.pattern == "google-analytics.com"

    def test_domain_case_insensitive(self) -> None:
        rules = RuleSet(blocked_domains=["doubleclick.net"])
        assert rules.evaluate("script", "https://AD.DoubleClick.NET/x").blocked is True

    def test_domain_only_matches_host(self) -> None:
        rules = RuleSet(blocked_domains=["doubleclick.net"])
        assert rules.evaluate("document", "https://example.com/?ref=doubleclick.net").blocked is False

    def test_hostless_url_never_matches_domain(self) -> None:
        rules = RuleSet(blocked_domains=["example.com"], blocked_keywords=["png"])
        match = rules.evaluate("image", "data:image/png;base64,example.com")
        assert match.rule is RuleKind.KEYWORD

    def test_path_matches_query_too(self) -> None:
        rules = RuleSet(blocked_paths=["/collect?"])
        match = rules.evaluate("xhr", "https://example.com/collect?v=1")
        assert match.rule is RuleKind.PATH

    def test_path_ignores_host(self) -> None:
        rules = RuleSet(blocked_paths=["ads"])
        assert rules.evaluate("script", "https://ads.example.com/app.js").blocked is False

    def test_keyword_matches_anywhere(self) -> None:
        rules = RuleSet(blocked_keywords=["facebook.com/tr"])
        match = rules.evaluate("image", "https://www.facebook.com/tr?id=1")
        assert match.rule is RuleKind.KEYWORD

    def test_other_category_not_blocked_by_category(self) -> None:
        rules = RuleSet(blocked_categories=["image", "font"])
        assert rules.evaluate("texttrack", "https://example.com/subs.vtt").blocked is False

    def test_no_match(self) -> None:
        rules = RuleSet(blocked_categories=["image"], blocked_domains=["doubleclick.net"])
        match = rules.evaluate("script", "https://example.com/app.js")
        assert match is NO_MATCH
        assert match.rule_id is None


class TestPrecedence:
    """Groups are checked category, domain, path, keyword."""

    RULES = RuleSet(
        blocked_categories=["image"],
        blocked_domains=["tracker.example"],
        blocked_paths=["/pixel"],
        blocked_keywords=["beacon"],
    )

    def test_category_beats_domain(self) -> None:
        match = self.RULES.evaluate("image", "https://tracker.example/pixel?beacon=1")
        assert match.rule is RuleKind.CATEGORY

    def test_domain_beats_path(self) -> None:
        match = self.RULES.evaluate("script", "https://tracker.example/pixel?beacon=1")
        assert match.rule is RuleKind.DOMAIN

    def test_path_beats_keyword(self) -> None:
        match = self.RULES.evaluate("script", "https://cdn.example/pixel?beacon=1")
        assert match.rule is RuleKind.PATH

    def test_keyword_last(self) -> None:
        match = self.RULES.evaluate("script", "https://cdn.example/js?beacon=1")
        assert match.rule is RuleKind.KEYWORD

    def test_image_blocked_by_category_alone(self) -> None:
        match = self.RULES.evaluate("image", "https://cdn.example/logo.png")
        assert match.rule is RuleKind.CATEGORY


class TestMobileCategories:
    RULES = RuleSet(blocked_categories=["font"], mobile_blocked_categories=["image"])

    def test_mobile_only_category_blocked_on_mobile(self) -> None:
        assert self.RULES.evaluate("image", "https://example.com/a.png", is_mobile=True).blocked is True

    def test_mobile_only_category_allowed_on_desktop(self) -> None:
        assert self.RULES.evaluate("image", "https://example.com/a.png").blocked is False

    def test_regular_categories_apply_everywhere(self) -> None:
        assert self.RULES.evaluate("font", "https://example.com/a.woff2").blocked is True
        assert self.RULES.evaluate("font", "https://example.com/a.woff2", is_mobile=True).blocked is True
