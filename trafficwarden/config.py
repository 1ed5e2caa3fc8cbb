"""
Interception configuration.

Uses ``pydantic_settings.BaseSettings`` so every option can come from
keyword arguments, environment variables prefixed ``TRAFFICWARDEN_``
or a ``.env`` file.  Collection-valued options are read from the
environment as JSON, e.g.
``TRAFFICWARDEN_BLOCKED_CATEGORIES='["image", "font"]'``.
"""

from __future__ import annotations

import pydantic
import pydantic_settings

from trafficwarden.data import loader
from trafficwarden.interception.rule_set import RuleSet
from trafficwarden.models.browser import LoadWaitPolicy
from trafficwarden.models.requests import ResourceCategory
from trafficwarden.utils import logger
from trafficwarden.utils.errors import ConfigurationError

log = logger.create_logger("Config")

ENV_PREFIX = "TRAFFICWARDEN_"


class InterceptionConfig(pydantic_settings.BaseSettings):
    """Every knob of one interception session.

    Attributes:
        blocked_categories: Resource categories aborted outright.
        blocked_domains: Host substrings aborted.
        blocked_paths: Request-target substrings aborted.
        blocked_keywords: Whole-URL substrings aborted.
        device_profile_name: Catalog name of the device to emulate.
        navigation_timeout_ms: Upper bound for the load wait.
        load_wait_policy: ``domReady`` or ``networkIdle``.
        presets: Bundled rule presets merged into the rule set.
        mobile_blocked_categories: Extra categories aborted on mobile
            profiles only (empty disables the mobile policy).
        blocked_size_estimates: Bytes credited to ``bytesBlockedEstimate``
            per aborted request of a category.
        headless: Launch the browser headless.
    """

    model_config = pydantic_settings.SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    blocked_categories: set[ResourceCategory] = pydantic.Field(default_factory=set)
    blocked_domains: set[str] = pydantic.Field(default_factory=set)
    blocked_paths: set[str] = pydantic.Field(default_factory=set)
    blocked_keywords: set[str] = pydantic.Field(default_factory=set)
    device_profile_name: str | None = None
    navigation_timeout_ms: int = pydantic.Field(default=30000, gt=0)
    load_wait_policy: LoadWaitPolicy = LoadWaitPolicy.DOM_READY
    presets: list[str] = pydantic.Field(default_factory=list)
    mobile_blocked_categories: set[ResourceCategory] = pydantic.Field(default_factory=set)
    blocked_size_estimates: dict[ResourceCategory, int] = pydantic.Field(default_factory=dict)
    headless: bool = True

    @pydantic.field_validator("blocked_size_estimates")
    @classmethod
    def _non_negative_estimates(cls, value: dict[ResourceCategory, int]) -> dict[ResourceCategory, int]:
        for category, size in value.items():
            if size < 0:
                raise ValueError(f"size estimate for {category.value} must be non-negative")
        return value

    @pydantic.field_validator("device_profile_name")
    @classmethod
    def _blank_device_is_none(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            return None
        return value

    def build_rule_set(self) -> RuleSet:
        """Build the configured rule set, merged with any presets.

        Raises:
            ConfigurationError: On malformed patterns or unknown presets.
        """
        rule_set = RuleSet(
            blocked_categories=self.blocked_categories,
            blocked_domains=self.blocked_domains,
            blocked_paths=self.blocked_paths,
            blocked_keywords=self.blocked_keywords,
            mobile_blocked_categories=self.mobile_blocked_categories,
        )
        for name in self.presets:
            rule_set = rule_set.merge(loader.get_preset(name))
        log.debug("Rule set built", {"presets": self.presets, **rule_set.describe()})
        return rule_set


def load_config(**overrides: object) -> InterceptionConfig:
    """Load configuration from the environment, ``.env`` and *overrides*.

    Raises:
        ConfigurationError: When any option fails validation.
    """
    try:
        return InterceptionConfig(**overrides)  # type: ignore[arg-type]
    except pydantic.ValidationError as exc:
        raise ConfigurationError(f"Invalid interception configuration: {exc}") from exc
