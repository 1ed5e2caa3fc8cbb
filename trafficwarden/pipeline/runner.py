"""
One-call entry point that wires configuration, device profile, driver and
session together.

Everything that can fail on bad input (rule patterns, presets, device
name) is checked before a browser is launched, so no navigation is ever
issued for a session that could not have run correctly.
"""

from __future__ import annotations

import functools
from collections.abc import Awaitable, Callable, Sequence

from trafficwarden.browser import device_profiles
from trafficwarden.browser.driver import BrowserDriver
from trafficwarden.browser.extractor import PageExtractor, PageSnapshotExtractor
from trafficwarden.browser.playwright_driver import PlaywrightDriver
from trafficwarden.config import InterceptionConfig
from trafficwarden.interception.decision_engine import DecisionEngine, ResponseOverride
from trafficwarden.models.browser import DeviceProfile
from trafficwarden.models.summary import SessionSummary
from trafficwarden.pipeline.session import InterceptionSession
from trafficwarden.utils import logger

log = logger.create_logger("Runner")

DriverFactory = Callable[[DeviceProfile | None], Awaitable[BrowserDriver]]

_DEFAULT_EXTRACTOR = PageSnapshotExtractor()


async def run_session(
    url: str,
    config: InterceptionConfig,
    *,
    extractor: PageExtractor | None = _DEFAULT_EXTRACTOR,
    driver_factory: DriverFactory | None = None,
    provider: device_profiles.DeviceProfileProvider | None = None,
    overrides: Sequence[ResponseOverride] = (),
) -> SessionSummary:
    """Run one interception session against *url* and return its summary.

    Raises:
        ConfigurationError: Malformed rules or unknown preset.
        UnknownDeviceError: ``config.device_profile_name`` is not in the catalog.
        NavigationError: The page could not be loaded at all.
    """
    log.section(f"Interception session: {url}")
    rule_set = config.build_rule_set()

    profile: DeviceProfile | None = None
    if config.device_profile_name:
        profile = (provider or device_profiles.DeviceProfileProvider()).resolve(config.device_profile_name)

    engine = DecisionEngine(rule_set, overrides)
    factory = driver_factory or functools.partial(PlaywrightDriver.launch, headless=config.headless)

    log.start_timer("driver-launch")
    driver = await factory(profile)
    log.end_timer("driver-launch", "Driver ready")

    try:
        session = InterceptionSession(
            driver,
            engine,
            extractor=extractor,
            device_context=profile.context() if profile else None,
            navigation_timeout_ms=config.navigation_timeout_ms,
            load_wait_policy=config.load_wait_policy,
            blocked_size_estimates=config.blocked_size_estimates,
        )
    except Exception:
        await driver.close()
        raise

    async with session:
        return await session.run(url)
