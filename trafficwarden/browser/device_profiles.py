"""
Device emulation profiles and their resolver.

``DEVICE_PROFILES`` is the static catalog, built once at import time and
never mutated.  Profiles are applied once when the driver creates its
browser context; only ``DeviceContext.is_mobile`` reaches per-request
decisions.
"""

from __future__ import annotations

import types
from collections.abc import Mapping

from trafficwarden.models.browser import DeviceProfile, ViewportSize
from trafficwarden.utils import logger
from trafficwarden.utils.errors import UnknownDeviceError

log = logger.create_logger("DeviceProfiles")

_IPHONE_UA = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_4 like Mac OS X) AppleWebKit/605.1.15"
    " (KHTML, like Gecko) Version/17.4 Mobile/15E148 Safari/604.1"
)
_IPAD_UA = (
    "Mozilla/5.0 (iPad; CPU OS 17_4 like Mac OS X) AppleWebKit/605.1.15"
    " (KHTML, like Gecko) Version/17.4 Mobile/15E148 Safari/604.1"
)


def _profile(
    name: str,
    user_agent: str,
    width: int,
    height: int,
    scale: float,
    *,
    mobile: bool,
    landscape: bool = False,
) -> DeviceProfile:
    return DeviceProfile(
        name=name,
        user_agent=user_agent,
        viewport=ViewportSize(width=width, height=height),
        device_scale_factor=scale,
        is_mobile=mobile,
        has_touch=mobile,
        is_landscape=landscape,
    )


DEVICE_PROFILES: Mapping[str, DeviceProfile] = types.MappingProxyType({
    p.name: p
    for p in (
        _profile("iphone", _IPHONE_UA, 430, 932, 3, mobile=True),
        _profile("iphone-landscape", _IPHONE_UA, 932, 430, 3, mobile=True, landscape=True),
        _profile("ipad", _IPAD_UA, 1024, 1366, 2, mobile=True),
        _profile("ipad-landscape", _IPAD_UA, 1366, 1024, 2, mobile=True, landscape=True),
        _profile(
            "android-phone",
            "Mozilla/5.0 (Linux; Android 14; Pixel 8 Pro) AppleWebKit/537.36"
            " (KHTML, like Gecko) Chrome/122.0.6261.90 Mobile Safari/537.36",
            412, 915, 2.625, mobile=True,
        ),
        _profile(
            "android-tablet",
            "Mozilla/5.0 (Linux; Android 14; Pixel Tablet) AppleWebKit/537.36"
            " (KHTML, like Gecko) Chrome/122.0.6261.90 Safari/537.36",
            1280, 800, 2, mobile=True, landscape=True,
        ),
        _profile(
            "windows-chrome",
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
            " (KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36",
            1920, 1080, 1, mobile=False, landscape=True,
        ),
        _profile(
            "macos-safari",
            "Mozilla/5.0 (Macintosh; Intel Mac OS X 14_4) AppleWebKit/605.1.15"
            " (KHTML, like Gecko) Version/17.4 Safari/605.1.15",
            1440, 900, 2, mobile=False, landscape=True,
        ),
    )
})


class DeviceProfileProvider:
    """Read-only lookup of device profiles by name."""

    def __init__(self, catalog: Mapping[str, DeviceProfile] = DEVICE_PROFILES) -> None:
        self._catalog = {name.strip().lower(): profile for name, profile in catalog.items()}

    def names(self) -> list[str]:
        return sorted(self._catalog)

    def resolve(self, name: str) -> DeviceProfile:
        """Return the profile registered as *name* (case-insensitive).

        Raises:
            UnknownDeviceError: When the catalog has no such profile.
        """
        key = name.strip().lower() if isinstance(name, str) else ""
        profile = self._catalog.get(key)
        if profile is None:
            log.warn("Unknown device profile", {"name": name})
            raise UnknownDeviceError(name, self.names())
        log.debug("Resolved device profile", {
            "name": profile.name,
            "viewport": f"{profile.viewport_width}x{profile.viewport_height}",
            "isMobile": profile.is_mobile,
        })
        return profile


_default_provider = DeviceProfileProvider()


def resolve(name: str) -> DeviceProfile:
    """Resolve *name* against the built-in catalog."""
    return _default_provider.resolve(name)
