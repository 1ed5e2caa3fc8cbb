"""Pydantic models for device emulation and page-load policy."""

from __future__ import annotations

import enum

import pydantic


class LoadWaitPolicy(enum.StrEnum):
    """When a navigation counts as loaded."""

    DOM_READY = "domReady"
    NETWORK_IDLE = "networkIdle"

    @property
    def playwright_state(self) -> str:
        """The matching Playwright ``wait_until`` value."""
        return "networkidle" if self is LoadWaitPolicy.NETWORK_IDLE else "domcontentloaded"


class ViewportSize(pydantic.BaseModel):
    """Viewport dimensions for browser emulation."""

    model_config = pydantic.ConfigDict(frozen=True)

    width: int = pydantic.Field(gt=0)
    height: int = pydantic.Field(gt=0)


class DeviceContext(pydantic.BaseModel):
    """The slice of a device profile visible to per-request decisions."""

    model_config = pydantic.ConfigDict(frozen=True)

    device_name: str | None = None
    is_mobile: bool = False


class DeviceProfile(pydantic.BaseModel):
    """Device configuration for browser emulation."""

    model_config = pydantic.ConfigDict(frozen=True)

    name: str
    user_agent: str = pydantic.Field(min_length=1)
    viewport: ViewportSize
    device_scale_factor: float = pydantic.Field(gt=0)
    is_mobile: bool
    has_touch: bool
    is_landscape: bool = False

    @property
    def viewport_width(self) -> int:
        return self.viewport.width

    @property
    def viewport_height(self) -> int:
        return self.viewport.height

    def context(self) -> DeviceContext:
        """Return the per-request device context for this profile."""
        return DeviceContext(device_name=self.name, is_mobile=self.is_mobile)

    def to_context_options(self) -> dict[str, object]:
        """Keyword arguments for Playwright's ``browser.new_context``."""
        return {
            "viewport": {"width": self.viewport.width, "height": self.viewport.height},
            "screen": {"width": self.viewport.width, "height": self.viewport.height},
            "device_scale_factor": self.device_scale_factor,
            "is_mobile": self.is_mobile,
            "has_touch": self.has_touch,
            "user_agent": self.user_agent,
        }
