"""
Error taxonomy for the interception engine.

Configuration and device errors surface before a session starts;
``LateAttachError`` and the protocol violations are programming errors
and are never retried; ``NavigationError`` is fatal for one session;
``ExtractionError`` is recovered into the session summary.
"""

from __future__ import annotations


class TrafficWardenError(Exception):
    """Base class for every error raised by trafficwarden."""


class ConfigurationError(TrafficWardenError):
    """Malformed rule, preset or device configuration."""


class UnknownDeviceError(TrafficWardenError):
    """A device profile name is absent from the catalog."""

    def __init__(self, name: str, valid_names: list[str] | None = None) -> None:
        self.name = name
        self.valid_names = valid_names or []
        message = f"Unknown device profile {name!r}"
        if self.valid_names:
            message += f". Valid profiles: {', '.join(self.valid_names)}"
        super().__init__(message)


class LateAttachError(TrafficWardenError):
    """Interception was attached after navigation had already started."""


class NavigationError(TrafficWardenError):
    """The driver failed to navigate (connection refused, DNS, etc.)."""

    def __init__(self, url: str, message: str) -> None:
        self.url = url
        super().__init__(f"Navigation to {url} failed: {message}")


class ExtractionError(TrafficWardenError):
    """The page content extractor could not produce data."""


class ProtocolViolationError(TrafficWardenError):
    """The driver contract was broken (exactly one decision per request)."""


class DuplicateRequestError(ProtocolViolationError):
    """The driver reported the same request id twice."""


class DuplicateDecisionError(ProtocolViolationError):
    """A second decision was about to be applied to one request."""


class UnknownRequestError(ProtocolViolationError):
    """A decision targeted a request id the session never received."""


def get_error_message(error: BaseException | object) -> str:
    """
    Safely extract a printable message from an unknown error type.
    """
    if isinstance(error, BaseException):
        return str(error) or type(error).__name__
    return "Unknown error"
