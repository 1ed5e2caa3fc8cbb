"""Tests for trafficwarden.utils.errors: taxonomy and message extraction."""

from __future__ import annotations

import pytest

from trafficwarden.utils import errors
from trafficwarden.utils.errors import get_error_message


class TestGetErrorMessage:
    """Tests for get_error_message()."""

    def test_exception_with_message(self) -> None:
        assert get_error_message(ValueError("something broke")) == "something broke"

    def test_exception_without_message(self) -> None:
        assert get_error_message(ValueError()) == "ValueError"

    def test_timeout_without_message(self) -> None:
        assert get_error_message(TimeoutError()) == "TimeoutError"

    def test_non_exception(self) -> None:
        assert get_error_message("oops") == "Unknown error"


class TestTaxonomy:
    @pytest.mark.parametrize(
        "cls",
        [
            errors.ConfigurationError,
            errors.LateAttachError,
            errors.ExtractionError,
            errors.ProtocolViolationError,
        ],
    )
    def test_all_derive_from_base(self, cls: type[Exception]) -> None:
        assert issubclass(cls, errors.TrafficWardenError)

    @pytest.mark.parametrize(
        "cls",
        [errors.DuplicateRequestError, errors.DuplicateDecisionError, errors.UnknownRequestError],
    )
    def test_protocol_violations(self, cls: type[Exception]) -> None:
        assert issubclass(cls, errors.ProtocolViolationError)

    def test_unknown_device_lists_valid_names(self) -> None:
        err = errors.UnknownDeviceError("Nonexistent Phone 99", ["ipad", "iphone"])
        assert err.name == "Nonexistent Phone 99"
        assert err.valid_names == ["ipad", "iphone"]
        assert "ipad, iphone" in str(err)

    def test_unknown_device_without_names(self) -> None:
        err = errors.UnknownDeviceError("x")
        assert err.valid_names == []
        assert str(err) == "Unknown device profile 'x'"

    def test_navigation_error_keeps_url(self) -> None:
        err = errors.NavigationError("https://example.com", "connection refused")
        assert err.url == "https://example.com"
        assert "connection refused" in str(err)
