"""Shared serialization helpers.

``snake_to_camel`` drives the camelCase aliases on every output model;
``format_bytes`` renders ledger counters for log lines.
"""

from __future__ import annotations

_BYTE_UNITS = ("B", "KB", "MB", "GB", "TB")


def snake_to_camel(name: str) -> str:
    """Convert a snake_case string to camelCase.

    Args:
        name: A snake_case identifier such as ``"bytes_allowed"``.

    Returns:
        The camelCase equivalent, e.g. ``"bytesAllowed"``.
    """
    parts = name.split("_")
    return parts[0] + "".join(w.capitalize() for w in parts[1:])


def format_bytes(byte_count: int) -> str:
    """Render a byte count with binary units (1024 bytes = 1 KB)."""
    value = float(byte_count)
    for unit in _BYTE_UNITS:
        if abs(value) < 1024.0 or unit == _BYTE_UNITS[-1]:
            if unit == "B":
                return f"{int(value)} B"
            return f"{value:.1f} {unit}"
        value /= 1024.0
    return f"{byte_count} B"
