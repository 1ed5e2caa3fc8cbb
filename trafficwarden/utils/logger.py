"""
Structured console logger with timing support.

Every module creates its own ``Logger`` with a context prefix so
interleaved output from concurrent sessions stays readable.  Timers and
the in-memory line buffer live in ``contextvars.ContextVar`` so that
sessions running as separate asyncio tasks never share them.

The minimum level is read from ``TRAFFICWARDEN_LOG_LEVEL``
(``debug``, ``info``, ``warn``, ``error``; default ``info``).
"""

from __future__ import annotations

import contextvars
import os
import re
import sys
import time
from datetime import UTC, datetime

# ============================================================================
# Per-task state
# ============================================================================

_timers_var: contextvars.ContextVar[dict[str, float]] = contextvars.ContextVar("_timers_var")
_log_buffer_var: contextvars.ContextVar[list[str]] = contextvars.ContextVar("_log_buffer_var")

_ANSI_RE = re.compile(r"\033\[[0-9;]*m")
_MAX_BUFFERED_LINES = 2000


def _get_timers() -> dict[str, float]:
    """Return the per-context timer dict, creating it on first access."""
    try:
        return _timers_var.get()
    except LookupError:
        timers: dict[str, float] = {}
        _timers_var.set(timers)
        return timers


def _get_log_buffer() -> list[str]:
    """Return the per-context log buffer, creating it on first access."""
    try:
        return _log_buffer_var.get()
    except LookupError:
        buf: list[str] = []
        _log_buffer_var.set(buf)
        return buf


def get_log_buffer() -> list[str]:
    """Return a copy of the buffered log lines (ANSI-stripped)."""
    return list(_get_log_buffer())


def clear_log_buffer() -> None:
    """Clear the buffered lines and any running timers."""
    _get_log_buffer().clear()
    _get_timers().clear()


# ============================================================================
# Levels and colours
# ============================================================================

_LEVEL_ORDER = {"debug": 10, "timing": 20, "info": 20, "success": 20, "warn": 30, "error": 40}

_colours = {
    "reset": "\033[0m",
    "bright": "\033[1m",
    "dim": "\033[2m",
    "cyan": "\033[36m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "red": "\033[31m",
    "magenta": "\033[35m",
    "blue": "\033[34m",
    "gray": "\033[90m",
}

_level_colour = {
    "info": _colours["cyan"],
    "success": _colours["green"],
    "warn": _colours["yellow"],
    "error": _colours["red"],
    "debug": _colours["gray"],
    "timing": _colours["magenta"],
}

_level_symbol = {
    "info": "ℹ",
    "success": "✓",
    "warn": "⚠",
    "error": "✗",
    "debug": "•",
    "timing": "⏱",
}


def _min_level() -> int:
    """Resolve the configured minimum level (re-read so tests can patch the env)."""
    name = os.environ.get("TRAFFICWARDEN_LOG_LEVEL", "info").strip().lower()
    return _LEVEL_ORDER.get(name, _LEVEL_ORDER["info"])


def _get_timestamp() -> str:
    """Return the current UTC time as HH:MM:SS.mmm."""
    now = datetime.now(UTC)
    return now.strftime("%H:%M:%S.") + f"{now.microsecond // 1000:03d}"


def format_duration(ms: float) -> str:
    """Format a duration in milliseconds for display."""
    if ms < 1000:
        return f"{int(ms)}ms"
    if ms < 60000:
        return f"{ms / 1000:.2f}s"
    minutes = int(ms // 60000)
    seconds = (ms % 60000) / 1000
    return f"{minutes}m {seconds:.1f}s"


def _format_value(value: object) -> str:
    """Return an ANSI-coloured representation of *value*."""
    c = _colours
    if value is None:
        return f"{c['dim']}None{c['reset']}"
    if isinstance(value, bool):
        return f"{c['green']}True{c['reset']}" if value else f"{c['red']}False{c['reset']}"
    if isinstance(value, (int, float)):
        return f"{c['yellow']}{value}{c['reset']}"
    if isinstance(value, str):
        display = value[:197] + "..." if len(value) > 200 else value
        return f'{c["green"]}"{display}"{c["reset"]}'
    if isinstance(value, (list, tuple, set, frozenset)):
        return f"{c['cyan']}[{len(value)} items]{c['reset']}"
    if isinstance(value, dict):
        return f"{c['cyan']}{{{len(value)} keys}}{c['reset']}"
    return str(value)


# ============================================================================
# Logger Class
# ============================================================================


class Logger:
    """Structured logger with context prefix and timing support."""

    def __init__(self, context: str = "TrafficWarden") -> None:
        self._context = context

    @property
    def context(self) -> str:
        return self._context

    def _emit(self, line: str) -> None:
        print(line, file=sys.stderr)
        buf = _get_log_buffer()
        buf.append(_ANSI_RE.sub("", line))
        if len(buf) > _MAX_BUFFERED_LINES:
            del buf[: len(buf) - _MAX_BUFFERED_LINES]

    def _log(self, level: str, message: str, data: dict[str, object] | None = None) -> None:
        """Format and emit a log line at the given level."""
        if _LEVEL_ORDER.get(level, 20) < _min_level():
            return
        c = _colours
        colour = _level_colour.get(level, c["cyan"])
        symbol = _level_symbol.get(level, "ℹ")
        prefix = (
            f"{c['gray']}[{_get_timestamp()}]{c['reset']} {colour}{symbol}{c['reset']}"
            f" {c['bright']}[{self._context}]{c['reset']}"
        )
        if data:
            data_str = " ".join(f"{c['dim']}{k}={c['reset']}{_format_value(v)}" for k, v in data.items())
            self._emit(f"{prefix} {message} {data_str}")
        else:
            self._emit(f"{prefix} {message}")

    def info(self, message: str, data: dict[str, object] | None = None) -> None:
        """Log an informational message."""
        self._log("info", message, data)

    def success(self, message: str, data: dict[str, object] | None = None) -> None:
        """Log a success message."""
        self._log("success", message, data)

    def warn(self, message: str, data: dict[str, object] | None = None) -> None:
        """Log a warning message."""
        self._log("warn", message, data)

    def error(self, message: str, data: dict[str, object] | None = None) -> None:
        """Log an error message."""
        self._log("error", message, data)

    def debug(self, message: str, data: dict[str, object] | None = None) -> None:
        """Log a debug-level message."""
        self._log("debug", message, data)

    def start_timer(self, label: str) -> None:
        """Start a named timer."""
        _get_timers()[f"{self._context}:{label}"] = time.monotonic() * 1000
        self._log("debug", f"Starting: {label}")

    def end_timer(self, label: str, message: str | None = None) -> float:
        """Stop a named timer, log the elapsed time and return it in ms."""
        start_ms = _get_timers().pop(f"{self._context}:{label}", None)
        if start_ms is None:
            self.warn(f'Timer "{label}" was not started')
            return 0.0
        duration = time.monotonic() * 1000 - start_ms
        c = _colours
        self._log(
            "timing",
            f"{message or f'Completed: {label}'} {c['dim']}took{c['reset']}"
            f" {c['magenta']}{format_duration(duration)}{c['reset']}",
        )
        return duration

    def section(self, title: str) -> None:
        """Print a prominent section divider with *title*."""
        if _LEVEL_ORDER["info"] < _min_level():
            return
        c = _colours
        line = "─" * 60
        for ln in ("", f"{c['blue']}{line}{c['reset']}", f"{c['blue']}{c['bright']}  {title}{c['reset']}", f"{c['blue']}{line}{c['reset']}"):
            self._emit(ln)


def create_logger(context: str) -> Logger:
    """Create a logger for a specific module."""
    return Logger(context)
