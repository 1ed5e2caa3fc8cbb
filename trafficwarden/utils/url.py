"""
URL helpers used by the rule set.
"""

from __future__ import annotations

from urllib import parse


def extract_host(url: str) -> str | None:
    """Return the lowercased hostname of *url*, or ``None`` when it has none.

    ``data:``, ``blob:`` and scheme-less strings have no host and
    therefore can never match a domain rule.
    """
    try:
        parsed = parse.urlsplit(url)
        host = parsed.hostname
    except ValueError:
        return None
    return host.lower() if host else None


def request_target(url: str) -> str:
    """Return the path plus ``?query`` of *url* (the HTTP request target)."""
    try:
        parsed = parse.urlsplit(url)
    except ValueError:
        return url
    if parsed.query:
        return f"{parsed.path}?{parsed.query}"
    return parsed.path


def host_contains(host: str | None, pattern: str) -> bool:
    """Substring match of a lowercase *pattern* against *host*."""
    if not host:
        return False
    return pattern in host
