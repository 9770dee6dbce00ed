"""Helpers for safe debug logging.

Request headers, bodies and URLs routinely carry credentials and session
tokens. Everything the transport traces goes through this module first.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

_REDACTED = "<redacted>"

_SENSITIVE_KEYS: frozenset[str] = frozenset(
    {
        "password",
        "passwd",
        "secret",
        "token",
        "accesstoken",
        "refreshtoken",
        "api_key",
        "apikey",
        "x-api-key",
        "authorization",
        "proxy-authorization",
        "cookie",
        "set-cookie",
    }
)
_SENSITIVE_SUFFIXES: tuple[str, ...] = ("_token", "_secret", "_password")


def is_sensitive(name: str) -> bool:
    lowered = name.lower()
    return lowered in _SENSITIVE_KEYS or lowered.endswith(_SENSITIVE_SUFFIXES)


def redact_url(url: str) -> str:
    """Mask the values of sensitive query parameters in *url*."""
    parts = urlsplit(url)
    if not parts.query:
        return url
    query = [
        (name, _REDACTED if is_sensitive(name) else value)
        for name, value in parse_qsl(parts.query, keep_blank_values=True)
    ]
    return urlunsplit(parts._replace(query=urlencode(query, safe="<>")))


def redact_for_log(value: Any, *, max_string: int = 512, _depth: int = 0) -> Any:
    """Return a redacted copy of *value* suitable for debug logs."""
    if _depth > 20:
        return "<max-depth>"

    if value is None or isinstance(value, (bool, int, float)):
        return value

    if isinstance(value, str):
        return value if len(value) <= max_string else f"{value[:max_string]}…<truncated>"

    if isinstance(value, (bytes, bytearray)):
        return f"<bytes:{len(value)}b>"

    if isinstance(value, Mapping):
        return {
            str(key): _REDACTED
            if is_sensitive(str(key))
            else redact_for_log(entry, max_string=max_string, _depth=_depth + 1)
            for key, entry in value.items()
        }

    if isinstance(value, Sequence):
        return [redact_for_log(entry, max_string=max_string, _depth=_depth + 1) for entry in value]

    return repr(value)
