"""URL template expansion.

Templates use ``:name`` placeholders; ``:name?`` marks an optional segment
that is dropped when no value is given. Parameters not consumed by the
template can be appended as a query string.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any
from urllib.parse import quote, urlencode

from pyresync.exceptions import ResyncRequestError

_PLACEHOLDER = re.compile(r"/?:([A-Za-z_][A-Za-z0-9_]*)(\?)?")
_REPEATED_SLASH = re.compile(r"(?<!:)/{2,}")


def _query_value(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return [_query_value(entry) for entry in value]
    return value


def build_endpoint(
    template: str,
    params: Mapping[str, Any] | None = None,
    *,
    skip_optional: bool = False,
    include_query: bool = True,
) -> str:
    """Expand *template* with *params*.

    Parameters
    ----------
    template : str
        URL template, e.g. ``"/users/:user_id/posts/:id?"``.
    params : Mapping, optional
        Values for the placeholders (and the query string).
    skip_optional : bool
        Drop every optional segment even when a value is given. Used when
        creating an item, whose identity is not known to the server yet.
    include_query : bool
        Append unused, non-``None`` parameters as a sorted query string.

    Raises
    ------
    ResyncRequestError
        When a required placeholder has no value.
    """
    values = dict(params or {})
    used: set[str] = set()

    def _substitute(match: re.Match[str]) -> str:
        name, optional = match.group(1), match.group(2) is not None
        leading = "/" if match.group(0).startswith("/") else ""
        value = values.get(name)
        if optional and (skip_optional or value is None or value == ""):
            used.add(name)
            return ""
        if value is None or value == "":
            raise ResyncRequestError(f"Missing value for URL parameter '{name}' in '{template}'")
        used.add(name)
        return f"{leading}{quote(str(value), safe='')}"

    path = _PLACEHOLDER.sub(_substitute, template)
    path = _REPEATED_SLASH.sub("/", path)
    if len(path) > 1 and path.endswith("/") and not template.endswith("/"):
        path = path.rstrip("/")

    if not include_query:
        return path

    remaining = sorted(
        (name, _query_value(value)) for name, value in values.items() if name not in used and value is not None
    )
    if not remaining:
        return path
    separator = "&" if "?" in path else "?"
    return f"{path}{separator}{urlencode(remaining, doseq=True)}"
