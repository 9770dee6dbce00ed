"""Key derivation for items and lists.

Items are stored under string keys. A key is either the value of a single
identity attribute, a sorted ``name=value`` serialization joined with ``.``
for composite identities, or a generated timestamp string for items that do
not have an identity yet.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from pyresync._constants import EMPTY_KEY

KeyBy = str | Sequence[str] | None


def _format_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _format_attribute(value: Any) -> str:
    return "null" if value is None else _format_value(value)


def serialize_key(target: Any) -> str:
    """Serialize *target* into a stable key.

    Mappings become their ``name=value`` pairs sorted by name and joined with
    ``.``, where a ``None`` attribute is written as ``null``; scalars become
    their string form and ``None`` itself the empty key.
    """
    if isinstance(target, Mapping):
        return ".".join(f"{name}={_format_attribute(target[name])}" for name in sorted(target))
    return _format_value(target)


def identity_attributes(key_by: KeyBy) -> tuple[str, ...] | None:
    """Return the identity attribute names, or ``None`` when identity is absent."""
    if key_by is None:
        return None
    if isinstance(key_by, str):
        return (key_by,)
    return tuple(key_by)


def _first_value(sources: Sequence[Any], attribute: str, *, allow_scalars: bool) -> Any:
    for source in sources:
        if isinstance(source, Mapping):
            value = source.get(attribute)
            if value is not None:
                return value
        elif allow_scalars and source is not None and source != "":
            return source
    return None


def derive_item_key(params: Any, key_by: KeyBy = "id", *, singular: bool = False) -> str | None:
    """Derive the key of the item identified by *params*.

    Parameters
    ----------
    params
        A scalar identity, a mapping of attributes, or a list of candidate
        mappings ordered from highest to lowest priority (typically the
        response values followed by the request params).
    key_by
        Identity attribute, several attributes for a composite identity, or
        ``None`` to serialize every attribute.
    singular
        Singular resources hold one item, always keyed by the empty key.

    Returns
    -------
    str or None
        The key, or ``None`` when no identity value is present.
    """
    if singular:
        return EMPTY_KEY

    if params is None:
        return None
    if not isinstance(params, (Mapping, list)):
        return _format_value(params)

    sources: list[Any] = params if isinstance(params, list) else [params]
    attributes = identity_attributes(key_by)

    if attributes is None:
        for source in sources:
            if isinstance(source, Mapping):
                if source:
                    return serialize_key(source)
            elif source is not None and source != "":
                return _format_value(source)
        return None

    if len(attributes) > 1:
        identity = {name: _first_value(sources, name, allow_scalars=False) for name in attributes}
        if all(value is None for value in identity.values()):
            return None
        return serialize_key(identity)

    value = _first_value(sources, attributes[0], allow_scalars=True)
    if value is None:
        return None
    return _format_value(value)


def derive_list_key(params: Any, url_only_params: Sequence[str] = ()) -> str:
    """Derive the key of the list described by *params*, ignoring URL-only parameters."""
    if isinstance(params, Mapping):
        params = {name: value for name, value in params.items() if name not in url_only_params}
    return serialize_key(params)


def wrap_in_object(params: Any, key_by: KeyBy = "id") -> dict[str, Any]:
    """Lift scalar *params* into ``{key_by: params}`` so URL templates can use them."""
    if params is None:
        return {}
    if isinstance(params, Mapping):
        return dict(params)
    attributes = identity_attributes(key_by)
    if attributes is not None and len(attributes) == 1:
        return {attributes[0]: params}
    return {}


def singularize(name: str) -> str:
    """Naive English singular form, used for default association attribute names."""
    if name.endswith("ies") and len(name) > 3:
        return f"{name[:-3]}y"
    if name.endswith(("sses", "shes", "ches", "xes", "zes")):
        return name[:-2]
    if name.endswith("s") and not name.endswith("ss"):
        return name[:-1]
    return name


class KeyGenerator:
    """Generate monotonic millisecond-timestamp keys for items without an identity."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._last = 0

    def __call__(self) -> str:
        candidate = int(self._clock() * 1000)
        if candidate <= self._last:
            candidate = self._last + 1
        self._last = candidate
        return str(candidate)
