"""Pure status merge policy.

Kept separate from the reducers so the merge rules can be tested without a
store.
"""

from __future__ import annotations

from collections.abc import Iterable

from pyresync.models.status import Status


def merge_status(
    previous: Status,
    incoming: Status,
    *,
    only_persist: Iterable[str] | None = None,
    exclude: Iterable[str] | None = None,
) -> Status:
    """Merge *incoming* over *previous*; attributes present in *incoming* win.

    Parameters
    ----------
    previous : Status
        The status currently held by the item or list.
    incoming : Status
        The status produced by the transition.
    only_persist : iterable of str, optional
        When given, only these attributes carry over from *previous*
        (and only where *incoming* does not set them).
    exclude : iterable of str, optional
        Attributes dropped from the result even if either input sets them.
    """
    incoming_data = incoming.present()
    carried = previous.present()

    if only_persist is not None:
        persisted = set(only_persist)
        carried = {name: value for name, value in carried.items() if name in persisted}

    merged = {**carried, **incoming_data}

    if exclude is not None:
        for name in exclude:
            merged.pop(name, None)

    return Status(**merged)
