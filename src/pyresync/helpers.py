"""Status predicates for cached items and lists.

Every helper accepts anything with a ``status`` attribute: an
:class:`~pyresync.models.Item`, a :class:`~pyresync.models.ResourceList`
or a :class:`~pyresync.models.ResolvedList`.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Protocol

from pyresync.models.status import Status, StatusType


class _HasStatus(Protocol):
    @property
    def status(self) -> Status: ...


_SYNCING = frozenset({StatusType.FETCHING, StatusType.CREATING, StatusType.UPDATING, StatusType.DESTROYING})
_SAVING = frozenset({StatusType.CREATING, StatusType.UPDATING})


def _type(target: _HasStatus) -> StatusType | None:
    return target.status.type


def is_new(target: _HasStatus) -> bool:
    """Not yet confirmed by the server: NEW, no status at all, or a failed first create."""
    status = target.status
    return status.type in (StatusType.NEW, None) or (status.type is StatusType.ERROR and status.synced_at is None)


def has_defined_status(target: _HasStatus) -> bool:
    return _type(target) is not None


def is_new_item_key(state: Any, key: str) -> bool:
    """Whether *key* is the key of the item built with ``new_item``."""
    return state.new_item_key is not None and state.new_item_key == key


def is_editing(target: _HasStatus) -> bool:
    return _type(target) is StatusType.EDITING


def is_edited(target: _HasStatus) -> bool:
    """Editing with changes that have not been saved."""
    return _type(target) is StatusType.EDITING and bool(target.status.dirty)


def is_fetching(target: _HasStatus) -> bool:
    return _type(target) is StatusType.FETCHING


def is_finished_fetching(target: _HasStatus) -> bool:
    status_type = _type(target)
    return status_type is not None and status_type is not StatusType.FETCHING


def is_creating(target: _HasStatus) -> bool:
    return _type(target) is StatusType.CREATING


def is_updating(target: _HasStatus) -> bool:
    return _type(target) is StatusType.UPDATING


def is_destroying(target: _HasStatus) -> bool:
    return _type(target) is StatusType.DESTROYING


def is_saving(target: _HasStatus) -> bool:
    return _type(target) in _SAVING


def is_syncing_with_remote(target: _HasStatus) -> bool:
    return _type(target) in _SYNCING


def is_synced_with_remote(target: _HasStatus) -> bool:
    return not is_syncing_with_remote(target)


def is_error(target: _HasStatus) -> bool:
    return _type(target) in (StatusType.ERROR, StatusType.DESTROY_ERROR)


def is_successfully_fetched(target: _HasStatus) -> bool:
    return _type(target) is StatusType.SUCCESS


def can_fallback_to_old_values(target: _HasStatus) -> bool:
    """A request failed after an earlier successful sync, so older values are still usable."""
    status = target.status
    if status.type is not StatusType.ERROR or status.synced_at is None or status.requested_at is None:
        return False
    return status.requested_at > status.synced_at


def get_time_since_fetch_started(target: _HasStatus, now: datetime | None = None) -> float:
    """Seconds since the current fetch was requested, or ``0`` when not fetching."""
    status = target.status
    if status.type is not StatusType.FETCHING or status.requested_at is None:
        return 0.0
    return ((now or datetime.now(UTC)) - status.requested_at).total_seconds()


def get_time_since_last_sync(target: _HasStatus, now: datetime | None = None) -> float:
    """Seconds since the last successful sync, or ``0`` when never synced."""
    synced_at = target.status.synced_at
    if synced_at is None:
        return 0.0
    return ((now or datetime.now(UTC)) - synced_at).total_seconds()


def get_values_before_editing(item: Any) -> dict[str, Any]:
    """The last confirmed values of an item with unsaved edits, else its current values."""
    status = item.status
    if status.dirty and status.original_values is not None:
        return dict(status.original_values)
    return dict(item.values)


def get_http_status_code(target: _HasStatus) -> int | None:
    return target.status.http_code
