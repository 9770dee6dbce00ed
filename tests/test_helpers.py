from __future__ import annotations

from datetime import UTC, datetime

from pyresync import helpers
from pyresync.models import Item, ResourceList, ResourcesState, Status, StatusType


def _dt(minute: int = 0) -> datetime:
    return datetime(2026, 1, 1, 12, minute, tzinfo=UTC)


def _item(**status: object) -> Item:
    return Item(values={"id": 1}, status=Status(**status))


def test_is_new() -> None:
    assert helpers.is_new(Item())
    assert helpers.is_new(_item(type=StatusType.NEW))
    assert helpers.is_new(_item(type=StatusType.ERROR))
    assert not helpers.is_new(_item(type=StatusType.ERROR, synced_at=_dt()))
    assert not helpers.is_new(_item(type=StatusType.SUCCESS, synced_at=_dt()))


def test_lifecycle_predicates() -> None:
    assert helpers.is_fetching(_item(type=StatusType.FETCHING))
    assert helpers.is_creating(_item(type=StatusType.CREATING))
    assert helpers.is_updating(_item(type=StatusType.UPDATING))
    assert helpers.is_destroying(_item(type=StatusType.DESTROYING))
    assert helpers.is_saving(_item(type=StatusType.CREATING))
    assert helpers.is_saving(_item(type=StatusType.UPDATING))
    assert not helpers.is_saving(_item(type=StatusType.DESTROYING))
    assert helpers.is_syncing_with_remote(_item(type=StatusType.DESTROYING))
    assert helpers.is_synced_with_remote(_item(type=StatusType.SUCCESS))
    assert not helpers.is_synced_with_remote(_item(type=StatusType.FETCHING))


def test_fetch_completion_predicates() -> None:
    assert not helpers.is_finished_fetching(Item())
    assert not helpers.is_finished_fetching(_item(type=StatusType.FETCHING))
    assert helpers.is_finished_fetching(_item(type=StatusType.ERROR))
    assert helpers.is_successfully_fetched(ResourceList(status=Status(type=StatusType.SUCCESS)))
    assert not helpers.is_successfully_fetched(ResourceList(status=Status(type=StatusType.ERROR)))


def test_error_predicates() -> None:
    assert helpers.is_error(_item(type=StatusType.ERROR))
    assert helpers.is_error(_item(type=StatusType.DESTROY_ERROR))
    assert not helpers.is_error(_item(type=StatusType.SUCCESS))
    assert helpers.get_http_status_code(_item(type=StatusType.ERROR, http_code=422)) == 422


def test_editing_predicates() -> None:
    edited = _item(type=StatusType.EDITING, dirty=True, original_values={"id": 1, "name": "a"})
    assert helpers.is_editing(edited)
    assert helpers.is_edited(edited)
    assert not helpers.is_edited(_item(type=StatusType.EDITING))
    assert helpers.get_values_before_editing(edited) == {"id": 1, "name": "a"}
    assert helpers.get_values_before_editing(_item(type=StatusType.SUCCESS)) == {"id": 1}


def test_can_fallback_to_old_values() -> None:
    assert helpers.can_fallback_to_old_values(_item(type=StatusType.ERROR, synced_at=_dt(), requested_at=_dt(5)))
    assert not helpers.can_fallback_to_old_values(_item(type=StatusType.ERROR, requested_at=_dt(5)))
    assert not helpers.can_fallback_to_old_values(
        _item(type=StatusType.SUCCESS, synced_at=_dt(), requested_at=_dt(5))
    )


def test_time_helpers() -> None:
    fetching = _item(type=StatusType.FETCHING, requested_at=_dt(1), synced_at=_dt())
    assert helpers.get_time_since_fetch_started(fetching, now=_dt(2)) == 60.0
    assert helpers.get_time_since_last_sync(fetching, now=_dt(2)) == 120.0
    assert helpers.get_time_since_fetch_started(_item(type=StatusType.SUCCESS), now=_dt(2)) == 0.0
    assert helpers.get_time_since_last_sync(Item(), now=_dt(2)) == 0.0


def test_status_presence_and_new_item_key() -> None:
    assert not helpers.has_defined_status(Item())
    assert helpers.has_defined_status(_item(type=StatusType.NEW))

    state = ResourcesState(new_item_key="tmp")
    assert helpers.is_new_item_key(state, "tmp")
    assert not helpers.is_new_item_key(state, "1")
    assert not helpers.is_new_item_key(ResourcesState(), "1")
