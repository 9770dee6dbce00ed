from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime

import pytest

from pyresync.models import Item, ResourcesState, Status, StatusType
from pyresync.state import ResourceStore
from pyresync.state.events import (
    DestroyItemEvent,
    EditItemEvent,
    Failure,
    FetchItemEvent,
    ProgressEvent,
    ResourceEvent,
    SelectItemEvent,
    UpdateItemEvent,
)


def _dt(minute: int = 0) -> datetime:
    return datetime(2026, 1, 1, 12, minute, tzinfo=UTC)


def _store_with_item(on_warning: Callable[[str], None] | None = None) -> ResourceStore:
    store = ResourceStore(on_warning=on_warning)
    store.apply(
        FetchItemEvent(
            resource="users",
            status=StatusType.SUCCESS,
            key="1",
            item=Item(values={"id": 1, "name": "a"}, status=Status(type=StatusType.SUCCESS, synced_at=_dt())),
        )
    )
    return store


def test_listeners_are_notified_of_changes_only() -> None:
    store = ResourceStore()
    seen: list[tuple[str, ResourcesState]] = []
    unsubscribe = store.subscribe(lambda name, state: seen.append((name, state)))

    store.apply(SelectItemEvent(resource="users", key="missing"))
    assert seen == []

    store.apply(
        FetchItemEvent(resource="users", status=StatusType.FETCHING, key="1", requested_at=_dt())
    )
    assert [name for name, _ in seen] == ["users"]
    assert seen[0][1] is store.state("users")

    unsubscribe()
    store.apply(EditItemEvent(resource="users", key="1", values={"name": "b"}))
    assert len(seen) == 1


def test_snapshots_are_not_modified_by_later_events() -> None:
    store = _store_with_item()
    before = store.state("users")

    store.apply(EditItemEvent(resource="users", key="1", values={"name": "b"}))

    assert before.items["1"].values == {"id": 1, "name": "a"}
    assert store.state("users").items["1"].values == {"id": 1, "name": "b"}


def test_unknown_events_are_rejected() -> None:
    with pytest.raises(TypeError, match="Unsupported event type"):
        ResourceStore().apply(ResourceEvent(resource="users"))


def test_reset() -> None:
    store = _store_with_item()
    store.register("posts")

    store.reset("users")
    assert store.state("users").items == {}
    assert set(store.names()) == {"users", "posts"}

    store.reset()
    assert store.state("posts").items == {}


def test_warnings_are_logged_only_when_enabled(caplog: pytest.LogCaptureFixture) -> None:
    warnings: list[str] = []
    quiet = ResourceStore(dev_warnings=False, on_warning=warnings.append)

    with caplog.at_level(logging.WARNING, logger="pyresync.state.store"):
        quiet.apply(SelectItemEvent(resource="users", key="missing"))
    assert len(warnings) == 1
    assert caplog.records == []

    with caplog.at_level(logging.WARNING, logger="pyresync.state.store"):
        ResourceStore().apply(SelectItemEvent(resource="users", key="missing"))
    assert any("is not in the store" in record.getMessage() for record in caplog.records)


def test_update_keeps_edit_tracking_until_success() -> None:
    store = _store_with_item()
    store.apply(EditItemEvent(resource="users", key="1", values={"name": "b"}))

    updating = store.apply(
        UpdateItemEvent(
            resource="users",
            status=StatusType.UPDATING,
            key="1",
            item=Item(values={"name": "b"}, status=Status(type=StatusType.UPDATING, requested_at=_dt(1))),
        )
    ).items["1"]
    assert updating.status.type is StatusType.UPDATING
    assert updating.status.dirty is True
    assert updating.status.original_values == {"id": 1, "name": "a"}

    updated = store.apply(
        UpdateItemEvent(
            resource="users",
            status=StatusType.SUCCESS,
            key="1",
            item=Item(
                values={"id": 1, "name": "b"},
                status=Status(type=StatusType.SUCCESS, http_code=200, synced_at=_dt(2)),
            ),
        )
    ).items["1"]
    assert updated.status.type is StatusType.SUCCESS
    assert updated.status.dirty is None
    assert updated.status.original_values is None
    assert updated.status.synced_at == _dt(2)


def test_update_of_a_missing_item_warns() -> None:
    warnings: list[str] = []
    store = ResourceStore(on_warning=warnings.append)

    store.apply(
        UpdateItemEvent(
            resource="users",
            status=StatusType.UPDATING,
            key="9",
            item=Item(values={"name": "b"}, status=Status(type=StatusType.UPDATING)),
        )
    )

    assert "does not exist" in warnings[0]


def test_destroy_error_keeps_the_item() -> None:
    warnings: list[str] = []
    store = _store_with_item(on_warning=warnings.append)

    store.apply(DestroyItemEvent(resource="users", status=StatusType.DESTROYING, key="1", requested_at=_dt(1)))
    store.apply(DestroyItemEvent(resource="users", status=StatusType.DESTROYING, key="1", requested_at=_dt(1)))
    state = store.apply(
        DestroyItemEvent(
            resource="users",
            status=StatusType.DESTROY_ERROR,
            key="1",
            failure=Failure(occurred_at=_dt(2), http_code=409, error="locked"),
        )
    )

    item = state.items["1"]
    assert item.values == {"id": 1, "name": "a"}
    assert item.status.type is StatusType.DESTROY_ERROR
    assert item.status.error == "locked"
    assert item.status.synced_at == _dt()
    assert "already being destroyed" in warnings[0]


def test_destroy_clears_selection_and_new_item_key() -> None:
    store = _store_with_item()
    store.apply(SelectItemEvent(resource="users", key="1"))

    state = store.apply(DestroyItemEvent(resource="users", status=StatusType.SUCCESS, key="1"))

    assert state.items == {}
    assert state.selection_map == {}


def test_progress_is_tracked_per_direction() -> None:
    store = _store_with_item()

    state = store.apply(
        ProgressEvent(resource="users", key="1", direction="down", loaded=5, total=10, length_computable=True)
    )
    assert state.items["1"].status.progress_down is not None
    assert state.items["1"].status.progress_down.percent == 50.0

    state = store.apply(ProgressEvent(resource="users", key="1", direction="up", loaded=3))
    assert state.items["1"].status.progress_up is not None
    assert state.items["1"].status.progress_up.percent == -1.0

    state = store.apply(ProgressEvent(resource="users", key="1", direction="down", complete=True))
    progress = state.items["1"].status.progress_down
    assert progress is not None
    assert progress.percent == 100.0
    assert progress.loaded == 10
