from __future__ import annotations

from datetime import UTC, datetime

from pyresync.models import Item, ListOperations, ResourceList, Status, StatusType
from pyresync.state import ResourceStore
from pyresync.state.events import (
    ClearListEvent,
    CreateItemEvent,
    DestroyItemEvent,
    Failure,
    FetchListEvent,
    NewItemEvent,
)


def _dt(minute: int = 0) -> datetime:
    return datetime(2026, 1, 1, 12, minute, tzinfo=UTC)


def _synced(values: dict[str, object]) -> Item:
    return Item(values=values, status=Status(type=StatusType.SUCCESS, synced_at=_dt()))


def _fetched_list(store: ResourceStore, key: str, *items: tuple[str, dict[str, object]]) -> None:
    store.apply(
        FetchListEvent(
            resource="users",
            status=StatusType.SUCCESS,
            key=key,
            items={item_key: _synced(values) for item_key, values in items},
            collection=ResourceList(
                positions=[item_key for item_key, _ in items],
                status=Status(type=StatusType.SUCCESS, synced_at=_dt(), items_in_last_response=len(items)),
                metadata={"page": 1},
            ),
        )
    )


def test_fetching_a_list_keeps_positions_and_sync_time() -> None:
    store = ResourceStore()
    _fetched_list(store, "", ("1", {"id": 1}), ("2", {"id": 2}))

    state = store.apply(
        FetchListEvent(
            resource="users",
            status=StatusType.FETCHING,
            key="",
            requested_at=_dt(5),
            metadata={"source": "refresh"},
        )
    )

    collection = state.lists[""]
    assert collection.positions == ["1", "2"]
    assert collection.status.type is StatusType.FETCHING
    assert collection.status.synced_at == _dt()
    assert collection.status.requested_at == _dt(5)
    assert collection.status.items_in_last_response == 2
    assert collection.metadata == {"source": "refresh"}


def test_failed_list_fetch_keeps_positions() -> None:
    store = ResourceStore()
    _fetched_list(store, "", ("1", {"id": 1}))

    state = store.apply(
        FetchListEvent(
            resource="users",
            status=StatusType.ERROR,
            key="",
            failure=Failure(occurred_at=_dt(5), http_code=500, error="boom", errors=["boom"]),
        )
    )

    collection = state.lists[""]
    assert collection.positions == ["1"]
    assert collection.status.type is StatusType.ERROR
    assert collection.status.error == "boom"
    assert collection.status.error_occurred_at == _dt(5)
    assert collection.status.synced_at == _dt()
    assert collection.status.items_in_last_response is None
    assert "1" in state.items


def test_successful_list_fetch_merges_into_synced_items() -> None:
    store = ResourceStore()
    _fetched_list(store, "", ("1", {"id": 1, "name": "a", "email": "a@example.com"}))
    _fetched_list(store, "page=2", ("1", {"id": 1, "name": "b"}), ("3", {"id": 3}))

    state = store.state("users")
    assert state.items["1"].values == {"id": 1, "name": "b", "email": "a@example.com"}
    assert state.lists[""].positions == ["1"]
    assert state.lists["page=2"].positions == ["1", "3"]


def test_create_promotes_the_temporary_key_in_every_list() -> None:
    store = ResourceStore()
    _fetched_list(store, "", ("x", {"id": "x"}))

    store.apply(
        CreateItemEvent(
            resource="users",
            status=StatusType.CREATING,
            temporary_key="temp",
            item=Item(values={"name": "Ada"}, status=Status(type=StatusType.CREATING, requested_at=_dt())),
            list_operations=ListOperations(push=("", "active=true")),
        )
    )
    creating = store.state("users")
    assert creating.lists[""].positions == ["x", "temp"]
    assert creating.new_item_key == "temp"

    state = store.apply(
        CreateItemEvent(
            resource="users",
            status=StatusType.SUCCESS,
            temporary_key="temp",
            key="7",
            item=Item(
                values={"id": 7, "name": "Ada"},
                status=Status(type=StatusType.SUCCESS, http_code=201, synced_at=_dt(1)),
            ),
        )
    )

    assert state.lists[""].positions == ["x", "7"]
    assert state.lists["active=true"].positions == ["7"]
    assert "temp" not in state.items
    assert state.items["7"].values == {"id": 7, "name": "Ada"}
    assert state.items["7"].status.type is StatusType.SUCCESS
    assert state.items["7"].status.requested_at == _dt()
    assert state.new_item_key == "7"


def test_failed_create_stays_under_the_temporary_key() -> None:
    store = ResourceStore()
    store.apply(
        CreateItemEvent(
            resource="users",
            status=StatusType.CREATING,
            temporary_key="temp",
            item=Item(values={"name": "Ada"}, status=Status(type=StatusType.CREATING, requested_at=_dt())),
            list_operations=ListOperations(unshift=("",)),
        )
    )

    state = store.apply(
        CreateItemEvent(
            resource="users",
            status=StatusType.ERROR,
            temporary_key="temp",
            failure=Failure(occurred_at=_dt(1), http_code=422, error="name taken", errors=["name taken"]),
        )
    )

    assert state.items["temp"].values == {"name": "Ada"}
    assert state.items["temp"].status.type is StatusType.ERROR
    assert state.items["temp"].status.http_code == 422
    assert state.lists[""].positions == ["temp"]
    assert state.new_item_key == "temp"


def test_push_unshift_and_invalidate() -> None:
    store = ResourceStore()
    _fetched_list(store, "", ("1", {"id": 1}))
    _fetched_list(store, "page=2", ("2", {"id": 2}))

    state = store.apply(
        NewItemEvent(
            resource="users",
            key="tmp",
            item=Item(status=Status(type=StatusType.NEW)),
            list_operations=ListOperations(unshift=("",), push=("mine",), invalidate=("page=2",)),
        )
    )

    assert state.lists[""].positions == ["tmp", "1"]
    assert state.lists["mine"].positions == ["tmp"]
    assert state.lists["page=2"].positions == []
    assert state.lists["page=2"].status.type is None


def test_destroy_removes_the_key_from_every_list() -> None:
    store = ResourceStore()
    _fetched_list(store, "", ("1", {"id": 1}), ("2", {"id": 2}))
    _fetched_list(store, "active=true", ("2", {"id": 2}))

    state = store.apply(DestroyItemEvent(resource="users", status=StatusType.SUCCESS, key="2"))

    assert state.lists[""].positions == ["1"]
    assert state.lists["active=true"].positions == []
    assert "2" not in state.items


def test_clear_list() -> None:
    store = ResourceStore()
    _fetched_list(store, "", ("1", {"id": 1}))
    _fetched_list(store, "page=2", ("2", {"id": 2}))

    state = store.apply(ClearListEvent(resource="users", key="page=2"))
    assert set(state.lists) == {""}

    state = store.apply(ClearListEvent(resource="users", key="*"))
    assert state.lists == {}
    assert set(state.items) == {"1", "2"}
