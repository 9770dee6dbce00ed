"""List reducers and list bookkeeping shared with the item reducers."""

from __future__ import annotations

from collections.abc import Iterable

from pyresync._constants import ERROR_STATUS_ATTRIBUTES
from pyresync.models.item import EMPTY_LIST, Item, ResourceList, ResourcesState
from pyresync.models.options import ListOperations
from pyresync.models.status import Status, StatusType
from pyresync.state.events import ClearListEvent, FetchListEvent, TransitionContext
from pyresync.state.status import merge_status


def apply_list_operations(
    lists: dict[str, ResourceList],
    operations: ListOperations,
    key: str,
) -> dict[str, ResourceList]:
    """Push or unshift *key* onto the named lists and reset the invalidated ones.

    Lists that do not exist yet are created empty before the operation.
    """
    if operations.is_empty:
        return lists

    updated = dict(lists)
    for list_key in operations.push:
        current = updated.get(list_key, EMPTY_LIST)
        updated[list_key] = current.model_copy(update={"positions": [*current.positions, key]})
    for list_key in operations.unshift:
        current = updated.get(list_key, EMPTY_LIST)
        updated[list_key] = current.model_copy(update={"positions": [key, *current.positions]})
    for list_key in operations.invalidate:
        updated[list_key] = EMPTY_LIST
    return updated


def substitute_key(lists: dict[str, ResourceList], old_key: str, new_key: str) -> dict[str, ResourceList]:
    """Replace every occurrence of *old_key* with *new_key* in every list."""
    updated = dict(lists)
    for list_key, collection in lists.items():
        if old_key in collection.positions:
            positions = [new_key if position == old_key else position for position in collection.positions]
            updated[list_key] = collection.model_copy(update={"positions": positions})
    return updated


def remove_items(state: ResourcesState, keys: Iterable[str]) -> ResourcesState:
    """Drop *keys* from items, from every list, from the selection and from ``new_item_key``."""
    removed = set(keys)
    if not removed:
        return state

    lists = dict(state.lists)
    for list_key, collection in state.lists.items():
        if any(position in removed for position in collection.positions):
            positions = [position for position in collection.positions if position not in removed]
            lists[list_key] = collection.model_copy(update={"positions": positions})

    new_item_key = state.new_item_key
    if new_item_key in removed:
        new_item_key = None

    return state.model_copy(
        update={
            "items": {key: item for key, item in state.items.items() if key not in removed},
            "lists": lists,
            "selection_map": {key: value for key, value in state.selection_map.items() if key not in removed},
            "new_item_key": new_item_key,
        }
    )


def merge_fetched_item(current: Item | None, incoming: Item) -> Item:
    """Combine a freshly fetched item with what the cache already holds.

    Values are shallow-merged when the cached item was synced before, so a
    partial response never erases known attributes; otherwise they are
    replaced.
    """
    if current is None:
        return incoming

    values = incoming.values
    if current.status.synced_at is not None:
        values = {**current.values, **incoming.values}

    return Item(
        values=values,
        status=merge_status(current.status, incoming.status, exclude=ERROR_STATUS_ATTRIBUTES),
        metadata={**current.metadata, **incoming.metadata},
    )


def reduce_fetch_list(state: ResourcesState, event: FetchListEvent, ctx: TransitionContext) -> ResourcesState:
    current = state.lists.get(event.key, EMPTY_LIST)

    if event.status is StatusType.FETCHING:
        collection = current.model_copy(
            update={
                "status": merge_status(
                    current.status,
                    Status(type=StatusType.FETCHING, requested_at=event.requested_at),
                    only_persist=("synced_at", "items_in_last_response"),
                ),
                "metadata": dict(event.metadata or {}),
            }
        )
        return state.model_copy(update={"lists": {**state.lists, event.key: collection}})

    if event.status is StatusType.SUCCESS:
        incoming = event.collection or ResourceList(status=Status(type=StatusType.SUCCESS))
        items = dict(state.items)
        for key, item in event.items.items():
            items[key] = merge_fetched_item(state.items.get(key), item)

        collection = ResourceList(
            positions=list(incoming.positions),
            status=merge_status(current.status, incoming.status, exclude=ERROR_STATUS_ATTRIBUTES),
            metadata={**current.metadata, **incoming.metadata},
        )
        return state.model_copy(update={"items": items, "lists": {**state.lists, event.key: collection}})

    assert event.failure is not None  # noqa: S101
    collection = current.model_copy(
        update={
            "status": merge_status(
                current.status,
                event.failure.to_status(StatusType.ERROR),
                exclude=("items_in_last_response",),
            ),
            "metadata": {**current.metadata, **event.failure.metadata},
        }
    )
    return state.model_copy(update={"lists": {**state.lists, event.key: collection}})


def reduce_clear_list(state: ResourcesState, event: ClearListEvent, ctx: TransitionContext) -> ResourcesState:
    if event.key == ctx.list_wildcard:
        return state.model_copy(update={"lists": {}})
    if event.key not in state.lists:
        return state
    return state.model_copy(
        update={"lists": {key: collection for key, collection in state.lists.items() if key != event.key}}
    )
