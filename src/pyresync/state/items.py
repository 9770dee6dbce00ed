"""Item lifecycle reducers.

Each reducer is a pure function ``(state, event, ctx) -> state``. Misuse of
the local commands never raises; it is reported through ``ctx.warn`` and the
state is left as described for each reducer.
"""

from __future__ import annotations

from pyresync._constants import ERROR_STATUS_ATTRIBUTES
from pyresync.models.item import EMPTY_ITEM, Item, ResourcesState
from pyresync.models.status import Progress, Status, StatusType
from pyresync.state.events import (
    ClearItemEditEvent,
    ClearItemEvent,
    ClearNewItemEvent,
    ClearSelectedItemsEvent,
    CreateItemEvent,
    DeselectItemEvent,
    DestroyItemEvent,
    EditItemEvent,
    EditNewItemEvent,
    Failure,
    FetchItemEvent,
    NewItemEvent,
    ProgressEvent,
    SelectItemEvent,
    TransitionContext,
    UpdateItemEvent,
)
from pyresync.state.lists import apply_list_operations, merge_fetched_item, remove_items, substitute_key
from pyresync.state.status import merge_status


def _put(state: ResourcesState, key: str, item: Item) -> ResourcesState:
    return state.model_copy(update={"items": {**state.items, key: item}})


def _with_failure(item: Item, event_status: StatusType, failure: Failure | None) -> Item:
    assert failure is not None  # noqa: S101
    return item.model_copy(
        update={
            "status": merge_status(item.status, failure.to_status(event_status)),
            "metadata": {**item.metadata, **failure.metadata},
        }
    )


# ----------------------------------------------------------------------
# Remote lifecycle
# ----------------------------------------------------------------------


def reduce_fetch_item(state: ResourcesState, event: FetchItemEvent, ctx: TransitionContext) -> ResourcesState:
    current = state.items.get(event.key)

    if event.status is StatusType.FETCHING:
        base = current or EMPTY_ITEM
        item = Item(
            values=base.values,
            status=merge_status(
                base.status,
                Status(type=StatusType.FETCHING, requested_at=event.requested_at),
                only_persist=("synced_at",),
            ),
            metadata=event.metadata if event.metadata is not None else base.metadata,
        )
        return _put(state, event.key, item)

    if event.status is StatusType.SUCCESS:
        assert event.item is not None  # noqa: S101
        return _put(state, event.key, merge_fetched_item(current, event.item))

    return _put(state, event.key, _with_failure(current or EMPTY_ITEM, StatusType.ERROR, event.failure))


def _reduce_create_start(state: ResourcesState, event: CreateItemEvent, ctx: TransitionContext) -> ResourcesState:
    assert event.item is not None and event.temporary_key is not None  # noqa: S101
    key = event.temporary_key
    current = state.items.get(key)

    if current is not None and current.status.type is not StatusType.NEW:
        ctx.warn(
            f"{event.resource}.create_item() was called with key '{key}', which is already used by an "
            "existing item. Its values were overwritten; use update_item() to change an existing item."
        )

    previous_new_key = state.new_item_key
    if (
        previous_new_key is not None
        and previous_new_key != key
        and state.items.get(previous_new_key, EMPTY_ITEM).status.type is StatusType.NEW
    ):
        state = remove_items(state, [previous_new_key])

    base = current or EMPTY_ITEM
    item = Item(
        values=event.item.values,
        status=merge_status(base.status, event.item.status, only_persist=("synced_at",)),
        metadata=event.item.metadata or base.metadata,
    )
    return state.model_copy(
        update={
            "items": {**state.items, key: item},
            "lists": apply_list_operations(state.lists, event.list_operations, key),
            "new_item_key": key,
        }
    )


def _reduce_create_success(state: ResourcesState, event: CreateItemEvent, ctx: TransitionContext) -> ResourcesState:
    assert event.item is not None and event.key is not None  # noqa: S101
    key = event.key
    temporary_key = event.temporary_key

    if event.local_only:
        previous_new_key = state.new_item_key
        if previous_new_key is not None and previous_new_key != key:
            if state.items.get(previous_new_key, EMPTY_ITEM).status.type is StatusType.NEW:
                state = remove_items(state, [previous_new_key])
        current = state.items.get(key, EMPTY_ITEM)
        lists = apply_list_operations(state.lists, event.list_operations, key)
    else:
        current = state.items.get(temporary_key or key, EMPTY_ITEM)
        lists = state.lists
        if temporary_key is not None and temporary_key != key:
            lists = substitute_key(lists, temporary_key, key)

    if event.item.status.http_code == 204:
        values = current.values
    else:
        values = {**current.values, **event.item.values}

    item = Item(
        values=values,
        status=merge_status(current.status, event.item.status, exclude=ERROR_STATUS_ATTRIBUTES),
        metadata={**current.metadata, **event.item.metadata},
    )

    items = dict(state.items)
    selection_map = state.selection_map
    if temporary_key is not None and temporary_key != key:
        items.pop(temporary_key, None)
        if temporary_key in selection_map:
            selection_map = {
                key if selected == temporary_key else selected: value
                for selected, value in selection_map.items()
            }
    items[key] = item

    return state.model_copy(
        update={"items": items, "lists": lists, "selection_map": selection_map, "new_item_key": key}
    )


def reduce_create_item(state: ResourcesState, event: CreateItemEvent, ctx: TransitionContext) -> ResourcesState:
    if event.status is StatusType.CREATING:
        return _reduce_create_start(state, event, ctx)
    if event.status is StatusType.SUCCESS:
        return _reduce_create_success(state, event, ctx)

    key = event.temporary_key or event.key
    assert key is not None  # noqa: S101
    return _put(state, key, _with_failure(state.items.get(key, EMPTY_ITEM), StatusType.ERROR, event.failure))


def reduce_update_item(state: ResourcesState, event: UpdateItemEvent, ctx: TransitionContext) -> ResourcesState:
    current = state.items.get(event.key)

    if event.status is StatusType.UPDATING or event.local_only:
        if current is None:
            ctx.warn(
                f"{event.resource}.update_item() was called with key '{event.key}', which does not "
                "exist. A new item was created to hold the values; use create_item() for new items."
            )
        elif current.status.type is StatusType.NEW:
            ctx.warn(
                f"{event.resource}.update_item() was called with key '{event.key}', which is a new item "
                "that has not been saved yet. Use create_item() to save it."
            )

    base = current or EMPTY_ITEM

    if event.status is StatusType.UPDATING:
        assert event.item is not None  # noqa: S101
        item = Item(
            values={**base.values, **event.item.values},
            status=merge_status(
                base.status,
                event.item.status,
                only_persist=("synced_at", "dirty", "original_values"),
            ),
            metadata=event.item.metadata or base.metadata,
        )
        return _put(state, event.key, item)

    if event.status is StatusType.SUCCESS:
        assert event.item is not None  # noqa: S101
        item = Item(
            values={**base.values, **event.item.values},
            status=merge_status(
                base.status,
                event.item.status,
                exclude=("dirty", "original_values", *ERROR_STATUS_ATTRIBUTES),
            ),
            metadata={**base.metadata, **event.item.metadata},
        )
        return _put(state, event.key, item)

    return _put(state, event.key, _with_failure(base, StatusType.ERROR, event.failure))


def reduce_destroy_item(state: ResourcesState, event: DestroyItemEvent, ctx: TransitionContext) -> ResourcesState:
    current = state.items.get(event.key)

    if event.status is StatusType.DESTROYING or event.local_only:
        if current is None:
            ctx.warn(
                f"{event.resource}.destroy_item() was called with key '{event.key}', which does not exist."
            )
        elif current.status.type is StatusType.NEW:
            ctx.warn(
                f"{event.resource}.destroy_item() was called with key '{event.key}', which is a new item "
                "that has not been saved yet. Use clear_new_item() to discard it."
            )
        elif current.status.type is StatusType.DESTROYING:
            ctx.warn(
                f"{event.resource}.destroy_item() was called with key '{event.key}', which is already "
                "being destroyed."
            )

    if event.status is StatusType.SUCCESS:
        return remove_items(state, [event.key])

    base = current or EMPTY_ITEM

    if event.status is StatusType.DESTROYING:
        item = base.model_copy(
            update={
                "status": merge_status(
                    base.status,
                    Status(type=StatusType.DESTROYING, requested_at=event.requested_at),
                    only_persist=("synced_at",),
                )
            }
        )
        return _put(state, event.key, item)

    return _put(state, event.key, _with_failure(base, StatusType.DESTROY_ERROR, event.failure))


# ----------------------------------------------------------------------
# Local lifecycle
# ----------------------------------------------------------------------


def reduce_new_item(state: ResourcesState, event: NewItemEvent, ctx: TransitionContext) -> ResourcesState:
    existing = state.items.get(event.key)
    if existing is not None:
        if state.new_item_key == event.key:
            ctx.warn(
                f"{event.resource}.new_item() used key '{event.key}', the same key as the previous new "
                "item, which has not been saved yet. Use unique keys for concurrent new items, or "
                "clear_new_item() to discard the previous one. (The previous values were overwritten.)"
            )
        else:
            ctx.warn(
                f"{event.resource}.new_item() used key '{event.key}', which belongs to an existing item. "
                "Use edit_item() to change it. (The previous values were overwritten.)"
            )

    return state.model_copy(
        update={
            "items": {**state.items, event.key: event.item},
            "lists": apply_list_operations(state.lists, event.list_operations, event.key),
            "new_item_key": event.key,
        }
    )


def reduce_edit_item(state: ResourcesState, event: EditItemEvent, ctx: TransitionContext) -> ResourcesState:
    current = state.items.get(event.key)

    if current is None:
        ctx.warn(
            f"{event.resource}.edit_item() was called with key '{event.key}', which does not exist. "
            "(A new item was created to hold the edit.)"
        )
        current = EMPTY_ITEM
    elif current.status.type is StatusType.NEW:
        ctx.warn(
            f"{event.resource}.edit_item() was called with key '{event.key}', which is a new item. "
            "Use edit_new_item() instead. (The edit was ignored.)"
        )
        return state

    if current.status.dirty:
        status = merge_status(
            current.status,
            Status(type=StatusType.EDITING),
            only_persist=("synced_at", "requested_at", "dirty", "original_values"),
        )
    else:
        status = merge_status(
            current.status,
            Status(type=StatusType.EDITING, dirty=True, original_values=dict(current.values)),
            only_persist=("synced_at", "requested_at"),
        )

    item = current.model_copy(update={"values": {**current.values, **event.values}, "status": status})
    return _put(state, event.key, item)


def reduce_edit_new_item(state: ResourcesState, event: EditNewItemEvent, ctx: TransitionContext) -> ResourcesState:
    key = event.key if event.key is not None else state.new_item_key
    current = state.items.get(key) if key is not None else None

    if current is None:
        ctx.warn(
            f"{event.resource}.edit_new_item() found no new item at key '{key}'. "
            "Use new_item() first. (The edit was ignored.)"
        )
        return state
    if current.status.type is not StatusType.NEW:
        ctx.warn(
            f"{event.resource}.edit_new_item() was called with key '{key}', which is not a new item. "
            "Use edit_item() instead. (The edit was ignored.)"
        )
        return state

    assert key is not None  # noqa: S101
    return _put(state, key, current.model_copy(update={"values": {**current.values, **event.values}}))


def reduce_clear_item_edit(state: ResourcesState, event: ClearItemEditEvent, ctx: TransitionContext) -> ResourcesState:
    current = state.items.get(event.key)
    if current is None:
        ctx.warn(f"{event.resource}.clear_item_edit() was called with key '{event.key}', which does not exist.")
        return state

    status = current.status
    restorable = status.type is StatusType.EDITING or (
        status.type is StatusType.ERROR and status.original_values is not None
    )
    if not restorable:
        ctx.warn(
            f"{event.resource}.clear_item_edit() was called with key '{event.key}', which has no edit "
            "to clear."
        )
        return state

    values = current.values
    if status.dirty and status.original_values is not None:
        values = dict(status.original_values)

    item = current.model_copy(
        update={
            "values": values,
            "status": merge_status(
                status,
                Status(type=StatusType.SUCCESS),
                only_persist=("synced_at", "requested_at"),
            ),
        }
    )
    return _put(state, event.key, item)


def reduce_clear_item(state: ResourcesState, event: ClearItemEvent, ctx: TransitionContext) -> ResourcesState:
    if event.key not in state.items and event.key not in state.selection_map:
        return state
    return state.model_copy(
        update={
            "items": {key: item for key, item in state.items.items() if key != event.key},
            "selection_map": {key: value for key, value in state.selection_map.items() if key != event.key},
        }
    )


def reduce_clear_new_item(state: ResourcesState, event: ClearNewItemEvent, ctx: TransitionContext) -> ResourcesState:
    key = state.new_item_key
    if key is None:
        return state
    if state.items.get(key, EMPTY_ITEM).status.type is StatusType.NEW:
        return remove_items(state, [key])
    return state.model_copy(update={"new_item_key": None})


# ----------------------------------------------------------------------
# Selection
# ----------------------------------------------------------------------


def reduce_select_item(state: ResourcesState, event: SelectItemEvent, ctx: TransitionContext) -> ResourcesState:
    if event.key not in state.items:
        ctx.warn(
            f"{event.resource}: selected key '{event.key}' is not in the store. (The selection was ignored.)"
        )
        return state

    if event.additive:
        selection_map = {**state.selection_map, event.key: event.value}
    else:
        selection_map = {event.key: event.value}
    return state.model_copy(update={"selection_map": selection_map})


def reduce_deselect_item(state: ResourcesState, event: DeselectItemEvent, ctx: TransitionContext) -> ResourcesState:
    if event.key not in state.selection_map:
        return state
    return state.model_copy(
        update={"selection_map": {key: value for key, value in state.selection_map.items() if key != event.key}}
    )


def reduce_clear_selected_items(
    state: ResourcesState,
    event: ClearSelectedItemsEvent,
    ctx: TransitionContext,
) -> ResourcesState:
    return state.model_copy(update={"selection_map": {}})


# ----------------------------------------------------------------------
# Progress
# ----------------------------------------------------------------------


def progress_percent(loaded: int, total: int | None, length_computable: bool) -> float:
    """Percentage transferred; ``-1`` when the total size is unknown."""
    if not length_computable or total is None:
        return -1.0
    if total == 0:
        return 100.0
    return loaded / total * 100


def _progress(event: ProgressEvent, previous: Progress | None) -> Progress:
    if event.complete:
        total = previous.total if previous is not None else None
        loaded = total if total is not None else event.loaded
        return Progress(percent=100.0, loaded=loaded, total=total, length_computable=total is not None)
    return Progress(
        percent=progress_percent(event.loaded, event.total, event.length_computable),
        loaded=event.loaded,
        total=event.total,
        length_computable=event.length_computable,
    )


def reduce_progress(state: ResourcesState, event: ProgressEvent, ctx: TransitionContext) -> ResourcesState:
    attribute = "progress_up" if event.direction == "up" else "progress_down"

    if event.target == "list":
        collection = state.lists.get(event.key)
        if collection is None:
            return state
        status = merge_status(
            collection.status,
            Status(**{attribute: _progress(event, getattr(collection.status, attribute))}),
        )
        return state.model_copy(
            update={"lists": {**state.lists, event.key: collection.model_copy(update={"status": status})}}
        )

    item = state.items.get(event.key)
    if item is None:
        return state
    status = merge_status(item.status, Status(**{attribute: _progress(event, getattr(item.status, attribute))}))
    return _put(state, event.key, item.model_copy(update={"status": status}))
