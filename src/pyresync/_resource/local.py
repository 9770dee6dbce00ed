"""Local-only commands for :class:`pyresync.resource.Resource`.

These never touch the transport; each applies a single transition event.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from pyresync.models.item import Item
from pyresync.models.options import CommandOptions
from pyresync.models.status import Status, StatusType
from pyresync.state.events import (
    ClearItemEditEvent,
    ClearItemEvent,
    ClearListEvent,
    ClearNewItemEvent,
    ClearSelectedItemsEvent,
    DeselectItemEvent,
    EditItemEvent,
    EditNewItemEvent,
    NewItemEvent,
    SelectItemEvent,
)

if TYPE_CHECKING:
    from pyresync.resource import Resource


def _key(resource: Resource, params: Any) -> str:
    key = resource.item_key(params)
    if key is None:
        # No identity: the reducers warn about the missing item.
        return resource.list_key(params)
    return key


def new_item(
    resource: Resource,
    params: Any,
    values: Mapping[str, Any] | None,
    opts: CommandOptions,
) -> str:
    """Add a NEW item and return the key it was stored under."""
    payload = dict(values or {})
    if params is not None and not isinstance(params, Mapping):
        key = resource.item_key(params)
    else:
        key = resource.item_key([resource.url_params(params), payload])
    if key is None:
        key = resource.client.generate_key()

    resource.client.store.apply(
        NewItemEvent(
            resource=resource.name,
            key=key,
            item=Item(
                values=payload,
                status=Status(type=StatusType.NEW),
                metadata=opts.metadata if opts.metadata is not None else resource.options.metadata,
            ),
            list_operations=resource.list_operations(opts),
        )
    )
    return key


def edit_item(resource: Resource, params: Any, values: Mapping[str, Any]) -> None:
    resource.client.store.apply(
        EditItemEvent(resource=resource.name, key=_key(resource, params), values=dict(values))
    )


def edit_new_item(resource: Resource, params: Any, values: Mapping[str, Any]) -> None:
    key = resource.item_key(params) if params is not None else None
    resource.client.store.apply(EditNewItemEvent(resource=resource.name, key=key, values=dict(values)))


def edit_new_or_existing_item(resource: Resource, params: Any, values: Mapping[str, Any]) -> None:
    """Edit the NEW item at *params* (or ``new_item_key``), or else the existing item."""
    state = resource.state
    key = resource.item_key(params) if params is not None else state.new_item_key
    current = state.items.get(key) if key is not None else None
    if key is None or (current is not None and current.status.type is StatusType.NEW):
        edit_new_item(resource, params, values)
    else:
        edit_item(resource, params, values)


def clear_item(resource: Resource, params: Any) -> None:
    resource.client.store.apply(
        ClearItemEvent(resource=resource.name, key=_key(resource, params))
    )


def clear_new_item(resource: Resource) -> None:
    resource.client.store.apply(ClearNewItemEvent(resource=resource.name))


def clear_item_edit(resource: Resource, params: Any) -> None:
    resource.client.store.apply(
        ClearItemEditEvent(resource=resource.name, key=_key(resource, params))
    )


def clear_list(resource: Resource, params: Any) -> None:
    resource.client.store.apply(ClearListEvent(resource=resource.name, key=resource.list_key(params)))


def select_item(resource: Resource, params: Any, opts: CommandOptions, *, additive: bool) -> None:
    resource.client.store.apply(
        SelectItemEvent(
            resource=resource.name,
            key=_key(resource, params),
            value=opts.value,
            additive=additive,
        )
    )


def deselect_item(resource: Resource, params: Any) -> None:
    resource.client.store.apply(
        DeselectItemEvent(resource=resource.name, key=_key(resource, params))
    )


def clear_selected_items(resource: Resource) -> None:
    resource.client.store.apply(ClearSelectedItemsEvent(resource=resource.name))
