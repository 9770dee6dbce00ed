"""Deterministic in-memory resource store.

This is the only component allowed to apply transition events. Given the
same sequence of events it produces the same snapshots.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from pyresync._constants import LIST_WILDCARD
from pyresync.models.item import EMPTY_STATE, ResourcesState
from pyresync.state import items as _items
from pyresync.state import lists as _lists
from pyresync.state.associations import AssociationRegistry, propagate
from pyresync.state.events import (
    ClearItemEditEvent,
    ClearItemEvent,
    ClearListEvent,
    ClearNewItemEvent,
    ClearSelectedItemsEvent,
    CreateItemEvent,
    DeselectItemEvent,
    DestroyItemEvent,
    EditItemEvent,
    EditNewItemEvent,
    FetchItemEvent,
    FetchListEvent,
    NewItemEvent,
    ProgressEvent,
    ResourceEvent,
    SelectItemEvent,
    TransitionContext,
    UpdateItemEvent,
)
from pyresync.state.guard import RequestGuard

_logger = logging.getLogger(__name__)

Reducer = Callable[[ResourcesState, Any, TransitionContext], ResourcesState]

_REDUCERS: dict[type[ResourceEvent], Reducer] = {
    FetchItemEvent: _items.reduce_fetch_item,
    FetchListEvent: _lists.reduce_fetch_list,
    NewItemEvent: _items.reduce_new_item,
    EditItemEvent: _items.reduce_edit_item,
    EditNewItemEvent: _items.reduce_edit_new_item,
    CreateItemEvent: _items.reduce_create_item,
    UpdateItemEvent: _items.reduce_update_item,
    DestroyItemEvent: _items.reduce_destroy_item,
    ClearItemEvent: _items.reduce_clear_item,
    ClearNewItemEvent: _items.reduce_clear_new_item,
    ClearItemEditEvent: _items.reduce_clear_item_edit,
    ClearListEvent: _lists.reduce_clear_list,
    SelectItemEvent: _items.reduce_select_item,
    DeselectItemEvent: _items.reduce_deselect_item,
    ClearSelectedItemsEvent: _items.reduce_clear_selected_items,
    ProgressEvent: _items.reduce_progress,
}


class ResourceStore:
    """In-memory store holding one :class:`ResourcesState` per resource type.

    The store also owns the request guard used to suppress duplicate
    requests and the association registry consulted after every event.
    """

    def __init__(
        self,
        *,
        dev_warnings: bool = True,
        list_wildcard: str = LIST_WILDCARD,
        on_warning: Callable[[str], None] | None = None,
    ) -> None:
        self._states: dict[str, ResourcesState] = {}
        self._guard = RequestGuard()
        self._associations = AssociationRegistry()
        self._dev_warnings = dev_warnings
        self._on_warning = on_warning
        self._listeners: list[Callable[[str, ResourcesState], None]] = []
        self._context = TransitionContext(warn=self.warn, list_wildcard=list_wildcard)

    @property
    def guard(self) -> RequestGuard:
        return self._guard

    @property
    def associations(self) -> AssociationRegistry:
        return self._associations

    def register(self, name: str) -> None:
        """Start tracking the resource *name* with an empty state."""
        self._states.setdefault(name, EMPTY_STATE)

    def names(self) -> tuple[str, ...]:
        return tuple(self._states)

    def state(self, name: str) -> ResourcesState:
        """Return the current snapshot of resource *name*.

        Snapshots are frozen, so the returned object never changes.
        """
        return self._states.get(name, EMPTY_STATE)

    def warn(self, message: str) -> None:
        """Report local misuse that the store tolerated."""
        if self._dev_warnings:
            _logger.warning("%s", message)
        if self._on_warning is not None:
            self._on_warning(message)

    def subscribe(self, listener: Callable[[str, ResourcesState], None]) -> Callable[[], None]:
        """Call *listener* with ``(name, state)`` whenever a resource state changes.

        Returns a function that removes the listener.
        """
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def apply(self, event: ResourceEvent) -> ResourcesState:
        """Apply a transition event and propagate it to owner resources.

        Returns the new state of the resource the event targets.
        """
        reducer = _REDUCERS.get(type(event))
        if reducer is None:
            raise TypeError(f"Unsupported event type: {type(event).__name__}")

        updated = reducer(self.state(event.resource), event, self._context)
        self._commit(event.resource, updated)

        for descriptor in self._associations.for_associated(event.resource):
            owner_state = self.state(descriptor.owner)
            self._commit(
                descriptor.owner,
                propagate(owner_state, event, updated, descriptor, self._context),
            )

        return self.state(event.resource)

    def reset(self, name: str | None = None) -> None:
        """Drop cached state for one resource, or for all of them."""
        names = [name] if name is not None else list(self._states)
        for resource in names:
            self._commit(resource, EMPTY_STATE)

    def _commit(self, name: str, state: ResourcesState) -> None:
        if self.state(name) is state:
            return
        self._states[name] = state
        for listener in list(self._listeners):
            listener(name, state)
