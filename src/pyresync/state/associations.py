"""Foreign-key propagation between associated resources.

An owner resource A declares that it ``belongs_to`` (or
``has_and_belongs_to_many``) an associated resource B. Remote mutations of B
then fix up the attribute on A that holds B's key(s). Descriptors live in an
:class:`AssociationRegistry` keyed by the associated resource name and are
looked up when a transition is applied, so A and B may be defined in any
order.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from enum import StrEnum
from typing import Any

from pyresync.keys import serialize_key, singularize
from pyresync.models._base import ResyncBaseModel
from pyresync.models.item import Item, ResourcesState
from pyresync.models.options import AssociationOptions
from pyresync.models.status import StatusType
from pyresync.state.events import (
    CreateItemEvent,
    DestroyItemEvent,
    ResourceEvent,
    TransitionContext,
    UpdateItemEvent,
)
from pyresync.state.lists import remove_items


class RelationType(StrEnum):
    BELONGS_TO = "belongs_to"
    HAS_AND_BELONGS_TO_MANY = "has_and_belongs_to_many"


class AssociationDescriptor(ResyncBaseModel):
    """One owner-to-associated link.

    ``key_name`` is the attribute on owner items that holds the associated
    key(s); ``foreign_key`` is the attribute on associated items that names
    their owner(s).
    """

    owner: str
    associated: str
    relation: RelationType
    key_name: str
    foreign_key: str
    dependent: bool = False
    list_parameter: str | None = None

    @property
    def many(self) -> bool:
        return self.relation is RelationType.HAS_AND_BELONGS_TO_MANY

    @classmethod
    def build(
        cls,
        *,
        owner: str,
        associated: str,
        relation: RelationType,
        options: AssociationOptions | None = None,
    ) -> AssociationDescriptor:
        """Fill in the default attribute names for an association declaration."""
        opts = options or AssociationOptions()
        associated_singular = singularize(associated)

        if opts.key is not None:
            key_name = opts.key
        elif relation is RelationType.HAS_AND_BELONGS_TO_MANY:
            key_name = f"{associated_singular}_ids"
        else:
            key_name = f"{associated_singular}_id"

        if opts.list_parameter is False:
            list_parameter = None
        elif opts.list_parameter:
            list_parameter = opts.list_parameter
        else:
            list_parameter = f"{associated_singular}_id"

        return cls(
            owner=owner,
            associated=associated,
            relation=relation,
            key_name=key_name,
            foreign_key=opts.foreign_key or f"{singularize(opts.as_name or owner)}_id",
            dependent=opts.dependent,
            list_parameter=list_parameter,
        )


class AssociationRegistry:
    """Association descriptors indexed by associated resource name."""

    def __init__(self) -> None:
        self._by_associated: dict[str, list[AssociationDescriptor]] = {}

    def register(self, descriptor: AssociationDescriptor) -> None:
        registered = self._by_associated.setdefault(descriptor.associated, [])
        if descriptor not in registered:
            registered.append(descriptor)

    def for_associated(self, name: str) -> tuple[AssociationDescriptor, ...]:
        return tuple(self._by_associated.get(name, ()))

    def __len__(self) -> int:
        return sum(len(descriptors) for descriptors in self._by_associated.values())


# ----------------------------------------------------------------------
# Attribute helpers
# ----------------------------------------------------------------------


def _as_keys(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple, set, frozenset)):
        return [str(entry) for entry in value if entry is not None]
    return [str(value)]


def foreign_keys(values: Mapping[str, Any], descriptor: AssociationDescriptor) -> list[str]:
    """Owner keys named by an associated item's foreign key (singular or plural form)."""
    keys = _as_keys(values.get(descriptor.foreign_key)) + _as_keys(values.get(f"{descriptor.foreign_key}s"))
    return list(dict.fromkeys(keys))


def references(owner: Item, key: str, descriptor: AssociationDescriptor) -> bool:
    """Whether *owner* currently points at the associated *key*."""
    value = owner.values.get(descriptor.key_name)
    if descriptor.many:
        return key in _as_keys(value)
    return value is not None and str(value) == key


def _attach(owner: Item, key: str, descriptor: AssociationDescriptor, *, replacing: str | None = None) -> Item:
    if not descriptor.many:
        return owner.model_copy(update={"values": {**owner.values, descriptor.key_name: key}})

    existing = owner.values.get(descriptor.key_name)
    current = list(existing) if isinstance(existing, (list, tuple)) else _as_keys(existing)
    updated: list[Any] = []
    seen: set[str] = set()
    for value in current:
        if replacing is not None and str(value) == replacing:
            value = key
        if str(value) in seen:
            continue
        seen.add(str(value))
        updated.append(value)
    if key not in seen:
        updated.append(key)
    return owner.model_copy(update={"values": {**owner.values, descriptor.key_name: updated}})


def _detach(owner: Item, key: str, descriptor: AssociationDescriptor) -> Item:
    if not references(owner, key, descriptor):
        return owner
    if descriptor.many:
        remaining = [value for value in owner.values.get(descriptor.key_name) or [] if str(value) != key]
        return owner.model_copy(update={"values": {**owner.values, descriptor.key_name: remaining}})
    values = {name: value for name, value in owner.values.items() if name != descriptor.key_name}
    return owner.model_copy(update={"values": values})


def _update_owners(
    state: ResourcesState,
    owner_keys: Iterable[str],
    change: Callable[[Item], Item],
) -> ResourcesState:
    updated: dict[str, Item] = {}
    for owner_key in owner_keys:
        owner = state.items.get(owner_key)
        if owner is None:
            continue
        changed = change(owner)
        if changed is not owner:
            updated[owner_key] = changed
    if not updated:
        return state
    return state.model_copy(update={"items": {**state.items, **updated}})


def _current_values(associated: ResourcesState, key: str, fallback: Item | None) -> Mapping[str, Any]:
    item = associated.items.get(key)
    if item is not None:
        return item.values
    return fallback.values if fallback is not None else {}


def _scan_warning(event: ResourceEvent, command: str, descriptor: AssociationDescriptor) -> str:
    return (
        f"{event.resource}.{command}() was called without previous_values, so every "
        f"'{descriptor.owner}' item had to be scanned for references in '{descriptor.key_name}'. "
        f"Pass previous_values to {command}() to avoid the scan."
    )


# ----------------------------------------------------------------------
# Propagation
# ----------------------------------------------------------------------


def _on_created(
    state: ResourcesState,
    event: CreateItemEvent,
    associated: ResourcesState,
    descriptor: AssociationDescriptor,
) -> ResourcesState:
    if event.status is StatusType.CREATING:
        assert event.temporary_key is not None and event.item is not None  # noqa: S101
        temporary_key = event.temporary_key
        owners = foreign_keys(event.item.values, descriptor)
        return _update_owners(state, owners, lambda owner: _attach(owner, temporary_key, descriptor))

    if event.status is not StatusType.SUCCESS:
        return state

    assert event.key is not None  # noqa: S101
    key = event.key
    named = set(foreign_keys(_current_values(associated, key, event.item), descriptor))
    replacing = event.temporary_key if event.temporary_key != key else None

    candidates = set(named)
    if replacing is not None:
        candidates.update(
            owner_key for owner_key, owner in state.items.items() if references(owner, replacing, descriptor)
        )

    updated: dict[str, Item] = {}
    for owner_key in candidates:
        owner = state.items.get(owner_key)
        if owner is None:
            continue
        if owner_key in named:
            updated[owner_key] = _attach(owner, key, descriptor, replacing=replacing)
        elif replacing is not None:
            # The server moved the new item to another owner.
            updated[owner_key] = _detach(owner, replacing, descriptor)
    if not updated:
        return state
    return state.model_copy(update={"items": {**state.items, **updated}})


def _on_updated(
    state: ResourcesState,
    event: UpdateItemEvent,
    associated: ResourcesState,
    descriptor: AssociationDescriptor,
    ctx: TransitionContext,
) -> ResourcesState:
    if event.status is not StatusType.SUCCESS:
        return state

    key = event.key
    new_owners = foreign_keys(_current_values(associated, key, event.item), descriptor)

    if event.previous_values is not None:
        previous_owners = foreign_keys(event.previous_values, descriptor)
        removed = [owner_key for owner_key in previous_owners if owner_key not in new_owners]
        added = [owner_key for owner_key in new_owners if owner_key not in previous_owners]
        state = _update_owners(state, removed, lambda owner: _detach(owner, key, descriptor))
        return _update_owners(state, added, lambda owner: _attach(owner, key, descriptor))

    ctx.warn(_scan_warning(event, "update_item", descriptor))
    named = set(new_owners)
    stale = [
        owner_key
        for owner_key, owner in state.items.items()
        if owner_key not in named and references(owner, key, descriptor)
    ]
    state = _update_owners(state, stale, lambda owner: _detach(owner, key, descriptor))
    return _update_owners(
        state,
        new_owners,
        lambda owner: owner if references(owner, key, descriptor) else _attach(owner, key, descriptor),
    )


def _on_destroyed(
    state: ResourcesState,
    event: DestroyItemEvent,
    descriptor: AssociationDescriptor,
    ctx: TransitionContext,
) -> ResourcesState:
    if event.status is not StatusType.SUCCESS:
        return state

    key = event.key
    if event.previous_values is not None:
        owners = foreign_keys(event.previous_values, descriptor)
    else:
        ctx.warn(_scan_warning(event, "destroy_item", descriptor))
        owners = [owner_key for owner_key, owner in state.items.items() if references(owner, key, descriptor)]

    if descriptor.dependent:
        state = remove_items(state, [owner_key for owner_key in owners if owner_key in state.items])
    else:
        state = _update_owners(state, owners, lambda owner: _detach(owner, key, descriptor))

    if descriptor.list_parameter is not None:
        fragment = serialize_key({descriptor.list_parameter: key})
        stale_lists = [list_key for list_key in state.lists if fragment in list_key.split(".")]
        if stale_lists:
            state = state.model_copy(
                update={
                    "lists": {
                        list_key: collection
                        for list_key, collection in state.lists.items()
                        if list_key not in stale_lists
                    }
                }
            )
    return state


def propagate(
    owner_state: ResourcesState,
    event: ResourceEvent,
    associated_state: ResourcesState,
    descriptor: AssociationDescriptor,
    ctx: TransitionContext,
) -> ResourcesState:
    """Apply the owner-side consequences of *event* on the associated resource.

    Parameters
    ----------
    owner_state : ResourcesState
        Current state of the owner resource.
    event : ResourceEvent
        The event just applied to the associated resource.
    associated_state : ResourcesState
        State of the associated resource after the event was applied.
    descriptor : AssociationDescriptor
        The link between the two resources.
    ctx : TransitionContext
        Reducer context, used for developer warnings.
    """
    if isinstance(event, CreateItemEvent):
        return _on_created(owner_state, event, associated_state, descriptor)
    if isinstance(event, UpdateItemEvent):
        return _on_updated(owner_state, event, associated_state, descriptor, ctx)
    if isinstance(event, DestroyItemEvent):
        return _on_destroyed(owner_state, event, descriptor, ctx)
    return owner_state
