"""Transition events.

Every command is turned into one of these events before it reaches the
store. Only the state/store layer is allowed to apply them.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any, ClassVar, Literal

from pydantic import Field, model_validator

from pyresync._constants import LIST_WILDCARD
from pyresync.models._base import ResyncBaseModel
from pyresync.models.item import Item, ResourceList
from pyresync.models.options import ListOperations
from pyresync.models.status import Status, StatusType


_FETCH_PHASES = frozenset({StatusType.FETCHING, StatusType.SUCCESS, StatusType.ERROR})
_CREATE_PHASES = frozenset({StatusType.CREATING, StatusType.SUCCESS, StatusType.ERROR})
_UPDATE_PHASES = frozenset({StatusType.UPDATING, StatusType.SUCCESS, StatusType.ERROR})
_DESTROY_PHASES = frozenset({StatusType.DESTROYING, StatusType.SUCCESS, StatusType.DESTROY_ERROR})


@dataclass(frozen=True, slots=True)
class TransitionContext:
    """What a reducer may use besides the state and the event."""

    warn: Callable[[str], None]
    list_wildcard: str = LIST_WILDCARD


class Failure(ResyncBaseModel):
    """Error detail of a failed remote request."""

    occurred_at: datetime
    http_code: int | None = None
    error: Any = None
    errors: list[Any] | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    def to_status(self, status_type: StatusType) -> Status:
        return Status(
            type=status_type,
            http_code=self.http_code,
            error=self.error,
            errors=self.errors,
            error_occurred_at=self.occurred_at,
        )


class ResourceEvent(ResyncBaseModel):
    """Base class of all transition events."""

    resource: str


class RemoteEvent(ResourceEvent):
    """One phase (start, success or failure) of a remote command."""

    allowed_statuses: ClassVar[frozenset[StatusType]] = frozenset()
    failure_statuses: ClassVar[frozenset[StatusType]] = frozenset({StatusType.ERROR})

    status: StatusType
    requested_at: datetime | None = None
    item: Item | None = None
    failure: Failure | None = None

    @model_validator(mode="after")
    def _check_phase(self) -> RemoteEvent:
        if self.status not in self.allowed_statuses:
            raise ValueError(f"{type(self).__name__} does not accept status {self.status}")
        if self.status in self.failure_statuses and self.failure is None:
            raise ValueError(f"{type(self).__name__} with status {self.status} needs a failure")
        return self


class FetchItemEvent(RemoteEvent):
    allowed_statuses: ClassVar[frozenset[StatusType]] = _FETCH_PHASES

    key: str
    metadata: dict[str, Any] | None = None


class FetchListEvent(RemoteEvent):
    allowed_statuses: ClassVar[frozenset[StatusType]] = _FETCH_PHASES

    key: str
    collection: ResourceList | None = None
    items: dict[str, Item] = Field(default_factory=dict)
    metadata: dict[str, Any] | None = None


class CreateItemEvent(RemoteEvent):
    """Create phases. ``temporary_key`` is ``None`` for local-only creates."""

    allowed_statuses: ClassVar[frozenset[StatusType]] = _CREATE_PHASES

    temporary_key: str | None = None
    key: str | None = None
    list_operations: ListOperations = Field(default_factory=ListOperations)
    local_only: bool = False


class UpdateItemEvent(RemoteEvent):
    allowed_statuses: ClassVar[frozenset[StatusType]] = _UPDATE_PHASES

    key: str
    previous_values: dict[str, Any] | None = None
    local_only: bool = False


class DestroyItemEvent(RemoteEvent):
    allowed_statuses: ClassVar[frozenset[StatusType]] = _DESTROY_PHASES
    failure_statuses: ClassVar[frozenset[StatusType]] = frozenset({StatusType.DESTROY_ERROR})

    key: str
    previous_values: dict[str, Any] | None = None
    local_only: bool = False


class NewItemEvent(ResourceEvent):
    key: str
    item: Item
    list_operations: ListOperations = Field(default_factory=ListOperations)


class EditItemEvent(ResourceEvent):
    key: str
    values: dict[str, Any]


class EditNewItemEvent(ResourceEvent):
    """Edit the NEW item at ``key``, or at ``new_item_key`` when no key is given."""

    key: str | None = None
    values: dict[str, Any]


class ClearItemEvent(ResourceEvent):
    key: str


class ClearNewItemEvent(ResourceEvent):
    pass


class ClearItemEditEvent(ResourceEvent):
    key: str


class ClearListEvent(ResourceEvent):
    key: str


class SelectItemEvent(ResourceEvent):
    key: str
    value: Any = True
    additive: bool = False


class DeselectItemEvent(ResourceEvent):
    key: str


class ClearSelectedItemsEvent(ResourceEvent):
    pass


class ProgressEvent(ResourceEvent):
    """Transfer progress of the request targeting an item or a list.

    ``complete`` marks the transfer as finished regardless of the counters.
    """

    key: str
    target: Literal["item", "list"] = "item"
    direction: Literal["up", "down"] = "down"
    loaded: int = 0
    total: int | None = None
    length_computable: bool = False
    complete: bool = False
