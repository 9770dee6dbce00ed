"""Data models for pyresync."""

from pyresync.models.item import (
    EMPTY_ITEM,
    EMPTY_LIST,
    EMPTY_STATE,
    Item,
    MetadataType,
    ResolvedList,
    ResourceList,
    ResourcesState,
)
from pyresync.models.options import (
    AssociationOptions,
    CommandOptions,
    ListOperations,
    ResourceOptions,
)
from pyresync.models.status import Progress, Status, StatusType

__all__ = [
    "EMPTY_ITEM",
    "EMPTY_LIST",
    "EMPTY_STATE",
    "AssociationOptions",
    "CommandOptions",
    "Item",
    "ListOperations",
    "MetadataType",
    "Progress",
    "ResolvedList",
    "ResourceList",
    "ResourceOptions",
    "ResourcesState",
    "Status",
    "StatusType",
]
