"""Item, list and per-resource state records."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import Field

from pyresync.models._base import ResyncBaseModel
from pyresync.models.status import Status


class MetadataType(StrEnum):
    """How much of an item a response describes, stored under ``metadata["type"]``."""

    COMPLETE = "COMPLETE"
    PREVIEW = "PREVIEW"


class Item(ResyncBaseModel):
    """A single cached entity."""

    values: dict[str, Any] = Field(default_factory=dict)
    status: Status = Field(default_factory=Status)
    metadata: dict[str, Any] = Field(default_factory=dict)


class ResourceList(ResyncBaseModel):
    """An ordered collection of item keys. Positions reference items, they do not own them."""

    positions: list[str] = Field(default_factory=list)
    status: Status = Field(default_factory=Status)
    metadata: dict[str, Any] = Field(default_factory=dict)


class ResolvedList(ResourceList):
    """A list together with its items, in position order."""

    items: list[Item] = Field(default_factory=list)


class ResourcesState(ResyncBaseModel):
    """Everything cached for one resource type."""

    items: dict[str, Item] = Field(default_factory=dict)
    lists: dict[str, ResourceList] = Field(default_factory=dict)
    selection_map: dict[str, Any] = Field(default_factory=dict)
    new_item_key: str | None = None


EMPTY_ITEM = Item()
EMPTY_LIST = ResourceList()
EMPTY_STATE = ResourcesState()
