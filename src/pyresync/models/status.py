"""Status records attached to items and lists."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import Field

from pyresync.models._base import ResyncBaseModel


class StatusType(StrEnum):
    """Lifecycle state of an item or list."""

    NEW = "NEW"
    EDITING = "EDITING"
    FETCHING = "FETCHING"
    CREATING = "CREATING"
    UPDATING = "UPDATING"
    DESTROYING = "DESTROYING"
    DESTROY_ERROR = "DESTROY_ERROR"
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"


class Progress(ResyncBaseModel):
    """Upload or download progress of the last request."""

    percent: float = 0.0
    loaded: int = 0
    total: int | None = None
    length_computable: bool = False


class Status(ResyncBaseModel):
    """Synchronisation status.

    Only the attributes passed when the status was built count as present
    (see :meth:`present`); the status merger relies on this to tell an
    absent attribute from one explicitly set to ``None``.
    """

    type: StatusType | None = None
    http_code: int | None = None
    error: Any = None
    errors: list[Any] | None = None
    error_occurred_at: datetime | None = None
    requested_at: datetime | None = None
    synced_at: datetime | None = None
    dirty: bool | None = None
    original_values: dict[str, Any] | None = Field(default=None)
    items_in_last_response: int | None = None
    progress_up: Progress | None = None
    progress_down: Progress | None = None

    def present(self) -> dict[str, Any]:
        """Return the attributes explicitly set on this status."""
        return {name: getattr(self, name) for name in self.model_fields_set}
