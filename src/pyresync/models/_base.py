"""Base model for pyresync records.

Every record inherits from :class:`ResyncBaseModel`: records are frozen and
transitions build new instances, so a snapshot handed to a caller never
changes underneath it.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class ResyncBaseModel(BaseModel):
    """Frozen base for state records, events and options."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        arbitrary_types_allowed=True,
    )
