"""State layer: transition events, pure reducers and the resource store."""

from pyresync.state.associations import AssociationDescriptor, AssociationRegistry, RelationType
from pyresync.state.guard import RequestGuard
from pyresync.state.status import merge_status
from pyresync.state.store import ResourceStore

__all__ = [
    "AssociationDescriptor",
    "AssociationRegistry",
    "RelationType",
    "RequestGuard",
    "ResourceStore",
    "merge_status",
]
