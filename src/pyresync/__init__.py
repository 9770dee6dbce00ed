"""pyresync - Async client-side cache of remote REST resources."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyresync")
except PackageNotFoundError:
    __version__ = "0+local"
from pyresync.client import ResyncClient
from pyresync.config import ResyncConfig
from pyresync.exceptions import (
    ResyncApiError,
    ResyncConfigError,
    ResyncError,
    ResyncRequestError,
    ResyncTransportError,
)
from pyresync.keys import derive_item_key, derive_list_key, serialize_key
from pyresync.models import (
    AssociationOptions,
    CommandOptions,
    Item,
    MetadataType,
    Progress,
    ResolvedList,
    ResourceList,
    ResourceOptions,
    ResourcesState,
    Status,
    StatusType,
)
from pyresync.resource import Resource
from pyresync.state import RequestGuard, ResourceStore

__all__ = [
    "__version__",
    "AssociationOptions",
    "CommandOptions",
    "Item",
    "MetadataType",
    "Progress",
    "RequestGuard",
    "ResolvedList",
    "Resource",
    "ResourceList",
    "ResourceOptions",
    "ResourceStore",
    "ResourcesState",
    "ResyncApiError",
    "ResyncClient",
    "ResyncConfig",
    "ResyncConfigError",
    "ResyncError",
    "ResyncRequestError",
    "ResyncTransportError",
    "Status",
    "StatusType",
    "derive_item_key",
    "derive_list_key",
    "serialize_key",
]
