"""Internal constants shared across the library."""

from __future__ import annotations

EMPTY_KEY = ""
"""Key used for singular resources and for the unparameterized list."""

DEFAULT_KEY_BY = "id"
LIST_WILDCARD = "*"
USER_AGENT = "pyresync"

DEFAULT_METHODS: dict[str, str] = {
    "fetch_item": "GET",
    "fetch_list": "GET",
    "create_item": "POST",
    "update_item": "PUT",
    "destroy_item": "DELETE",
}

# Error detail that a successful completion must not carry forward.
ERROR_STATUS_ATTRIBUTES: tuple[str, ...] = ("error", "errors", "error_occurred_at")
