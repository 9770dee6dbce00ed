"""Interpretation of transport responses.

A response is a failure when its status is >= 400 or when its body carries
an ``error`` or ``errors`` field. Both fields are normalized so that
``error`` always holds the first error and ``errors`` the full list.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from pyresync._transport import TransportResponse
from pyresync.exceptions import ResyncApiError, ResyncError, ResyncTransportError

_logger = logging.getLogger(__name__)

ResponseAdaptor = Callable[[Any, int], Mapping[str, Any]]

_ENVELOPE_FIELDS = frozenset({"error", "errors"})


class RemoteResult(BaseModel):
    """Outcome of one remote request, ready to become a transition event."""

    model_config = ConfigDict(frozen=True)

    ok: bool
    http_code: int | None = None
    values: Any = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    error: Any = None
    errors: list[Any] | None = None


def normalize_errors(error: Any, errors: Any) -> tuple[Any, list[Any] | None]:
    """Return ``(error, errors)`` with each derived from the other when missing."""
    if errors is not None and not isinstance(errors, list):
        errors = [errors]
    if errors == []:
        errors = None
    if error is None and errors:
        error = errors[0]
    if errors is None and error is not None:
        errors = [error]
    return error, errors


def parse_response(response: TransportResponse, *, adaptor: ResponseAdaptor | None = None) -> RemoteResult:
    """Split a response into values, metadata and error detail."""
    body = response.body
    metadata: dict[str, Any] = {}

    if adaptor is not None:
        adapted = adaptor(body, response.http_code)
        values = adapted.get("values")
        metadata = dict(adapted.get("metadata") or {})
        error, errors = normalize_errors(adapted.get("error"), adapted.get("errors"))
    elif isinstance(body, Mapping):
        values = {name: value for name, value in body.items() if name not in _ENVELOPE_FIELDS}
        error, errors = normalize_errors(body.get("error"), body.get("errors"))
    else:
        values = body
        error, errors = None, None

    failed = response.http_code >= 400 or error is not None
    if failed and error is None:
        fallback = body if body not in (None, "", {}) else f"HTTP {response.http_code}"
        error, errors = normalize_errors(fallback, None)

    if failed:
        _logger.debug("Request failed with HTTP %s: %s", response.http_code, error)

    return RemoteResult(
        ok=not failed,
        http_code=response.http_code,
        values=values,
        metadata=metadata,
        error=error,
        errors=errors,
    )


def result_from_exception(exc: ResyncError) -> RemoteResult:
    """Turn a client-side or network failure into a failed result."""
    http_code: int | None = None
    error: Any = str(exc)
    if isinstance(exc, ResyncTransportError):
        http_code = exc.status_code
    elif isinstance(exc, ResyncApiError) and exc.code:
        error = {"code": exc.code, "message": str(exc)}
    error, errors = normalize_errors(error, None)
    return RemoteResult(ok=False, http_code=http_code, error=error, errors=errors)
