"""Custom exception hierarchy for pyresync."""

from __future__ import annotations


class ResyncError(Exception):
    """Base exception for all pyresync errors."""


class ResyncConfigError(ResyncError):
    """Invalid resource definition or library configuration."""


class ResyncRequestError(ResyncError):
    """A request could not be built on the client side.

    Raised for a missing URL template parameter or a body that cannot be
    serialized. Remote commands record it on the target's status instead of
    raising it to the caller.
    """


class ResyncTransportError(ResyncError):
    """HTTP-level failure (network, timeout, unreadable body)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class ResyncApiError(ResyncError):
    """The remote endpoint reported an application-level error."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "",
        endpoint: str = "",
    ) -> None:
        self.code = code
        self.endpoint = endpoint
        super().__init__(message)
