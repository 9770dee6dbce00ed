"""Tracking of in-flight remote requests."""

from __future__ import annotations

import logging

_logger = logging.getLogger(__name__)


class RequestGuard:
    """Counts outstanding requests per ``(method, endpoint)``.

    Remote commands consult the guard before issuing a request so that a
    second identical request is suppressed while the first is in flight.
    One guard belongs to one store.
    """

    def __init__(self) -> None:
        self._outstanding: dict[tuple[str, str], int] = {}

    @staticmethod
    def _slot(method: str, endpoint: str) -> tuple[str, str]:
        return (method.upper(), endpoint)

    def register_start(self, method: str, endpoint: str) -> None:
        slot = self._slot(method, endpoint)
        self._outstanding[slot] = self._outstanding.get(slot, 0) + 1

    def register_end(self, method: str, endpoint: str) -> None:
        slot = self._slot(method, endpoint)
        count = self._outstanding.get(slot, 0)
        if count <= 1:
            if count == 0:
                _logger.debug("register_end without a matching start for %s %s", *slot)
            self._outstanding.pop(slot, None)
            return
        self._outstanding[slot] = count - 1

    def is_in_progress(self, method: str, endpoint: str) -> bool:
        return self._slot(method, endpoint) in self._outstanding

    def outstanding(self, method: str, endpoint: str) -> int:
        """Number of requests currently in flight for ``(method, endpoint)``."""
        return self._outstanding.get(self._slot(method, endpoint), 0)

    def clear(self) -> None:
        self._outstanding.clear()

    def __len__(self) -> int:
        return len(self._outstanding)
