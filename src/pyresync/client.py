"""High-level async client tying resources, store and transport together."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

import aiohttp
from pydantic import ValidationError

from pyresync._transport import HttpTransport, Transport
from pyresync.config import ResyncConfig
from pyresync.exceptions import ResyncConfigError
from pyresync.keys import KeyGenerator
from pyresync.models.options import ResourceOptions
from pyresync.resource import Resource
from pyresync.state.store import ResourceStore

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ResyncClient:
    """Async client owning the resource definitions, the store and the transport.

    Usage::

        async with ResyncClient(ResyncConfig(base_url="https://api.example.com")) as client:
            users = client.define("users", "/users/:id?")
            await users.fetch_list()

    A client built with an explicit ``transport`` can be used without the
    context manager.
    """

    def __init__(
        self,
        config: ResyncConfig | None = None,
        *,
        transport: Transport | None = None,
        session: aiohttp.ClientSession | None = None,
        clock: Callable[[], datetime] = _utcnow,
        key_generator: Callable[[], str] | None = None,
        on_warning: Callable[[str], None] | None = None,
    ) -> None:
        self._config = config or ResyncConfig()
        self._external_session = session is not None
        self._http_session = session
        self._external_transport = transport is not None
        self._transport = transport
        self._clock = clock
        self._key_generator = key_generator or KeyGenerator()
        self._resources: dict[str, Resource] = {}
        self.store = ResourceStore(
            dev_warnings=self._config.dev_warnings,
            list_wildcard=self._config.list_wildcard,
            on_warning=on_warning,
        )

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> ResyncClient:
        if not self._external_transport:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = HttpTransport(self._config, self._http_session)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        if not self._external_transport:
            self._transport = None

    # ------------------------------------------------------------------
    # Resources
    # ------------------------------------------------------------------

    @property
    def config(self) -> ResyncConfig:
        return self._config

    def define(self, name: str, url: str | None = None, **options: Any) -> Resource:
        """Define a resource type and return it.

        Parameters
        ----------
        name : str
            Unique resource name, also used to resolve associations.
        url : str, optional
            URL template such as ``"/users/:id?"``. Required unless
            ``local_only=True``.
        **options
            Any :class:`pyresync.models.ResourceOptions` field.

        Raises
        ------
        ResyncConfigError
            When the name is already defined or the options are invalid.
        """
        if name in self._resources:
            raise ResyncConfigError(f"Resource '{name}' is already defined")
        try:
            resource_options = ResourceOptions(name=name, url=url, **options)
        except ValidationError as exc:
            raise ResyncConfigError(f"Invalid definition for resource '{name}': {exc}") from exc

        resource = Resource(self, resource_options)
        self._resources[name] = resource
        _logger.debug("Defined resource %s (url=%s)", name, url)
        return resource

    def resource(self, name: str) -> Resource:
        try:
            return self._resources[name]
        except KeyError:
            raise ResyncConfigError(f"Unknown resource '{name}'") from None

    @property
    def resources(self) -> dict[str, Resource]:
        return dict(self._resources)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def now(self) -> datetime:
        return self._clock()

    def generate_key(self) -> str:
        """Temporary key for an item that has no identity yet."""
        return self._key_generator()

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise ResyncConfigError("Client not initialized. Use 'async with ResyncClient(...) as client:'")
        return self._transport
