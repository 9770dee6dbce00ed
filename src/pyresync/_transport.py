"""HTTP transport with JSON encoding and transfer progress reporting."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable, Mapping
from enum import StrEnum
from typing import Any, Protocol

import aiohttp
from pydantic import BaseModel, ConfigDict

from pyresync._constants import USER_AGENT
from pyresync._redact import redact_for_log, redact_url
from pyresync.config import ResyncConfig
from pyresync.exceptions import ResyncRequestError, ResyncTransportError

_logger = logging.getLogger(__name__)

_CHUNK_SIZE = 64 * 1024


class TransferDirection(StrEnum):
    UP = "up"
    DOWN = "down"


class TransferProgress(BaseModel):
    """A progress notification emitted while a request is in flight."""

    model_config = ConfigDict(frozen=True)

    direction: TransferDirection
    loaded: int
    total: int | None = None
    length_computable: bool = False


class TransportResponse(BaseModel):
    """Status code and decoded body of a completed request."""

    model_config = ConfigDict(frozen=True)

    http_code: int
    body: Any = None


ProgressCallback = Callable[[TransferProgress], None]


class Transport(Protocol):
    """Structural transport interface used by the resource commands.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`HttpTransport`) concrete.
    """

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        body: Any = None,
        headers: Mapping[str, str] | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> TransportResponse:
        ...


class HttpTransport:
    """JSON-over-HTTP transport backed by an ``aiohttp`` session."""

    def __init__(self, config: ResyncConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session

    def _url(self, endpoint: str) -> str:
        if endpoint.startswith(("http://", "https://")):
            return endpoint
        return f"{self._config.base_url}{endpoint}"

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        body: Any = None,
        headers: Mapping[str, str] | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> TransportResponse:
        """Send one request and decode its JSON reply.

        Error statuses are returned, not raised; only failures to reach the
        server or to read its reply raise :class:`ResyncTransportError`.
        """
        request_headers: dict[str, str] = {
            "accept": "application/json",
            "user-agent": USER_AGENT,
            **self._config.default_headers,
            **(headers or {}),
        }

        data: str | None = None
        if body is not None:
            try:
                data = json.dumps(body, separators=(",", ":"))
            except (TypeError, ValueError) as exc:
                raise ResyncRequestError(f"Request body for {endpoint} is not JSON serializable: {exc}") from exc
            request_headers.setdefault("content-type", "application/json; charset=UTF-8")

        url = self._url(endpoint)
        logged_url = redact_url(url)
        if self._config.api_trace_enabled:
            _logger.debug(
                "%s %s headers=%s body=%s",
                method,
                logged_url,
                redact_for_log(request_headers),
                redact_for_log(body),
            )
        else:
            _logger.debug("%s %s", method, logged_url)

        if data is not None and on_progress is not None:
            size = len(data.encode("utf-8"))
            on_progress(
                TransferProgress(direction=TransferDirection.UP, loaded=size, total=size, length_computable=True)
            )

        timeout = aiohttp.ClientTimeout(total=self._config.request_timeout)
        try:
            async with self._http.request(method, url, data=data, headers=request_headers, timeout=timeout) as resp:
                status = resp.status
                total = resp.content_length
                chunks: list[bytes] = []
                loaded = 0
                async for chunk in resp.content.iter_chunked(_CHUNK_SIZE):
                    chunks.append(chunk)
                    loaded += len(chunk)
                    if on_progress is not None:
                        on_progress(
                            TransferProgress(
                                direction=TransferDirection.DOWN,
                                loaded=loaded,
                                total=total,
                                length_computable=total is not None,
                            )
                        )
        except aiohttp.ClientError as exc:
            raise ResyncTransportError(
                f"Request to {endpoint} failed: {exc}",
                endpoint=endpoint,
            ) from exc
        except asyncio.TimeoutError as exc:
            raise ResyncTransportError(
                f"Request to {endpoint} timed out after {self._config.request_timeout}s",
                endpoint=endpoint,
            ) from exc

        raw = b"".join(chunks)
        if status == 204 or not raw.strip():
            return TransportResponse(http_code=status)

        text = raw.decode("utf-8", errors="replace")
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            if status >= 400:
                # Unstructured error page; the text itself becomes the error.
                return TransportResponse(http_code=status, body=text[:512])
            raise ResyncTransportError(
                f"Invalid JSON from {endpoint}: {text[:200]}",
                status_code=status,
                endpoint=endpoint,
            ) from exc

        if self._config.api_trace_enabled:
            _logger.debug("%s %s -> %s body=%s", method, logged_url, status, redact_for_log(payload))
        return TransportResponse(http_code=status, body=payload)
