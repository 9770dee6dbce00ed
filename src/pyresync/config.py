"""Library configuration for pyresync."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pyresync._constants import DEFAULT_KEY_BY, LIST_WILDCARD


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_key_by(value: str) -> str | tuple[str, ...] | None:
    """Parse ``RESYNC_KEY_BY``: comma separated for composite identity, empty for none."""
    names = tuple(part.strip() for part in value.split(",") if part.strip())
    if not names:
        return None
    if len(names) == 1:
        return names[0]
    return names


@dataclasses.dataclass(frozen=True)
class ResyncConfig:
    """Library configuration.

    Parameters
    ----------
    base_url : str
        Prefix joined to every relative endpoint by the default transport.
    key_by : str, tuple of str or None
        Identity attribute(s) used to key items unless a resource overrides it.
        ``None`` keys items by the serialization of all their parameters.
    url_only_params : tuple of str
        Parameters that shape the request URL but never the list key.
    list_wildcard : str
        List key that addresses every list of a resource in ``clear_list``.
    dev_warnings : bool
        Log developer warnings about local misuse at WARNING level.
    request_timeout : float
        Total timeout in seconds for one transport request.
    default_headers : dict
        Headers sent with every request.
    api_trace_enabled : bool
        Log (redacted) request and response bodies at DEBUG level.
    """

    base_url: str = ""
    key_by: str | tuple[str, ...] | None = DEFAULT_KEY_BY
    url_only_params: tuple[str, ...] = ()
    list_wildcard: str = LIST_WILDCARD
    dev_warnings: bool = True
    request_timeout: float = 30.0
    default_headers: dict[str, str] = dataclasses.field(default_factory=dict)
    api_trace_enabled: bool = False

    @classmethod
    def from_env(cls, **overrides: Any) -> ResyncConfig:
        """Create configuration from environment variables.

        Reads the optional ``RESYNC_*`` variables. Explicit keyword
        arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        ResyncConfig
            Populated configuration.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        base_url = env.get("RESYNC_BASE_URL")
        if base_url is not None:
            config_kwargs["base_url"] = base_url.rstrip("/")

        key_by_env = env.get("RESYNC_KEY_BY")
        if key_by_env is not None and "key_by" not in overrides:
            config_kwargs["key_by"] = _env_key_by(key_by_env)

        url_only_env = env.get("RESYNC_URL_ONLY_PARAMS")
        if url_only_env is not None and "url_only_params" not in overrides:
            config_kwargs["url_only_params"] = tuple(
                part.strip() for part in url_only_env.split(",") if part.strip()
            )

        timeout_env = env.get("RESYNC_REQUEST_TIMEOUT")
        if timeout_env is not None and "request_timeout" not in overrides:
            config_kwargs["request_timeout"] = float(timeout_env)

        if "dev_warnings" not in overrides:
            config_kwargs["dev_warnings"] = _env_bool(env.get("RESYNC_DEV_WARNINGS"), True)

        if "api_trace_enabled" not in overrides:
            config_kwargs["api_trace_enabled"] = _env_bool(
                env.get("RESYNC_API_TRACE_ENABLED"),
                False,
            )

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
