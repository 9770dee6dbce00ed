from __future__ import annotations

import pytest

from pyresync.config import ResyncConfig


def test_defaults() -> None:
    config = ResyncConfig()
    assert config.key_by == "id"
    assert config.url_only_params == ()
    assert config.list_wildcard == "*"
    assert config.dev_warnings is True
    assert config.api_trace_enabled is False


def test_from_env_reads_resync_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RESYNC_BASE_URL", "https://api.example.com/")
    monkeypatch.setenv("RESYNC_KEY_BY", "post_id, author_id")
    monkeypatch.setenv("RESYNC_URL_ONLY_PARAMS", "user_id,team_id")
    monkeypatch.setenv("RESYNC_REQUEST_TIMEOUT", "5")
    monkeypatch.setenv("RESYNC_DEV_WARNINGS", "off")
    monkeypatch.setenv("RESYNC_API_TRACE_ENABLED", "yes")

    config = ResyncConfig.from_env()

    assert config.base_url == "https://api.example.com"
    assert config.key_by == ("post_id", "author_id")
    assert config.url_only_params == ("user_id", "team_id")
    assert config.request_timeout == 5.0
    assert config.dev_warnings is False
    assert config.api_trace_enabled is True


def test_from_env_empty_key_by_means_no_identity(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RESYNC_KEY_BY", "")
    assert ResyncConfig.from_env().key_by is None


def test_from_env_overrides_win(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RESYNC_KEY_BY", "uuid")
    monkeypatch.setenv("RESYNC_DEV_WARNINGS", "false")

    config = ResyncConfig.from_env(key_by="slug", dev_warnings=True)

    assert config.key_by == "slug"
    assert config.dev_warnings is True


def test_from_env_ignores_unparseable_booleans(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RESYNC_DEV_WARNINGS", "maybe")
    assert ResyncConfig.from_env().dev_warnings is True
