from __future__ import annotations

from pyresync._redact import redact_for_log, redact_url


def test_redact_for_log_redacts_sensitive_keys() -> None:
    payload = {
        "id": 7,
        "name": "Ada",
        "Authorization": "Bearer abc",
        "password": "pw",
        "nested": {"access_token": "tok", "email": "ada@example.com"},
        "items": [{"api_key": "k"}],
    }

    redacted = redact_for_log(payload)
    assert redacted["id"] == 7
    assert redacted["name"] == "Ada"
    assert redacted["Authorization"] == "<redacted>"
    assert redacted["password"] == "<redacted>"
    assert redacted["nested"]["access_token"] == "<redacted>"
    assert redacted["nested"]["email"] == "ada@example.com"
    assert redacted["items"][0]["api_key"] == "<redacted>"


def test_redact_for_log_truncates_long_strings() -> None:
    long_value = "x" * 600
    redacted = redact_for_log({"value": long_value}, max_string=10)
    assert redacted["value"].startswith("x" * 10)
    assert "<truncated>" in redacted["value"]


def test_redact_for_log_summarizes_bytes() -> None:
    assert redact_for_log(b"abcd") == "<bytes:4b>"


def test_redact_for_log_matches_sensitive_suffixes() -> None:
    redacted = redact_for_log({"session_token": "abc", "client_secret": "s", "token_type": "bearer"})
    assert redacted == {"session_token": "<redacted>", "client_secret": "<redacted>", "token_type": "bearer"}


def test_redact_url_masks_sensitive_query_parameters() -> None:
    assert redact_url("https://api.example.com/users?page=2&access_token=abc") == (
        "https://api.example.com/users?page=2&access_token=<redacted>"
    )
    assert redact_url("/users/1") == "/users/1"
