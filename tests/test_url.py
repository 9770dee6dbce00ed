from __future__ import annotations

import pytest

from pyresync._url import build_endpoint
from pyresync.exceptions import ResyncRequestError


def test_placeholders_are_substituted() -> None:
    assert build_endpoint("/users/:user_id/posts/:id", {"user_id": 3, "id": 9}) == "/users/3/posts/9"


def test_optional_segment_is_dropped_without_value() -> None:
    assert build_endpoint("/users/:id?", {}) == "/users"
    assert build_endpoint("/users/:id?", {"id": None}) == "/users"
    assert build_endpoint("/users/:id?", {"id": 4}) == "/users/4"


def test_skip_optional_drops_segments_that_have_values() -> None:
    assert build_endpoint("/users/:id?", {"id": 4}, skip_optional=True, include_query=False) == "/users"


def test_missing_required_value_raises() -> None:
    with pytest.raises(ResyncRequestError, match="user_id"):
        build_endpoint("/users/:user_id/posts", {})


def test_values_are_quoted() -> None:
    assert build_endpoint("/files/:name", {"name": "a b/c"}) == "/files/a%20b%2Fc"


def test_unused_params_become_sorted_query() -> None:
    endpoint = build_endpoint("/users/:id?", {"page": 2, "active": True, "q": None})
    assert endpoint == "/users?active=true&page=2"


def test_query_can_be_left_out() -> None:
    assert build_endpoint("/users", {"page": 2}, include_query=False) == "/users"


def test_absolute_urls_keep_their_scheme() -> None:
    assert build_endpoint("https://api.example.com/users/:id", {"id": 1}) == "https://api.example.com/users/1"
