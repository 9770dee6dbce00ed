from __future__ import annotations

from datetime import UTC, datetime

from pyresync.models.status import Status, StatusType
from pyresync.state.status import merge_status


def _dt(minute: int = 0) -> datetime:
    return datetime(2026, 1, 1, 12, minute, tzinfo=UTC)


def test_incoming_attributes_win_and_others_carry_over() -> None:
    previous = Status(type=StatusType.SUCCESS, synced_at=_dt(), http_code=200)
    merged = merge_status(previous, Status(type=StatusType.FETCHING, requested_at=_dt(1)))

    assert merged.type is StatusType.FETCHING
    assert merged.requested_at == _dt(1)
    assert merged.synced_at == _dt()
    assert merged.http_code == 200


def test_only_persist_limits_what_carries_over() -> None:
    previous = Status(type=StatusType.ERROR, synced_at=_dt(), http_code=500, error="boom")
    merged = merge_status(
        previous,
        Status(type=StatusType.FETCHING),
        only_persist=("synced_at",),
    )

    assert merged.synced_at == _dt()
    assert merged.error is None
    assert "error" not in merged.model_fields_set
    assert "http_code" not in merged.model_fields_set


def test_exclude_drops_attributes_from_both_sides() -> None:
    previous = Status(type=StatusType.SUCCESS, items_in_last_response=3)
    merged = merge_status(
        previous,
        Status(type=StatusType.ERROR, items_in_last_response=9),
        exclude=("items_in_last_response",),
    )

    assert merged.type is StatusType.ERROR
    assert "items_in_last_response" not in merged.model_fields_set


def test_explicit_none_overrides_previous_value() -> None:
    previous = Status(type=StatusType.ERROR, http_code=500)
    merged = merge_status(previous, Status(type=StatusType.ERROR, http_code=None))

    assert merged.http_code is None
    assert "http_code" in merged.model_fields_set


def test_merge_does_not_modify_inputs() -> None:
    previous = Status(type=StatusType.SUCCESS, synced_at=_dt())
    incoming = Status(type=StatusType.UPDATING)
    merge_status(previous, incoming)

    assert previous.type is StatusType.SUCCESS
    assert incoming.model_fields_set == {"type"}
