from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from flex_reviews.services.channels import DEFAULT_CHANNEL_MAP, map_channel_id
from flex_reviews.services.dates import parse_iso_timestamp, to_iso_date


def test_naive_upstream_timestamp_is_read_as_utc() -> None:
    assert to_iso_date("2020-08-21 22:45:14") == "2020-08-21T22:45:14.000Z"


def test_empty_date_falls_back_to_now() -> None:
    before = datetime.now(timezone.utc)
    value = to_iso_date("")
    after = datetime.now(timezone.utc)

    parsed = parse_iso_timestamp(value)
    assert parsed is not None
    assert value.endswith("Z")
    assert before - timedelta(seconds=1) <= parsed <= after + timedelta(seconds=1)


def test_unparseable_date_without_fallback_returns_empty_string() -> None:
    assert to_iso_date("not a date", fallback_to_now=False) == ""
    assert to_iso_date(None, fallback_to_now=False) == ""
    assert to_iso_date("   ", fallback_to_now=False) == ""


def test_fallback_uses_injected_clock() -> None:
    fixed = datetime(2021, 1, 1, 12, 30, tzinfo=timezone.utc)
    assert to_iso_date("garbage", now=lambda: fixed) == "2021-01-01T12:30:00.000Z"


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("2024-05-05T09:00:00Z", "2024-05-05T09:00:00.000Z"),
        ("2024-05-05T09:00:00+02:00", "2024-05-05T07:00:00.000Z"),
        ("2024-05-05T09:00:00.123456Z", "2024-05-05T09:00:00.123Z"),
        ("2024-05-05T09:00:00", "2024-05-05T09:00:00.000Z"),
    ],
)
def test_iso_inputs_are_parsed_as_is(raw: str, expected: str) -> None:
    assert to_iso_date(raw) == expected


def test_parse_iso_timestamp_rejects_garbage() -> None:
    assert parse_iso_timestamp("Invalid Date") is None
    assert parse_iso_timestamp(12345) is None
    assert parse_iso_timestamp("2024-01-01") == datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, "unknown"),
        ("1", "airbnb"),
        ("2", "booking"),
        ("3", "vrbo"),
        ("999", "unknown"),
        ("abc", "unknown"),
        (1, "airbnb"),
        (3, "vrbo"),
    ],
)
def test_map_channel_id(raw, expected) -> None:
    assert map_channel_id(raw) == expected


def test_channel_map_can_be_overridden_without_touching_default() -> None:
    custom = {"4": "direct"}

    assert map_channel_id("4", custom) == "direct"
    assert map_channel_id("1", custom) == "unknown"
    assert map_channel_id("4") == "unknown"


def test_default_channel_map_is_read_only() -> None:
    with pytest.raises(TypeError):
        DEFAULT_CHANNEL_MAP["9"] = "direct"  # type: ignore[index]
