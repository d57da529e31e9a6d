from __future__ import annotations

from datetime import UTC, date, datetime, timedelta, timezone

import pytest

from persistx.processing.normalization import NormalizeOptions, normalize_payload, parse_date_like, to_iso_string
from persistx.processing.values import UNDEFINED


def test_strings_are_trimmed_recursively() -> None:
    payload = {"name": "  Fluffy ", "owner": {"city": " Lyon "}, "tags": [" a ", "b "]}

    assert normalize_payload(payload) == {"name": "Fluffy", "owner": {"city": "Lyon"}, "tags": ["a", "b"]}


def test_trimming_can_be_disabled() -> None:
    options = NormalizeOptions(trim_strings=False)

    assert normalize_payload({"name": " x "}, options) == {"name": " x "}


def test_dates_become_utc_iso_strings() -> None:
    payload = {
        "day": date(2024, 1, 15),
        "naive": datetime(2024, 1, 15, 10, 30, 5, 123456),
        "aware": datetime(2024, 1, 15, 12, 0, tzinfo=timezone(timedelta(hours=2))),
    }

    assert normalize_payload(payload) == {
        "day": "2024-01-15T00:00:00.000Z",
        "naive": "2024-01-15T10:30:05.123Z",
        "aware": "2024-01-15T10:00:00.000Z",
    }


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("2024-01-15", "2024-01-15T00:00:00.000Z"),
        ("2024/1/5", "2024-01-05T00:00:00.000Z"),
        ("2024-01-15T10:00:00Z", "2024-01-15T10:00:00.000Z"),
        ("2024-01-15T10:00:00+01:00", "2024-01-15T09:00:00.000Z"),
    ],
)
def test_date_like_strings_are_coerced(text: str, expected: str) -> None:
    assert normalize_payload({"when": text}) == {"when": expected}


@pytest.mark.parametrize("text", ["Tabby", "2024-13-45", "hello-T", "12/01/2024", "2024"])
def test_ordinary_strings_are_left_alone(text: str) -> None:
    assert normalize_payload({"value": text}) == {"value": text}


def test_date_coercion_can_be_disabled() -> None:
    options = NormalizeOptions(coerce_dates_to_iso=False)
    day = date(2024, 1, 15)

    assert normalize_payload({"day": day, "text": "2024-01-15"}, options) == {"day": day, "text": "2024-01-15"}


def test_undefined_values_are_dropped_from_objects_only() -> None:
    payload = {"a": UNDEFINED, "b": None, "c": [UNDEFINED, 1]}

    assert normalize_payload(payload) == {"b": None, "c": [UNDEFINED, 1]}
    assert normalize_payload(payload, NormalizeOptions(drop_undefined=False))["a"] is UNDEFINED


def test_non_object_payload_normalizes_to_empty_object() -> None:
    assert normalize_payload(["a"]) == {}
    assert normalize_payload(None) == {}


def test_normalization_is_idempotent() -> None:
    payload = {"name": " Rex ", "born": "2020-02-29", "nested": {"at": datetime(2024, 5, 1, tzinfo=UTC)}, "n": 3}

    once = normalize_payload(payload)

    assert normalize_payload(once) == once


def test_parse_date_like_rejects_invalid_calendar_dates() -> None:
    assert parse_date_like("2023-02-29") is None
    assert parse_date_like("2024-02-29") == datetime(2024, 2, 29, tzinfo=UTC)


def test_to_iso_string_keeps_milliseconds() -> None:
    assert to_iso_string(datetime(2024, 1, 1, 0, 0, 0, 999999, tzinfo=UTC)) == "2024-01-01T00:00:00.999Z"
