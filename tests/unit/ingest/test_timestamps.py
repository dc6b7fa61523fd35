"""Unit tests for timestamp normalization."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from core.constants import MAX_VALID_TIMESTAMP, MIN_VALID_TIMESTAMP
from ingest.timestamps import classify_timestamp, normalize_timestamp, resolve_timestamp

_NOW = 1700000000.0


def _fixed_now() -> float:
    return _NOW


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("2021-01-01T00:00:00Z", 1609459200),
        ("2021-01-01T00:00:00.044Z[UTC]", 1609459200),
        ("2021-01-01T01:00:00+01:00", 1609459200),
        (1609459200000, 1609459200),
        (1609459200, 1609459200),
        ("1609459200", 1609459200),
        (44197, 1609459200),
        (946684800, 946684800),
        (datetime(2021, 1, 1, tzinfo=timezone.utc), 1609459200),
    ],
)
def test_normalize_timestamp_converts_supported_encodings(value: object, expected: int) -> None:
    """Every supported encoding should land on the same epoch second."""
    assert normalize_timestamp(value, now=_fixed_now) == expected


@pytest.mark.parametrize(
    "value",
    [
        None,
        "",
        "yesterday",
        float("nan"),
        12,
        -5,
        1e15,
        True,
        {"ts": 1},
        2147483648,
        10**400,
        "1e400",
    ],
)
def test_normalize_timestamp_falls_back_to_now_without_raising(value: object) -> None:
    """Unusable input should become the fallback sentinel instead of raising."""
    result = normalize_timestamp(value, now=_fixed_now)

    assert result == int(_NOW)
    assert MIN_VALID_TIMESTAMP <= result <= MAX_VALID_TIMESTAMP


def test_resolve_timestamp_flags_fallback_only_for_unusable_input() -> None:
    """Callers can tell the fallback sentinel apart from a real timestamp."""
    fallback = resolve_timestamp(10**400, now=_fixed_now)
    parsed = resolve_timestamp("2021-01-01T00:00:00Z", now=_fixed_now)

    assert fallback.fell_back and fallback.seconds == int(_NOW)
    assert not parsed.fell_back and parsed.seconds == 1609459200
    assert classify_timestamp(10**400) == "unrecognized"


def test_classify_timestamp_names_detected_encoding() -> None:
    """Classifier should expose which heuristic matched."""
    assert classify_timestamp(1609459200000) == "epoch_milliseconds"
    assert classify_timestamp(1609459200) == "epoch_seconds"
    assert classify_timestamp(44197) == "spreadsheet_serial"
    assert classify_timestamp("2021-01-01T00:00:00Z") == "iso8601"
    assert classify_timestamp("garbage") == "unrecognized"
