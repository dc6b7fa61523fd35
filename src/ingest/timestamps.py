"""Timestamp normalization for heterogeneous export encodings.

This module converts ISO-8601 strings, epoch milliseconds, epoch
seconds, and spreadsheet serial dates into canonical epoch seconds.
Normalization never raises: unusable values become the current time
so one bad value cannot fail a batch. Corpus validation later rejects
batches dominated by such fallbacks.
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from core.constants import (
    EPOCH_MILLISECONDS_THRESHOLD,
    EPOCH_SECONDS_RANGE,
    MAX_VALID_TIMESTAMP,
    MIN_VALID_TIMESTAMP,
    SECONDS_PER_DAY,
    SPREADSHEET_SERIAL_RANGE,
    SPREADSHEET_UNIX_EPOCH_SERIAL,
)


@dataclass(frozen=True)
class NumericTimestampRule:
    """One numeric encoding: a range predicate and a converter to seconds."""

    name: str
    matches: Callable[[float], bool]
    to_seconds: Callable[[float], float]


NUMERIC_TIMESTAMP_RULES: tuple[NumericTimestampRule, ...] = (
    NumericTimestampRule(
        name="epoch_milliseconds",
        matches=lambda value: value > EPOCH_MILLISECONDS_THRESHOLD,
        to_seconds=lambda value: value / 1000,
    ),
    NumericTimestampRule(
        name="epoch_seconds",
        matches=lambda value: EPOCH_SECONDS_RANGE[0] < value < EPOCH_SECONDS_RANGE[1],
        to_seconds=lambda value: value,
    ),
    NumericTimestampRule(
        name="spreadsheet_serial",
        matches=lambda value: SPREADSHEET_SERIAL_RANGE[0] < value < SPREADSHEET_SERIAL_RANGE[1],
        to_seconds=lambda value: (value - SPREADSHEET_UNIX_EPOCH_SERIAL) * SECONDS_PER_DAY,
    ),
    NumericTimestampRule(
        name="canonical_seconds",
        matches=lambda value: MIN_VALID_TIMESTAMP <= value <= MAX_VALID_TIMESTAMP,
        to_seconds=lambda value: value,
    ),
)


@dataclass(frozen=True)
class ResolvedTimestamp:
    """Canonical seconds plus whether the fallback sentinel was used."""

    seconds: int
    fell_back: bool


def resolve_timestamp(value: object, now: Callable[[], float] = time.time) -> ResolvedTimestamp:
    """Convert a heterogeneous timestamp and report whether it fell back.

    Args:
        value: ISO-8601 string, numeric epoch/serial value, numeric string,
            or datetime.
        now: Clock used for the fallback sentinel.

    Returns:
        Epoch seconds within the canonical range. When the value is
        missing, unparseable, or out of range the seconds are the current
        time and ``fell_back`` is true.
    """
    seconds = _to_epoch_seconds(value)
    if seconds is None or not is_canonical_timestamp(seconds):
        return ResolvedTimestamp(int(now()), fell_back=True)
    return ResolvedTimestamp(int(seconds), fell_back=False)


def normalize_timestamp(value: object, now: Callable[[], float] = time.time) -> int:
    """Convert a heterogeneous timestamp into canonical epoch seconds, never raising."""
    return resolve_timestamp(value, now).seconds


def classify_timestamp(value: object) -> str:
    """Return the encoding name detected for a timestamp value.

    Args:
        value: Raw timestamp value.

    Returns:
        Encoding name, ``iso8601``, ``datetime``, or ``unrecognized``.
    """
    if isinstance(value, datetime):
        return "datetime"
    number = _as_number(value)
    if number is not None:
        rule = _match_numeric_rule(number)
        return rule.name if rule else "unrecognized"
    if isinstance(value, str) and _parse_iso8601(value) is not None:
        return "iso8601"
    return "unrecognized"


def is_canonical_timestamp(value: object) -> bool:
    """Return whether a value is an integer-like epoch second in range."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    if isinstance(value, float) and not math.isfinite(value):
        return False
    return MIN_VALID_TIMESTAMP <= value <= MAX_VALID_TIMESTAMP


def _to_epoch_seconds(value: object) -> float | None:
    if isinstance(value, datetime):
        return _datetime_to_seconds(value)
    number = _as_number(value)
    if number is not None:
        rule = _match_numeric_rule(number)
        return rule.to_seconds(number) if rule else None
    if isinstance(value, str):
        parsed = _parse_iso8601(value)
        return _datetime_to_seconds(parsed) if parsed else None
    return None


def _match_numeric_rule(number: float) -> NumericTimestampRule | None:
    for rule in NUMERIC_TIMESTAMP_RULES:
        if rule.matches(number):
            return rule
    return None


def _as_number(value: object) -> float | None:
    """Return a finite float for numbers and numeric strings."""
    if isinstance(value, bool):
        return None
    if not isinstance(value, (int, float, str)):
        return None
    try:
        number = float(value.strip() if isinstance(value, str) else value)
    except (ValueError, OverflowError):
        return None
    return number if math.isfinite(number) else None


def _parse_iso8601(value: str) -> datetime | None:
    """Parse ISO-8601 text, tolerating ``Z`` and ``[UTC]`` suffixes."""
    text = value.strip()
    if text.endswith("[UTC]"):
        text = text[: -len("[UTC]")]
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    if not text:
        return None
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def _datetime_to_seconds(moment: datetime) -> float:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.timestamp()
