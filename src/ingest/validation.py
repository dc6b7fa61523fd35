"""Corpus-level sanity checks.

This module rejects listen batches dominated by implausible timestamps
or spanning too little time to describe listening behavior.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Sequence

from core.constants import (
    MIN_HISTORY_SPAN_YEARS,
    MIN_VALID_TIMESTAMP_RATIO,
    SECONDS_PER_YEAR,
)
from core.errors import DataQualityError, InsufficientHistoryError, NoValidListensError
from core.types import CanonicalListen, ValidationReport
from ingest.timestamps import classify_timestamp, is_canonical_timestamp


def validate_listens(listens: Sequence[CanonicalListen]) -> ValidationReport:
    """Validate timestamp plausibility and history span of a corpus.

    Args:
        listens: Canonical listens to check.

    Returns:
        Date range and counts for a usable corpus.

    Raises:
        NoValidListensError: If the batch is empty.
        DataQualityError: If fewer than 90% of timestamps are plausible.
        InsufficientHistoryError: If the valid span is under about a month.
    """
    if not listens:
        raise NoValidListensError(
            "No listens found in uploaded files. "
            "Upload a ListenBrainz or Spotify extended streaming history file."
        )
    valid_timestamps = [listen.listened_at for listen in listens if _has_valid_timestamp(listen)]
    valid_percentage = len(valid_timestamps) / len(listens) * 100
    if valid_percentage < MIN_VALID_TIMESTAMP_RATIO * 100:
        sample = _first_invalid_sample(listens)
        raise DataQualityError(
            f"Data contains too many invalid timestamps ({valid_percentage:.1f}% valid). "
            f"Found {len(valid_timestamps)} valid out of {len(listens)} total listens; "
            f"sample invalid value {sample!r}. Check your export file format.",
            sample_value=sample,
            detected_type=classify_timestamp(sample),
            valid_percentage=valid_percentage,
        )
    earliest = min(valid_timestamps)
    latest = max(valid_timestamps)
    span_years = (latest - earliest) / SECONDS_PER_YEAR
    if span_years < MIN_HISTORY_SPAN_YEARS:
        span_days = span_years * 365.25
        raise InsufficientHistoryError(
            f"Data span too short: found only {span_days:.0f} days of listening history. "
            "Need at least 1 month.",
            span_days=span_days,
        )
    return ValidationReport(
        total_listens=len(listens),
        valid_timestamps=len(valid_timestamps),
        valid_percentage=round(valid_percentage, 1),
        earliest=datetime.fromtimestamp(earliest, tz=timezone.utc),
        latest=datetime.fromtimestamp(latest, tz=timezone.utc),
        span_years=round(span_years, 1),
    )


def _has_valid_timestamp(listen: CanonicalListen) -> bool:
    """Fallback sentinels count as invalid even though they sit in range."""
    return not listen.timestamp_fallback and is_canonical_timestamp(listen.listened_at)


def _first_invalid_sample(listens: Sequence[CanonicalListen]) -> object:
    for listen in listens:
        if listen.timestamp_fallback:
            return listen.raw_timestamp
        if not is_canonical_timestamp(listen.listened_at):
            return listen.listened_at
    return None
