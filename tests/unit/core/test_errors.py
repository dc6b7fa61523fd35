"""Unit tests for the exception hierarchy."""

from __future__ import annotations

from core.errors import (
    AbortedError,
    DataQualityError,
    FormatUnrecognizedError,
    InsufficientHistoryError,
    ListenprintError,
    ListenprintIngestError,
    ListenprintValidationError,
    SizeLimitExceededError,
    UpstreamFetchError,
)


def test_size_limit_error_reports_sizes_in_megabytes() -> None:
    """Message should name the limit and the actual total."""
    error = SizeLimitExceededError(total_bytes=3 * 1024 * 1024, limit_bytes=2 * 1024 * 1024)

    assert "exceeds 2MB limit" in str(error)
    assert "Total: 3.00MB" in str(error)


def test_format_unrecognized_error_names_file_and_heuristics() -> None:
    """Message should list the unit name and attempted heuristics."""
    error = FormatUnrecognizedError(("a", "b"), "notes.json")

    assert "notes.json" in str(error)
    assert "tried: a, b" in str(error)


def test_error_hierarchy_separates_unit_and_corpus_failures() -> None:
    """Per-unit and corpus errors should share only the base class."""
    assert issubclass(UpstreamFetchError, ListenprintIngestError)
    assert issubclass(AbortedError, ListenprintIngestError)
    assert issubclass(DataQualityError, ListenprintValidationError)
    assert issubclass(InsufficientHistoryError, ListenprintValidationError)
    assert not issubclass(ListenprintValidationError, ListenprintIngestError)
    assert issubclass(ListenprintValidationError, ListenprintError)
