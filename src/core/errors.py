"""Listenprint exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Per-unit ingest errors are recovered by the pipeline; run-level
errors propagate to the caller with an actionable message.
"""

from __future__ import annotations


class ListenprintError(Exception):
    """Base exception for all Listenprint failures."""


class ListenprintConfigError(ListenprintError):
    """Raised for invalid runtime configuration."""


class ListenprintIngestError(ListenprintError):
    """Raised for source parsing and ingest failures."""


class SizeLimitExceededError(ListenprintIngestError):
    """Raised before parsing when the combined import size is too large."""

    def __init__(self, total_bytes: int, limit_bytes: int) -> None:
        self.total_bytes = total_bytes
        self.limit_bytes = limit_bytes
        super().__init__(
            f"Total file size exceeds {limit_bytes / 1024 / 1024:.0f}MB limit. "
            f"Total: {total_bytes / 1024 / 1024:.2f}MB. Import fewer files per run."
        )


class FormatUnrecognizedError(ListenprintIngestError):
    """Raised when no format heuristic matches an import unit."""

    def __init__(self, attempted: tuple[str, ...], file_name: str = "") -> None:
        self.attempted = attempted
        self.file_name = file_name
        super().__init__(
            f"Unknown data format{f' in {file_name}' if file_name else ''} "
            f"(tried: {', '.join(attempted)}). "
            "Upload ListenBrainz or Spotify extended streaming history JSON files."
        )


class ParseError(ListenprintIngestError):
    """Raised when a recognized unit cannot be turned into listens."""


class NoValidListensError(ListenprintIngestError):
    """Raised when a run yields zero usable listens."""


class UpstreamFetchError(ListenprintIngestError):
    """Raised when a page of the upstream listening-history API fails."""


class AbortedError(ListenprintIngestError):
    """Raised when the caller cancels an in-flight import."""


class ListenprintValidationError(ListenprintError):
    """Raised when the aggregate corpus fails a sanity check."""


class DataQualityError(ListenprintValidationError):
    """Raised when too few listens carry plausible timestamps."""

    def __init__(
        self,
        message: str,
        sample_value: object,
        detected_type: str,
        valid_percentage: float,
    ) -> None:
        self.sample_value = sample_value
        self.detected_type = detected_type
        self.valid_percentage = valid_percentage
        super().__init__(message)


class InsufficientHistoryError(ListenprintValidationError):
    """Raised when the listening history spans less than about a month."""

    def __init__(self, message: str, span_days: float) -> None:
        self.span_days = span_days
        super().__init__(message)


class ListenprintStoreError(ListenprintError):
    """Raised for listen store persistence failures."""
