"""Shared typed models.

This module defines immutable data models used by ingest, transforms,
store, and SDK layers to keep interfaces explicit and stable.
"""

from __future__ import annotations

import io
from dataclasses import dataclass, field
from datetime import datetime
from functools import partial
from pathlib import Path
from typing import IO, Callable, Literal, Mapping

from core.constants import BYTES_PER_MB, DEFAULT_SIZE_LIMIT_MB

SourceFormat = Literal["listenbrainz", "spotify"]
ImportMode = Literal["auto", "listenbrainz", "spotify"]


@dataclass(frozen=True)
class RawImportUnit:
    """One import unit: a file or one API page.

    Units are opened lazily. ``size_bytes`` comes from file metadata so
    the combined size ceiling is checked before any byte is read.

    Attributes:
        name: File name or page label, also used as a format hint.
        size_bytes: Declared unit size in bytes.
        open_stream: Opens a fresh binary stream over the unit contents.
        declared_format: Optional caller-declared format.
    """

    name: str
    size_bytes: int
    open_stream: Callable[[], IO[bytes]] = field(compare=False, repr=False)
    declared_format: SourceFormat | None = None

    @classmethod
    def from_path(
        cls, path: Path, declared_format: SourceFormat | None = None
    ) -> "RawImportUnit":
        """Describe a local file without reading it."""
        return cls(
            name=path.name,
            size_bytes=path.stat().st_size,
            open_stream=partial(path.open, "rb"),
            declared_format=declared_format,
        )

    @classmethod
    def from_bytes(
        cls, name: str, payload: bytes, declared_format: SourceFormat | None = None
    ) -> "RawImportUnit":
        """Wrap in-memory bytes, e.g. one fetched API page."""
        return cls(
            name=name,
            size_bytes=len(payload),
            open_stream=partial(io.BytesIO, payload),
            declared_format=declared_format,
        )


@dataclass(frozen=True)
class CanonicalListen:
    """Canonical representation of one play event.

    Attributes:
        listen_id: Deterministic id derived from source, index, and timestamp.
        listened_at: Epoch seconds.
        track_name: Track or episode title.
        artist_name: Artist or show name.
        album_name: Album or release name.
        source: Source format the listen was parsed from.
        ms_played: Playback duration when the source reports it.
        recording_msid: Upstream recording id when present.
        raw_extra: Opaque per-source payload.
        genres: Ordered genre labels filled by the genre cleaner.
        normalized_genre: Single normalized genre label.
        genre: Raw genre label.
        timestamp_fallback: Whether ``listened_at`` is the fallback sentinel
            because the source timestamp was unusable.
        raw_timestamp: Source timestamp value kept when it fell back.
    """

    listen_id: str
    listened_at: int
    track_name: str
    artist_name: str
    album_name: str
    source: SourceFormat
    ms_played: int | None = None
    recording_msid: str | None = None
    raw_extra: Mapping[str, object] = field(default_factory=dict)
    genres: tuple[str, ...] = ()
    normalized_genre: str | None = None
    genre: str | None = None
    timestamp_fallback: bool = False
    raw_timestamp: object = None

    @property
    def dedup_key(self) -> tuple[str, str, int]:
        """Return the identity used to detect duplicate listens."""
        return (self.artist_name, self.track_name, self.listened_at)

    @property
    def track_key(self) -> str:
        """Return the artist+track key used for replay and variety scoring."""
        return f"{self.artist_name}-{self.track_name}"


@dataclass(frozen=True)
class ParseResult:
    """Output of one format parser call.

    Attributes:
        listens: Canonical listens in input order.
        format: Source format identifier.
        parsed_at: UTC parse time.
        total_entries: Number of raw records inspected.
        filtered_count: Records dropped by per-format filtering.
    """

    listens: tuple[CanonicalListen, ...]
    format: SourceFormat
    parsed_at: datetime
    total_entries: int
    filtered_count: int = 0


@dataclass(frozen=True)
class ValidationReport:
    """Successful corpus validation summary.

    Attributes:
        total_listens: Number of listens checked.
        valid_timestamps: Listens with plausible timestamps.
        valid_percentage: Percentage of plausible timestamps.
        earliest: Earliest valid listen time (UTC).
        latest: Latest valid listen time (UTC).
        span_years: Span between earliest and latest in years.
    """

    total_listens: int
    valid_timestamps: int
    valid_percentage: float
    earliest: datetime
    latest: datetime
    span_years: float


@dataclass(frozen=True)
class MergeReport:
    """Merge statistics.

    Attributes:
        duplicates_removed: Incoming listens dropped as duplicates.
        total_after_merge: Corpus size after merge.
        imported_count: Incoming listens offered to the merge.
    """

    duplicates_removed: int
    total_after_merge: int
    imported_count: int


@dataclass(frozen=True)
class MergeResult:
    """Merged corpus plus merge statistics."""

    success: bool
    data: tuple[CanonicalListen, ...]
    merge_info: MergeReport


@dataclass(frozen=True)
class Fingerprint:
    """Five-axis listening behavior score, each in [0, 100]."""

    consistency: int
    discovery: int
    variety: int
    replay_rate: int
    exploration: int

    def as_dict(self) -> dict[str, int]:
        """Return scores keyed by axis name."""
        return {
            "consistency": self.consistency,
            "discovery": self.discovery,
            "variety": self.variety,
            "replay_rate": self.replay_rate,
            "exploration": self.exploration,
        }


@dataclass(frozen=True)
class IngestProgress:
    """One progress checkpoint observed by the caller.

    Attributes:
        percentage: Overall progress in [0, 100].
        status: Human-readable status line.
        current_unit: Name of the unit being processed, or empty.
    """

    percentage: float
    status: str
    current_unit: str = ""


@dataclass(frozen=True)
class IngestOptions:
    """Ingest run options.

    Attributes:
        mode: ``auto`` or a forced source format.
        size_limit_bytes: Combined size ceiling for one run.
    """

    mode: ImportMode = "auto"
    size_limit_bytes: int = DEFAULT_SIZE_LIMIT_MB * BYTES_PER_MB


@dataclass(frozen=True)
class GenreCleaningReport:
    """Summary of one genre cleaning pass.

    Attributes:
        total: Listens inspected.
        enriched: Listens that received genres from the cache.
        already_tagged: Listens that already carried genres.
        untagged: Listens left without any genre.
    """

    total: int
    enriched: int
    already_tagged: int
    untagged: int


@dataclass(frozen=True)
class ImportOutcome:
    """Result of a completed ingest run.

    Attributes:
        count: Corpus size after merge.
        imported_count: Listens accumulated from this run's units.
        merge_info: Merge statistics.
        genre_report: Genre cleaning summary.
        validation: Corpus validation summary.
        skipped_units: Names of units skipped with a warning.
    """

    count: int
    imported_count: int
    merge_info: MergeReport
    genre_report: GenreCleaningReport
    validation: ValidationReport
    skipped_units: tuple[str, ...] = ()


@dataclass(frozen=True)
class GenreCacheEntry:
    """Cached genres for one artist.

    Attributes:
        artist_name: Cache key.
        genres: Ordered genre labels.
        source: Tag naming where the genres came from.
        cached_at: Epoch milliseconds when the entry was written.
    """

    artist_name: str
    genres: tuple[str, ...]
    source: str
    cached_at: int


@dataclass(frozen=True)
class GenreCacheStats:
    """Aggregate genre cache statistics.

    Attributes:
        total: Number of cached artists.
        by_source: Entry counts keyed by source tag.
        oldest_cache: Oldest ``cached_at`` value, if any.
        newest_cache: Newest ``cached_at`` value, if any.
    """

    total: int
    by_source: Mapping[str, int]
    oldest_cache: int | None
    newest_cache: int | None
