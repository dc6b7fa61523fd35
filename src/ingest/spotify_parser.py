"""Spotify extended streaming history parser.

This module keeps meaningful plays from Spotify extended history
exports and turns them into canonical listens. Records without a
timestamp, name, or artist, and plays shorter than 30 seconds, are
dropped and counted rather than failing the file.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping, Sequence

from core.constants import MIN_SPOTIFY_MS_PLAYED, UNKNOWN_ALBUM, UNKNOWN_ARTIST, UNKNOWN_TRACK
from core.errors import ParseError
from core.logging_config import get_logger
from core.types import CanonicalListen, ParseResult
from ingest.format_check import FormatCheck
from ingest.timestamps import resolve_timestamp

_LOGGER = get_logger(__name__)

_EXTRA_FIELDS = (
    "spotify_track_uri",
    "spotify_episode_uri",
    "reason_start",
    "reason_end",
    "shuffle",
    "skipped",
    "offline",
    "platform",
    "conn_country",
)


def validate_spotify(value: Any) -> FormatCheck:
    """Check whether a parsed value looks like Spotify extended history.

    Args:
        value: Parsed JSON value.

    Returns:
        Validity flag with a reason when invalid.
    """
    if not _is_record_sequence(value):
        return FormatCheck(False, "expected an array of streaming history records")
    if not value:
        return FormatCheck(False, "no listens found")
    first = value[0]
    if not isinstance(first, Mapping) or "ts" not in first:
        return FormatCheck(False, "first record is missing ts")
    if "ms_played" not in first:
        return FormatCheck(False, "first record is missing ms_played")
    return FormatCheck(True)


def parse_spotify(value: Any) -> ParseResult:
    """Parse Spotify extended streaming history into canonical listens.

    Args:
        value: Array of extended streaming history records.

    Returns:
        Parse result with filtered-out record count.

    Raises:
        ParseError: If the value is not an array or no record survives filtering.
    """
    if not _is_record_sequence(value):
        raise ParseError(
            "Invalid Spotify JSON format: expected an array of streaming history records. "
            "Upload the Streaming_History_Audio_*.json files from your extended export."
        )
    kept_records = [record for record in value if is_meaningful_play(record)]
    listens = [_build_listen(index, record) for index, record in enumerate(kept_records)]
    filtered_count = len(value) - len(kept_records)
    if filtered_count:
        _LOGGER.info("spotify_records_filtered", filtered_count=filtered_count)
    if not listens:
        raise ParseError(
            f"No listens found in Spotify history: all {len(value)} records were "
            "skipped, missing metadata, or shorter than 30 seconds."
        )
    _LOGGER.info("spotify_parsed", listen_count=len(listens), total_entries=len(value))
    return ParseResult(
        listens=tuple(listens),
        format="spotify",
        parsed_at=datetime.now(timezone.utc),
        total_entries=len(value),
        filtered_count=filtered_count,
    )


def is_meaningful_play(record: Any) -> bool:
    """Return whether a raw record should become a listen.

    Args:
        record: One raw streaming history record.

    Returns:
        True for records with a timestamp, resolvable name, artist,
        and at least 30 seconds of playback.
    """
    if not isinstance(record, Mapping) or not record.get("ts"):
        return False
    if _resolve_track_name(record) is None or not _resolve_artist_name(record):
        return False
    return _ms_played(record) >= MIN_SPOTIFY_MS_PLAYED


def _build_listen(index: int, record: Mapping[str, Any]) -> CanonicalListen:
    raw_timestamp = record.get("ts")
    resolved = resolve_timestamp(raw_timestamp)
    return CanonicalListen(
        listen_id=f"spotify-{index}-{resolved.seconds}",
        listened_at=resolved.seconds,
        track_name=_resolve_track_name(record) or UNKNOWN_TRACK,
        artist_name=_resolve_artist_name(record) or UNKNOWN_ARTIST,
        album_name=_clean_text(record.get("master_metadata_album_album_name")) or UNKNOWN_ALBUM,
        source="spotify",
        ms_played=_ms_played(record),
        raw_extra={name: record.get(name) for name in _EXTRA_FIELDS if name in record},
        timestamp_fallback=resolved.fell_back,
        raw_timestamp=raw_timestamp if resolved.fell_back else None,
    )


def _resolve_track_name(record: Mapping[str, Any]) -> str | None:
    """Resolve track or episode name, falling back to the URI id segment."""
    for field_name in ("master_metadata_track_name", "episode_name"):
        name = _clean_text(record.get(field_name))
        if name:
            return name
    for field_name in ("spotify_track_uri", "spotify_episode_uri"):
        uri = _clean_text(record.get(field_name))
        if uri:
            parts = uri.split(":")
            return parts[2] if len(parts) > 2 and parts[2] else uri
    return None


def _resolve_artist_name(record: Mapping[str, Any]) -> str | None:
    for field_name in ("master_metadata_album_artist_name", "episode_show_name"):
        name = _clean_text(record.get(field_name))
        if name:
            return name
    return None


def _ms_played(record: Mapping[str, Any]) -> int:
    value = record.get("ms_played")
    if isinstance(value, bool):
        return 0
    try:
        return int(value or 0)
    except (TypeError, ValueError, OverflowError):
        return 0


def _clean_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _is_record_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes))
