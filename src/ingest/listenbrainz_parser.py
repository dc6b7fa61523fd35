"""ListenBrainz export parser.

This module turns ListenBrainz JSON exports, either a bare listen
array or a ``payload.listens`` API envelope, into canonical listens.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping, Sequence

from core.constants import UNKNOWN_ALBUM, UNKNOWN_ARTIST, UNKNOWN_TRACK
from core.errors import ParseError
from core.logging_config import get_logger
from core.types import CanonicalListen, ParseResult
from ingest.format_check import FormatCheck
from ingest.timestamps import resolve_timestamp

_LOGGER = get_logger(__name__)


def validate_listenbrainz(value: Any) -> FormatCheck:
    """Check whether a parsed value looks like a ListenBrainz export.

    Args:
        value: Parsed JSON value.

    Returns:
        Validity flag with a reason when invalid.
    """
    listens = _extract_listens(value)
    if listens is None:
        return FormatCheck(False, "expected a listen array or a payload.listens envelope")
    if not listens:
        return FormatCheck(False, "no listens found")
    first = listens[0]
    if not isinstance(first, Mapping) or "listened_at" not in first:
        return FormatCheck(False, "first listen is missing listened_at")
    if not isinstance(first.get("track_metadata"), Mapping):
        return FormatCheck(False, "first listen is missing track_metadata")
    return FormatCheck(True)


def parse_listenbrainz(value: Any) -> ParseResult:
    """Parse a ListenBrainz export into canonical listens.

    Args:
        value: Bare listen array or ``payload.listens`` envelope.

    Returns:
        Parse result with one listen per well-formed record.

    Raises:
        ParseError: If the value is not a listen collection or holds no listens.
    """
    raw_listens = _extract_listens(value)
    if raw_listens is None:
        raise ParseError(
            "Invalid ListenBrainz JSON format: expected a listen array "
            "or an object with payload.listens. Export your listens again from ListenBrainz."
        )
    listens: list[CanonicalListen] = []
    for index, raw_listen in enumerate(raw_listens):
        if not isinstance(raw_listen, Mapping):
            continue
        listens.append(_build_listen(index, raw_listen))
    if not listens:
        raise ParseError(
            "No listens found in ListenBrainz export. "
            "Check that the file contains your listening history."
        )
    filtered_count = len(raw_listens) - len(listens)
    _LOGGER.info(
        "listenbrainz_parsed",
        listen_count=len(listens),
        skipped_records=filtered_count,
    )
    return ParseResult(
        listens=tuple(listens),
        format="listenbrainz",
        parsed_at=datetime.now(timezone.utc),
        total_entries=len(raw_listens),
        filtered_count=filtered_count,
    )


def _extract_listens(value: Any) -> Sequence[Any] | None:
    """Return the listen sequence from a bare array or API envelope."""
    if isinstance(value, Mapping):
        payload = value.get("payload")
        value = payload.get("listens") if isinstance(payload, Mapping) else None
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
        return value
    return None


def _build_listen(index: int, raw_listen: Mapping[str, Any]) -> CanonicalListen:
    metadata = raw_listen.get("track_metadata")
    track_metadata = metadata if isinstance(metadata, Mapping) else {}
    raw_timestamp = raw_listen.get("listened_at")
    resolved = resolve_timestamp(raw_timestamp)
    additional_info = track_metadata.get("additional_info")
    recording_msid = raw_listen.get("recording_msid")
    return CanonicalListen(
        listen_id=f"lb-{index}-{resolved.seconds}",
        listened_at=resolved.seconds,
        track_name=_text_or_default(track_metadata.get("track_name"), UNKNOWN_TRACK),
        artist_name=_text_or_default(track_metadata.get("artist_name"), UNKNOWN_ARTIST),
        album_name=_text_or_default(track_metadata.get("release_name"), UNKNOWN_ALBUM),
        source="listenbrainz",
        recording_msid=str(recording_msid) if recording_msid else None,
        raw_extra=dict(additional_info) if isinstance(additional_info, Mapping) else {},
        timestamp_fallback=resolved.fell_back,
        raw_timestamp=raw_timestamp if resolved.fell_back else None,
    )


def _text_or_default(value: Any, default: str) -> str:
    if value is None:
        return default
    text = str(value).strip()
    return text or default
