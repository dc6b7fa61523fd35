"""Source format detection.

This module inspects a parsed JSON value, with the file name as a
fallback hint, and returns the source format. Rules are evaluated in
declaration order and the first match wins.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Sequence

from core.errors import FormatUnrecognizedError
from core.types import SourceFormat

SPOTIFY_NAME_FIELDS = (
    "master_metadata_track_name",
    "spotify_track_uri",
    "episode_name",
    "spotify_episode_uri",
)


@dataclass(frozen=True)
class DetectionRule:
    """One named format heuristic."""

    name: str
    source_format: SourceFormat
    matches: Callable[[Any, str], bool]


def _first_item(value: Any) -> Mapping[str, Any] | None:
    if not isinstance(value, Sequence) or isinstance(value, (str, bytes)) or not value:
        return None
    first = value[0]
    return first if isinstance(first, Mapping) else None


def _is_listenbrainz_array(value: Any, _file_name: str) -> bool:
    first = _first_item(value)
    return first is not None and bool(first.get("listened_at")) and bool(
        first.get("track_metadata")
    )


def _is_spotify_history(value: Any, _file_name: str) -> bool:
    first = _first_item(value)
    if first is None or not first.get("ts"):
        return False
    return any(first.get(field_name) for field_name in SPOTIFY_NAME_FIELDS)


def _is_listenbrainz_envelope(value: Any, _file_name: str) -> bool:
    if not isinstance(value, Mapping):
        return False
    payload = value.get("payload")
    if not isinstance(payload, Mapping):
        return False
    listens = payload.get("listens")
    return isinstance(listens, Sequence) and not isinstance(listens, (str, bytes))


def _spotify_file_name(_value: Any, file_name: str) -> bool:
    lowered = file_name.lower()
    return "spotify" in lowered or "streaming" in lowered


def _listenbrainz_file_name(_value: Any, file_name: str) -> bool:
    return "listenbrainz" in file_name.lower()


DETECTION_RULES: tuple[DetectionRule, ...] = (
    DetectionRule("listenbrainz_array", "listenbrainz", _is_listenbrainz_array),
    DetectionRule("spotify_extended_history", "spotify", _is_spotify_history),
    DetectionRule("listenbrainz_api_envelope", "listenbrainz", _is_listenbrainz_envelope),
    DetectionRule("spotify_file_name", "spotify", _spotify_file_name),
    DetectionRule("listenbrainz_file_name", "listenbrainz", _listenbrainz_file_name),
)


def detect_format(value: Any, file_name: str = "") -> SourceFormat:
    """Detect the source format of a parsed export.

    Args:
        value: Parsed JSON value.
        file_name: Optional file name used as a last-resort hint.

    Returns:
        Detected source format.

    Raises:
        FormatUnrecognizedError: If no rule matches.
    """
    for rule in DETECTION_RULES:
        if rule.matches(value, file_name or ""):
            return rule.source_format
    raise FormatUnrecognizedError(
        attempted=tuple(rule.name for rule in DETECTION_RULES),
        file_name=file_name,
    )
