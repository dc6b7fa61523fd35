"""Unit tests for source format detection."""

from __future__ import annotations

import pytest

from core.errors import FormatUnrecognizedError
from ingest.format_detection import DETECTION_RULES, detect_format


def test_detect_format_recognizes_listenbrainz_array() -> None:
    """Listen arrays with listened_at and track_metadata are ListenBrainz."""
    value = [{"listened_at": 1609459200, "track_metadata": {"track_name": "a"}}]

    assert detect_format(value) == "listenbrainz"


def test_detect_format_recognizes_spotify_history_and_episodes() -> None:
    """Spotify rows need ts plus a track or episode name field."""
    track_rows = [{"ts": "2021-01-01T00:00:00Z", "master_metadata_track_name": "a"}]
    episode_rows = [{"ts": "2021-01-01T00:00:00Z", "episode_name": "Ep 1"}]

    assert detect_format(track_rows) == "spotify"
    assert detect_format(episode_rows) == "spotify"


def test_detect_format_recognizes_api_envelope() -> None:
    """A payload.listens envelope is ListenBrainz even when empty."""
    assert detect_format({"payload": {"listens": [], "count": 0}}) == "listenbrainz"


def test_detect_format_prefers_content_over_file_name() -> None:
    """Content rules run before the file-name fallback."""
    value = [{"listened_at": 1609459200, "track_metadata": {"track_name": "a"}}]

    assert detect_format(value, "Streaming_History_Audio_2021.json") == "listenbrainz"


@pytest.mark.parametrize(
    ("file_name", "expected"),
    [
        ("my_SPOTIFY_data.json", "spotify"),
        ("StreamingHistory0.json", "spotify"),
        ("ListenBrainz-export.json", "listenbrainz"),
    ],
)
def test_detect_format_falls_back_to_file_name(file_name: str, expected: str) -> None:
    """File name hints apply when content is inconclusive."""
    assert detect_format([], file_name) == expected


def test_detect_format_raises_with_attempted_heuristics() -> None:
    """Unrecognized input should report every heuristic tried."""
    with pytest.raises(FormatUnrecognizedError) as error_info:
        detect_format({"title": "notes"}, "notes.json")

    assert error_info.value.attempted == tuple(rule.name for rule in DETECTION_RULES)


def test_detect_format_is_deterministic() -> None:
    """Identical input should always yield the identical result."""
    value = [{"ts": "2021-01-01T00:00:00Z", "spotify_track_uri": "spotify:track:x"}]

    results = {detect_format(value, "x.json") for _ in range(5)}

    assert results == {"spotify"}
