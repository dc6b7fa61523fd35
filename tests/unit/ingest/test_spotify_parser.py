"""Unit tests for the Spotify extended history parser."""

from __future__ import annotations

import json

import pytest

from core.errors import ParseError
from ingest.spotify_parser import is_meaningful_play, parse_spotify, validate_spotify
from tests.fixture_paths import fixture_path


def _load_history() -> list[dict[str, object]]:
    path = fixture_path("spotify/Streaming_History_Audio_2021.json")
    return json.loads(path.read_text(encoding="utf-8"))


def test_parse_spotify_filters_and_counts_dropped_records() -> None:
    """Short plays and rows without an artist are dropped and counted."""
    result = parse_spotify(_load_history())

    assert len(result.listens) == 3
    assert result.filtered_count == 2
    assert result.total_entries == 5


def test_parse_spotify_never_keeps_plays_under_thirty_seconds() -> None:
    """No parsed listen may have ms_played below 30000; 30000 is kept."""
    listens = parse_spotify(_load_history()).listens

    assert min(listen.ms_played or 0 for listen in listens) == 30000


def test_parse_spotify_derives_track_name_from_uri() -> None:
    """Missing track names fall back to the URI id segment."""
    listen = parse_spotify(_load_history()).listens[1]

    assert listen.track_name == "0DiWol3AO6WpXZgp0goxAV"
    assert listen.artist_name == "Daft Punk"


def test_parse_spotify_maps_podcast_episodes() -> None:
    """Episodes use the episode name and show name."""
    listen = parse_spotify(_load_history()).listens[2]

    assert (listen.track_name, listen.artist_name, listen.album_name) == (
        "Episode 12: Modular Synths",
        "Synth Talk",
        "Unknown Album",
    )


def test_parse_spotify_normalizes_iso_timestamps() -> None:
    """ISO ts values become epoch seconds and feed the listen id."""
    listen = parse_spotify(_load_history()).listens[0]

    assert listen.listened_at == 1609495200
    assert listen.listen_id == "spotify-0-1609495200"
    assert listen.raw_extra["reason_end"] == "trackdone"


def test_parse_spotify_raises_when_everything_is_filtered() -> None:
    """A file of skips should fail with an actionable message."""
    rows = [{"ts": "2021-01-01T00:00:00Z", "ms_played": 100, "master_metadata_track_name": "a"}]

    with pytest.raises(ParseError, match="No listens found"):
        parse_spotify(rows)


def test_is_meaningful_play_rejects_non_objects() -> None:
    """Garbage rows are filtered rather than raising."""
    assert is_meaningful_play("row") is False


def test_validate_spotify_rejects_listenbrainz_rows() -> None:
    """Structural check should reject rows without ts."""
    check = validate_spotify([{"listened_at": 1, "track_metadata": {}}])

    assert check.valid is False


@pytest.mark.parametrize("ms_played", [float("inf"), 1e400, "1e400", float("nan")])
def test_is_meaningful_play_drops_non_finite_durations(ms_played: object) -> None:
    """Overflowing or non-finite ms_played values are filtered, not raised."""
    record = {
        "ts": "2021-01-01T00:00:00Z",
        "ms_played": ms_played,
        "master_metadata_track_name": "a",
        "master_metadata_album_artist_name": "b",
    }

    assert is_meaningful_play(record) is False


def test_parse_spotify_flags_unparseable_timestamps() -> None:
    """A bad ts keeps the record but marks the fallback and the raw value."""
    rows = [
        {
            "ts": "not-a-date",
            "ms_played": 60000,
            "master_metadata_track_name": "a",
            "master_metadata_album_artist_name": "b",
        },
        {
            "ts": "2021-01-01T00:00:00Z",
            "ms_played": 60000,
            "master_metadata_track_name": "c",
            "master_metadata_album_artist_name": "b",
        },
    ]

    flagged, parsed = parse_spotify(rows).listens

    assert flagged.timestamp_fallback is True
    assert flagged.raw_timestamp == "not-a-date"
    assert parsed.timestamp_fallback is False
    assert parsed.raw_timestamp is None
