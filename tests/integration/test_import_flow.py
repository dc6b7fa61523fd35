"""Integration tests for the import and fingerprint workflow."""

from __future__ import annotations

from dataclasses import replace

import httpx

from core.config import ListenprintConfig
from ingest.listenbrainz_api import ListenBrainzClient
from store.listen_sdk import ListenprintClient
from store.listen_store import build_cache_entry
from tests.fixture_paths import fixture_path


def _client(tmp_path) -> ListenprintClient:
    config = replace(ListenprintConfig.from_env(), data_root=tmp_path, page_cooldown=0.0)
    return ListenprintClient(config)


def test_file_import_enrich_and_fingerprint_flow(tmp_path) -> None:
    """Mixed exports should merge, pick up cached genres, and score."""
    client = _client(tmp_path)
    client.store.put_genre_cache(build_cache_entry("Burial", ["dubstep"], "lastfm"))
    paths = [
        fixture_path("listenbrainz/listenbrainz_export.json"),
        fixture_path("spotify/Streaming_History_Audio_2021.json"),
        fixture_path("listenbrainz/listenbrainz_listens.jsonl"),
    ]

    outcome = client.import_files(paths)
    burial_listens = [listen for listen in client.listens() if listen.artist_name == "Burial"]
    fingerprint = client.fingerprint()

    assert outcome.imported_count == 10
    assert outcome.merge_info.duplicates_removed == 2
    assert outcome.count == 8
    assert outcome.genre_report.enriched == 2
    assert [listen.genres for listen in burial_listens] == [("dubstep",)]
    assert all(0 <= score <= 100 for score in fingerprint.as_dict().values())


def test_reimport_is_idempotent(tmp_path) -> None:
    """A second import of the same files adds nothing."""
    client = _client(tmp_path)
    paths = [fixture_path("spotify/Streaming_History_Audio_2021.json")]
    client.import_files(paths)

    outcome = client.import_files(paths)

    assert outcome.merge_info.duplicates_removed == outcome.imported_count == 3
    assert len(client.listens()) == 3


def test_api_import_flow(tmp_path) -> None:
    """API listens should import through the same pipeline as files."""
    listens = [
        {"listened_at": 1614556800, "track_metadata": {"track_name": "b", "artist_name": "x"}},
        {"listened_at": 1609459200, "track_metadata": {"track_name": "a", "artist_name": "x"}},
    ]

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"payload": {"count": 2, "listens": listens}})

    api_client = ListenBrainzClient(
        "https://api.example.test/1",
        http_client=httpx.Client(transport=httpx.MockTransport(handler)),
    )

    outcome = _client(tmp_path).import_from_api("alice", api_client=api_client)

    assert outcome.count == 2
    assert outcome.skipped_units == ()
    assert outcome.validation.earliest.year == 2021


def test_with_data_root_isolates_corpora(tmp_path) -> None:
    """A cloned client writes to its own data root."""
    first = _client(tmp_path / "first")
    second = first.with_data_root(str(tmp_path / "second"))

    first.import_files([fixture_path("spotify/Streaming_History_Audio_2021.json")])

    assert len(first.listens()) == 3
    assert second.listens() == []
    assert second.fingerprint().as_dict() == {
        "consistency": 50,
        "discovery": 50,
        "variety": 50,
        "replay_rate": 50,
        "exploration": 50,
    }
