"""Unit tests for the filesystem listen store."""

from __future__ import annotations

import pytest

from core.config import ListenprintConfig
from core.errors import ListenprintStoreError
from core.types import CanonicalListen, GenreCacheEntry
from store.listen_store import JsonlListenStore, build_cache_entry


def _store(tmp_path) -> JsonlListenStore:
    config = ListenprintConfig(
        data_root=tmp_path,
        size_limit_bytes=1024 * 1024,
        api_base_url="https://api.example.test/1",
        page_cooldown=0.0,
    )
    return JsonlListenStore(config)


def _listen(index: int, listened_at: int) -> CanonicalListen:
    return CanonicalListen(
        listen_id=f"lb-{index}-{listened_at}",
        listened_at=listened_at,
        track_name=f"Track {index}",
        artist_name="Artist",
        album_name="Album",
        source="listenbrainz",
    )


class _FakeLogger:
    def __init__(self) -> None:
        self.events: list[tuple[str, dict[str, object]]] = []

    def info(self, event: str, **fields: object) -> None:
        self.events.append((event, fields))


def test_merge_listening_data_persists_and_deduplicates(tmp_path, monkeypatch) -> None:
    """A repeated merge should not grow the corpus."""
    fake_logger = _FakeLogger()
    monkeypatch.setattr("store.listen_store._LOGGER", fake_logger)
    store = _store(tmp_path)
    batch = [_listen(0, 1609459200), _listen(1, 1612137600)]

    store.merge_listening_data(batch)
    second = store.merge_listening_data(batch)

    assert second.merge_info.duplicates_removed == 2
    assert len(store.get_all()) == 2
    assert fake_logger.events[-1] == (
        "listens_merged",
        {"imported": 2, "duplicates_removed": 2, "total_after_merge": 2},
    )


def test_save_listening_data_appends_or_replaces(tmp_path) -> None:
    """Append mode adds rows; replace mode overwrites the corpus."""
    store = _store(tmp_path)
    store.save_listening_data([_listen(0, 100)], append_mode=False)

    store.save_listening_data([_listen(1, 200)], append_mode=True)
    appended = store.get_all()
    store.save_listening_data([_listen(2, 300)], append_mode=False)

    assert [listen.listened_at for listen in appended] == [100, 200]
    assert [listen.listened_at for listen in store.get_all()] == [300]


def test_get_all_raises_store_error_for_corrupt_corpus(tmp_path) -> None:
    """Corrupt corpus files surface as store errors."""
    store = _store(tmp_path)
    (tmp_path / "listens.jsonl").write_text("not json\n", encoding="utf-8")

    with pytest.raises(ListenprintStoreError, match="Failed to read listen corpus"):
        store.get_all()


def test_genre_cache_round_trip_and_stats(tmp_path) -> None:
    """Cache entries should be retrievable and summarized by source and age."""
    store = _store(tmp_path)
    store.put_genre_cache(GenreCacheEntry("Burial", ("dubstep",), "lastfm", 1000))
    store.put_genre_cache(GenreCacheEntry("M83", ("synthpop",), "lastfm", 3000))
    store.put_genre_cache(GenreCacheEntry("Aphex Twin", ("idm",), "musicbrainz", 2000))

    stats = store.get_genre_cache_stats()

    assert store.get_genre_cache("Burial") == GenreCacheEntry("Burial", ("dubstep",), "lastfm", 1000)
    assert store.get_genre_cache("Nobody") is None
    assert stats.total == 3
    assert dict(stats.by_source) == {"lastfm": 2, "musicbrainz": 1}
    assert (stats.oldest_cache, stats.newest_cache) == (1000, 3000)


def test_clear_removes_corpus_and_cache(tmp_path) -> None:
    """Clearing the store empties both files."""
    store = _store(tmp_path)
    store.merge_listening_data([_listen(0, 100)])
    store.put_genre_cache(build_cache_entry("Artist", ["rock"], "manual"))

    store.clear()

    assert store.get_all() == []
    assert store.get_genre_cache_stats().total == 0


def test_build_cache_entry_stamps_milliseconds(monkeypatch) -> None:
    """cached_at is wall time in epoch milliseconds."""
    monkeypatch.setattr("store.listen_store.time.time", lambda: 1700000000.5)

    entry = build_cache_entry("Burial", ["dubstep", "ambient"], "lastfm")

    assert entry.cached_at == 1700000000500
    assert entry.genres == ("dubstep", "ambient")
