"""Unit tests for genre cleaning."""

from __future__ import annotations

from core.types import CanonicalListen, GenreCacheEntry
from transforms.genre_cleaning import CachedGenreCleaner, NullGenreCleaner


class _FakeCache:
    def __init__(self, entries: dict[str, tuple[str, ...]]) -> None:
        self._entries = entries
        self.lookups: list[str] = []

    def get_genre_cache(self, artist_name: str) -> GenreCacheEntry | None:
        self.lookups.append(artist_name)
        genres = self._entries.get(artist_name)
        if genres is None:
            return None
        return GenreCacheEntry(artist_name, genres, "lastfm", 1700000000000)


def _listen(index: int, artist: str, genres: tuple[str, ...] = ()) -> CanonicalListen:
    return CanonicalListen(
        listen_id=f"lb-{index}-1609459200",
        listened_at=1609459200 + index,
        track_name=f"Track {index}",
        artist_name=artist,
        album_name="Album",
        source="listenbrainz",
        genres=genres,
    )


def test_cached_cleaner_fills_missing_genres_from_cache() -> None:
    """Untagged listens receive cached artist genres once per artist."""
    cache = _FakeCache({"Burial": (" dubstep ", "dubstep", "electronic")})
    listens = [_listen(0, "Burial"), _listen(1, "Burial"), _listen(2, "Nobody")]

    cleaned, report = CachedGenreCleaner(cache).clean_genre_data(listens)

    assert cleaned[0].genres == ("dubstep", "electronic")
    assert cleaned[2].genres == ()
    assert (report.enriched, report.already_tagged, report.untagged) == (2, 0, 1)
    assert cache.lookups == ["Burial", "Nobody"]


def test_cached_cleaner_tidies_existing_genres() -> None:
    """Tagged listens are stripped and deduplicated, not overwritten."""
    cache = _FakeCache({"Burial": ("ambient",)})

    cleaned, report = CachedGenreCleaner(cache).clean_genre_data(
        [_listen(0, "Burial", ("Dubstep ", "", "Dubstep"))]
    )

    assert cleaned[0].genres == ("Dubstep",)
    assert report.already_tagged == 1
    assert cache.lookups == []


def test_null_cleaner_passes_listens_through() -> None:
    """The null cleaner only reports existing tags."""
    listens = [_listen(0, "a", ("rock",)), _listen(1, "b")]

    cleaned, report = NullGenreCleaner().clean_genre_data(listens)

    assert cleaned == listens
    assert (report.total, report.already_tagged, report.untagged) == (2, 1, 1)


def test_cached_cleaner_sees_cache_updates_between_runs() -> None:
    """Artist lookups are memoized within one run only."""
    cache = _FakeCache({})
    cleaner = CachedGenreCleaner(cache)
    cleaner.clean_genre_data([_listen(0, "Burial")])
    cache._entries["Burial"] = ("dubstep",)

    cleaned, report = cleaner.clean_genre_data([_listen(1, "Burial")])

    assert cleaned[0].genres == ("dubstep",)
    assert report.enriched == 1
    assert cache.lookups == ["Burial", "Burial"]
