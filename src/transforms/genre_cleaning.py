"""Genre enrichment before merge.

The pipeline hands its sorted batch to a genre cleaner exactly once
per run. Taxonomy rules live outside this project; the default cleaner
only tidies existing labels and fills missing ones from the store's
per-artist genre cache.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Protocol, Sequence

from core.types import CanonicalListen, GenreCacheEntry, GenreCleaningReport


class GenreCleaner(Protocol):
    """Collaborator that enriches listens with genre fields."""

    def clean_genre_data(
        self, listens: Sequence[CanonicalListen]
    ) -> tuple[list[CanonicalListen], GenreCleaningReport]:
        """Return enriched listens and a cleaning report."""
        ...


class GenreCacheSource(Protocol):
    """Per-artist genre lookup."""

    def get_genre_cache(self, artist_name: str) -> GenreCacheEntry | None:
        """Return cached genres for one artist."""
        ...


class NullGenreCleaner:
    """Pass listens through unchanged."""

    def clean_genre_data(
        self, listens: Sequence[CanonicalListen]
    ) -> tuple[list[CanonicalListen], GenreCleaningReport]:
        tagged = sum(1 for listen in listens if _has_genre(listen))
        report = GenreCleaningReport(
            total=len(listens),
            enriched=0,
            already_tagged=tagged,
            untagged=len(listens) - tagged,
        )
        return list(listens), report


class CachedGenreCleaner:
    """Fill missing genres from an artist genre cache."""

    def __init__(self, cache: GenreCacheSource) -> None:
        self._cache = cache
        self._lookups: dict[str, tuple[str, ...]] = {}

    def clean_genre_data(
        self, listens: Sequence[CanonicalListen]
    ) -> tuple[list[CanonicalListen], GenreCleaningReport]:
        """Tidy genre labels and fill untagged listens from the cache.

        Args:
            listens: Listens in pipeline order.

        Returns:
            Cleaned listens in the same order and a report.
        """
        # Lookups are memoized per call; the cache may change between runs.
        self._lookups.clear()
        cleaned: list[CanonicalListen] = []
        enriched = 0
        already_tagged = 0
        for listen in listens:
            if _has_genre(listen):
                already_tagged += 1
                cleaned.append(replace(listen, genres=_tidy_genres(listen.genres)))
                continue
            cached_genres = self._lookup(listen.artist_name)
            if cached_genres:
                enriched += 1
                cleaned.append(replace(listen, genres=cached_genres))
            else:
                cleaned.append(listen)
        report = GenreCleaningReport(
            total=len(listens),
            enriched=enriched,
            already_tagged=already_tagged,
            untagged=len(listens) - enriched - already_tagged,
        )
        return cleaned, report

    def _lookup(self, artist_name: str) -> tuple[str, ...]:
        if artist_name not in self._lookups:
            entry = self._cache.get_genre_cache(artist_name)
            self._lookups[artist_name] = _tidy_genres(entry.genres) if entry else ()
        return self._lookups[artist_name]


def _has_genre(listen: CanonicalListen) -> bool:
    return bool(listen.genres or listen.normalized_genre or listen.genre)


def _tidy_genres(genres: Sequence[str]) -> tuple[str, ...]:
    """Strip labels and drop blanks and repeats, keeping order."""
    tidy: list[str] = []
    for genre in genres:
        label = genre.strip()
        if label and label not in tidy:
            tidy.append(label)
    return tuple(tidy)
