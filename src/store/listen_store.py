"""Listen corpus and genre cache persistence.

This module persists the canonical listen corpus as one JSONL file
and a small per-artist genre cache as one JSON document. From the
pipeline's perspective the corpus is append-only: merges add listens
the corpus has not seen and never rewrite existing ones.
"""

from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Any, Protocol, Sequence

from core.config import ListenprintConfig
from core.constants import GENRE_CACHE_FILE_NAME, LISTENS_FILE_NAME
from core.errors import ListenprintStoreError
from core.logging_config import get_logger
from core.types import CanonicalListen, GenreCacheEntry, GenreCacheStats, MergeResult
from store.record_payload import listen_to_payload, read_listens_jsonl, write_listens_jsonl
from transforms.listen_deduplication import merge_listens

_LOGGER = get_logger(__name__)


class ListenStore(Protocol):
    """Key-value persistence consumed by the ingest pipeline."""

    def get_all(self) -> list[CanonicalListen]:
        """Return the full persisted corpus."""
        ...

    def merge_listening_data(self, batch: Sequence[CanonicalListen]) -> MergeResult:
        """Merge a batch into the corpus and return the merged corpus."""
        ...

    def save_listening_data(self, batch: Sequence[CanonicalListen], append_mode: bool) -> None:
        """Write listens, appending or replacing the corpus."""
        ...

    def get_genre_cache(self, artist_name: str) -> GenreCacheEntry | None:
        """Return cached genres for one artist."""
        ...

    def get_genre_cache_stats(self) -> GenreCacheStats:
        """Return aggregate genre cache statistics."""
        ...


class JsonlListenStore:
    """Filesystem-backed listen store.

    This class owns the corpus JSONL file and the genre cache file
    under the configured data root.
    """

    def __init__(self, config: ListenprintConfig) -> None:
        """Initialize the store from config.

        Args:
            config: Runtime configuration.
        """
        self._data_root = config.data_root
        self._data_root.mkdir(parents=True, exist_ok=True)

    def get_all(self) -> list[CanonicalListen]:
        """Load the persisted corpus.

        Returns:
            Listens in stored order, empty when nothing was imported yet.

        Raises:
            ListenprintStoreError: If the corpus file is corrupt.
        """
        listens_path = self._listens_path()
        if not listens_path.exists():
            return []
        try:
            return read_listens_jsonl(listens_path)
        except (OSError, ValueError) as error:
            raise ListenprintStoreError(
                f"Failed to read listen corpus at {listens_path}: {error}. "
                "Restore the file from a backup or clear the store and re-import."
            ) from error

    def merge_listening_data(self, batch: Sequence[CanonicalListen]) -> MergeResult:
        """Merge a batch into the corpus, keeping persisted copies of duplicates.

        Args:
            batch: Newly imported listens.

        Returns:
            Merged corpus and merge statistics.
        """
        result = merge_listens(self.get_all(), batch)
        self._write_corpus(list(result.data))
        _LOGGER.info(
            "listens_merged",
            imported=result.merge_info.imported_count,
            duplicates_removed=result.merge_info.duplicates_removed,
            total_after_merge=result.merge_info.total_after_merge,
        )
        return result

    def save_listening_data(self, batch: Sequence[CanonicalListen], append_mode: bool) -> None:
        """Write listens without deduplication.

        Args:
            batch: Listens to write.
            append_mode: Append to the corpus when true, replace it otherwise.
        """
        if not append_mode:
            self._write_corpus(list(batch))
            return
        listens_path = self._listens_path()
        lines = [json.dumps(listen_to_payload(listen), sort_keys=True) for listen in batch]
        if not lines:
            return
        try:
            with listens_path.open("a", encoding="utf-8") as handle:
                handle.write("\n".join(lines) + "\n")
        except OSError as error:
            raise ListenprintStoreError(
                f"Failed to append listens to {listens_path}: {error}."
            ) from error

    def clear(self) -> None:
        """Remove the corpus and genre cache files."""
        for path in (self._listens_path(), self._genre_cache_path()):
            if path.exists():
                path.unlink()

    def get_genre_cache(self, artist_name: str) -> GenreCacheEntry | None:
        """Return cached genres for one artist, if present."""
        payload = self._read_genre_cache().get(artist_name)
        if not isinstance(payload, dict):
            return None
        return _cache_entry_from_payload(artist_name, payload)

    def put_genre_cache(self, entry: GenreCacheEntry) -> None:
        """Insert or replace the cache entry for one artist."""
        cache = self._read_genre_cache()
        cache[entry.artist_name] = {
            "genres": list(entry.genres),
            "source": entry.source,
            "cached_at": entry.cached_at,
        }
        self._write_genre_cache(cache)

    def get_genre_cache_stats(self) -> GenreCacheStats:
        """Summarize the genre cache by source and age."""
        entries = [
            _cache_entry_from_payload(artist_name, payload)
            for artist_name, payload in self._read_genre_cache().items()
            if isinstance(payload, dict)
        ]
        by_source: dict[str, int] = {}
        for entry in entries:
            by_source[entry.source] = by_source.get(entry.source, 0) + 1
        cached_times = [entry.cached_at for entry in entries]
        return GenreCacheStats(
            total=len(entries),
            by_source=by_source,
            oldest_cache=min(cached_times) if cached_times else None,
            newest_cache=max(cached_times) if cached_times else None,
        )

    def _write_corpus(self, listens: list[CanonicalListen]) -> None:
        listens_path = self._listens_path()
        try:
            write_listens_jsonl(listens_path, listens)
        except OSError as error:
            raise ListenprintStoreError(
                f"Failed to write listen corpus to {listens_path}: {error}."
            ) from error

    def _read_genre_cache(self) -> dict[str, Any]:
        cache_path = self._genre_cache_path()
        if not cache_path.exists():
            return {}
        try:
            payload = json.loads(cache_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as error:
            raise ListenprintStoreError(
                f"Failed to parse genre cache at {cache_path}: {error.msg}. "
                "Delete the cache file to rebuild it."
            ) from error
        if not isinstance(payload, dict):
            raise ListenprintStoreError(
                f"Failed to parse genre cache at {cache_path}: expected JSON object at top level."
            )
        return payload

    def _write_genre_cache(self, cache: dict[str, Any]) -> None:
        cache_path = self._genre_cache_path()
        cache_path.write_text(json.dumps(cache, indent=2, sort_keys=True) + "\n", encoding="utf-8")

    def _listens_path(self) -> Path:
        return self._data_root / LISTENS_FILE_NAME

    def _genre_cache_path(self) -> Path:
        return self._data_root / GENRE_CACHE_FILE_NAME


def build_cache_entry(artist_name: str, genres: Sequence[str], source: str) -> GenreCacheEntry:
    """Build a cache entry stamped with the current time in milliseconds."""
    return GenreCacheEntry(
        artist_name=artist_name,
        genres=tuple(genres),
        source=source,
        cached_at=int(time.time() * 1000),
    )


def _cache_entry_from_payload(artist_name: str, payload: dict[str, Any]) -> GenreCacheEntry:
    return GenreCacheEntry(
        artist_name=artist_name,
        genres=tuple(str(item) for item in payload.get("genres") or ()),
        source=str(payload.get("source", "unknown")),
        cached_at=int(payload.get("cached_at", 0)),
    )
