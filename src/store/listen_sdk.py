"""Python SDK for listening-history operations.

This module exposes high-level APIs for file and API imports,
corpus loading, fingerprint scoring, and genre cache inspection
backed by the listen store.
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Callable, Sequence

from core.config import ListenprintConfig
from core.types import (
    CanonicalListen,
    Fingerprint,
    GenreCacheStats,
    ImportMode,
    ImportOutcome,
    IngestOptions,
    RawImportUnit,
)
from ingest.listenbrainz_api import (
    CancelSignal,
    FetchProgress,
    ListenBrainzClient,
    fetch_all_user_listens,
    listens_to_import_unit,
)
from ingest.pipeline import import_listening_files
from ingest.progress import ProgressCallback
from store.listen_store import JsonlListenStore
from transforms.fingerprint import compute_fingerprint
from transforms.genre_cleaning import CachedGenreCleaner, GenreCleaner


class ListenprintClient:
    """Primary SDK entry point."""

    def __init__(
        self,
        config: ListenprintConfig | None = None,
        genre_cleaner: GenreCleaner | None = None,
    ) -> None:
        """Create SDK client.

        Args:
            config: Optional runtime configuration.
            genre_cleaner: Optional genre enrichment collaborator; defaults
                to the store-backed cache cleaner.
        """
        self._config = config or ListenprintConfig.from_env()
        self._store = JsonlListenStore(self._config)
        self._genre_cleaner = genre_cleaner or CachedGenreCleaner(self._store)

    @property
    def store(self) -> JsonlListenStore:
        """Return the backing listen store."""
        return self._store

    def import_files(
        self,
        paths: Sequence[str | Path],
        mode: ImportMode = "auto",
        on_progress: ProgressCallback | None = None,
    ) -> ImportOutcome:
        """Import local export files into the corpus.

        Args:
            paths: Export file paths, processed in order.
            mode: ``auto`` or a forced source format.
            on_progress: Optional synchronous progress observer.

        Returns:
            Merge and validation outcome.

        Raises:
            ListenprintError: For run-level failures.
        """
        units = [RawImportUnit.from_path(Path(path).expanduser()) for path in paths]
        return self.import_units(units, mode, on_progress)

    def import_units(
        self,
        units: Sequence[RawImportUnit],
        mode: ImportMode = "auto",
        on_progress: ProgressCallback | None = None,
    ) -> ImportOutcome:
        """Import in-memory units into the corpus."""
        options = IngestOptions(mode=mode, size_limit_bytes=self._config.size_limit_bytes)
        return import_listening_files(
            units, self._store, self._genre_cleaner, options, on_progress
        )

    def import_from_api(
        self,
        user: str,
        token: str | None = None,
        max_listens: int | None = None,
        cancel: CancelSignal | None = None,
        on_fetch_progress: Callable[[FetchProgress], None] | None = None,
        api_client: ListenBrainzClient | None = None,
    ) -> ImportOutcome:
        """Scroll back through a ListenBrainz account and import it.

        Raises:
            AbortedError: If ``cancel`` is set during the scroll-back.
            UpstreamFetchError: If a page fails.
        """
        client = api_client or ListenBrainzClient(self._config.api_base_url)
        try:
            raw_listens = fetch_all_user_listens(
                client,
                user,
                token,
                max_listens=max_listens,
                cancel=cancel,
                on_progress=on_fetch_progress,
                cooldown=self._config.page_cooldown,
            )
        finally:
            if api_client is None:
                client.close()
        return self.import_units([listens_to_import_unit(raw_listens, user)])

    def listens(self) -> list[CanonicalListen]:
        """Return the full persisted corpus."""
        return self._store.get_all()

    def fingerprint(self) -> Fingerprint:
        """Compute the listening fingerprint of the persisted corpus."""
        return compute_fingerprint(self._store.get_all())

    def genre_cache_stats(self) -> GenreCacheStats:
        """Return genre cache statistics."""
        return self._store.get_genre_cache_stats()

    def with_data_root(self, data_root: str) -> "ListenprintClient":
        """Clone the client with a different local data root.

        Args:
            data_root: New data root path.

        Returns:
            New SDK client instance.
        """
        resolved_root = Path(data_root).expanduser().resolve()
        updated_config = replace(self._config, data_root=resolved_root)
        return ListenprintClient(updated_config)
