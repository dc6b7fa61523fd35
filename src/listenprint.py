"""Public SDK surface for Listenprint.

This module provides a stable import path for library users.
It re-exports the primary client, typed models, and the plain
functions hosts and tools call directly.
"""

from __future__ import annotations

from core.config import ListenprintConfig
from core.types import (
    CanonicalListen,
    Fingerprint,
    GenreCacheStats,
    ImportOutcome,
    IngestOptions,
    IngestProgress,
    MergeReport,
    RawImportUnit,
)
from ingest.format_detection import detect_format
from ingest.listenbrainz_api import ListenBrainzClient, fetch_all_user_listens
from ingest.pipeline import import_listening_files
from ingest.timestamps import normalize_timestamp, resolve_timestamp
from ingest.validation import validate_listens
from store.listen_sdk import ListenprintClient
from store.listen_store import JsonlListenStore
from transforms.fingerprint import compute_fingerprint, validate_fingerprint
from transforms.listen_deduplication import merge_listens

__all__ = [
    "CanonicalListen",
    "Fingerprint",
    "GenreCacheStats",
    "ImportOutcome",
    "IngestOptions",
    "IngestProgress",
    "JsonlListenStore",
    "ListenBrainzClient",
    "ListenprintClient",
    "ListenprintConfig",
    "MergeReport",
    "RawImportUnit",
    "compute_fingerprint",
    "detect_format",
    "fetch_all_user_listens",
    "import_listening_files",
    "merge_listens",
    "normalize_timestamp",
    "resolve_timestamp",
    "validate_fingerprint",
    "validate_listens",
]
