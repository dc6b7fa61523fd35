"""Core constants used across Listenprint modules.

This module centralizes thresholds, defaults, and file names.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

from pathlib import Path

DEFAULT_DATA_ROOT = Path(".listenprint")
LISTENS_FILE_NAME = "listens.jsonl"
GENRE_CACHE_FILE_NAME = "genre_cache.json"

MIN_VALID_TIMESTAMP = 946684800
MAX_VALID_TIMESTAMP = 2147483647
EPOCH_MILLISECONDS_THRESHOLD = 1e12
EPOCH_SECONDS_RANGE = (1e9, 2e9)
SPREADSHEET_SERIAL_RANGE = (40000, 60000)
SPREADSHEET_UNIX_EPOCH_SERIAL = 25569
SECONDS_PER_DAY = 86400
SECONDS_PER_YEAR = 365.25 * SECONDS_PER_DAY

MIN_VALID_TIMESTAMP_RATIO = 0.9
MIN_HISTORY_SPAN_YEARS = 0.08

DEFAULT_SIZE_LIMIT_MB = 250
BYTES_PER_MB = 1024 * 1024
MIN_SPOTIFY_MS_PLAYED = 30000

UNKNOWN_TRACK = "Unknown Track"
UNKNOWN_ARTIST = "Unknown Artist"
UNKNOWN_ALBUM = "Unknown Album"
UNKNOWN_GENRE = "Unknown"

SUPPORTED_IMPORT_MODES = ("auto", "listenbrainz", "spotify")
JSONL_EXTENSIONS = (".jsonl", ".ndjson")

DEFAULT_API_BASE_URL = "https://api.listenbrainz.org/1"
DEFAULT_API_PAGE_SIZE = 1000
DEFAULT_API_TIMEOUT_SECONDS = 30.0
DEFAULT_PAGE_COOLDOWN_SECONDS = 0.25

NEUTRAL_SCORE = 50
DISCOVERY_SCALE = 1000
EXPLORATION_SCALE = 200
VARIETY_ENTROPY_WEIGHT = 0.4
VARIETY_ARTIST_WEIGHT = 0.3
VARIETY_TRACK_WEIGHT = 0.3
VARIETY_ARTIST_MULTIPLIER = 5
VARIETY_TRACK_MULTIPLIER = 3
