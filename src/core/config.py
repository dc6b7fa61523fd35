"""Runtime configuration model for Listenprint.

Every LISTENPRINT_* environment variable is read and checked here;
the rest of the package only sees the resulting frozen config.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from core.constants import (
    BYTES_PER_MB,
    DEFAULT_API_BASE_URL,
    DEFAULT_DATA_ROOT,
    DEFAULT_PAGE_COOLDOWN_SECONDS,
    DEFAULT_SIZE_LIMIT_MB,
)
from core.errors import ListenprintConfigError


@dataclass(frozen=True)
class ListenprintConfig:
    """Validated runtime configuration.

    Attributes:
        data_root: Local root directory for the listen corpus and genre cache.
        size_limit_bytes: Combined import size ceiling per run.
        api_base_url: ListenBrainz API base URL.
        page_cooldown: Seconds to wait between upstream API pages.
    """

    data_root: Path
    size_limit_bytes: int
    api_base_url: str
    page_cooldown: float

    @classmethod
    def from_env(cls) -> "ListenprintConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            ListenprintConfigError: If environment values are invalid.
        """
        data_root_value = os.getenv("LISTENPRINT_DATA_ROOT", str(DEFAULT_DATA_ROOT))
        size_limit_mb = _parse_size_limit(
            os.getenv("LISTENPRINT_SIZE_LIMIT_MB", str(DEFAULT_SIZE_LIMIT_MB))
        )
        page_cooldown = _parse_page_cooldown(
            os.getenv("LISTENPRINT_PAGE_COOLDOWN", str(DEFAULT_PAGE_COOLDOWN_SECONDS))
        )
        api_base_url = os.getenv("LISTENPRINT_API_BASE_URL", DEFAULT_API_BASE_URL)
        return cls(
            data_root=Path(data_root_value).expanduser().resolve(),
            size_limit_bytes=size_limit_mb * BYTES_PER_MB,
            api_base_url=api_base_url.rstrip("/"),
            page_cooldown=page_cooldown,
        )


def _parse_size_limit(raw_value: str) -> int:
    """Parse the size limit environment value.

    Args:
        raw_value: Raw string from environment.

    Returns:
        Positive size limit in megabytes.

    Raises:
        ListenprintConfigError: If value is not a positive integer.
    """
    try:
        size_limit = int(raw_value)
    except ValueError as error:
        raise ListenprintConfigError(
            "Invalid LISTENPRINT_SIZE_LIMIT_MB value: "
            f"expected integer, got '{raw_value}'. "
            "Set LISTENPRINT_SIZE_LIMIT_MB to a numeric value."
        ) from error
    if size_limit <= 0:
        raise ListenprintConfigError(
            f"Invalid LISTENPRINT_SIZE_LIMIT_MB value: expected a positive integer, "
            f"got {size_limit}."
        )
    return size_limit


def _parse_page_cooldown(raw_value: str) -> float:
    """Parse the inter-page cooldown environment value."""
    try:
        cooldown = float(raw_value)
    except ValueError as error:
        raise ListenprintConfigError(
            "Invalid LISTENPRINT_PAGE_COOLDOWN value: "
            f"expected seconds as a number, got '{raw_value}'."
        ) from error
    if cooldown < 0:
        raise ListenprintConfigError(
            f"Invalid LISTENPRINT_PAGE_COOLDOWN value: expected >= 0, got {cooldown}."
        )
    return cooldown
