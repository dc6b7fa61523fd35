"""ListenBrainz API scroll-back.

This module fetches a user's listening history page by page, walking
backwards in time. Each page's cursor is the oldest ``listened_at`` of
the previous page minus one; an empty or short page ends the history.
Pages are fetched strictly one after another with a fixed cooldown.
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Protocol, Sequence

import httpx

from core.constants import (
    DEFAULT_API_BASE_URL,
    DEFAULT_API_PAGE_SIZE,
    DEFAULT_API_TIMEOUT_SECONDS,
    DEFAULT_PAGE_COOLDOWN_SECONDS,
)
from core.errors import AbortedError, UpstreamFetchError
from core.logging_config import get_logger
from core.types import RawImportUnit

_LOGGER = get_logger(__name__)

Throttle = Callable[[Callable[[], httpx.Response]], httpx.Response]


class CancelSignal(Protocol):
    """Caller-owned cancellation flag, e.g. ``threading.Event``."""

    def is_set(self) -> bool:
        """Return whether cancellation was requested."""
        ...


@dataclass(frozen=True)
class FetchResult:
    """One page fetch outcome.

    Attributes:
        success: Whether the page was fetched and well formed.
        listens: Raw listen objects, newest first.
        count: Listen count reported by the API.
        error: Failure reason when unsuccessful.
    """

    success: bool
    listens: list[dict[str, Any]] = field(default_factory=list)
    count: int = 0
    error: str | None = None


@dataclass(frozen=True)
class FetchProgress:
    """Scroll-back progress after one page."""

    page: int
    fetched: int
    page_size: int


class ListenBrainzClient:
    """HTTP client for the ListenBrainz listens endpoint."""

    def __init__(
        self,
        base_url: str = DEFAULT_API_BASE_URL,
        http_client: httpx.Client | None = None,
        throttle: Throttle | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: API root, e.g. ``https://api.listenbrainz.org/1``.
            http_client: Optional preconfigured httpx client.
            throttle: Optional rate-limit wrapper around each request.
        """
        self._base_url = base_url.rstrip("/")
        self._client = http_client or httpx.Client(
            timeout=DEFAULT_API_TIMEOUT_SECONDS,
            headers={"Accept": "application/json"},
        )
        self._owns_client = http_client is None
        self._throttle = throttle

    def __enter__(self) -> "ListenBrainzClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying HTTP client when this instance created it."""
        if self._owns_client:
            self._client.close()

    def fetch_user_listens(
        self,
        user: str,
        token: str | None,
        count: int = DEFAULT_API_PAGE_SIZE,
        max_ts: int | None = None,
        min_ts: int | None = None,
    ) -> FetchResult:
        """Fetch one page of a user's listens.

        Args:
            user: ListenBrainz user name.
            token: Optional user token.
            count: Page size.
            max_ts: Exclusive upper bound on ``listened_at``.
            min_ts: Exclusive lower bound on ``listened_at``.

        Returns:
            Page result; failures are reported, not raised.
        """
        params: dict[str, int] = {"count": count}
        if max_ts is not None:
            params["max_ts"] = max_ts
        if min_ts is not None:
            params["min_ts"] = min_ts
        headers = {"Authorization": f"Token {token}"} if token else {}
        url = f"{self._base_url}/user/{user}/listens"

        def send() -> httpx.Response:
            return self._client.get(url, params=params, headers=headers)

        try:
            response = self._throttle(send) if self._throttle else send()
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as error:
            return FetchResult(
                success=False,
                error=f"API returned {error.response.status_code}: {error.response.text}",
            )
        except (httpx.HTTPError, json.JSONDecodeError) as error:
            return FetchResult(success=False, error=f"API request failed: {error}")
        return _page_from_body(body)


def fetch_all_user_listens(
    client: ListenBrainzClient,
    user: str,
    token: str | None = None,
    page_size: int = DEFAULT_API_PAGE_SIZE,
    max_listens: int | None = None,
    cancel: CancelSignal | None = None,
    on_progress: Callable[[FetchProgress], None] | None = None,
    sleep: Callable[[float], None] = time.sleep,
    cooldown: float = DEFAULT_PAGE_COOLDOWN_SECONDS,
) -> list[dict[str, Any]]:
    """Scroll back through a user's entire listening history.

    Args:
        client: API client.
        user: ListenBrainz user name.
        token: Optional user token.
        page_size: Listens requested per page.
        max_listens: Optional cap on collected listens.
        cancel: Cancellation flag checked before every page.
        on_progress: Optional observer called after every page.
        sleep: Cooldown function between pages.
        cooldown: Seconds between pages.

    Returns:
        Raw listen objects, newest first.

    Raises:
        AbortedError: If ``cancel`` is set before a page fetch.
        UpstreamFetchError: If a page fails.
    """
    collected: list[dict[str, Any]] = []
    max_ts: int | None = None
    page = 0
    while True:
        if cancel is not None and cancel.is_set():
            _LOGGER.info("listenbrainz_fetch_aborted", user=user, fetched=len(collected))
            raise AbortedError(f"Import aborted by user after {len(collected)} listens.")
        page += 1
        result = client.fetch_user_listens(user, token, page_size, max_ts=max_ts)
        if not result.success:
            raise UpstreamFetchError(
                f"Failed to fetch page {page} of listens for '{user}': {result.error}."
            )
        collected.extend(result.listens)
        _LOGGER.info(
            "listenbrainz_page_fetched",
            user=user,
            page=page,
            page_count=len(result.listens),
            fetched=len(collected),
        )
        if on_progress is not None:
            on_progress(FetchProgress(page=page, fetched=len(collected), page_size=page_size))
        max_ts = _next_cursor(result.listens)
        if not _has_more(result.listens, page_size, max_ts, collected, max_listens):
            break
        sleep(cooldown)
    if max_listens is not None:
        collected = collected[:max_listens]
    _LOGGER.info("listenbrainz_fetch_completed", user=user, pages=page, fetched=len(collected))
    return collected


def listens_to_import_unit(listens: Sequence[Mapping[str, Any]], user: str) -> RawImportUnit:
    """Wrap fetched API listens as one ListenBrainz import unit."""
    payload = json.dumps(list(listens)).encode("utf-8")
    return RawImportUnit.from_bytes(
        f"listenbrainz-api-{user}.json", payload, declared_format="listenbrainz"
    )


def _page_from_body(body: Any) -> FetchResult:
    payload = body.get("payload") if isinstance(body, Mapping) else None
    if not isinstance(payload, Mapping):
        return FetchResult(
            success=False,
            error="API response missing payload. Check username and permissions",
        )
    listens = payload.get("listens")
    if listens is None:
        return FetchResult(
            success=False,
            error="API response missing listens array. User may have no listening history",
        )
    if not isinstance(listens, list):
        return FetchResult(success=False, error="API response listens is not an array")
    count = payload.get("count")
    return FetchResult(
        success=True,
        listens=[item for item in listens if isinstance(item, dict)],
        count=int(count) if isinstance(count, int) else len(listens),
    )


def _next_cursor(listens: Sequence[Mapping[str, Any]]) -> int | None:
    """Return the oldest listened_at minus one, or None without a timestamp."""
    if not listens:
        return None
    oldest = listens[-1].get("listened_at")
    if isinstance(oldest, bool) or not isinstance(oldest, int) or oldest <= 0:
        return None
    return oldest - 1


def _has_more(
    page_listens: Sequence[Mapping[str, Any]],
    page_size: int,
    cursor: int | None,
    collected: Sequence[Mapping[str, Any]],
    max_listens: int | None,
) -> bool:
    if not page_listens or len(page_listens) < page_size:
        return False
    if cursor is None:
        _LOGGER.warning("listenbrainz_cursor_missing", fetched=len(collected))
        return False
    return max_listens is None or len(collected) < max_listens
