"""Genre bucket resolution.

Each listen falls into at most one genre bucket: the first value
produced by ``GENRE_EXTRACTORS``. Blank labels and the ``Unknown``
placeholder do not count as a resolved genre.
"""

from __future__ import annotations

from typing import Callable

from core.constants import UNKNOWN_GENRE
from core.types import CanonicalListen

GenreExtractor = Callable[[CanonicalListen], "str | None"]


def _explicit_genre_head(listen: CanonicalListen) -> str | None:
    return listen.genres[0] if listen.genres else None


def _normalized_genre(listen: CanonicalListen) -> str | None:
    return listen.normalized_genre


def _raw_genre(listen: CanonicalListen) -> str | None:
    return listen.genre


GENRE_EXTRACTORS: tuple[GenreExtractor, ...] = (
    _explicit_genre_head,
    _normalized_genre,
    _raw_genre,
)


def resolve_genre_bucket(listen: CanonicalListen) -> str | None:
    """Return the genre bucket for a listen, or None when unresolvable."""
    for extractor in GENRE_EXTRACTORS:
        label = extractor(listen)
        if label is None:
            continue
        label = label.strip()
        if label and label != UNKNOWN_GENRE:
            return label
    return None
