"""Five-axis listening fingerprint.

This module scores a listen corpus on consistency, discovery, variety,
replay rate, and exploration. Every axis is an integer in [0, 100] and
falls back to the neutral 50 on empty input or a zero denominator.

Discovery and exploration use steep scale factors (x1000 and x200) that
saturate well before every listen is a new artist or every transition
switches genre. They are kept as calibrated.
"""

from __future__ import annotations

import math
from collections import Counter
from datetime import datetime, timezone
from typing import Any, Mapping, Sequence

from core.constants import (
    DISCOVERY_SCALE,
    EXPLORATION_SCALE,
    NEUTRAL_SCORE,
    SECONDS_PER_DAY,
    VARIETY_ARTIST_MULTIPLIER,
    VARIETY_ARTIST_WEIGHT,
    VARIETY_ENTROPY_WEIGHT,
    VARIETY_TRACK_MULTIPLIER,
    VARIETY_TRACK_WEIGHT,
)
from core.logging_config import get_logger
from core.types import CanonicalListen, Fingerprint
from transforms.genre_buckets import resolve_genre_bucket
from transforms.listen_deduplication import sort_listens

_LOGGER = get_logger(__name__)


def compute_fingerprint(listens: Sequence[CanonicalListen]) -> Fingerprint:
    """Compute all five fingerprint axes for a corpus.

    Args:
        listens: Canonical listens in any order.

    Returns:
        Fingerprint with every axis in [0, 100].
    """
    if not listens:
        return neutral_fingerprint()
    chronological = sort_listens(listens)
    fingerprint = Fingerprint(
        consistency=score_consistency(listens),
        discovery=score_discovery(chronological),
        variety=score_variety(listens),
        replay_rate=score_replay_rate(listens),
        exploration=score_exploration(chronological),
    )
    _LOGGER.info("fingerprint_computed", listen_count=len(listens), **fingerprint.as_dict())
    return fingerprint


def neutral_fingerprint() -> Fingerprint:
    """Return the fingerprint reported for an empty corpus."""
    return Fingerprint(
        consistency=NEUTRAL_SCORE,
        discovery=NEUTRAL_SCORE,
        variety=NEUTRAL_SCORE,
        replay_rate=NEUTRAL_SCORE,
        exploration=NEUTRAL_SCORE,
    )


def score_consistency(listens: Sequence[CanonicalListen]) -> int:
    """Share of calendar days in the listening span with at least one listen."""
    if not listens:
        return NEUTRAL_SCORE
    timestamps = [listen.listened_at for listen in listens]
    active_days = {_utc_day(timestamp) for timestamp in timestamps}
    span_days = max(1, math.ceil((max(timestamps) - min(timestamps)) / SECONDS_PER_DAY))
    return _bounded_score(len(active_days) / span_days * 100)


def score_discovery(listens: Sequence[CanonicalListen]) -> int:
    """First-time-seen artists per listen, scaled by 1000.

    Args:
        listens: Listens in chronological order.
    """
    if not listens:
        return NEUTRAL_SCORE
    seen_artists: set[str] = set()
    for listen in listens:
        if listen.artist_name:
            seen_artists.add(listen.artist_name)
    return _bounded_score(len(seen_artists) / len(listens) * DISCOVERY_SCALE)


def score_variety(listens: Sequence[CanonicalListen]) -> int:
    """Blend genre entropy with artist and track diversity.

    When fewer than two genre buckets resolve, the entropy normalizer
    log2(k) is zero and the score is the plain mean of the artist and
    track terms.
    """
    if not listens:
        return NEUTRAL_SCORE
    total = len(listens)
    unique_artists = len({listen.artist_name for listen in listens if listen.artist_name})
    unique_tracks = len({listen.track_key for listen in listens})
    artist_term = min(unique_artists / total * 100 * VARIETY_ARTIST_MULTIPLIER, 100.0)
    track_term = min(unique_tracks / total * 100 * VARIETY_TRACK_MULTIPLIER, 100.0)
    normalized_entropy = genre_entropy(listens)
    if normalized_entropy is None:
        return _bounded_score((artist_term + track_term) / 2)
    return _bounded_score(
        VARIETY_ENTROPY_WEIGHT * normalized_entropy * 100
        + VARIETY_ARTIST_WEIGHT * artist_term
        + VARIETY_TRACK_WEIGHT * track_term
    )


def genre_entropy(listens: Sequence[CanonicalListen]) -> float | None:
    """Return Shannon entropy of genre buckets normalized to [0, 1].

    Returns:
        Normalized entropy, or None when fewer than two buckets resolve.
    """
    bucket_counts = Counter(
        bucket for bucket in (resolve_genre_bucket(listen) for listen in listens) if bucket
    )
    if len(bucket_counts) < 2:
        return None
    tagged_total = sum(bucket_counts.values())
    entropy = 0.0
    for count in bucket_counts.values():
        probability = count / tagged_total
        entropy -= probability * math.log2(probability)
    return entropy / math.log2(len(bucket_counts))


def score_replay_rate(listens: Sequence[CanonicalListen]) -> int:
    """Share of unique artist+track keys played at least twice."""
    track_counts = Counter(listen.track_key for listen in listens)
    if not track_counts:
        return NEUTRAL_SCORE
    replayed = sum(1 for count in track_counts.values() if count >= 2)
    return _bounded_score(replayed / len(track_counts) * 100)


def score_exploration(listens: Sequence[CanonicalListen]) -> int:
    """Genre switches between adjacent listens, scaled by 200.

    Args:
        listens: Listens in chronological order.
    """
    buckets = [resolve_genre_bucket(listen) for listen in listens]
    switches = 0
    comparisons = 0
    for previous, current in zip(buckets, buckets[1:]):
        if previous is None or current is None:
            continue
        comparisons += 1
        if previous != current:
            switches += 1
    if comparisons == 0:
        return NEUTRAL_SCORE
    return _bounded_score(switches / comparisons * EXPLORATION_SCALE)


def validate_fingerprint(values: Mapping[str, Any] | None) -> Fingerprint | None:
    """Coerce a loosely typed score mapping into a Fingerprint.

    Missing or non-numeric axes become the neutral score.

    Args:
        values: Mapping keyed by axis name.

    Returns:
        Bounded fingerprint, or None when ``values`` is not a mapping.
    """
    if not isinstance(values, Mapping):
        return None
    return Fingerprint(
        consistency=_coerce_axis(values.get("consistency")),
        discovery=_coerce_axis(values.get("discovery")),
        variety=_coerce_axis(values.get("variety")),
        replay_rate=_coerce_axis(values.get("replay_rate", values.get("replayRate"))),
        exploration=_coerce_axis(values.get("exploration")),
    )


def _coerce_axis(value: Any) -> int:
    if isinstance(value, bool):
        return NEUTRAL_SCORE
    try:
        number = float(value)
    except (TypeError, ValueError):
        return NEUTRAL_SCORE
    if not math.isfinite(number):
        return NEUTRAL_SCORE
    return _bounded_score(number)


def _bounded_score(value: float) -> int:
    """Round half-up and clamp to [0, 100]."""
    return max(0, min(100, math.floor(value + 0.5)))


def _utc_day(timestamp: int) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y-%m-%d")
