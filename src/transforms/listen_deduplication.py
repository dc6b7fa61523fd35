"""Listen deduplication and corpus merge.

This module reconciles a newly imported batch against the persisted
corpus. Two listens are the same event when artist name, track name,
and ``listened_at`` match exactly. The persisted copy always wins, so
a merge only ever appends listens the corpus has not seen.
"""

from __future__ import annotations

from typing import Iterable, Sequence

from core.types import CanonicalListen, MergeReport, MergeResult


def merge_listens(
    existing: Sequence[CanonicalListen],
    incoming: Iterable[CanonicalListen],
) -> MergeResult:
    """Merge a new batch into an existing corpus.

    Args:
        existing: Persisted corpus.
        incoming: Newly imported listens.

    Returns:
        Merged corpus sorted by ``listened_at`` plus merge statistics.
    """
    existing_keys = {listen.dedup_key for listen in existing}
    incoming_listens = list(incoming)
    additions = [
        listen
        for listen in remove_duplicate_listens(incoming_listens)
        if listen.dedup_key not in existing_keys
    ]
    merged = sort_listens([*existing, *additions])
    report = MergeReport(
        duplicates_removed=len(incoming_listens) - len(additions),
        total_after_merge=len(merged),
        imported_count=len(incoming_listens),
    )
    return MergeResult(success=True, data=tuple(merged), merge_info=report)


def remove_duplicate_listens(listens: Iterable[CanonicalListen]) -> list[CanonicalListen]:
    """Drop repeated listens within one batch, keeping first occurrences.

    Args:
        listens: Listens to evaluate.

    Returns:
        Ordered listens with duplicates removed.
    """
    unique_listens: list[CanonicalListen] = []
    seen_keys: set[tuple[str, str, int]] = set()
    for listen in listens:
        if listen.dedup_key in seen_keys:
            continue
        seen_keys.add(listen.dedup_key)
        unique_listens.append(listen)
    return unique_listens


def sort_listens(listens: Iterable[CanonicalListen]) -> list[CanonicalListen]:
    """Sort listens by ``listened_at``, keeping input order for ties."""
    return sorted(listens, key=lambda listen: listen.listened_at)
