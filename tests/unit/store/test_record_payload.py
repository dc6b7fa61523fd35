"""Unit tests for listen JSONL serialization."""

from __future__ import annotations

from dataclasses import replace

import pytest

from core.types import CanonicalListen
from store.record_payload import listen_from_payload, read_listens_jsonl, write_listens_jsonl


def _listen() -> CanonicalListen:
    return CanonicalListen(
        listen_id="spotify-0-1609495200",
        listened_at=1609495200,
        track_name="Midnight City",
        artist_name="M83",
        album_name="Hurry Up, We're Dreaming",
        source="spotify",
        ms_played=215000,
        raw_extra={"reason_end": "trackdone"},
        genres=("synthpop",),
    )


def test_write_then_read_preserves_listen_fields(tmp_path) -> None:
    """Stored listens should load back unchanged."""
    records_path = tmp_path / "listens.jsonl"

    write_listens_jsonl(records_path, [_listen()])
    loaded = read_listens_jsonl(records_path)

    assert loaded == [_listen()]
    assert not records_path.with_suffix(".jsonl.tmp").exists()


def test_read_listens_jsonl_reports_bad_line_number(tmp_path) -> None:
    """Corrupt rows should name the offending line."""
    records_path = tmp_path / "listens.jsonl"
    write_listens_jsonl(records_path, [_listen()])
    with records_path.open("a", encoding="utf-8") as handle:
        handle.write("{broken\n")

    with pytest.raises(ValueError, match="line 2"):
        read_listens_jsonl(records_path)


def test_listen_from_payload_rejects_unknown_source() -> None:
    """Only supported source formats may be loaded."""
    with pytest.raises(ValueError, match="unsupported listen source"):
        listen_from_payload({"listened_at": 1609459200, "source": "lastfm"})


def test_listen_from_payload_requires_listened_at() -> None:
    """A listen without a timestamp is not loadable."""
    with pytest.raises(ValueError, match="missing a valid field"):
        listen_from_payload({"source": "spotify"})


def test_fallback_timestamp_flag_survives_storage(tmp_path) -> None:
    """The fallback marker and raw value are kept so later validations still see them."""
    records_path = tmp_path / "listens.jsonl"
    flagged = replace(_listen(), timestamp_fallback=True, raw_timestamp="not-a-date")

    write_listens_jsonl(records_path, [flagged])

    assert read_listens_jsonl(records_path) == [flagged]


def test_listen_from_payload_defaults_missing_fallback_fields() -> None:
    """Rows written before the fallback marker existed load as real timestamps."""
    listen = listen_from_payload({"listened_at": 1609495200, "source": "spotify"})

    assert listen.timestamp_fallback is False
    assert listen.raw_timestamp is None
