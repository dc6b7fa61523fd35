"""Unit tests for the line-delimited JSON reader."""

from __future__ import annotations

import io

from ingest.jsonl_reader import JsonlRecordReader, is_jsonl_name, read_jsonl_records
from tests.fixture_paths import fixture_path


def test_read_jsonl_records_skips_malformed_and_blank_lines() -> None:
    """Bad lines are counted and skipped without failing the file."""
    payload = fixture_path("listenbrainz/listenbrainz_listens.jsonl").read_bytes()
    reader = JsonlRecordReader(io.BytesIO(payload), len(payload))

    records = list(reader)

    assert [record["listened_at"] for record in records] == [
        1609459200,
        1610668800,
        1614556800,
    ]
    assert reader.malformed_lines == 1
    assert reader.bytes_read == len(payload)


def test_read_jsonl_records_reports_increasing_progress_to_100() -> None:
    """Progress percentages should rise and end at 100."""
    payload = b"".join(b'{"n": %d}\n' % index for index in range(50))
    reported: list[int] = []

    records = read_jsonl_records(io.BytesIO(payload), len(payload), reported.append)

    assert len(records) == 50
    assert reported == sorted(set(reported))
    assert reported[-1] == 100


def test_is_jsonl_name_matches_supported_extensions() -> None:
    """Only line-delimited extensions are streamed."""
    assert is_jsonl_name("listens.JSONL")
    assert is_jsonl_name("export.ndjson")
    assert not is_jsonl_name("Streaming_History_Audio_2021.json")
