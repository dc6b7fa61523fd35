"""Shared JSONL serialization for CanonicalListen payloads.

This module centralizes listen JSON serialization logic.
It is reused by the listen store and by CLI output.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from core.types import CanonicalListen


def listen_to_payload(listen: CanonicalListen) -> dict[str, object]:
    """Serialize a CanonicalListen into a JSON-safe payload.

    Args:
        listen: Listen instance.

    Returns:
        Dictionary payload for JSON encoding.
    """
    return {
        "listen_id": listen.listen_id,
        "listened_at": listen.listened_at,
        "track_name": listen.track_name,
        "artist_name": listen.artist_name,
        "album_name": listen.album_name,
        "source": listen.source,
        "ms_played": listen.ms_played,
        "recording_msid": listen.recording_msid,
        "raw_extra": dict(listen.raw_extra),
        "genres": list(listen.genres),
        "normalized_genre": listen.normalized_genre,
        "genre": listen.genre,
        "timestamp_fallback": listen.timestamp_fallback,
        "raw_timestamp": listen.raw_timestamp,
    }


def listen_from_payload(payload: dict[str, Any]) -> CanonicalListen:
    """Deserialize a JSON payload into a CanonicalListen.

    Args:
        payload: Serialized listen payload.

    Returns:
        Parsed listen.

    Raises:
        ValueError: If required fields are missing or mistyped.
    """
    try:
        listened_at = int(payload["listened_at"])
        source = str(payload["source"])
    except (KeyError, TypeError, ValueError) as error:
        raise ValueError(f"listen payload is missing a valid field: {error}") from error
    if source not in ("listenbrainz", "spotify"):
        raise ValueError(f"unsupported listen source '{source}'")
    raw_extra = payload.get("raw_extra")
    ms_played = payload.get("ms_played")
    return CanonicalListen(
        listen_id=str(payload.get("listen_id", "")),
        listened_at=listened_at,
        track_name=str(payload.get("track_name", "")),
        artist_name=str(payload.get("artist_name", "")),
        album_name=str(payload.get("album_name", "")),
        source=source,  # type: ignore[arg-type]
        ms_played=int(ms_played) if ms_played is not None else None,
        recording_msid=_optional_text(payload.get("recording_msid")),
        raw_extra=dict(raw_extra) if isinstance(raw_extra, dict) else {},
        genres=tuple(str(item) for item in payload.get("genres") or ()),
        normalized_genre=_optional_text(payload.get("normalized_genre")),
        genre=_optional_text(payload.get("genre")),
        timestamp_fallback=bool(payload.get("timestamp_fallback", False)),
        raw_timestamp=payload.get("raw_timestamp"),
    )


def write_listens_jsonl(records_path: Path, listens: list[CanonicalListen]) -> None:
    """Write listens to a JSONL file through a temporary sibling.

    Args:
        records_path: Output JSONL file path.
        listens: Listens to serialize.
    """
    lines = [json.dumps(listen_to_payload(listen), sort_keys=True) for listen in listens]
    body = "\n".join(lines) + "\n" if lines else ""
    temp_path = records_path.with_suffix(records_path.suffix + ".tmp")
    temp_path.write_text(body, encoding="utf-8")
    temp_path.replace(records_path)


def read_listens_jsonl(records_path: Path) -> list[CanonicalListen]:
    """Read listens from a JSONL file.

    Args:
        records_path: Input JSONL file path.

    Returns:
        Parsed listens in file order.

    Raises:
        ValueError: If JSONL rows are invalid.
    """
    listens: list[CanonicalListen] = []
    for line_number, line in enumerate(records_path.read_text(encoding="utf-8").splitlines(), 1):
        if not line.strip():
            continue
        row = _decode_row(line, line_number)
        try:
            listens.append(listen_from_payload(row))
        except ValueError as error:
            raise ValueError(f"Invalid listen at line {line_number}: {error}") from error
    return listens


def _decode_row(line: str, line_number: int) -> dict[str, Any]:
    """Decode one stored row, raising ValueError for non-object JSON."""
    try:
        row = json.loads(line)
    except json.JSONDecodeError as error:
        raise ValueError(f"Invalid JSON at line {line_number}: {error.msg}") from error
    if not isinstance(row, dict):
        raise ValueError(f"Invalid listen row at line {line_number}: expected a JSON object")
    return row


def _optional_text(value: Any) -> str | None:
    return str(value) if value is not None else None
