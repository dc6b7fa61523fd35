"""Streaming reader for newline-delimited JSON exports.

This module decodes one record at a time from a binary stream so
large exports never need to be held as one JSON document. Progress
is reported as a percentage of bytes consumed.
"""

from __future__ import annotations

import json
from pathlib import PurePath
from typing import IO, Any, Callable, Iterator

from core.constants import JSONL_EXTENSIONS
from core.logging_config import get_logger

_LOGGER = get_logger(__name__)


def is_jsonl_name(name: str) -> bool:
    """Return whether a file name denotes a line-delimited export."""
    return PurePath(name).suffix.lower() in JSONL_EXTENSIONS


class JsonlRecordReader:
    """Iterate JSON objects from a line-delimited binary stream.

    Malformed lines are counted in ``malformed_lines`` and skipped.
    """

    def __init__(
        self,
        stream: IO[bytes],
        total_bytes: int,
        on_progress: Callable[[int], None] | None = None,
        source_name: str = "",
    ) -> None:
        self._stream = stream
        self._total_bytes = max(total_bytes, 1)
        self._on_progress = on_progress
        self._source_name = source_name
        self._last_percentage = -1
        self.malformed_lines = 0
        self.bytes_read = 0

    def __iter__(self) -> Iterator[Any]:
        for line_number, raw_line in enumerate(self._stream, 1):
            self.bytes_read += len(raw_line)
            record = self._decode_line(raw_line, line_number)
            self._report_progress()
            if record is not None:
                yield record
        self._report_progress(final=True)

    def _decode_line(self, raw_line: bytes, line_number: int) -> Any | None:
        text = raw_line.decode("utf-8", errors="replace").strip()
        if not text:
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as error:
            self.malformed_lines += 1
            _LOGGER.warning(
                "jsonl_line_skipped",
                source=self._source_name,
                line_number=line_number,
                reason=error.msg,
            )
            return None

    def _report_progress(self, final: bool = False) -> None:
        if self._on_progress is None:
            return
        percentage = 100 if final else min(100, self.bytes_read * 100 // self._total_bytes)
        if percentage != self._last_percentage:
            self._last_percentage = percentage
            self._on_progress(percentage)


def read_jsonl_records(
    stream: IO[bytes],
    total_bytes: int,
    on_progress: Callable[[int], None] | None = None,
    source_name: str = "",
) -> list[Any]:
    """Collect decoded records from a line-delimited stream.

    Args:
        stream: Binary stream positioned at the first line.
        total_bytes: Stream size used for progress fractions.
        on_progress: Optional callback receiving whole percentages.
        source_name: Unit name for log context.

    Returns:
        Decoded records in file order.
    """
    reader = JsonlRecordReader(stream, total_bytes, on_progress, source_name)
    records = list(reader)
    if reader.malformed_lines:
        _LOGGER.warning(
            "jsonl_malformed_lines",
            source=source_name,
            malformed_lines=reader.malformed_lines,
            record_count=len(records),
        )
    return records
