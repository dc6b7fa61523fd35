"""Format parser registry.

This module pairs each source format with its structural check and
parser so callers dispatch through data instead of branching.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping

from core.errors import ParseError
from core.types import ImportMode, ParseResult, SourceFormat
from ingest.format_check import FormatCheck
from ingest.listenbrainz_parser import parse_listenbrainz, validate_listenbrainz
from ingest.spotify_parser import parse_spotify, validate_spotify


@dataclass(frozen=True)
class ParserEntry:
    """Validator and parser for one source format."""

    validate: Callable[[Any], FormatCheck]
    parse: Callable[[Any], ParseResult]


PARSERS: Mapping[SourceFormat, ParserEntry] = {
    "listenbrainz": ParserEntry(validate=validate_listenbrainz, parse=parse_listenbrainz),
    "spotify": ParserEntry(validate=validate_spotify, parse=parse_spotify),
}

AUTO_VALIDATION_ORDER: tuple[SourceFormat, ...] = ("listenbrainz", "spotify")


def parse_with_format(value: Any, source_format: SourceFormat) -> ParseResult:
    """Validate then parse a value with one specific format.

    Args:
        value: Parsed JSON value.
        source_format: Format to apply.

    Returns:
        Parse result.

    Raises:
        ParseError: If the structural check or the parse fails.
    """
    entry = PARSERS[source_format]
    check = entry.validate(value)
    if not check.valid:
        raise ParseError(f"Invalid {source_format} format: {check.message}.")
    return entry.parse(value)


def parse_by_validation(value: Any, mode: ImportMode) -> ParseResult:
    """Parse records whose format is chosen by structural validation.

    In ``auto`` mode ListenBrainz is checked before Spotify; a forced
    mode checks only that format.

    Args:
        value: Array of decoded records.
        mode: Import mode.

    Returns:
        Parse result from the first format that validates.

    Raises:
        ParseError: If no candidate format validates.
    """
    candidates = AUTO_VALIDATION_ORDER if mode == "auto" else (mode,)
    reasons: list[str] = []
    for source_format in candidates:
        entry = PARSERS[source_format]
        check = entry.validate(value)
        if check.valid:
            return entry.parse(value)
        reasons.append(f"{source_format}: {check.message}")
    raise ParseError(f"Line-delimited file format not recognized ({'; '.join(reasons)}).")
