"""Ingest orchestration for listening-history imports.

This module drives detect, parse, accumulate, sort, genre cleaning,
corpus validation, and merge for a list of import units. The merged
corpus is validated before it is persisted, so a rejected run leaves
the store untouched. A unit that fails to open, detect, or parse is
logged and skipped; only an empty aggregate or a corpus-wide sanity
failure ends the run.
"""

from __future__ import annotations

import json
from typing import Any, Sequence

from core.errors import (
    ListenprintError,
    ListenprintIngestError,
    NoValidListensError,
    ParseError,
    SizeLimitExceededError,
)
from core.logging_config import get_logger
from core.types import (
    CanonicalListen,
    ImportOutcome,
    IngestOptions,
    ParseResult,
    RawImportUnit,
    SourceFormat,
)
from ingest.format_detection import detect_format
from ingest.jsonl_reader import is_jsonl_name, read_jsonl_records
from ingest.parser_registry import parse_by_validation, parse_with_format
from ingest.progress import ProgressCallback, ProgressReporter
from ingest.validation import validate_listens
from store.listen_store import ListenStore
from transforms.genre_cleaning import GenreCleaner
from transforms.listen_deduplication import merge_listens, sort_listens

_LOGGER = get_logger(__name__)

UNIT_READING_SHARE = 60.0
SORTING_PERCENTAGE = 65.0
GENRE_CLEANING_PERCENTAGE = 70.0
MERGING_PERCENTAGE = 80.0
VALIDATING_PERCENTAGE = 90.0


class IngestPipelineRunner:
    """Stateful runner for one ingest run."""

    def __init__(
        self,
        store: ListenStore,
        genre_cleaner: GenreCleaner,
        options: IngestOptions | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        self._store = store
        self._genre_cleaner = genre_cleaner
        self._options = options or IngestOptions()
        self._progress = ProgressReporter(on_progress)
        self._skipped_units: list[str] = []

    @property
    def progress(self) -> ProgressReporter:
        """Return the progress reporter for this run."""
        return self._progress

    def run(self, units: Sequence[RawImportUnit]) -> ImportOutcome:
        """Execute the ingest run and return the merged outcome.

        Raises:
            SizeLimitExceededError: If the units exceed the size ceiling.
            NoValidListensError: If no unit produced a listen.
            ListenprintValidationError: If the merged corpus fails validation.
        """
        try:
            return self._run(units)
        except ListenprintError as error:
            self._progress.reset()
            _LOGGER.error("ingest_failed", unit_count=len(units), error=str(error))
            raise

    def _run(self, units: Sequence[RawImportUnit]) -> ImportOutcome:
        _enforce_size_limit(units, self._options.size_limit_bytes)
        self._progress.report(0, "Reading files...")
        accumulated = self._read_units(units)
        if not accumulated:
            raise NoValidListensError(
                "No valid listens found in uploaded files. "
                "Check the skipped-file warnings and upload supported exports."
            )
        self._progress.report(SORTING_PERCENTAGE, "Sorting listens...")
        sorted_listens = sort_listens(accumulated)
        self._progress.report(GENRE_CLEANING_PERCENTAGE, "Cleaning genre data...")
        cleaned_listens, genre_report = self._genre_cleaner.clean_genre_data(sorted_listens)
        self._progress.report(MERGING_PERCENTAGE, "Merging with existing data...")
        preview = merge_listens(self._store.get_all(), cleaned_listens)
        self._progress.report(VALIDATING_PERCENTAGE, "Validating listening history...")
        validation = validate_listens(preview.data)
        merge_result = self._store.merge_listening_data(cleaned_listens)
        self._progress.report(100, "Complete!")
        outcome = ImportOutcome(
            count=len(merge_result.data),
            imported_count=len(accumulated),
            merge_info=merge_result.merge_info,
            genre_report=genre_report,
            validation=validation,
            skipped_units=tuple(self._skipped_units),
        )
        _log_ingest_completion(units, outcome)
        return outcome

    def _read_units(self, units: Sequence[RawImportUnit]) -> list[CanonicalListen]:
        accumulated: list[CanonicalListen] = []
        for index, unit in enumerate(units):
            self._progress.unit_fraction(
                index,
                len(units),
                0.0,
                f"Processing file {index + 1} of {len(units)}...",
                unit.name,
                scale=UNIT_READING_SHARE,
            )
            try:
                result = self._parse_unit(index, len(units), unit)
            except (ListenprintIngestError, ValueError, OverflowError, OSError) as error:
                self._skip_unit(unit, error)
                continue
            accumulated.extend(result.listens)
            _LOGGER.info(
                "unit_parsed",
                unit=unit.name,
                format=result.format,
                listen_count=len(result.listens),
                filtered_count=result.filtered_count,
            )
        return accumulated

    def _parse_unit(self, index: int, unit_count: int, unit: RawImportUnit) -> ParseResult:
        if is_jsonl_name(unit.name):
            with unit.open_stream() as stream:
                records = read_jsonl_records(
                    stream,
                    unit.size_bytes,
                    on_progress=lambda percentage: self._progress.unit_fraction(
                        index,
                        unit_count,
                        percentage / 100,
                        f"Parsing {unit.name}... {percentage}%",
                        unit.name,
                        scale=UNIT_READING_SHARE,
                    ),
                    source_name=unit.name,
                )
            return parse_by_validation(records, unit.declared_format or self._options.mode)
        with unit.open_stream() as stream:
            value = json.load(stream)
        self._progress.unit_fraction(
            index, unit_count, 0.5, f"Parsing {unit.name}...", unit.name, scale=UNIT_READING_SHARE
        )
        return _parse_document(value, unit, self._resolve_format(value, unit))

    def _resolve_format(self, value: Any, unit: RawImportUnit) -> SourceFormat:
        if unit.declared_format:
            return unit.declared_format
        if self._options.mode != "auto":
            return self._options.mode
        return detect_format(value, unit.name)

    def _skip_unit(self, unit: RawImportUnit, error: Exception) -> None:
        self._skipped_units.append(unit.name)
        _LOGGER.warning(
            "unit_skipped",
            unit=unit.name,
            size_bytes=unit.size_bytes,
            error_type=type(error).__name__,
            error=str(error),
        )


def import_listening_files(
    units: Sequence[RawImportUnit],
    store: ListenStore,
    genre_cleaner: GenreCleaner,
    options: IngestOptions | None = None,
    on_progress: ProgressCallback | None = None,
) -> ImportOutcome:
    """Import listening-history units into the store.

    Args:
        units: Ordered files or pages to import.
        store: Listen store receiving the merged corpus.
        genre_cleaner: Genre enrichment collaborator.
        options: Run options.
        on_progress: Optional synchronous progress observer.

    Returns:
        Merge and validation outcome.

    Raises:
        ListenprintError: For run-level failures.
    """
    runner = IngestPipelineRunner(store, genre_cleaner, options, on_progress)
    return runner.run(units)


def _parse_document(value: Any, unit: RawImportUnit, source_format: SourceFormat) -> ParseResult:
    try:
        return parse_with_format(value, source_format)
    except ParseError as error:
        raise ParseError(f"Failed to parse {unit.name}: {error}") from error


def _enforce_size_limit(units: Sequence[RawImportUnit], limit_bytes: int) -> None:
    total_bytes = sum(unit.size_bytes for unit in units)
    if total_bytes > limit_bytes:
        raise SizeLimitExceededError(total_bytes, limit_bytes)


def _log_ingest_completion(units: Sequence[RawImportUnit], outcome: ImportOutcome) -> None:
    """Log pipeline completion with contextual metadata."""
    _LOGGER.info(
        "ingest_completed",
        unit_count=len(units),
        skipped_units=list(outcome.skipped_units),
        imported=outcome.imported_count,
        total=outcome.count,
        duplicates_removed=outcome.merge_info.duplicates_removed,
        earliest=outcome.validation.earliest.isoformat(),
        latest=outcome.validation.latest.isoformat(),
        genre_enriched=outcome.genre_report.enriched,
    )
