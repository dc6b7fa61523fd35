"""Ingest progress reporting.

This module emits progress checkpoints to a synchronous caller
callback. Within one run the reported percentage never decreases.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

from core.types import IngestProgress

ProgressCallback = Callable[[IngestProgress], None]


@dataclass
class ProgressReporter:
    """Track and emit monotonic progress checkpoints."""

    callback: ProgressCallback | None = None
    history: list[IngestProgress] = field(default_factory=list)
    _percentage: float = 0.0

    @property
    def percentage(self) -> float:
        """Return the last reported percentage."""
        return self._percentage

    def report(self, percentage: float, status: str, current_unit: str = "") -> None:
        """Emit one checkpoint, clamping the percentage to be non-decreasing."""
        self._percentage = max(self._percentage, min(100.0, max(0.0, percentage)))
        self._emit(IngestProgress(round(self._percentage, 2), status, current_unit))

    def unit_fraction(
        self,
        unit_index: int,
        unit_count: int,
        fraction: float,
        status: str,
        current_unit: str,
        scale: float = 100.0,
    ) -> None:
        """Emit progress for a fraction of work inside one unit.

        Args:
            unit_index: Zero-based unit position.
            unit_count: Total number of units.
            fraction: Work done inside the unit, in [0, 1].
            status: Status line.
            current_unit: Unit name.
            scale: Share of the overall bar that unit reading occupies.
        """
        per_unit = scale / max(unit_count, 1)
        self.report(per_unit * (unit_index + min(max(fraction, 0.0), 1.0)), status, current_unit)

    def reset(self) -> None:
        """Clear the indicator after a failed run."""
        self._percentage = 0.0
        self._emit(IngestProgress(0.0, "", ""))

    def _emit(self, progress: IngestProgress) -> None:
        self.history.append(progress)
        if self.callback is not None:
            self.callback(progress)
