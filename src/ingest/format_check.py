"""Format validation result shared by source parsers."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class FormatCheck:
    """Outcome of a cheap structural check before parsing.

    Attributes:
        valid: Whether the value matches the format.
        message: Reason the value was rejected.
    """

    valid: bool
    message: str = ""
