"""Pytest configuration for Listenprint test runs."""

from __future__ import annotations

import os
import sys
from pathlib import Path

_LISTENPRINT_ENV_PREFIX = "LISTENPRINT_"


def pytest_sessionstart() -> None:
    """Put src on sys.path and drop developer LISTENPRINT_* overrides."""
    project_root = Path(__file__).resolve().parent.parent
    src_path = project_root / "src"
    if str(src_path) not in sys.path:
        sys.path.insert(0, str(src_path))
    for name in [name for name in os.environ if name.startswith(_LISTENPRINT_ENV_PREFIX)]:
        del os.environ[name]
