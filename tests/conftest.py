"""Pytest configuration for repository test runs."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


def pytest_sessionstart() -> None:
    """Add project root and src directory to sys.path for test imports."""
    project_root = Path(__file__).resolve().parent.parent
    for import_path in (project_root / "src", project_root):
        if str(import_path) not in sys.path:
            sys.path.insert(0, str(import_path))


@pytest.fixture(autouse=True)
def _quiet_logging() -> None:
    """Keep structured debug events out of captured test output."""
    from core.logging_config import configure_logging

    configure_logging("warning")
