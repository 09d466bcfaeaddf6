"""Shared fixture path helpers for tests."""

from __future__ import annotations

from pathlib import Path

SAMPLE_BATCH_NAME = "B400022028241-RT1"


def fixture_path(relative_path: str) -> Path:
    """Resolve a fixture path relative to tests/fixtures.

    Args:
        relative_path: Path under fixtures root.

    Returns:
        Absolute fixture path.
    """
    tests_root = Path(__file__).resolve().parent
    return tests_root / "fixtures" / relative_path


def sample_batch_path() -> Path:
    """Return the root directory of the sample newspaper batch."""
    return fixture_path(f"batch/{SAMPLE_BATCH_NAME}")
