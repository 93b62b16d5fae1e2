"""Pytest configuration shared across the suite."""

import pytest

try:
    from . import _bootstrap  # noqa: F401
    from ._archives import build_archive, full_report_entries
except ImportError:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401
    from _archives import build_archive, full_report_entries  # type: ignore


@pytest.fixture
def full_archive() -> bytes:
    """Archive containing every recognised entry plus one unrecognised file."""
    return build_archive(full_report_entries())
