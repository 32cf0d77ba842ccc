"""Shared fixtures for the event tailer test suite."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
import structlog


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    """Undo any setup_logging() call so capture_logs() sees every record."""
    yield
    structlog.reset_defaults()
