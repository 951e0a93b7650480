"""Root-level pytest configuration for all tests."""

from __future__ import annotations

import pytest
import structlog


@pytest.fixture(autouse=True)
def clear_log_context():
    """Drop structlog context bound by request logging between tests."""
    structlog.contextvars.clear_contextvars()
    yield
    structlog.contextvars.clear_contextvars()
