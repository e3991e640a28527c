"""Shared pytest fixtures.

The application root (``app/``) is put on ``sys.path`` by the pytest
configuration in pyproject.toml, so modules import as
``infrastructure.*`` and ``modules.*``.
"""

import pytest
import structlog


@pytest.fixture(autouse=True)
def clear_logging_context():
    """Reset structlog contextvars so bound delivery context never leaks."""
    structlog.contextvars.clear_contextvars()
    yield
    structlog.contextvars.clear_contextvars()
