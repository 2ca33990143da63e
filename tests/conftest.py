"""Pytest configuration and fixtures.

This module provides common fixtures used across all tests.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from reelsmith.core.logging import setup_logging

# Setup logging for tests
setup_logging()


@pytest.fixture
def mock_session() -> AsyncMock:
    """Create a mock AsyncSession.

    ``add`` and ``delete`` are synchronous on AsyncSession; ``delete`` is
    awaited, so only ``add`` is a plain MagicMock.
    """
    session = AsyncMock()
    session.add = MagicMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.get = AsyncMock(return_value=None)
    session.delete = AsyncMock()
    return session


@pytest.fixture
def mock_db_session_factory(mock_session: AsyncMock) -> MagicMock:
    """Create a session factory whose context manager yields ``mock_session``."""
    factory = MagicMock()
    factory.return_value.__aenter__ = AsyncMock(return_value=mock_session)
    factory.return_value.__aexit__ = AsyncMock(return_value=None)
    return factory
