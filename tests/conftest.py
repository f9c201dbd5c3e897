"""
Shared pytest fixtures and configuration for all tests.
"""
import os
from typing import Any, Optional
from unittest.mock import MagicMock, AsyncMock

import pytest

# Hypothesis configuration for property-based testing
from hypothesis import settings, Verbosity, Phase

from kvdb.memory import MemoryDatabase

# Default profile: balanced for local development
settings.register_profile(
    "default",
    max_examples=100,
    verbosity=Verbosity.normal,
    deadline=None,  # Disable deadline for async tests
    print_blob=True,  # Print failing examples for debugging
)

# CI profile: more thorough testing for continuous integration
settings.register_profile(
    "ci",
    max_examples=200,
    verbosity=Verbosity.verbose,
    deadline=None,
    print_blob=True,
    derandomize=True,  # Reproducible results in CI
)

# Debug profile: minimal examples for quick debugging
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    deadline=None,
    print_blob=True,
    phases=[Phase.explicit, Phase.reuse, Phase.generate],  # Skip shrinking for speed
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "default"))


class SpyDatabase(MemoryDatabase):
    """In-memory database that records every operation it receives."""

    def __init__(self):
        super().__init__()
        self.calls: list[tuple[str, str]] = []

    async def get(self, key: str) -> Optional[Any]:
        self.calls.append(("get", key))
        return await super().get(key)

    async def set(self, key: str, value: Any) -> None:
        self.calls.append(("set", key))
        await super().set(key, value)

    async def remove(self, key: str) -> None:
        self.calls.append(("remove", key))
        await super().remove(key)

    def count(self, operation: str) -> int:
        return sum(1 for op, _ in self.calls if op == operation)


@pytest.fixture
def spy_database() -> SpyDatabase:
    """In-memory database that records operations."""
    return SpyDatabase()


@pytest.fixture
def mock_database() -> MagicMock:
    """Create a mock key-value database for unit tests."""
    mock = MagicMock()
    mock.get = AsyncMock(return_value=None)
    mock.set = AsyncMock(return_value=None)
    mock.remove = AsyncMock(return_value=None)
    mock.health_check = AsyncMock(return_value=True)
    return mock


@pytest.fixture
def mock_redis() -> MagicMock:
    """Create a mock Redis client for unit tests."""
    mock = MagicMock()
    mock.get = AsyncMock(return_value=None)
    mock.set = AsyncMock(return_value=True)
    mock.delete = AsyncMock(return_value=1)
    mock.ping = AsyncMock(return_value=True)
    mock.aclose = AsyncMock(return_value=None)
    return mock
