"""Shared fixtures for unit tests."""

import pytest

from shell_unittest.registry import TestRegistry


@pytest.fixture
def registry() -> TestRegistry:
    """Create an empty registry."""
    return TestRegistry()
