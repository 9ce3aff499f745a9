"""Shared pytest configuration for the treefutures test suite."""

import pytest


def pytest_configure(config):
    config.addinivalue_line("markers", "slow: long-running tests skipped by run_tests.py")


async def _produce(value):
    return value


@pytest.fixture
def produce():
    """Coroutine factory returning its argument after one step."""
    return _produce
