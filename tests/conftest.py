"""
XorName Test Configuration
==========================

[QA] Central pytest configuration with fixtures for all test types:
- Unit tests: Pure value algebra, no threads, fast
- Integration tests: Concurrent table access (threads, asyncio)

[FIXTURES]
- prefix: Parse bit-string prefixes ("0101")
- random_name: Random XorName generator
- table / async_table: Fresh empty PrefixTable per test

Usage:
    pytest tests/unit/          # Fast unit tests
    pytest tests/integration/   # Integration tests
    pytest --cov=xorname        # With coverage
"""

import sys
import asyncio
import logging
from pathlib import Path
from typing import Callable

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line("markers", "integration: Integration tests (threads, asyncio)")
    config.addinivalue_line("markers", "slow: Slow tests (skip with -m 'not slow')")


def pytest_collection_modifyitems(config, items):
    """Auto-mark tests based on their path."""
    for item in items:
        if "/unit/" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in str(item.fspath):
            item.add_marker(pytest.mark.integration)


# ============================================================================
# Logging Configuration
# ============================================================================

@pytest.fixture(scope="session", autouse=True)
def configure_logging():
    """Configure logging for tests."""
    logging.basicConfig(
        level=logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logging.getLogger("asyncio").setLevel(logging.WARNING)


# ============================================================================
# Name / Prefix Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def prefix() -> Callable:
    """Factory: parse a bit-string into a Prefix."""
    from xorname import Prefix

    def _parse(bits: str):
        return Prefix.parse(bits)

    return _parse


@pytest.fixture(scope="function")
def random_name() -> Callable:
    """Factory: random XorName."""
    from xorname import XorName

    def _generate():
        return XorName.random()

    return _generate


# ============================================================================
# Table Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def table():
    """Fresh empty PrefixTable."""
    from xorname import PrefixTable
    return PrefixTable()


@pytest.fixture(scope="function")
def async_table():
    """Fresh empty AsyncPrefixTable."""
    from xorname import AsyncPrefixTable
    return AsyncPrefixTable()


# ============================================================================
# Async Utilities
# ============================================================================

@pytest.fixture(scope="function")
def async_timeout():
    """Helper for async test timeouts."""
    async def _timeout(coro, seconds: float = 5.0):
        return await asyncio.wait_for(coro, timeout=seconds)
    return _timeout
