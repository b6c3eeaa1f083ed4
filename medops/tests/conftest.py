"""
Test configuration and fixtures for the MedOps test suite.
"""

import os
import random
from collections.abc import Generator
from typing import Any

import pytest

# Set required environment variables before any medops import loads configuration
os.environ.setdefault("MEDOPS_ENCRYPTION_KEY", "unit-test-shared-key")
os.environ.setdefault("LOGGING_ENVIRONMENT", "unit_test")
os.environ.setdefault("LOGGING_DISABLE_LOGGING", "true")
os.environ.setdefault("DATABASE_PATH", "medops_unit_test.db")

# Imports must come after environment variables to prevent config loading failures
from medops.config import reset_config  # noqa: E402
from medops.structured_logging.enhanced_logging_config import get_logger  # noqa: E402

logger = get_logger(__name__)

# Register fixture plugins
pytest_plugins = [
    "medops.tests.fixtures.unit",
]


@pytest.fixture(autouse=True)
def reset_config_singleton() -> Generator[None, None, None]:
    """Reset config singleton before and after each test."""
    reset_config()
    yield
    reset_config()


@pytest.fixture(autouse=True)
def deterministic_random_seed() -> Generator[None, None, None]:
    """Set deterministic random seed for reproducible tests."""
    random.seed(42)
    yield


@pytest.fixture
def test_logger() -> Any:
    """Provide a logger for tests."""
    return get_logger(__name__)


def pytest_collection_modifyitems(config: Any, items: list[Any]) -> None:
    """Auto-mark tests under unit/ with @pytest.mark.unit."""
    for item in items:
        file_path = str(item.fspath)
        if "/unit/" in file_path or "\\unit\\" in file_path:
            item.add_marker(pytest.mark.unit)
