"""Pytest configuration and shared fixtures for SEO researcher tests.

This module provides:
- Basic pytest configuration
- Common fixtures (settings, credentials, sample payloads)
- Setup/teardown for test isolation
"""

import os
import sys
from pathlib import Path
from typing import Any, Dict

import pytest

# Add project root to Python path to allow imports from seo_researcher and cli
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from seo_researcher.settings import load_settings  # noqa: E402
from tests.fixtures.sample_payloads import (  # noqa: E402
    get_sample_lighthouse_response,
    get_sample_serp_response,
)


# ==================== Pytest Configuration ====================

def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line(
        "markers",
        "unit: mark test as a unit test (fast, isolated)"
    )
    config.addinivalue_line(
        "markers",
        "integration: mark test as an integration test (slower, multiple components)"
    )


# ==================== Environment Fixtures ====================

@pytest.fixture(scope="function", autouse=True)
def isolate_environment():
    """Isolate each test by preventing environment variable pollution.

    This fixture automatically applies to all tests and ensures that
    environment variables don't leak between tests.
    """
    original_env = os.environ.copy()

    yield

    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def mock_env() -> Dict[str, str]:
    """Provide a complete environment mapping for ``load_settings``.

    Returns:
        Dict of environment variables that can be modified per test
    """
    return {
        "SCRAPINGDOG_API_KEY": "test-serp-key",
        "GOOGLE_API_KEY": "test-google-key",
        "OPENAI_API_KEY": "test-openai-key",
        "LOG_LEVEL": "ERROR",
    }


@pytest.fixture
def settings(mock_env):
    """Settings built from the mock environment and the repository config file."""
    return load_settings(env=mock_env)


# ==================== Mock Data Fixtures ====================

@pytest.fixture
def serp_payload() -> Dict[str, Any]:
    """Raw SERP API response with two bakery results."""
    return get_sample_serp_response()


@pytest.fixture
def lighthouse_payload() -> Dict[str, Any]:
    """Raw PageSpeed Insights response."""
    return get_sample_lighthouse_response()
