"""
================================================================================
Root Pytest Configuration
================================================================================

This module provides the root pytest configuration for the entire test suite.
It registers common markers and tags tests by directory.

================================================================================
"""

import pytest

from healing_suites.ui_testing.framework.config_loader import ConfigLoader


def pytest_configure(config):
    """Configure pytest with project-wide custom markers."""

    # Priority markers
    config.addinivalue_line(
        "markers", "P0: Critical priority tests - must pass for deployment"
    )
    config.addinivalue_line(
        "markers", "P1: High priority tests - important functionality"
    )
    config.addinivalue_line(
        "markers", "P2: Medium priority tests - edge cases and minor features"
    )
    config.addinivalue_line(
        "markers", "P3: Low priority tests - extensive validation"
    )

    # Test type markers
    config.addinivalue_line(
        "markers", "smoke: Quick verification tests"
    )
    config.addinivalue_line(
        "markers", "regression: Full regression test suite"
    )

    # Domain markers
    config.addinivalue_line(
        "markers", "unit: Browser-free tests"
    )
    config.addinivalue_line(
        "markers", "ui: Playwright browser tests"
    )

    # Feature markers
    config.addinivalue_line(
        "markers", "healing: Tests related to selector healing"
    )
    config.addinivalue_line(
        "markers", "snapshot: Tests related to DOM snapshots and locator diffs"
    )


def pytest_collection_modifyitems(config, items):
    """
    Modify collected test items.

    Adds the domain marker matching each test's directory.
    """
    for item in items:
        path = str(item.fspath)
        if "ui_testing" in path:
            item.add_marker(pytest.mark.ui)
        elif "unit" in path:
            item.add_marker(pytest.mark.unit)


@pytest.fixture(autouse=True)
def _fresh_config():
    """Every test starts from a freshly loaded configuration."""
    ConfigLoader.reset()
    yield
    ConfigLoader.reset()


def pytest_report_header(config):
    """Add custom header to pytest output."""
    return [
        "",
        "=" * 60,
        "Self-Healing Locator Framework",
        "=" * 60,
        "",
    ]
