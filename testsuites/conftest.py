"""
================================================================================
Test Suites Pytest Configuration
================================================================================

This module provides the pytest configuration shared by all test suites.
It registers common markers and tags tests by directory.

================================================================================
"""

from pathlib import Path

import pytest


def pytest_configure(config):
    """Configure pytest with project-wide custom markers."""

    # Priority markers
    config.addinivalue_line(
        "markers", "P0: Critical priority tests - must pass for deployment"
    )
    config.addinivalue_line(
        "markers", "P1: High priority tests - important functionality"
    )

    # Test type markers
    config.addinivalue_line(
        "markers", "smoke: Quick verification tests"
    )
    config.addinivalue_line(
        "markers", "regression: Full regression test suite"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end tests simulating user flows"
    )

    # Domain markers
    config.addinivalue_line(
        "markers", "unit: Tests that run without a browser"
    )
    config.addinivalue_line(
        "markers", "ui: Tests that drive a real browser"
    )

    # Feature markers
    config.addinivalue_line(
        "markers", "healing: Tests that exercise locator healing"
    )


def pytest_collection_modifyitems(config, items):
    """
    Modify collected test items.

    Adds the 'unit' / 'ui' marker based on the directory a test lives in.
    """
    for item in items:
        path = Path(str(item.fspath)).as_posix()
        if "testsuites/unit/" in path:
            item.add_marker(pytest.mark.unit)

        if "ui_testing" in path:
            item.add_marker(pytest.mark.ui)


def pytest_report_header(config):
    """Add custom header to pytest output."""
    return [
        "",
        "=" * 60,
        "Self-Healing Locator Test Framework",
        "=" * 60,
        "",
    ]
