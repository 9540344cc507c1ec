"""
================================================================================
UI Testing Pytest Configuration
================================================================================

This module configures pytest for UI tests, providing fixtures for browser
management, self-healing locators, and test setup/teardown.

Key Features:
- Browser and page lifecycle management (Playwright sync API)
- Healing session fixtures with an isolated locator cache
- Screenshot capture on failure

================================================================================
"""

from pathlib import Path
from typing import Generator

import allure
import pytest
from loguru import logger
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page

from testsuites.ui_testing.framework.browser_manager import BrowserManager
from testsuites.ui_testing.framework.config_loader import SmartLocatorSettings
from testsuites.ui_testing.framework.healing_session import HealingSession
from testsuites.ui_testing.framework.smart_locator import SmartLocator


# ================================================================================
# Browser Fixtures
# ================================================================================

@pytest.fixture(scope="session")
def browser_manager() -> Generator[BrowserManager, None, None]:
    """
    Session-scoped browser manager fixture.

    Provides a single Chromium instance for all tests in the session (per
    xdist worker). Tests are skipped when no browser is installed.
    """
    manager = BrowserManager(headless=True)
    try:
        manager.start()
    except PlaywrightError as e:
        pytest.skip(f"Chromium is not available: {e}")
    yield manager
    manager.close()


@pytest.fixture(scope="function")
def page(browser_manager: BrowserManager) -> Generator[Page, None, None]:
    """
    Function-scoped page fixture.

    Creates a new, isolated browser context and page for each test.
    """
    context = browser_manager.new_context()
    page = context.new_page()
    yield page
    context.close()


# ================================================================================
# Smart Locator Fixtures
# ================================================================================

@pytest.fixture(scope="session")
def healing_session() -> Generator[HealingSession, None, None]:
    """
    Session-scoped healing session built from configuration.

    Loads the locator cache before the first test and saves it, with the
    inference telemetry summary, after the last one.
    """
    with HealingSession.from_config() as session:
        yield session


@pytest.fixture
def smart_locator(page: Page, healing_session: HealingSession) -> SmartLocator:
    """SmartLocator for the current page, healing as configured for the run."""
    return healing_session.smart_locator(page)


@pytest.fixture
def healing_settings(tmp_path: Path) -> SmartLocatorSettings:
    """Healing and substitution enabled, cache isolated per test."""
    return SmartLocatorSettings(
        use_smart_locator=True,
        run_with_smart_locator=True,
        cache_path=tmp_path / "locator_cache.json",
        wait_timeout_ms=1000,
    )


# ================================================================================
# Test Lifecycle Hooks
# ================================================================================

@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item, call):
    """
    Hook to capture screenshots on test failure.

    Automatically takes a screenshot when a UI test fails and attaches
    it to the Allure report.
    """
    outcome = yield
    report = outcome.get_result()

    if report.when == "call" and report.failed:
        page = getattr(item, "funcargs", {}).get("page")
        if page is not None:
            try:
                allure.attach(
                    page.screenshot(full_page=True),
                    name="failure_screenshot",
                    attachment_type=allure.attachment_type.PNG,
                )
            except PlaywrightError as e:
                # Log but don't fail if screenshot capture fails
                logger.warning(f"Failed to capture screenshot on failure: {e}")
