"""Fixtures for the self-healing locator unit tests."""

from typing import List

import pytest
from loguru import logger

from testsuites.ui_testing.framework.config_loader import SmartLocatorSettings


@pytest.fixture
def settings(tmp_path) -> SmartLocatorSettings:
    """Healing and substitution both enabled, cache under tmp_path."""
    return SmartLocatorSettings(
        use_smart_locator=True,
        run_with_smart_locator=True,
        cache_path=tmp_path / "locator_cache.json",
    )


@pytest.fixture
def log_messages():
    """Messages emitted through loguru while the test runs."""
    messages: List[str] = []
    handler_id = logger.add(lambda m: messages.append(m.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)
