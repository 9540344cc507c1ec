"""
================================================================================
Healing Session
================================================================================

Owns the process-wide self-healing state for one test run:

    start    load the locator cache, drop stale entries, log statistics
    during   hand out per-page resolvers / SmartLocators sharing one cache
             and one inference client
    close    save the cache, log cache statistics and inference telemetry,
             attach the summary to the report

Usage:
    with HealingSession.from_config() as session:
        smart = session.smart_locator(page)
        smart.click("#submit")

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from datetime import timedelta
from typing import Any, Dict, Optional

from loguru import logger
from playwright.sync_api import Page

from autoheal_tools.report_tools import attach_healing_summary

from .config_loader import ConfigLoader, SmartLocatorSettings
from .errors import ConfigurationError
from .inference_client import InferenceClient, InferenceTelemetry, TelemetrySummary
from .locator_cache import CacheStatistics, LocatorCache
from .locator_resolver import LocatorResolver
from .page_inspector import PageInspector, PlaywrightPageInspector
from .smart_locator import SmartLocator, ValidationGate


def _statistics_dict(stats: CacheStatistics) -> Dict[str, Any]:
    return {
        "total_entries": stats.total_entries,
        "oldest_entry": stats.oldest_entry.isoformat() if stats.oldest_entry else None,
        "newest_entry": stats.newest_entry.isoformat() if stats.newest_entry else None,
    }


class HealingSession:
    """
    Explicitly constructed owner of the locator cache and inference client.

    Attributes:
        settings: Smart locator options
        cache: Shared LocatorCache
        client: Shared InferenceClient (None when healing is disabled or the
            backend is not configured)
    """

    def __init__(
        self,
        settings: SmartLocatorSettings,
        cache: Optional[LocatorCache] = None,
        client: Optional[InferenceClient] = None,
    ) -> None:
        self.settings = settings
        self.cache = cache or LocatorCache(settings.cache_path)
        self.client = client
        self._started = False

    @classmethod
    def from_config(cls, config: Optional[ConfigLoader] = None) -> "HealingSession":
        """
        Build a session from configuration.

        The inference client is only created when healing is enabled; missing
        backend credentials are logged and healing degrades to "original
        locator only".
        """
        if config is None:
            config = ConfigLoader()
        settings = SmartLocatorSettings.from_config(config)

        client = None
        if settings.use_smart_locator:
            try:
                client = InferenceClient.from_config(config)
            except ConfigurationError as e:
                logger.warning(f"Smart locator enabled but inference is not configured: {e}")
        return cls(settings, client=client)

    def __enter__(self) -> "HealingSession":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def start(self) -> None:
        """Load and clean the cache. Runs once, before any resolution."""
        if self._started:
            return
        self.cache.load_from_file()
        self.cache.cleanup_older_than(timedelta(days=self.settings.cache_max_age_days))
        self._started = True
        logger.info(
            f"Test run started with {self.cache.statistics().total_entries} cached locators"
        )

    def close(self) -> None:
        """Persist the cache and report. Runs once, after all resolutions."""
        if not self._started:
            return
        self.cache.save_to_file()
        self._started = False

        stats = self.cache.statistics()
        telemetry = self.telemetry_summary()
        logger.info(f"Test run completed. Cache saved with {stats.total_entries} entries")
        logger.info(
            f"Inference telemetry:\n"
            f"\tTotal Duration: {telemetry.total_duration_ms:.0f}ms\n"
            f"\tTotal Requests: {telemetry.total_requests}\n"
            f"\tTotal Tokens: {telemetry.total_tokens}\n"
            f"\tAverage Tokens: {telemetry.average_tokens_per_request:.1f}\n"
            f"\tAverage Duration: {telemetry.average_duration_per_request:.0f}ms"
        )
        attach_healing_summary(_statistics_dict(stats), telemetry.to_dict())

    def telemetry_summary(self) -> TelemetrySummary:
        telemetry = self.client.telemetry if self.client else InferenceTelemetry()
        return telemetry.summary()

    # =========================================================================
    # Per-page factories
    # =========================================================================

    def resolver(self, inspector: PageInspector) -> LocatorResolver:
        """Resolver bound to one page, sharing this session's cache and client."""
        return LocatorResolver(
            inspector=inspector,
            cache=self.cache,
            client=self.client,
            settings=self.settings,
            gate=ValidationGate(inspector, self.settings),
        )

    def smart_locator(self, page: Page) -> SmartLocator:
        inspector = PlaywrightPageInspector(page)
        return SmartLocator(
            page,
            resolver=self.resolver(inspector),
            wait_timeout_ms=self.settings.wait_timeout_ms,
            inspector=inspector,
        )


__all__ = [
    "HealingSession",
]
