"""
================================================================================
Page Inspector
================================================================================

Page inspection capability consumed by the self-healing subsystem.

Only the Chromium DevTools protocol exposes the full accessibility tree, so
`accessibility_snapshot` requires a Chromium-based browser.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from typing import Any, Dict, List, Protocol

from loguru import logger
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page
from playwright.sync_api import TimeoutError as PlaywrightTimeout

from .locators import ElementLocator


class PageInspector(Protocol):
    """What the resolver needs from a live browser page."""

    def accessibility_snapshot(self) -> Any:
        """Raw flat accessibility snapshot (CDP getFullAXTree response)."""
        ...

    def outer_html(self, selector: str) -> List[str]:
        """outerHTML of every element matching a CSS selector, in document order."""
        ...

    def probe(self, locator: ElementLocator, timeout_ms: int) -> bool:
        """True if the locator matches an element within the timeout."""
        ...


class PlaywrightPageInspector:
    """
    PageInspector backed by a Playwright sync-API page.

    Each test thread owns its page; instances must not be shared across
    threads.

    Usage:
        >>> inspector = PlaywrightPageInspector(page)
        >>> inspector.probe(ElementLocator.css("#submit"), timeout_ms=200)
        False
    """

    def __init__(self, page: Page):
        self.page = page

    def accessibility_snapshot(self) -> Dict[str, Any]:
        session = self.page.context.new_cdp_session(self.page)
        try:
            return session.send("Accessibility.getFullAXTree")
        finally:
            try:
                session.detach()
            except PlaywrightError as e:
                logger.debug(f"CDP session detach failed: {e}")

    def outer_html(self, selector: str) -> List[str]:
        return self.page.eval_on_selector_all(
            selector,
            "elements => elements.map(el => el.outerHTML)",
        )

    def probe(self, locator: ElementLocator, timeout_ms: int) -> bool:
        try:
            self.page.wait_for_selector(
                locator.to_selector(),
                state="attached",
                timeout=timeout_ms,
            )
            return True
        except PlaywrightTimeout:
            return False
        except PlaywrightError as e:
            # Syntactically invalid selectors land here
            logger.debug(f"Probe failed for {locator}: {e}")
            return False


__all__ = [
    "PageInspector",
    "PlaywrightPageInspector",
]
