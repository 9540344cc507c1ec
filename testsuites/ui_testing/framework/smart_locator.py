"""
================================================================================
Smart Locator with AI-Assisted Self-Healing
================================================================================

Element interaction layer used by page objects and tests:
    - Waits for the requested locator like any other wrapper
    - Falls back to the LocatorResolver when the locator no longer matches
    - Validation gate: a healed locator is used only when it is non-empty,
      matches a live element, and substitution is explicitly enabled
    - Healing records for maintenance reporting

A rejected healing raises LocatorValidationError; it never falls back
silently.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, NoReturn, Optional, Union

import allure
from loguru import logger
from playwright.sync_api import Locator, Page

from autoheal_tools.report_tools import attach_locator_change

from .config_loader import SmartLocatorSettings
from .errors import (
    LOCATOR_NOT_FOUND,
    ElementNotFoundError,
    LocatorValidationError,
    format_message,
)
from .locator_resolver import LocatorResolver, ResolutionOutcome
from .locators import CachedLocatorResult, ElementLocator
from .page_inspector import PageInspector, PlaywrightPageInspector


class ValidationGate:
    """
    Decides whether a generated locator may replace the original.

    Conditions, in order:
        1. Locator and strategy are both non-empty (and the strategy is known)
        2. The generated locator matches a live element within the probe timeout
        3. `run_with_smart_locator` is enabled

    Any failure attaches the proposed change to the report and raises
    LocatorValidationError.
    """

    def __init__(self, inspector: PageInspector, settings: SmartLocatorSettings):
        self.inspector = inspector
        self.settings = settings

    def verify(self, original: ElementLocator, candidate: CachedLocatorResult) -> ElementLocator:
        if not candidate.generated_locator.strip() or not candidate.strategy.strip():
            self._reject(original, candidate, "Generated locator or strategy is empty")

        try:
            generated = candidate.to_locator()
        except ValueError as e:
            self._reject(original, candidate, str(e))

        if not self.inspector.probe(generated, self.settings.probe_timeout_ms):
            self._reject(original, candidate, "Generated locator does not match any element")

        logger.info(f"Valid smart locator generated: {generated}")

        if not self.settings.run_with_smart_locator:
            self._reject(
                original,
                candidate,
                "Substitution of generated locators is disabled (run_with_smart_locator)",
            )

        return generated

    def _reject(
        self,
        original: ElementLocator,
        candidate: CachedLocatorResult,
        reason: str,
    ) -> NoReturn:
        logger.error(
            f"❌ Smart locator rejected for '{original.value}' -> "
            f"'{candidate.generated_locator}': {reason}"
        )
        attach_locator_change(
            original.value,
            candidate.generated_locator,
            candidate.strategy,
            reason,
        )
        raise LocatorValidationError(original.value, candidate.generated_locator, reason)


@dataclass
class HealingRecord:
    """
    One locator that resolved to something other than itself.

    Attributes:
        element_name: Human-readable element name
        original: Original selector text
        healed: Selector text actually used
        outcome: How the replacement was obtained (cache hit or fresh inference)
    """
    element_name: str
    original: str
    healed: str
    outcome: ResolutionOutcome


class SmartLocator:
    """
    Self-healing element locator.

    Usage:
        >>> smart = SmartLocator(page, resolver)
        >>> smart.click("#submit")
        >>> smart.fill("//input[@name='username']", "test_user")

    Without a resolver it behaves like a plain waiting locator and raises
    ElementNotFoundError when the element never appears.
    """

    def __init__(
        self,
        page: Page,
        resolver: Optional[LocatorResolver] = None,
        wait_timeout_ms: int = 5000,
        inspector: Optional[PageInspector] = None,
    ):
        self.page = page
        self.resolver = resolver
        self.wait_timeout_ms = wait_timeout_ms
        self.inspector = inspector or (
            resolver.inspector if resolver is not None else PlaywrightPageInspector(page)
        )
        self._healing_records: List[HealingRecord] = []

    def resolve(
        self,
        target: Union[str, ElementLocator],
        timeout: Optional[int] = None,
        element_name: Optional[str] = None,
    ) -> ElementLocator:
        """
        Return a locator that currently matches an element.

        Args:
            target: Selector text or ElementLocator
            timeout: Wait in milliseconds (defaults to wait_timeout_ms)
            element_name: Optional human-readable name for logging/reporting

        Raises:
            ElementNotFoundError: Neither the original nor a healed locator matched
            LocatorValidationError: A healed locator was rejected by the gate
        """
        locator = ElementLocator.coerce(target)
        timeout = self.wait_timeout_ms if timeout is None else timeout
        display_name = element_name or locator.value

        if self.inspector.probe(locator, timeout):
            logger.debug(f"✅ Element '{display_name}' found: {locator}")
            return locator

        if self.resolver is not None:
            with allure.step(f"Smart locator: {locator.value}"):
                resolution = self.resolver.resolve(locator)
            if resolution.outcome == ResolutionOutcome.ORIGINAL_VALID:
                logger.debug(f"✅ Element '{display_name}' appeared late: {locator}")
                return resolution.locator
            if resolution.healed and self.inspector.probe(resolution.locator, timeout):
                logger.warning(
                    f"⚠️ Element '{display_name}' healed ({resolution.outcome.value}): "
                    f"{locator.value} -> {resolution.locator.value}"
                )
                self._healing_records.append(HealingRecord(
                    element_name=display_name,
                    original=locator.value,
                    healed=resolution.locator.value,
                    outcome=resolution.outcome,
                ))
                return resolution.locator

        error_msg = format_message(LOCATOR_NOT_FOUND, locator.value, timeout / 1000)
        logger.error(f"❌ {error_msg}")
        raise ElementNotFoundError(error_msg)

    def locate(
        self,
        target: Union[str, ElementLocator],
        timeout: Optional[int] = None,
        element_name: Optional[str] = None,
    ) -> Locator:
        """Resolve `target` and return a Playwright Locator for it."""
        locator = self.resolve(target, timeout=timeout, element_name=element_name)
        return self.page.locator(locator.to_selector())

    def click(
        self,
        target: Union[str, ElementLocator],
        timeout: Optional[int] = None,
        element_name: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        """
        Click element using smart location.

        Args:
            target: Selector text or ElementLocator
            timeout: Timeout for element location
            **kwargs: Additional arguments passed to click()
        """
        self.locate(target, timeout=timeout, element_name=element_name).click(**kwargs)

    def fill(
        self,
        target: Union[str, ElementLocator],
        value: str,
        timeout: Optional[int] = None,
        element_name: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        """
        Clear and fill an input using smart location. Blank values are ignored.
        """
        if not value or not value.strip():
            return
        self.locate(target, timeout=timeout, element_name=element_name).fill(value, **kwargs)

    def get_text(
        self,
        target: Union[str, ElementLocator],
        timeout: Optional[int] = None,
        element_name: Optional[str] = None,
    ) -> str:
        return self.locate(target, timeout=timeout, element_name=element_name).text_content() or ""

    def exists(
        self,
        target: Union[str, ElementLocator],
        timeout: Optional[int] = None,
    ) -> bool:
        """
        Check whether the element exists, healing if needed.

        LocatorValidationError still propagates: a rejected healing is not
        the same thing as an absent element.
        """
        try:
            self.resolve(target, timeout=timeout)
            return True
        except ElementNotFoundError:
            return False

    def wait_till_exists(
        self,
        target: Union[str, ElementLocator],
        timeout: Optional[int] = None,
        custom_message: Optional[str] = None,
    ) -> Locator:
        """Like locate(), with an optional message appended to the failure."""
        try:
            return self.locate(target, timeout=timeout)
        except ElementNotFoundError as e:
            if custom_message:
                raise ElementNotFoundError(f"{e}\n{custom_message}") from e
            raise

    @property
    def healing_records(self) -> List[HealingRecord]:
        return list(self._healing_records)

    def get_health_report(self) -> str:
        """
        Generate locator health report.

        Lists elements that only resolved through healing (maintenance
        candidates).
        """
        if not self._healing_records:
            return "✅ All elements used their original locators. No maintenance needed."

        report_lines = [
            "⚠️ Locator Health Report - Healed Locators Used:",
            "",
            "The following elements were found through the smart locator.",
            "Consider updating the original selectors:",
            "",
        ]

        for record in self._healing_records:
            report_lines.extend([
                f"  [{record.element_name}]",
                f"    Failed original: {record.original}",
                f"    Used ({record.outcome.value}): {record.healed}",
                "",
            ])

        return "\n".join(report_lines)


__all__ = [
    "ValidationGate",
    "HealingRecord",
    "SmartLocator",
]
