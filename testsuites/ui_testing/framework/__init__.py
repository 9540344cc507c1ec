"""
================================================================================
UI Testing Framework
================================================================================

Playwright-based UI automation framework with self-healing locators.

Components:
    - smart_locator: Element interaction with validated self-healing
    - locator_resolver: Healing decision logic (probe, cache, inference)
    - locator_cache: Concurrent, file-persisted healed-locator store
    - inference_client: Structured chat-completion client with telemetry
    - accessibility_tree / html_snippets: Page context for inference
    - healing_session: Run-scoped owner of cache and client
    - browser_manager: Browser lifecycle management

Author: Automation Team
License: MIT
================================================================================
"""

from .config_loader import ConfigLoader, SmartLocatorSettings
from .errors import (
    ElementNotFoundError,
    ExtractionError,
    InferenceBackendError,
    InferenceError,
    InferenceParseError,
    LocatorValidationError,
)
from .healing_session import HealingSession
from .locator_cache import LocatorCache
from .locator_resolver import LocatorResolver, Resolution, ResolutionOutcome
from .locators import CachedLocatorResult, ElementLocator, LocatorStrategy
from .smart_locator import SmartLocator, ValidationGate
from .browser_manager import BrowserManager

__all__ = [
    "ConfigLoader",
    "SmartLocatorSettings",
    "ElementNotFoundError",
    "ExtractionError",
    "InferenceError",
    "InferenceParseError",
    "InferenceBackendError",
    "LocatorValidationError",
    "HealingSession",
    "LocatorCache",
    "LocatorResolver",
    "Resolution",
    "ResolutionOutcome",
    "CachedLocatorResult",
    "ElementLocator",
    "LocatorStrategy",
    "SmartLocator",
    "ValidationGate",
    "BrowserManager",
]
