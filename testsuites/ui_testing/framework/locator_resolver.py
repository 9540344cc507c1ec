"""
================================================================================
Locator Resolver
================================================================================

Decides whether a failing locator needs healing and produces the replacement.

State machine for `resolve(original)`:
    1. Probe            original matches within the probe timeout -> ORIGINAL_VALID
    2. Feature check    use_smart_locator disabled               -> DISABLED
    3. Cache check      cached replacement (gated)               -> CACHE_HIT
    4. Context build    no usable tree/HTML                       -> CONTEXT_UNAVAILABLE
    5. Inference        backend failure                           -> INFERENCE_FAILED
                        validated suggestion, cached              -> HEALED

Steps 3-5 run under a per-key lock so concurrent resolutions of the same
novel locator share one inference call. The validation gate belongs to the
calling layer and is injected; when it rejects a candidate it raises
LocatorValidationError and nothing is cached.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol, Tuple, Union

from loguru import logger

from .accessibility_tree import AccessibilityTreeExtractor
from .config_loader import SmartLocatorSettings
from .errors import ExtractionError, InferenceError
from .html_snippets import HtmlSnippetExtractor
from .inference_client import InferenceClient
from .locator_cache import LocatorCache
from .locators import CachedLocatorResult, ElementLocator
from .page_inspector import PageInspector
from .prompts import SYSTEM_PROMPT, render_prompt


class ResolutionOutcome(str, Enum):
    """Terminal state of one resolution."""

    ORIGINAL_VALID = "original_valid"
    DISABLED = "disabled"
    CACHE_HIT = "cache_hit"
    CONTEXT_UNAVAILABLE = "context_unavailable"
    INFERENCE_FAILED = "inference_failed"
    HEALED = "healed"


@dataclass(frozen=True)
class Resolution:
    locator: ElementLocator
    outcome: ResolutionOutcome
    original: ElementLocator

    @property
    def healed(self) -> bool:
        return self.locator != self.original


class CandidateGate(Protocol):
    """Validation gate applied before a generated locator is used or cached."""

    def verify(self, original: ElementLocator, candidate: CachedLocatorResult) -> ElementLocator:
        ...


class LocatorResolver:
    """
    Resolves a locator, healing it through inference when it no longer matches.

    One resolver per page (the inspector is bound to a page); the cache and
    the inference client are shared by every resolver in the process.

    Usage:
        >>> resolver = LocatorResolver(inspector, cache, client, settings, gate)
        >>> resolution = resolver.resolve("#submit")
        >>> resolution.outcome, resolution.locator.value
        (<ResolutionOutcome.HEALED: 'healed'>, "button[data-testid='submit']")
    """

    def __init__(
        self,
        inspector: PageInspector,
        cache: LocatorCache,
        client: Optional[InferenceClient],
        settings: SmartLocatorSettings,
        gate: CandidateGate,
        tree_extractor: Optional[AccessibilityTreeExtractor] = None,
        html_extractor: Optional[HtmlSnippetExtractor] = None,
    ) -> None:
        self.inspector = inspector
        self.cache = cache
        self.client = client
        self.settings = settings
        self.gate = gate
        self.tree_extractor = tree_extractor or AccessibilityTreeExtractor()
        self.html_extractor = html_extractor or HtmlSnippetExtractor(settings.max_html_snippets)

    def resolve(self, target: Union[str, ElementLocator]) -> Resolution:
        """
        Resolve `target` to a usable locator.

        Returns:
            Resolution carrying the locator to use and the terminal state

        Raises:
            LocatorValidationError: A cached or generated replacement was
                rejected by the validation gate
        """
        original = ElementLocator.coerce(target)

        if self.inspector.probe(original, self.settings.probe_timeout_ms):
            return Resolution(original, ResolutionOutcome.ORIGINAL_VALID, original)

        if not self.settings.use_smart_locator:
            logger.debug(f"Smart locator disabled, keeping original: {original}")
            return Resolution(original, ResolutionOutcome.DISABLED, original)

        with self.cache.key_lock(original.key):
            cached = self.cache.lookup(original.key)
            if cached is not None:
                logger.info(f"Using cached locator for: {original}")
                locator = self.gate.verify(original, cached)
                return Resolution(locator, ResolutionOutcome.CACHE_HIT, original)

            context = self._build_context()
            if context is None:
                return Resolution(original, ResolutionOutcome.CONTEXT_UNAVAILABLE, original)
            tree, html = context

            result = self._generate(original, tree, html)
            if result is None:
                return Resolution(original, ResolutionOutcome.INFERENCE_FAILED, original)

            locator = self.gate.verify(original, result)
            self.cache.insert(original.key, result)
            logger.info(f"Healed locator cached: {original.key} -> {result.generated_locator}")
            return Resolution(locator, ResolutionOutcome.HEALED, original)

    def _build_context(self) -> Optional[Tuple[str, str]]:
        try:
            tree = self.tree_extractor.extract_from_page(self.inspector)
            if not tree:
                logger.warning("Accessibility tree is empty, smart locator has no usable context")
                return None
            snippets = self.html_extractor.extract(self.inspector)
        except ExtractionError as e:
            logger.warning(f"Failed to build smart locator context: {e}")
            return None
        return tree, HtmlSnippetExtractor.to_context(snippets)

    def _generate(
        self,
        original: ElementLocator,
        tree: str,
        html: str,
    ) -> Optional[CachedLocatorResult]:
        if self.client is None:
            logger.warning("No inference client configured, cannot heal locator")
            return None

        try:
            suggestion = self.client.infer(SYSTEM_PROMPT, render_prompt(original.key, tree, html))
        except InferenceError as e:
            logger.warning(f"Failed to generate locator for {original}: {e}")
            return None

        return CachedLocatorResult(
            original_locator=original.key,
            generated_locator=suggestion.locator.strip(),
            strategy=suggestion.strategy.value,
        )


__all__ = [
    "ResolutionOutcome",
    "Resolution",
    "CandidateGate",
    "LocatorResolver",
]
