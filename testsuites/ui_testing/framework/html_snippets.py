"""
HTML snippet extraction for healing context.

Collects outerHTML of interactive elements; the newline-joined result is the
HTML section of the inference prompt.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from playwright.sync_api import Error as PlaywrightError

from .errors import ExtractionError
from .page_inspector import PageInspector


INTERACTIVE_SELECTOR = (
    'a, button, input, select, textarea, [role], [tabindex]:not([tabindex="-1"])'
)


class HtmlSnippetExtractor:
    """Collects outerHTML of interactive elements in document order."""

    def __init__(self, max_snippets: Optional[int] = None):
        self.max_snippets = max_snippets

    def extract(self, inspector: PageInspector) -> List[str]:
        try:
            snippets = inspector.outer_html(INTERACTIVE_SELECTOR)
        except PlaywrightError as e:
            raise ExtractionError(f"Failed to collect HTML snippets: {e}") from e

        snippets = [str(s) for s in (snippets or []) if s is not None]
        if self.max_snippets is not None:
            snippets = snippets[: self.max_snippets]
        return snippets

    @staticmethod
    def to_context(snippets: Sequence[str]) -> str:
        return "\n".join(snippets)


__all__ = [
    "INTERACTIVE_SELECTOR",
    "HtmlSnippetExtractor",
]
