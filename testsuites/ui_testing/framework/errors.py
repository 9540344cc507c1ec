"""
================================================================================
Self-Healing Locator Errors
================================================================================

Exception taxonomy for the self-healing locator subsystem.

Propagation policy:
    - ExtractionError / InferenceError: absorbed by the resolver, which falls
      back to the original locator
    - LocatorValidationError: surfaced to the test as a hard failure
    - ElementNotFoundError: regular "element not found" test failure

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from typing import Optional


# Message templates
LOCATOR_NOT_FOUND = (
    "Locator '{0}' did not appear in '{1}' seconds. "
    "Please check if the page is loaded and the locator is valid."
)
LOCATOR_CHANGED = (
    "Locator has been changed from \nOld: {0}\nNew: {1}\n"
    "Please review the same and update the test or create a bug"
)


def format_message(template: str, *args: object) -> str:
    """Fill a message template with positional arguments."""
    return template.format(*args)


class SmartLocatorError(Exception):
    """Base exception for the self-healing locator subsystem."""
    pass


class ConfigurationError(SmartLocatorError):
    """Raised when configuration loading or access fails."""
    pass


class ExtractionError(SmartLocatorError):
    """Raised when the page cannot produce usable tree/HTML context."""
    pass


class InferenceError(SmartLocatorError):
    """Base class for inference backend failures."""
    pass


class InferenceParseError(InferenceError):
    """Raised when model output does not parse against the response schema."""
    pass


class InferenceBackendError(InferenceError):
    """Raised on transport errors or empty content from the backend."""
    pass


class ElementNotFoundError(SmartLocatorError):
    """Raised when a locator (original or healed) matches no element."""
    pass


class LocatorValidationError(SmartLocatorError):
    """
    Raised when a generated locator fails the validation gate.

    Not an ElementNotFoundError: the page changed and the test or the
    application needs review.

    Attributes:
        original: Selector text of the original locator
        generated: Selector text proposed by inference (may be empty)
        reason: Why the gate rejected the substitution
    """

    def __init__(
        self,
        original: str,
        generated: Optional[str],
        reason: str,
    ) -> None:
        self.original = original
        self.generated = generated or ""
        self.reason = reason
        super().__init__(
            f"{format_message(LOCATOR_CHANGED, original, self.generated)}\n"
            f"Reason: {reason}"
        )


__all__ = [
    "LOCATOR_NOT_FOUND",
    "LOCATOR_CHANGED",
    "format_message",
    "SmartLocatorError",
    "ConfigurationError",
    "ExtractionError",
    "InferenceError",
    "InferenceParseError",
    "InferenceBackendError",
    "ElementNotFoundError",
    "LocatorValidationError",
]
