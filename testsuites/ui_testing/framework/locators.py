"""
================================================================================
Locator Value Types
================================================================================

Value objects shared by the resolver, the cache and the interaction layer.

    - LocatorStrategy: query language tag (XPATH | CSS)
    - ElementLocator: a selector plus its strategy
    - CachedLocatorResult: a remembered healing outcome

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Union


class LocatorStrategy(str, Enum):
    """Query language of a locator."""

    XPATH = "XPATH"
    CSS = "CSS"

    @classmethod
    def parse(cls, value: str) -> "LocatorStrategy":
        """
        Parse a strategy tag, tolerating case and surrounding whitespace.

        Raises:
            ValueError: When the tag is not XPATH or CSS
        """
        normalized = (value or "").strip().upper()
        try:
            return cls(normalized)
        except ValueError:
            raise ValueError(f"Unexpected locator strategy: {value!r}") from None


@dataclass(frozen=True)
class ElementLocator:
    """
    A locator as used by tests.

    The selector text doubles as the serialized form (`key`) under which
    healed replacements are cached.

    Usage:
        >>> ElementLocator.from_string("#submit").to_selector()
        'css=#submit'
        >>> ElementLocator.from_string("//button[@id='go']").strategy
        <LocatorStrategy.XPATH: 'XPATH'>
    """

    value: str
    strategy: LocatorStrategy = LocatorStrategy.CSS

    @classmethod
    def css(cls, value: str) -> "ElementLocator":
        return cls(value, LocatorStrategy.CSS)

    @classmethod
    def xpath(cls, value: str) -> "ElementLocator":
        return cls(value, LocatorStrategy.XPATH)

    @classmethod
    def from_string(cls, selector: str) -> "ElementLocator":
        """Build a locator from raw selector text, guessing the strategy."""
        text = selector.strip()
        if text.startswith("xpath="):
            return cls.xpath(text[len("xpath="):])
        if text.startswith("css="):
            return cls.css(text[len("css="):])
        if text.startswith("/") or text.startswith("("):
            return cls.xpath(text)
        return cls.css(text)

    @classmethod
    def coerce(cls, target: Union[str, "ElementLocator"]) -> "ElementLocator":
        if isinstance(target, ElementLocator):
            return target
        return cls.from_string(target)

    @property
    def key(self) -> str:
        """Serialized form used as the cache key."""
        return self.value

    def to_selector(self) -> str:
        """Playwright selector string with an explicit engine prefix."""
        engine = "xpath" if self.strategy == LocatorStrategy.XPATH else "css"
        return f"{engine}={self.value}"

    def __str__(self) -> str:
        return f"{self.strategy.value}: {self.value}"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


_FRACTION = re.compile(r"\.(\d+)")


def parse_timestamp(text: str) -> datetime:
    """
    Parse an ISO-8601 timestamp into a timezone-aware datetime.

    Accepts a trailing "Z" and fractions of any length (7 digits are common
    in files written by .NET); fractions are cut or padded to microseconds.
    Naive timestamps are read as UTC.

    Raises:
        ValueError: When the text is not an ISO-8601 timestamp
        TypeError: When the value is not a string
    """
    if not isinstance(text, str):
        raise TypeError(f"timestamp must be a string, got {type(text).__name__}")
    text = text.strip()
    if text[-1:] in ("Z", "z"):
        text = text[:-1] + "+00:00"
    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    timestamp = datetime.fromisoformat(text)
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return timestamp


@dataclass
class CachedLocatorResult:
    """
    A generated replacement for an original locator.

    Attributes:
        original_locator: Serialized original locator (cache key)
        generated_locator: Selector text proposed by inference
        strategy: XPATH or CSS, as returned by inference
        timestamp: Generation time (timezone-aware UTC)
    """

    original_locator: str
    generated_locator: str
    strategy: str
    timestamp: datetime = field(default_factory=utc_now)

    def to_locator(self) -> ElementLocator:
        """
        Convert to an ElementLocator.

        Raises:
            ValueError: When the stored strategy is not XPATH or CSS
        """
        return ElementLocator(self.generated_locator, LocatorStrategy.parse(self.strategy))

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the cache file's camelCase field names."""
        return {
            "originalLocator": self.original_locator,
            "generatedLocator": self.generated_locator,
            "strategy": self.strategy,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CachedLocatorResult":
        """
        Deserialize one cache file entry.

        Naive timestamps are read as UTC.

        Raises:
            KeyError / ValueError: When a field is missing or malformed
        """
        return cls(
            original_locator=data["originalLocator"],
            generated_locator=data["generatedLocator"],
            strategy=data["strategy"],
            timestamp=parse_timestamp(data["timestamp"]),
        )


__all__ = [
    "LocatorStrategy",
    "ElementLocator",
    "CachedLocatorResult",
    "utc_now",
    "parse_timestamp",
]
