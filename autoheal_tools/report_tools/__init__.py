"""Allure attachment helpers."""

from .allure_utils import (
    attach_healing_summary,
    attach_json,
    attach_locator_change,
)

__all__ = [
    "attach_json",
    "attach_locator_change",
    "attach_healing_summary",
]
