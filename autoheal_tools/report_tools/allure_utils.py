"""
================================================================================
Allure Report Utilities
================================================================================

Attachment helpers used by the self-healing locator subsystem.

Features:
- JSON attachment helper
- Locator change attachment for reviewer attention
- End-of-run healing summary (cache statistics + inference telemetry)

================================================================================
"""

import json
from datetime import datetime
from typing import Any, Dict, Optional

import allure


# ================================================================================
# Attachment Helpers
# ================================================================================

def attach_json(data: Any, name: str = "Data"):
    """
    Attach JSON data to Allure report.

    Args:
        data: Data to attach (will be JSON serialized)
        name: Attachment name
    """
    json_str = json.dumps(data, indent=2, default=str)
    allure.attach(
        json_str,
        name=name,
        attachment_type=allure.attachment_type.JSON
    )


# ================================================================================
# Smart Locator Attachments
# ================================================================================

def attach_locator_change(
    original: str,
    generated: Optional[str],
    strategy: Optional[str],
    reason: str,
):
    """
    Attach a proposed locator change that needs human review.

    Args:
        original: Original selector text
        generated: Selector proposed by inference (may be empty)
        strategy: XPATH or CSS
        reason: Why the change was not applied automatically
    """
    with allure.step(f"🔍 Locator change needs review: {original}"):
        attach_json(
            {
                "original_locator": original,
                "generated_locator": generated or "",
                "strategy": strategy or "",
                "reason": reason,
                "timestamp": datetime.now().isoformat(),
            },
            name="🔍 Locator Change",
        )


def attach_healing_summary(
    cache_statistics: Dict[str, Any],
    telemetry: Dict[str, Any],
):
    """
    Attach the end-of-run cache and inference telemetry summary.

    Args:
        cache_statistics: Cache statistics as a dictionary
        telemetry: Inference telemetry summary as a dictionary
    """
    attach_json(
        {"cache": cache_statistics, "inference": telemetry},
        name="📊 Smart Locator Summary",
    )


__all__ = [
    "attach_json",
    "attach_locator_change",
    "attach_healing_summary",
]
