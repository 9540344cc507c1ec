"""
================================================================================
Autoheal Tools
================================================================================

Supporting utilities for the self-healing test harness.

Modules:
    - common: Logging setup
    - report_tools: Allure attachments for locator changes and run summaries

Example:
    from autoheal_tools.common import init_logger
    from autoheal_tools.report_tools import attach_locator_change

    init_logger(level="DEBUG")

================================================================================
"""

__version__ = "1.0.0"

__all__ = [
    "common",
    "report_tools",
]
