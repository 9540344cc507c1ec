"""
================================================================================
Smart Locator Prompts
================================================================================

System prompt, user prompt template and strict response schema used when
asking the model for a replacement locator.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import re
from typing import Any, Dict


SYSTEM_PROMPT = """You are a senior web automation engineer specializing in building robust and maintainable locators for Playwright.
Your task is to generate a *more reliable* locator when the original fails, prioritizing *stability and precision* over brevity.
Respond only with valid JSON containing exactly two fields: 'locator' and 'strategy'."""


PROMPT_TEMPLATE = """CONTEXT:
The original locator '{{original_locator}}' no longer identifies its intended target element.
You are given the accessibility tree and the interactive HTML of the current page.

OBJECTIVE:
Generate an alternative locator that uniquely identifies the same element, using only the given HTML and accessibility tree.

---

STEPS:
1. Find the intended element: use the accessibility tree to work out what the original locator targeted (role, label, text, position).
2. Diagnose the failure: attribute change, tag change, dynamic values or layout shift.
3. Match tree nodes to HTML. Roles may map to different tags (role='button' can be an <input> or a <div>).
4. Build the locator from tags, classes and attributes that exist in the provided HTML.
5. Check that it matches only the intended element.

---

LOCATOR PRIORITY (in order):
1. Stable semantic attributes: id, name, data-testid, aria-label, role
2. Stable text-based identifiers: visible text, aria-labelledby, title
3. Parent-child relationships with stable surrounding elements
4. Static CSS classes (avoid hashed or generated class names)
5. Tag + attribute combinations such as input[type='submit']

AVOID:
- Absolute XPath (e.g. //div[2]/span[3])
- Index-based selectors (nth-child, [2]) unless necessary
- Volatile attributes (id="123_abcd", timestamps)
- Over-specific CSS/XPath that breaks with layout shifts

---

STRATEGY RULES:
- Use "XPATH" when the original was XPath, or when DOM relationships or text matching are needed
- Use "CSS" when one or a few stable attribute selectors are enough

---

ORIGINAL LOCATOR:
{{original_locator}}

ACCESSIBILITY TREE:
{{accessibility_tree}}

HTML SNIPPET:
{{page_source_html}}

---

OUTPUT FORMAT:
Respond only with this JSON, no explanation:

{
  "locator": "<your locator here>",
  "strategy": "XPATH" | "CSS"
}
"""


_PLACEHOLDER = re.compile(r"\{\{(original_locator|accessibility_tree|page_source_html)\}\}")


RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "locator": {
            "type": "string",
            "description": "The locator string (XPath or CSS selector)",
        },
        "strategy": {
            "type": "string",
            "enum": ["XPATH", "CSS"],
            "description": "The locator strategy to use",
        },
    },
    "required": ["locator", "strategy"],
    "additionalProperties": False,
}


RESPONSE_FORMAT: Dict[str, Any] = {
    "type": "json_schema",
    "json_schema": {
        "name": "smart_locator",
        "strict": True,
        "schema": RESPONSE_SCHEMA,
    },
}


def render_prompt(original_locator: str, accessibility_tree: str, page_source_html: str) -> str:
    """
    Substitute the three inputs into PROMPT_TEMPLATE verbatim.

    Single pass: placeholder-like text inside the inputs is left as is.
    """
    values = {
        "original_locator": original_locator,
        "accessibility_tree": accessibility_tree,
        "page_source_html": page_source_html,
    }
    return _PLACEHOLDER.sub(lambda m: values[m.group(1)], PROMPT_TEMPLATE)


__all__ = [
    "SYSTEM_PROMPT",
    "PROMPT_TEMPLATE",
    "RESPONSE_SCHEMA",
    "RESPONSE_FORMAT",
    "render_prompt",
]
