"""
================================================================================
Accessibility Tree Extractor
================================================================================

Turns the browser's flat accessibility snapshot into a pruned, indented text
tree that a language model can read.

Pipeline:
    1. Parse raw CDP nodes into AccessibilityNode objects
    2. Link children by id (dangling ids are dropped)
    3. Pick the root (node nobody references, else the first node)
    4. Prune bottom-up: keep interactive/structural roles and their ancestors
    5. Render one line per kept node, two spaces of indent per level

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterator, List, Optional, Sequence, Set, Tuple

from loguru import logger
from playwright.sync_api import Error as PlaywrightError

from .errors import ExtractionError
from .page_inspector import PageInspector


# Roles considered interactive or important for context (Chrome AX role names)
INTERACTIVE_ROLES: FrozenSet[str] = frozenset({
    "button", "link", "textbox", "checkbox", "radio", "combobox", "slider",
    "menuitem", "tab", "treeitem", "option", "searchbox", "form", "dialog",
    "alert", "region", "navigation", "toolbar", "table", "grid", "list",
    "heading",
})


def _ax_value(raw: Any) -> Optional[str]:
    """Unwrap a CDP AXValue ({"type": ..., "value": ...}) into plain text."""
    if raw is None:
        return None
    if isinstance(raw, dict):
        raw = raw.get("value")
        if raw is None:
            return None
    return str(raw)


@dataclass
class AccessibilityNode:
    """
    One node of the browser accessibility tree.

    Attributes:
        node_id: Unique id within one snapshot
        role: Semantic category, e.g. "button"
        name: Accessible name
        value: Current value (inputs, sliders, ...)
        description: aria-describedby text, tooltips
        ignored: True if the browser excludes the node from the tree
        child_ids: Ordered child ids as reported
        children: Resolved children (filled by build_tree)
    """

    node_id: str
    role: Optional[str] = None
    name: Optional[str] = None
    value: Optional[str] = None
    description: Optional[str] = None
    ignored: bool = False
    child_ids: List[str] = field(default_factory=list)
    children: List["AccessibilityNode"] = field(default_factory=list, repr=False)

    @classmethod
    def from_cdp(cls, raw: Dict[str, Any]) -> "AccessibilityNode":
        if not isinstance(raw, dict) or "nodeId" not in raw:
            raise ExtractionError(f"Malformed accessibility node: {str(raw)[:100]}")
        child_ids = raw.get("childIds") or []
        if not isinstance(child_ids, list):
            raise ExtractionError(f"Malformed childIds for node {raw['nodeId']}")
        return cls(
            node_id=str(raw["nodeId"]),
            role=_ax_value(raw.get("role")),
            name=_ax_value(raw.get("name")),
            value=_ax_value(raw.get("value")),
            description=_ax_value(raw.get("description")),
            ignored=bool(raw.get("ignored", False)),
            child_ids=[str(c) for c in child_ids],
        )


def parse_snapshot(snapshot: Any) -> List[AccessibilityNode]:
    """
    Parse a CDP `Accessibility.getFullAXTree` response into flat nodes.

    Accepts either the full response ({"nodes": [...]}) or the node list.

    Raises:
        ExtractionError: When the snapshot is not a node list
    """
    if isinstance(snapshot, dict):
        if "nodes" not in snapshot:
            raise ExtractionError("Accessibility snapshot does not contain 'nodes' key.")
        snapshot = snapshot["nodes"]
    if not isinstance(snapshot, list):
        raise ExtractionError(
            f"Accessibility snapshot is not a node list: {type(snapshot).__name__}"
        )
    return [AccessibilityNode.from_cdp(raw) for raw in snapshot]


def build_tree(flat_nodes: Sequence[AccessibilityNode]) -> Optional[AccessibilityNode]:
    """
    Link nodes into a tree and return its root.

    Duplicate ids: the first occurrence wins. Children referencing ids absent
    from the list are dropped. The root is the single node that no other node
    lists as a child; without a unique such node the first node is used.
    """
    if not flat_nodes:
        return None

    node_map: Dict[str, AccessibilityNode] = {}
    for node in flat_nodes:
        node_map.setdefault(node.node_id, node)

    referenced: Set[str] = set()
    for node in node_map.values():
        node.children = []
        for child_id in node.child_ids:
            child = node_map.get(child_id)
            if child is not None and child is not node:
                node.children.append(child)
                referenced.add(child_id)

    candidates = [n for n in node_map.values() if n.node_id not in referenced]
    if len(candidates) == 1:
        return candidates[0]

    logger.debug(
        f"No unique accessibility root ({len(candidates)} candidates); "
        f"falling back to first node"
    )
    return flat_nodes[0]


def _format_node(node: AccessibilityNode, level: int) -> str:
    parts = [f"{'  ' * level}- Role: {node.role or ''}"]
    if node.name:
        parts.append(f", Name: '{node.name}'")
    if node.description:
        parts.append(f", Desc: '{node.description}'")
    if node.value:
        parts.append(f", Value: '{node.value}'")
    return "".join(parts) + "\n"


def prune_and_format(node: AccessibilityNode, level: int = 0) -> Optional[str]:
    """
    Render the subtree rooted at `node`, or None if nothing in it is kept.

    A node is kept iff its role is in INTERACTIVE_ROLES or any child is kept.
    Walks post-order with an explicit stack, so tree depth is not bounded by
    the interpreter's recursion limit. A child already on the current path
    is skipped.
    """
    path: Set[str] = {node.node_id}
    # (node, depth, remaining children, rendered lines of kept children)
    stack: List[Tuple[AccessibilityNode, int, Iterator[AccessibilityNode], List[str]]] = [
        (node, level, iter(node.children), [])
    ]
    result: List[str] = []

    while stack:
        current, depth, children, child_lines = stack[-1]

        child = next(children, None)
        if child is not None:
            if child.node_id not in path:
                path.add(child.node_id)
                stack.append((child, depth + 1, iter(child.children), []))
            continue

        stack.pop()
        path.discard(current.node_id)

        if (current.role or "") not in INTERACTIVE_ROLES and not child_lines:
            continue

        lines = [_format_node(current, depth)] + child_lines
        if stack:
            stack[-1][3].extend(lines)
        else:
            result = lines

    return "".join(result) or None


class AccessibilityTreeExtractor:
    """
    Extracts the pruned accessibility tree text used as inference context.

    Usage:
        >>> extractor = AccessibilityTreeExtractor()
        >>> extractor.extract({"nodes": [{"nodeId": "1", "role": {"value": "button"}}]})
        '- Role: button\\n'
    """

    def extract(self, snapshot: Any) -> Optional[str]:
        """
        Build the text tree from a raw snapshot.

        Returns:
            Tree text, or None when no node survives pruning

        Raises:
            ExtractionError: When the snapshot is malformed
        """
        flat_nodes = parse_snapshot(snapshot)
        root = build_tree(flat_nodes)
        if root is None:
            return None
        return prune_and_format(root) or None

    def extract_from_page(self, inspector: PageInspector) -> Optional[str]:
        """
        Fetch the snapshot from a live page and build the text tree.

        Raises:
            ExtractionError: When the page cannot produce a snapshot
        """
        try:
            snapshot = inspector.accessibility_snapshot()
        except PlaywrightError as e:
            raise ExtractionError(f"Failed to retrieve accessibility tree: {e}") from e
        return self.extract(snapshot)


__all__ = [
    "INTERACTIVE_ROLES",
    "AccessibilityNode",
    "AccessibilityTreeExtractor",
    "parse_snapshot",
    "build_tree",
    "prune_and_format",
]
