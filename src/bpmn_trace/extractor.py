"""Extractor for process nodes and their extension metadata.

Walks the attributed document tree in pre-order and produces one
ProcessNode per element carrying an ``id`` attribute. Metadata is read from
the element's ``extensionElements`` child:

    <bpmn:userTask id="Activity_1" name="Enter income">
      <bpmn:extensionElements>
        <custom:meta>
          <custom:playwrightRef>tests/income.spec.ts</custom:playwrightRef>
          <custom:jiraKeys>PAY-12, PAY-13</custom:jiraKeys>
          <custom:priority>High</custom:priority>
        </custom:meta>
      </bpmn:extensionElements>
    </bpmn:userTask>

Functions:
    extract_nodes: Extract ProcessNodes from a document tree
    node_type_predicate: Build a predicate restricting node types

See Also:
    bpmn_trace.tree for the TreeNode accessors used here
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable
import re
from typing import Any

import structlog

from bpmn_trace.errors import DuplicateNodeIdError
from bpmn_trace.models import ExtensionBag, ProcessNode
from bpmn_trace.tree import TreeNode

logger = structlog.get_logger(__name__)

NodePredicate = Callable[[TreeNode], bool]

EXTENSION_ELEMENTS = "extensionElements"

# Security: Safe from ReDoS - single character class
LIST_SEPARATOR = re.compile(r"[,|]")

# Metadata key -> ExtensionBag field
LIST_KEYS: dict[str, str] = {
    "playwrightRef": "playwright_refs",
    "jiraKeys": "jira_keys",
    "tags": "tags",
}
SCALAR_KEYS: dict[str, str] = {
    "priority": "priority",
    "figmaUrl": "figma_url",
    "figmaNodeId": "figma_node_id",
    "figmaComponentKey": "figma_component_key",
    "variant": "variant",
}
# Keys whose text holds several values separated by "," or "|"
SPLIT_KEYS = frozenset({"jiraKeys", "tags"})


def extract_nodes(
    tree: TreeNode,
    predicate: NodePredicate | None = None,
) -> list[ProcessNode]:
    """Extract process nodes from a document tree.

    Every element carrying an ``id`` attribute that the predicate accepts
    becomes a ProcessNode. Output follows document order (pre-order:
    parent before children, siblings in order).

    Args:
        tree: Root of the attributed document tree.
        predicate: Optional extra filter. Elements without an id are never
            emitted, whatever the predicate says.

    Returns:
        List of ProcessNode objects in document order.

    Raises:
        DuplicateNodeIdError: If two emitted nodes share an id.

    Example:
        >>> nodes = extract_nodes(tree, node_type_predicate(["userTask"]))
        >>> [n.id for n in nodes]
        ['Activity_11wac6l']
    """
    nodes: list[ProcessNode] = []

    for element in tree.iter_preorder():
        node_id = element.get("id")
        if not node_id:
            continue
        if predicate is not None and not predicate(element):
            continue

        name = element.get("name")
        nodes.append(
            ProcessNode(
                id=node_id,
                type=element.local_name,
                label=name or None,
                metadata=_extract_metadata(element),
            )
        )

    _check_unique_ids(nodes)
    logger.info("nodes_extracted", count=len(nodes))
    return nodes


def node_type_predicate(types: list[str]) -> NodePredicate:
    """Build a predicate accepting elements whose local tag name is in ``types``.

    Type names are compared without namespace prefix, so both "userTask"
    and "bpmn:userTask" select ``<bpmn:userTask>`` elements.

    Args:
        types: Element type names to accept.

    Returns:
        Predicate for extract_nodes.
    """
    wanted = {t.rsplit(":", 1)[-1] for t in types}

    def _accepts(element: TreeNode) -> bool:
        return element.local_name in wanted

    return _accepts


def _extract_metadata(element: TreeNode) -> ExtensionBag:
    """Parse recognized metadata from an element's extensionElements.

    Descendants are visited one level at a time. A descendant whose local
    name is a recognized key is applied and not descended into; any other
    descendant is descended into. Unknown keys never abort extraction.
    Empty values are skipped, so an empty <priority/> keeps an earlier value.

    Args:
        element: Element that may carry an extensionElements child.

    Returns:
        ExtensionBag, empty when there is no recognized metadata.
    """
    extensions = element.children_named(EXTENSION_ELEMENTS)
    if not extensions:
        return ExtensionBag()

    values: dict[str, Any] = {field: [] for field in LIST_KEYS.values()}

    level: list[TreeNode] = []
    for ext in extensions:
        level.extend(ext.elements())

    while level:
        next_level: list[TreeNode] = []
        for child in level:
            key = child.local_name
            if key in LIST_KEYS:
                values[LIST_KEYS[key]].extend(_list_values(key, child.text()))
            elif key in SCALAR_KEYS:
                text = child.text()
                if text:
                    values[SCALAR_KEYS[key]] = text
            else:
                next_level.extend(child.elements())
        level = next_level

    return ExtensionBag(**values)


def _list_values(key: str, text: str) -> list[str]:
    """Turn a list-key text value into its entries."""
    if key not in SPLIT_KEYS:
        return [text] if text else []
    return [part.strip() for part in LIST_SEPARATOR.split(text) if part.strip()]


def _check_unique_ids(nodes: list[ProcessNode]) -> None:
    """Raise DuplicateNodeIdError if any id occurs more than once."""
    counts = Counter(node.id for node in nodes)
    duplicates = [node_id for node_id, count in counts.items() if count > 1]
    if duplicates:
        raise DuplicateNodeIdError(duplicates)


__all__ = [
    "NodePredicate",
    "extract_nodes",
    "node_type_predicate",
]
