"""Attributed document tree and its normalizing accessors.

The loader turns XML into TreeNode objects; everything downstream reads the
document only through the accessors defined here, so the extractor never
depends on how a particular parser shapes elements, attributes or text.

Tag and attribute names keep their namespace prefix (``bpmn:userTask``,
``custom:priority``). Accessors that look elements up by name compare local
names, ignoring the prefix.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field


def local_name(qualified_name: str) -> str:
    """Strip a namespace prefix from a tag or attribute name.

    Example:
        >>> local_name("bpmn:extensionElements")
        'extensionElements'
        >>> local_name("task")
        'task'
    """
    return qualified_name.rsplit(":", 1)[-1]


@dataclass(frozen=True)
class TreeNode:
    """One element of the attributed tree.

    Attributes:
        tag: Prefix-qualified tag name as written in the document.
        attributes: Prefix-qualified attribute names mapped to values.
        children: Child elements and text leaves, in document order.
    """

    tag: str
    attributes: dict[str, str] = field(default_factory=dict)
    children: list[TreeNode | str] = field(default_factory=list)

    @property
    def local_name(self) -> str:
        """Tag name without namespace prefix."""
        return local_name(self.tag)

    def get(self, attribute: str, default: str | None = None) -> str | None:
        """Get an attribute value by its exact (prefix-qualified) name."""
        return self.attributes.get(attribute, default)

    def elements(self) -> list[TreeNode]:
        """Child elements, skipping text leaves."""
        return [c for c in self.children if isinstance(c, TreeNode)]

    def children_named(self, name: str) -> list[TreeNode]:
        """Child elements whose local name equals ``name``.

        Always returns a list, empty when nothing matches.
        """
        wanted = local_name(name)
        return [c for c in self.elements() if c.local_name == wanted]

    def text(self) -> str:
        """Text content of this element.

        Uses the first non-blank text leaf among the direct children. An
        element holding no text falls back to its first attribute value,
        so ``<priority value="High"/>`` reads as "High".

        Returns:
            Stripped text, or "" when the element carries no string value.
        """
        for child in self.children:
            if isinstance(child, str) and child.strip():
                return child.strip()
        for value in self.attributes.values():
            if value.strip():
                return value.strip()
        return ""

    def iter_preorder(self) -> Iterator[TreeNode]:
        """Yield this element and every descendant element, parent first.

        Siblings are visited in document order. Iterative, so deeply
        nested documents do not hit the recursion limit.
        """
        stack: list[TreeNode] = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.elements()))


__all__ = [
    "TreeNode",
    "local_name",
]
