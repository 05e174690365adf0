"""Tests for bpmn_trace.tree module.

These tests verify the normalizing accessors of the attributed tree:
- children_named always returns a list, matched by local name
- text() reads text leaves, then falls back to attribute values
- iter_preorder visits parents before children, siblings in order
"""

from __future__ import annotations

from bpmn_trace.tree import TreeNode, local_name


class TestLocalName:
    """Tests for local_name helper."""

    def test_strips_prefix(self) -> None:
        """Prefixed names lose their prefix."""
        assert local_name("bpmn:userTask") == "userTask"

    def test_unprefixed_name_unchanged(self) -> None:
        """Names without prefix are returned as-is."""
        assert local_name("task") == "task"


class TestChildrenNamed:
    """Tests for TreeNode.children_named."""

    def test_single_child_returns_list(self) -> None:
        """One matching child still yields a one-element list."""
        child = TreeNode(tag="bpmn:extensionElements")
        node = TreeNode(tag="bpmn:task", children=[child])

        assert node.children_named("extensionElements") == [child]

    def test_no_match_returns_empty_list(self) -> None:
        """No matching child yields an empty list, never None."""
        node = TreeNode(tag="bpmn:task", children=["text"])

        assert node.children_named("extensionElements") == []

    def test_matches_ignore_prefix(self) -> None:
        """Children match on local name whatever their prefix."""
        a = TreeNode(tag="custom:priority")
        b = TreeNode(tag="priority")
        c = TreeNode(tag="other:tags")
        node = TreeNode(tag="meta", children=[a, "  ", b, c])

        assert node.children_named("priority") == [a, b]
        assert node.children_named("x:priority") == [a, b]

    def test_elements_skip_text_leaves(self) -> None:
        """elements() drops text leaves and keeps order."""
        a = TreeNode(tag="a")
        b = TreeNode(tag="b")
        node = TreeNode(tag="root", children=["x", a, "y", b])

        assert node.elements() == [a, b]


class TestText:
    """Tests for TreeNode.text."""

    def test_plain_text(self) -> None:
        """Text leaf is returned stripped."""
        node = TreeNode(tag="priority", children=["  High \n"])

        assert node.text() == "High"

    def test_first_non_blank_leaf(self) -> None:
        """Whitespace-only leaves are skipped."""
        node = TreeNode(tag="tags", children=["\n  ", TreeNode(tag="x"), "a, b"])

        assert node.text() == "a, b"

    def test_attribute_fallback(self) -> None:
        """Element without text reads its first attribute value."""
        node = TreeNode(tag="priority", attributes={"value": "High"})

        assert node.text() == "High"

    def test_text_preferred_over_attribute(self) -> None:
        """Text content wins over attribute values."""
        node = TreeNode(tag="priority", attributes={"value": "Low"}, children=["High"])

        assert node.text() == "High"

    def test_empty_element(self) -> None:
        """Element with neither text nor attributes reads as empty string."""
        assert TreeNode(tag="priority").text() == ""

    def test_attribute_accessor(self) -> None:
        """get() returns attribute values or the default."""
        node = TreeNode(tag="task", attributes={"id": "A", "name": "Pay"})

        assert node.get("id") == "A"
        assert node.get("missing") is None
        assert node.get("missing", "x") == "x"


class TestIterPreorder:
    """Tests for TreeNode.iter_preorder."""

    def test_parent_before_children_siblings_in_order(self) -> None:
        """Pre-order traversal of a small tree."""
        tree = TreeNode(
            tag="root",
            children=[
                TreeNode(tag="a", children=[TreeNode(tag="a1"), TreeNode(tag="a2")]),
                "text",
                TreeNode(tag="b", children=[TreeNode(tag="b1")]),
            ],
        )

        assert [n.tag for n in tree.iter_preorder()] == ["root", "a", "a1", "a2", "b", "b1"]

    def test_deep_nesting(self) -> None:
        """Deep trees are walked without recursion errors."""
        node = TreeNode(tag="leaf")
        for _ in range(5000):
            node = TreeNode(tag="wrap", children=[node])

        tags = [n.tag for n in node.iter_preorder()]

        assert len(tags) == 5001
        assert tags[-1] == "leaf"
