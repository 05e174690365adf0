"""BPMN document loading.

Parses raw document bytes with lxml and converts the result into the
TreeNode representation used by the extractor. Namespace prefixes are kept
on tag and attribute names exactly as written in the document.

Functions:
    load_document: Parse document bytes into a TreeNode tree
    read_document: Check for and parse the configured BPMN document

Usage:
    from bpmn_trace.loader import read_document

    tree = read_document(config)
    print(tree.tag)  # "bpmn:definitions"
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from lxml import etree

from bpmn_trace.errors import BpmnTraceError, DocumentParseError, InputMissingError
from bpmn_trace.tree import TreeNode

if TYPE_CHECKING:
    from bpmn_trace.config import TraceConfig

logger = structlog.get_logger(__name__)

XML_NAMESPACE = "http://www.w3.org/XML/1998/namespace"


def _make_parser() -> etree.XMLParser:
    """Create an XML parser that never resolves entities or touches the network."""
    return etree.XMLParser(
        resolve_entities=False,
        no_network=True,
        load_dtd=False,
        remove_comments=True,
        remove_pis=True,
    )


def load_document(data: bytes) -> TreeNode:
    """Parse BPMN document bytes into an attributed tree.

    Args:
        data: Raw document bytes.

    Returns:
        Root TreeNode of the document.

    Raises:
        DocumentParseError: If the bytes are not well-formed XML.

    Example:
        >>> tree = load_document(b'<bpmn:definitions xmlns:bpmn="urn:x" id="D"/>')
        >>> tree.tag
        'bpmn:definitions'
    """
    try:
        root = etree.fromstring(data, _make_parser())
    except etree.XMLSyntaxError as e:
        raise DocumentParseError(
            "BPMN document is not well-formed XML",
            line_number=e.lineno or None,
            internal_details=str(e),
        ) from e

    if root is None:
        raise DocumentParseError("BPMN document is empty")

    return _convert(root)


def read_document(config: TraceConfig) -> TreeNode:
    """Read and parse the BPMN document named by the configuration.

    The existence check runs once, before anything is parsed.

    Args:
        config: Run configuration.

    Returns:
        Root TreeNode of the document.

    Raises:
        InputMissingError: If the document does not exist.
        DocumentParseError: If the document is not well-formed XML.
    """
    path = config.document_path
    if not path.is_file():
        raise InputMissingError(path)

    try:
        data = path.read_bytes()
    except OSError as e:
        raise BpmnTraceError(
            f"Cannot read BPMN document: {path}",
            internal_details=str(e),
        ) from e

    logger.debug("document_read", path=str(path), size=len(data))
    return load_document(data)


def _convert(element: etree._Element) -> TreeNode:
    """Convert an lxml element (and its subtree) into a TreeNode."""
    children: list[TreeNode | str] = []
    if element.text:
        children.append(element.text)
    for child in element:
        # Entity references left unresolved have a non-string tag
        if isinstance(child.tag, str):
            children.append(_convert(child))
        if child.tail:
            children.append(child.tail)

    return TreeNode(
        tag=_prefixed(element.tag, element.prefix),
        attributes=_attributes(element),
        children=children,
    )


def _prefixed(clark_name: str, prefix: str | None) -> str:
    """Turn ``{uri}local`` into ``prefix:local`` (or ``local`` without prefix)."""
    name = etree.QName(clark_name).localname
    return f"{prefix}:{name}" if prefix else name


def _attributes(element: etree._Element) -> dict[str, str]:
    """Collect attributes, restoring namespace prefixes on qualified names."""
    prefixes = {uri: p for p, uri in element.nsmap.items() if p is not None}
    prefixes.setdefault(XML_NAMESPACE, "xml")
    result: dict[str, str] = {}
    for key, value in element.attrib.items():
        qname = etree.QName(key)
        if qname.namespace is None:
            result[qname.localname] = value
        else:
            result[_prefixed(key, prefixes.get(qname.namespace))] = value
    return result


__all__ = [
    "load_document",
    "read_document",
]
