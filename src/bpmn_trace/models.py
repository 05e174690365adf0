"""Pydantic models for the BPMN coverage report.

This module defines the records that flow through the pipeline:

Models:
    ExtensionBag: Recognized metadata from a node's extensionElements
    ProcessNode: A typed, identified element of the BPMN document
    ReferenceHit: One ``[bpmn:<id>]`` marker found in a test file
    CoverageStatus: Enum of coverage statuses
    CoverageRow: A ProcessNode joined with the hits that reference it
    OrphanEntry: A hit whose id matches no ProcessNode
    CoverageReport: The reconciled result consumed by formatters

All models are frozen and hold tuples rather than lists: they are built
once per run and never mutated.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ExtensionBag(BaseModel):
    """Metadata parsed from a node's ``extensionElements``.

    Attributes:
        playwright_refs: External test references, in encounter order
        jira_keys: Issue tracker keys, in encounter order
        tags: Free-form tags, in encounter order
        priority: Priority string (last occurrence wins)
        figma_url: Design tool link
        figma_node_id: Design tool node id
        figma_component_key: Design tool component key
        variant: Design tool variant name

    Example:
        >>> bag = ExtensionBag(jira_keys=("PAY-1",), priority="High")
        >>> bag.is_empty()
        False
    """

    model_config = ConfigDict(frozen=True)

    playwright_refs: tuple[str, ...] = ()
    jira_keys: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    priority: str = ""
    figma_url: str = ""
    figma_node_id: str = ""
    figma_component_key: str = ""
    variant: str = ""

    def is_empty(self) -> bool:
        """Check whether every field still holds its default value."""
        return self == ExtensionBag()


class ProcessNode(BaseModel):
    """A typed, identified element of the process model.

    Attributes:
        id: Element id, unique within the document
        type: Tag local name (e.g. "userTask", namespace prefix stripped)
        label: Display name from the ``name`` attribute, if any
        metadata: Parsed extension metadata

    Example:
        >>> node = ProcessNode(id="Activity_11wac6l", type="userTask", label="Enter income")
        >>> node.metadata.is_empty()
        True
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    type: str
    label: str | None = None
    metadata: ExtensionBag = Field(default_factory=ExtensionBag)


class ReferenceHit(BaseModel):
    """One occurrence of a ``[bpmn:<id>]`` marker in a test file.

    Attributes:
        referenced_id: Identifier text inside the marker
        source_file: POSIX path relative to the scan root
        source_line: 1-based line number of the marker
        associated_label: Test title containing the marker, if one was found
    """

    model_config = ConfigDict(frozen=True)

    referenced_id: str = Field(..., min_length=1)
    source_file: str
    source_line: int = Field(..., ge=1)
    associated_label: str | None = None

    @property
    def marker(self) -> str:
        """The literal marker text, e.g. ``[bpmn:Activity_1]``."""
        return f"[bpmn:{self.referenced_id}]"


class CoverageStatus(str, Enum):
    """Coverage status of a process node.

    Attributes:
        COVERED: At least one test references the node
        MISSING: No test references the node
    """

    COVERED = "Covered"
    MISSING = "Missing"


class CoverageRow(BaseModel):
    """The reconciled view of one ProcessNode.

    Attributes:
        node: The extracted process node
        hits: Every ReferenceHit whose id equals the node id, in scan order
    """

    model_config = ConfigDict(frozen=True)

    node: ProcessNode
    hits: tuple[ReferenceHit, ...] = ()

    @property
    def status(self) -> CoverageStatus:
        """COVERED iff at least one hit references this node."""
        return CoverageStatus.COVERED if self.hits else CoverageStatus.MISSING


class OrphanEntry(BaseModel):
    """A reference to an id that no longer exists in the BPMN document.

    Attributes:
        hit: The dangling ReferenceHit
    """

    model_config = ConfigDict(frozen=True)

    hit: ReferenceHit

    @property
    def id(self) -> str:
        """The referenced (missing) node id."""
        return self.hit.referenced_id


class CoverageReport(BaseModel):
    """Reconciled coverage result for one BPMN document.

    Attributes:
        rows: One CoverageRow per extracted ProcessNode, in document order
        orphans: Hits that match no node, grouped by id in first-seen order
        generated_at: Timestamp of generation (UTC)

    Example:
        >>> report = reconcile(nodes, hits)
        >>> print(f"Coverage: {report.coverage_percentage:.1f}%")
    """

    model_config = ConfigDict(frozen=True)

    rows: tuple[CoverageRow, ...] = ()
    orphans: tuple[OrphanEntry, ...] = ()
    generated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def total(self) -> int:
        """Number of process nodes in the report."""
        return len(self.rows)

    @property
    def covered_count(self) -> int:
        """Number of COVERED rows."""
        return sum(1 for r in self.rows if r.status == CoverageStatus.COVERED)

    @property
    def missing_count(self) -> int:
        """Number of MISSING rows."""
        return self.total - self.covered_count

    @property
    def coverage_percentage(self) -> float:
        """Percentage of COVERED rows.

        Returns:
            Covered share of all rows. 100.0 if there are no rows.
        """
        if not self.rows:
            return 100.0
        return (self.covered_count / self.total) * 100

    def gaps(self) -> list[CoverageRow]:
        """Get rows without test coverage, in document order."""
        return [r for r in self.rows if r.status == CoverageStatus.MISSING]


__all__ = [
    "CoverageReport",
    "CoverageRow",
    "CoverageStatus",
    "ExtensionBag",
    "OrphanEntry",
    "ProcessNode",
    "ReferenceHit",
]
