"""Reconciler joining process nodes with marker hits.

Produces one CoverageRow per ProcessNode and one OrphanEntry per hit whose
id matches no node. Matching is exact string equality on the identifier:
no case folding, no trimming, no fuzzy matching.

Functions:
    reconcile: Build a CoverageReport from nodes and hits

Usage:
    from bpmn_trace.reconciler import reconcile

    report = reconcile(nodes, hits)
    for row in report.gaps():
        print(f"Missing: {row.node.id}")
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

import structlog

from bpmn_trace.models import CoverageReport, CoverageRow, OrphanEntry

if TYPE_CHECKING:
    from bpmn_trace.models import ProcessNode, ReferenceHit

logger = structlog.get_logger(__name__)


def reconcile(
    nodes: list[ProcessNode],
    hits: list[ReferenceHit],
    generated_at: datetime | None = None,
) -> CoverageReport:
    """Reconcile extracted nodes against scanned hits.

    Every hit ends up in exactly one place: attached to the row of the
    node it references, or listed as an orphan. Empty inputs are valid.

    Args:
        nodes: Process nodes in document order.
        hits: Reference hits in scan order.
        generated_at: Report timestamp. Defaults to now (UTC).

    Returns:
        CoverageReport with rows in node order and orphans grouped by id
        (ids in first-seen order, hits in scan order within an id).

    Example:
        >>> report = reconcile([], [hit_for("X")])
        >>> report.rows, [o.id for o in report.orphans]
        ((), ['X'])
    """
    # Build lookup: referenced id -> hits, in first-seen order
    hits_by_id: dict[str, list[ReferenceHit]] = {}
    for hit in hits:
        hits_by_id.setdefault(hit.referenced_id, []).append(hit)

    rows = [CoverageRow(node=node, hits=hits_by_id.get(node.id, [])) for node in nodes]

    node_ids = {node.id for node in nodes}
    orphans = [
        OrphanEntry(hit=hit)
        for ref_id, group in hits_by_id.items()
        if ref_id not in node_ids
        for hit in group
    ]

    report = CoverageReport(
        rows=rows,
        orphans=orphans,
        generated_at=generated_at or datetime.now(UTC),
    )

    logger.info(
        "report_reconciled",
        nodes=report.total,
        covered=report.covered_count,
        missing=report.missing_count,
        orphans=len(report.orphans),
    )
    return report


__all__ = [
    "reconcile",
]
