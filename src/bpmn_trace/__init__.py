"""bpmn-trace: BPMN process model to test coverage traceability.

This package provides tools for:
- Extracting identified BPMN elements and their extension metadata
- Scanning test files for [bpmn:<id>] markers
- Reconciling both into covered, missing and orphaned entries
- Writing JSON, CSV and HTML coverage reports

Key Components:
    - loader: Parse BPMN XML into an attributed tree
    - extractor: Extract ProcessNodes with ExtensionBag metadata
    - scanner: Find ReferenceHits in test files
    - reconciler: Join nodes and hits into a CoverageReport
    - formatters: JSON, CSV and HTML serializations
    - reporter: End-to-end pipeline and console summary

Usage:
    from bpmn_trace import TraceConfig, generate_report, write_reports

    config = TraceConfig(root=Path("."), document="ci_test.bpmn")
    report = generate_report(config)
    print(f"Coverage: {report.coverage_percentage:.1f}%")
    write_reports(report, config)
"""

from __future__ import annotations

__version__ = "0.1.0"

from bpmn_trace.config import ReportFormat, TraceConfig
from bpmn_trace.errors import (
    BpmnTraceError,
    ConfigurationError,
    DocumentParseError,
    DuplicateNodeIdError,
    InputMissingError,
)
from bpmn_trace.extractor import extract_nodes, node_type_predicate
from bpmn_trace.formatters import format_csv_report, format_html_report, format_json_report
from bpmn_trace.loader import load_document, read_document
from bpmn_trace.models import (
    CoverageReport,
    CoverageRow,
    CoverageStatus,
    ExtensionBag,
    OrphanEntry,
    ProcessNode,
    ReferenceHit,
)
from bpmn_trace.reconciler import reconcile
from bpmn_trace.reporter import generate_report, write_reports
from bpmn_trace.scanner import scan_references, scan_text
from bpmn_trace.tree import TreeNode

__all__: list[str] = [
    "__version__",
    # Configuration
    "ReportFormat",
    "TraceConfig",
    # Errors
    "BpmnTraceError",
    "ConfigurationError",
    "DocumentParseError",
    "DuplicateNodeIdError",
    "InputMissingError",
    # Models
    "CoverageReport",
    "CoverageRow",
    "CoverageStatus",
    "ExtensionBag",
    "OrphanEntry",
    "ProcessNode",
    "ReferenceHit",
    "TreeNode",
    # Pipeline
    "load_document",
    "read_document",
    "extract_nodes",
    "node_type_predicate",
    "scan_references",
    "scan_text",
    "reconcile",
    "format_json_report",
    "format_csv_report",
    "format_html_report",
    "generate_report",
    "write_reports",
]
