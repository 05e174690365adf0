"""Reporter for generating and writing BPMN coverage reports.

This module provides the high-level pipeline:

    load document -> extract nodes -> scan tests -> reconcile -> format -> write

Functions:
    generate_report: Run the pipeline up to a CoverageReport
    render_reports: Serialize a report in every configured format
    write_reports: Render and write reports to the output directory
    check_gates: Evaluate threshold and orphan gates
    format_console_report: Print a Rich summary of a report

Usage:
    from bpmn_trace.config import TraceConfig
    from bpmn_trace.reporter import generate_report, write_reports

    config = TraceConfig()
    report = generate_report(config)
    paths = write_reports(report, config)
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from pathlib import Path
import tempfile

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
import structlog

from bpmn_trace.config import ReportFormat, TraceConfig
from bpmn_trace.extractor import extract_nodes, node_type_predicate
from bpmn_trace.formatters import format_csv_report, format_html_report, format_json_report
from bpmn_trace.loader import read_document
from bpmn_trace.models import CoverageReport
from bpmn_trace.reconciler import reconcile
from bpmn_trace.scanner import scan_references

logger = structlog.get_logger(__name__)

FORMATTERS: dict[ReportFormat, Callable[[CoverageReport], str]] = {
    ReportFormat.JSON: format_json_report,
    ReportFormat.CSV: format_csv_report,
    ReportFormat.HTML: format_html_report,
}

# Rows listed per section in the console summary
CONSOLE_LIST_LIMIT = 10


def generate_report(
    config: TraceConfig,
    generated_at: datetime | None = None,
) -> CoverageReport:
    """Generate a coverage report for the configured document and tests.

    The document is checked and parsed before any test file is read, so a
    missing or malformed document aborts the run before any scanning.

    Args:
        config: Run configuration.
        generated_at: Report timestamp. Defaults to now (UTC).

    Returns:
        Reconciled CoverageReport.

    Raises:
        InputMissingError: If the BPMN document does not exist.
        DocumentParseError: If the BPMN document is not well-formed XML.
        DuplicateNodeIdError: If the document repeats a node id.

    Example:
        >>> report = generate_report(TraceConfig(root=Path("/repo")))
        >>> print(f"Coverage: {report.coverage_percentage:.1f}%")
        Coverage: 75.0%
    """
    tree = read_document(config)

    predicate = node_type_predicate(config.include_types) if config.include_types else None
    nodes = extract_nodes(tree, predicate)

    hits = scan_references(config)

    return reconcile(nodes, hits, generated_at=generated_at)


def render_reports(
    report: CoverageReport,
    formats: list[ReportFormat],
) -> dict[ReportFormat, str]:
    """Serialize a report in each requested format.

    Args:
        report: Reconciled coverage report.
        formats: Formats to render.

    Returns:
        Mapping of format to rendered text, in request order.
    """
    return {fmt: FORMATTERS[fmt](report) for fmt in formats}


def write_reports(report: CoverageReport, config: TraceConfig) -> list[Path]:
    """Render and write every configured report format.

    All formats are rendered, then each is written to a temporary file in
    the output directory. The temporary files are moved into place only
    once all of them were written. If any step fails, the temporary files
    and any report already moved into place are removed, so a failed call
    leaves no report behind.

    Args:
        report: Reconciled coverage report.
        config: Run configuration (output_dir, report_name, formats).

    Returns:
        Paths written, in format order.

    Raises:
        OSError: If the output directory or a file cannot be written.
    """
    rendered = render_reports(report, config.formats)

    config.output_path.mkdir(parents=True, exist_ok=True)

    staged: dict[Path, Path] = {}
    written: list[Path] = []
    try:
        for fmt, content in rendered.items():
            path = config.output_path_for(fmt)
            with tempfile.NamedTemporaryFile(
                mode="w",
                encoding="utf-8",
                delete=False,
                dir=config.output_path,
                prefix=f".{path.name}.tmp.",
            ) as tmp_file:
                staged[path] = Path(tmp_file.name)
                tmp_file.write(content)

        for path, tmp_path in staged.items():
            tmp_path.replace(path)
            written.append(path)
            logger.info("report_written", path=str(path))
    except OSError:
        for tmp_path in staged.values():
            tmp_path.unlink(missing_ok=True)
        for path in written:
            path.unlink(missing_ok=True)
        logger.warning("report_write_failed", output_dir=str(config.output_path))
        raise

    return written


def check_gates(report: CoverageReport, config: TraceConfig) -> list[str]:
    """Evaluate the coverage threshold and orphan gates.

    Args:
        report: Reconciled coverage report.
        config: Run configuration (threshold, fail_on_orphans).

    Returns:
        Failure messages. Empty when every enabled gate passes.
    """
    failures: list[str] = []

    if config.threshold is not None and report.coverage_percentage < config.threshold:
        failures.append(
            f"Coverage {report.coverage_percentage:.1f}% is below threshold "
            f"{config.threshold:.1f}%"
        )

    if config.fail_on_orphans and report.orphans:
        count = len(report.orphans)
        failures.append(f"{count} orphaned marker{'' if count == 1 else 's'} found")

    return failures


def format_console_report(report: CoverageReport, console: Console | None = None) -> None:
    """Print a coverage summary as Rich panels and tables.

    Shows totals, the first uncovered nodes, and the first orphaned
    markers.

    Args:
        report: Reconciled coverage report.
        console: Optional Rich console (creates one if not provided).
    """
    if console is None:
        console = Console()

    pct = report.coverage_percentage
    color = "green" if report.missing_count == 0 else "yellow" if pct >= 50 else "red"

    header = Text()
    header.append("Coverage: ", style="bold")
    header.append(f"{pct:.1f}%", style=f"bold {color}")
    header.append(
        f"\nNodes: {report.total} total, {report.covered_count} covered, "
        f"{report.missing_count} missing"
    )
    header.append(f"\nOrphaned markers: {len(report.orphans)}")
    console.print(Panel(header, title="[bold]BPMN Test Coverage[/bold]"))

    gaps = report.gaps()
    if gaps:
        table = Table(title="Uncovered nodes", show_header=True, header_style="bold")
        table.add_column("BPMN ID", style="red")
        table.add_column("Type")
        table.add_column("Name")
        for row in gaps[:CONSOLE_LIST_LIMIT]:
            table.add_row(escape(row.node.id), row.node.type, escape(row.node.label or "-"))
        console.print(table)
        if len(gaps) > CONSOLE_LIST_LIMIT:
            console.print(f"  ... and {len(gaps) - CONSOLE_LIST_LIMIT} more", style="dim")

    if report.orphans:
        table = Table(title="Orphaned markers", show_header=True, header_style="bold")
        table.add_column("BPMN ID", style="yellow")
        table.add_column("Location")
        for orphan in report.orphans[:CONSOLE_LIST_LIMIT]:
            hit = orphan.hit
            table.add_row(escape(orphan.id), escape(f"{hit.source_file}:{hit.source_line}"))
        console.print(table)
        if len(report.orphans) > CONSOLE_LIST_LIMIT:
            remaining = len(report.orphans) - CONSOLE_LIST_LIMIT
            console.print(f"  ... and {remaining} more", style="dim")


__all__ = [
    "FORMATTERS",
    "check_gates",
    "format_console_report",
    "generate_report",
    "render_reports",
    "write_reports",
]
