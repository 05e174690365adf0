"""CLI entry point for bpmn-trace.

Running ``bpmn-trace`` with no arguments reads ``ci_test.bpmn`` from the
current directory, scans ``tests/`` for ``[bpmn:<id>]`` markers, and writes
``bpmn-test-report.{json,csv,html}`` next to the document.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import click
import rich_click as rclick

from bpmn_trace import __version__
from bpmn_trace.cli.errors import (
    EXIT_USER_ERROR,
    handle_write_error,
    to_cli_error,
)
from bpmn_trace.cli.output import error, get_console, set_no_color, success, warning
from bpmn_trace.config import ReportFormat, TraceConfig, build_config
from bpmn_trace.errors import BpmnTraceError
from bpmn_trace.observability import LOG_LEVELS, configure_logging
from bpmn_trace.reporter import (
    check_gates,
    format_console_report,
    generate_report,
    write_reports,
)

# Configure rich-click for better help formatting
rclick.rich_click.TEXT_MARKUP = "markdown"
rclick.rich_click.SHOW_ARGUMENTS = True

# Loaded automatically from the project root when --config is not given
DEFAULT_CONFIG_FILE = "bpmn-trace.yaml"


@click.command(cls=rclick.RichCommand, name="bpmn-trace")
@click.version_option(version=__version__, prog_name="bpmn-trace")
@click.option(
    "--no-color",
    is_flag=True,
    default=False,
    help="Disable colored output.",
    is_eager=True,
    expose_value=False,
    callback=lambda ctx, param, value: set_no_color(value) if value else None,
)
@click.option(
    "-c",
    "--config",
    "config_file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help=f"YAML configuration file [default: ./{DEFAULT_CONFIG_FILE} if present]",
)
@click.option(
    "--root",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Project root for the document, test globs and outputs [default: .]",
)
@click.option(
    "-d",
    "--document",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="BPMN document, relative to root [default: ci_test.bpmn]",
)
@click.option(
    "-o",
    "--output-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Output directory, relative to root [default: root]",
)
@click.option(
    "-f",
    "--format",
    "formats",
    type=click.Choice([f.value for f in ReportFormat]),
    multiple=True,
    help="Report format to write (repeatable) [default: json, csv, html]",
)
@click.option(
    "--include-type",
    "include_types",
    multiple=True,
    help="Only report BPMN elements of this type, e.g. userTask (repeatable)",
)
@click.option(
    "--threshold",
    type=click.FloatRange(0.0, 100.0),
    default=None,
    help="Minimum coverage percentage; exit 1 if not met",
)
@click.option(
    "--fail-on-orphans",
    is_flag=True,
    default=False,
    help="Exit 1 if any test references a missing BPMN id",
)
@click.option(
    "--summary/--no-summary",
    default=True,
    help="Print a coverage summary table [default: on]",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    help="Log level for diagnostics on stderr [default: WARNING]",
)
@click.option(
    "--json-logs",
    is_flag=True,
    default=False,
    help="Emit diagnostics as JSON lines",
)
def cli(
    config_file: Path | None,
    root: Path | None,
    document: Path | None,
    output_dir: Path | None,
    formats: tuple[str, ...],
    include_types: tuple[str, ...],
    threshold: float | None,
    fail_on_orphans: bool,
    summary: bool,
    log_level: str,
    json_logs: bool,
) -> None:
    """Generate a BPMN ↔ test coverage report.

    Extracts every identified element from the BPMN document, scans test
    files for `[bpmn:<id>]` markers, and writes JSON, CSV and HTML reports
    listing which elements are covered and which markers are orphaned.

    **Examples:**

    - `bpmn-trace`
    - `bpmn-trace --document process.bpmn --format html`
    - `bpmn-trace --include-type userTask --threshold 80`
    """
    configure_logging(log_level=log_level, json_format=json_logs)

    overrides: dict[str, Any] = {
        "root": root,
        "document": document,
        "output_dir": output_dir,
        "formats": list(formats) or None,
        "include_types": list(include_types) or None,
        "threshold": threshold,
        "fail_on_orphans": fail_on_orphans or None,
    }
    overrides = {k: v for k, v in overrides.items() if v is not None}

    try:
        config = _load_config(config_file, overrides)
        report = generate_report(config)
    except BpmnTraceError as e:
        raise to_cli_error(e) from None

    try:
        paths = write_reports(report, config)
    except OSError as e:
        raise handle_write_error(e, config.output_path) from None

    if not report.orphans and not any(row.hits for row in report.rows):
        warning(f"No [bpmn:<id>] markers found under {config.root}")

    if summary:
        format_console_report(report, get_console())

    for path in paths:
        success(f"Wrote {path}")

    failures = check_gates(report, config)
    for message in failures:
        error(message)
    if failures:
        raise SystemExit(EXIT_USER_ERROR)


def _load_config(config_file: Path | None, overrides: dict[str, Any]) -> TraceConfig:
    """Build the run configuration from an optional YAML file and CLI overrides."""
    if config_file is None:
        default = Path(overrides.get("root") or Path.cwd()) / DEFAULT_CONFIG_FILE
        if default.is_file():
            config_file = default

    if config_file is not None:
        return TraceConfig.from_yaml(config_file, **overrides)
    return build_config(overrides)


if __name__ == "__main__":
    cli()
