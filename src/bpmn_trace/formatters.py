"""Serializations of a CoverageReport.

Three independent views over the same reconciled result:

    format_json_report: Structured data ({"rows": [...], "orphans": [...]})
    format_csv_report: One quoted CSV line per coverage row
    format_html_report: Self-contained HTML page with filtering

All three read row values from row_record() so they can never disagree
about a row's content or coverage.
"""

from __future__ import annotations

import csv
import io
import json
from typing import Any

from jinja2 import select_autoescape
from jinja2.sandbox import SandboxedEnvironment

from bpmn_trace.models import CoverageReport, CoverageRow, CoverageStatus, OrphanEntry

CSV_HEADER: list[str] = [
    "BPMN ID",
    "Name",
    "Type",
    "Priority",
    "Tags",
    "Jira",
    "PlaywrightRefs",
    "Figma",
    "Tests",
    "Coverage",
]

# Structured-data field order, matching CSV_HEADER column for column
ROW_FIELDS: list[str] = [
    "id",
    "name",
    "type",
    "priority",
    "tags",
    "jira",
    "playwrightRefs",
    "figma",
    "tests",
    "coverage",
]

TESTS_SEPARATOR = " | "


def row_record(row: CoverageRow) -> dict[str, str]:
    """Flatten a CoverageRow into its report fields.

    Args:
        row: Reconciled coverage row.

    Returns:
        Mapping with the keys of ROW_FIELDS, all string values.

    Example:
        >>> row_record(row)["tests"]
        'tests/income.spec.ts#Valid income [bpmn:Activity_1] | tests/a.spec.ts'
    """
    node = row.node
    meta = node.metadata

    if meta.figma_url:
        figma = meta.figma_url
    elif meta.figma_node_id:
        figma = f"node:{meta.figma_node_id}"
    else:
        figma = ""

    tests = hit_labels(row)

    return {
        "id": node.id,
        "name": node.label or "",
        "type": node.type,
        "priority": meta.priority,
        "tags": ", ".join(meta.tags),
        "jira": ", ".join(meta.jira_keys),
        "playwrightRefs": TESTS_SEPARATOR.join(meta.playwright_refs),
        "figma": figma,
        "tests": TESTS_SEPARATOR.join(tests),
        "coverage": row.status.value,
    }


def hit_labels(row: CoverageRow) -> list[str]:
    """Describe each hit of a row as ``file#title``, or ``file`` when untitled."""
    return [
        f"{hit.source_file}#{hit.associated_label}" if hit.associated_label else hit.source_file
        for hit in row.hits
    ]


def orphan_record(orphan: OrphanEntry) -> dict[str, Any]:
    """Flatten an OrphanEntry into its report fields (id, file, line, title)."""
    hit = orphan.hit
    return {
        "id": hit.referenced_id,
        "file": hit.source_file,
        "line": hit.source_line,
        "title": hit.associated_label or "",
    }


def summary_record(report: CoverageReport) -> dict[str, Any]:
    """Summary counts for a report."""
    return {
        "total": report.total,
        "covered": report.covered_count,
        "missing": report.missing_count,
        "orphans": len(report.orphans),
        "coverage_percentage": round(report.coverage_percentage, 2),
    }


def report_data(report: CoverageReport) -> dict[str, Any]:
    """Build the structured-data form of a report as plain Python objects."""
    return {
        "generated_at": report.generated_at.isoformat(),
        "summary": summary_record(report),
        "rows": [row_record(r) for r in report.rows],
        "orphans": [orphan_record(o) for o in report.orphans],
    }


def format_json_report(report: CoverageReport) -> str:
    """Format a report as JSON.

    Only ``generated_at`` varies between runs over unchanged inputs.

    Args:
        report: Reconciled coverage report.

    Returns:
        Indented JSON string.

    Example:
        >>> data = json.loads(format_json_report(report))
        >>> data["rows"][0]["coverage"]
        'Covered'
    """
    return json.dumps(report_data(report), indent=2, ensure_ascii=False)


def format_csv_report(report: CoverageReport) -> str:
    """Format coverage rows as CSV.

    Every field is quoted and embedded quotes are doubled, whether or not
    the field needs it. Orphans are not part of the CSV form.

    Args:
        report: Reconciled coverage report.

    Returns:
        CSV text with a header line and one line per row.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for row in report.rows:
        record = row_record(row)
        writer.writerow([record[field] for field in ROW_FIELDS])
    return buffer.getvalue()


_HTML_TEMPLATE = """\
<!doctype html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>{{ title }}</title>
<style>
  body{font-family:ui-sans-serif,system-ui,-apple-system,Segoe UI,Roboto,sans-serif;padding:16px}
  table{border-collapse:collapse;width:100%}
  th,td{border:1px solid #e5e7eb;padding:8px;text-align:left;vertical-align:top}
  th{background:#f9fafb}
  .badge{display:inline-block;padding:2px 6px;border-radius:8px;font-size:12px}
  .ok{background:#dcfce7}
  .miss{background:#fee2e2}
  .mono{font-family:ui-monospace,Menlo,Consolas,monospace}
  .controls{display:flex;gap:16px;align-items:center;margin:12px 0}
  h1{margin:0 0 8px 0}
  small{color:#6b7280}
  .section{margin-top:24px}
</style>
</head>
<body>
<h1>{{ title }}</h1>
<small>Generated: {{ generated_at }}</small>
<p>
  Coverage: <strong>{{ "%.1f"|format(summary.coverage_percentage) }}%</strong>
  ({{ summary.covered }}/{{ summary.total }} covered, {{ summary.missing }} missing,
  {{ summary.orphans }} orphan{{ "" if summary.orphans == 1 else "s" }})
</p>
<div class="controls">
  <input id="filter" type="search" placeholder="Filter rows..." size="40">
  <label><input id="only-missing" type="checkbox"> Only uncovered</label>
</div>
<div class="section">
  <table id="rows">
    <thead>
      <tr>
        {%- for column in columns %}<th>{{ column }}</th>{% endfor %}
      </tr>
    </thead>
    <tbody>
    {%- for row, tests in rows %}
      <tr data-coverage="{{ row.coverage }}">
        <td class="mono">{{ row.id }}</td>
        <td>{{ row.name }}</td>
        <td>{{ row.type }}</td>
        <td>{{ row.priority }}</td>
        <td>{{ row.tags }}</td>
        <td>{{ row.jira }}</td>
        <td class="mono">{{ row.playwrightRefs }}</td>
        <td>
          {%- if row.figma.startswith("http://") or row.figma.startswith("https://") -%}
          <a href="{{ row.figma }}" target="_blank" rel="noopener">Open</a>
          {%- else %}{{ row.figma }}{% endif -%}
        </td>
        <td>{% for test in tests %}<div>{{ test }}</div>{% endfor %}</td>
        <td>
          {%- if row.coverage == covered -%}
          <span class="badge ok">Covered</span>
          {%- else -%}
          <span class="badge miss">Missing</span>
          {%- endif -%}
        </td>
      </tr>
    {%- endfor %}
    </tbody>
  </table>
</div>
<div class="section">
  <h2>Orphan tests</h2>
  {%- if orphans %}
  <p><small>Tests referencing [bpmn:ID] markers that do not exist in the document.</small></p>
  <table id="orphans">
    <thead><tr><th>BPMN ID (missing)</th><th>File</th><th>Line</th><th>Title</th></tr></thead>
    <tbody>
    {%- for orphan in orphans %}
      <tr>
        <td class="mono">{{ orphan.id }}</td>
        <td class="mono">{{ orphan.file }}</td>
        <td>{{ orphan.line }}</td>
        <td>{{ orphan.title }}</td>
      </tr>
    {%- endfor %}
    </tbody>
  </table>
  {%- else %}
  <small>None.</small>
  {%- endif %}
</div>
<script id="report-data" type="application/json">{{ data|tojson }}</script>
<script>
(function () {
  var filter = document.getElementById("filter");
  var onlyMissing = document.getElementById("only-missing");
  var rows = document.querySelectorAll("#rows tbody tr");
  function apply() {
    var needle = filter.value.trim().toLowerCase();
    rows.forEach(function (tr) {
      var text = tr.textContent.toLowerCase();
      var hide = (needle && text.indexOf(needle) === -1) ||
        (onlyMissing.checked && tr.dataset.coverage !== "{{ covered }}");
      tr.style.display = hide ? "none" : "";
    });
  }
  filter.addEventListener("input", apply);
  onlyMissing.addEventListener("change", apply);
})();
</script>
</body>
</html>
"""

_environment = SandboxedEnvironment(
    autoescape=select_autoescape(default=True, default_for_string=True),
    trim_blocks=True,
    lstrip_blocks=True,
)


def format_html_report(report: CoverageReport, title: str = "BPMN Test Coverage Report") -> str:
    """Format a report as a self-contained HTML page.

    The page embeds the full structured data, renders the row and orphan
    tables, and offers a text filter and an "only uncovered" toggle. All
    values are HTML-escaped.

    Args:
        report: Reconciled coverage report.
        title: Page title.

    Returns:
        HTML document string.
    """
    data = report_data(report)
    template = _environment.from_string(_HTML_TEMPLATE)
    return template.render(
        title=title,
        generated_at=data["generated_at"],
        summary=data["summary"],
        columns=CSV_HEADER,
        rows=list(zip(data["rows"], [hit_labels(r) for r in report.rows], strict=True)),
        orphans=data["orphans"],
        data=data,
        covered=CoverageStatus.COVERED.value,
    )


__all__ = [
    "CSV_HEADER",
    "ROW_FIELDS",
    "format_csv_report",
    "format_html_report",
    "format_json_report",
    "hit_labels",
    "orphan_record",
    "report_data",
    "row_record",
    "summary_record",
]
