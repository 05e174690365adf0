"""Allow running bpmn-trace as a module.

Usage:
    python -m bpmn_trace [OPTIONS]
"""

from __future__ import annotations

from bpmn_trace.cli.main import cli

if __name__ == "__main__":
    cli(prog_name="bpmn-trace")
