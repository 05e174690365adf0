"""Command-line interface for bpmn-trace.

The ``bpmn-trace`` console script and ``python -m bpmn_trace`` both run
:func:`bpmn_trace.cli.main.cli`.
"""

from __future__ import annotations

__all__: list[str] = []
