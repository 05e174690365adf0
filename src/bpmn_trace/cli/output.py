"""Rich console output utilities for the bpmn-trace CLI.

Success output goes to stdout; errors and warnings go to
stderr. NO_COLOR is respected, and ``--no-color`` disables color for the
rest of the process.
"""

from __future__ import annotations

import os
from typing import Any

from rich.console import Console
from rich.markup import escape

# Rich automatically respects NO_COLOR, but we also support --no-color flag
_force_no_color = os.environ.get("NO_COLOR") is not None


def create_console(no_color: bool = False, stderr: bool = False) -> Console:
    """Create a Rich Console instance with appropriate color settings.

    Args:
        no_color: If True, disable colored output. Also respects NO_COLOR env var.
        stderr: If True, write to stderr instead of stdout.

    Returns:
        Configured Console instance.
    """
    disabled = no_color or _force_no_color
    return Console(
        stderr=stderr,
        force_terminal=False if disabled else None,
        no_color=disabled,
        soft_wrap=True,
    )


console = create_console()
err_console = create_console(stderr=True)


def success(message: str, **kwargs: Any) -> None:
    """Print a success message with green checkmark.

    Example:
        >>> success("Wrote bpmn-test-report.csv")
        ✓ Wrote bpmn-test-report.csv
    """
    console.print(f"[green]✓[/green] {escape(message)}", **kwargs)


def error(message: str, **kwargs: Any) -> None:
    """Print an error message with red X to stderr.

    Example:
        >>> error("BPMN document not found: ci_test.bpmn")
        ✗ BPMN document not found: ci_test.bpmn
    """
    err_console.print(f"[red]✗[/red] {escape(message)}", **kwargs)


def warning(message: str, **kwargs: Any) -> None:
    """Print a warning message with yellow triangle to stderr."""
    err_console.print(f"[yellow]⚠[/yellow] {escape(message)}", **kwargs)


def set_no_color(no_color: bool) -> None:
    """Update the global consoles to enable/disable colors.

    Args:
        no_color: If True, disable colored output.
    """
    global console, err_console
    console = create_console(no_color=no_color)
    err_console = create_console(no_color=no_color, stderr=True)


def get_console() -> Console:
    """Return the current stdout console (replaced by set_no_color)."""
    return console


__all__ = [
    "create_console",
    "error",
    "get_console",
    "set_no_color",
    "success",
    "warning",
]
