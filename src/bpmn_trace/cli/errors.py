"""CLI error handling for bpmn-trace.

Wraps pipeline exceptions into user-friendly messages with appropriate
exit codes.
"""

from __future__ import annotations

import click

from bpmn_trace.cli.output import error
from bpmn_trace.errors import BpmnTraceError, InputMissingError

# Exit codes following sysexits.h convention
EXIT_SUCCESS = 0
EXIT_USER_ERROR = 1  # Invalid document or config, failed coverage gate
EXIT_SYSTEM_ERROR = 2  # Missing document, unwritable output


class CLIError(click.ClickException):
    """CLI-specific exception with exit code support.

    Attributes:
        message: User-facing error message.
        exit_code: Exit code for the CLI (default: 1).
    """

    def __init__(self, message: str, exit_code: int = EXIT_USER_ERROR) -> None:
        """Initialize CLIError.

        Args:
            message: User-facing error message.
            exit_code: Exit code for the CLI.
        """
        super().__init__(message)
        self.exit_code = exit_code

    def show(self, file: object = None) -> None:
        """Display the error message on stderr using Rich formatting.

        Args:
            file: Output file (unused, for Click compatibility).
        """
        error(self.format_message())


def exit_code_for(err: BpmnTraceError) -> int:
    """Get the exit code for a pipeline error.

    Args:
        err: Exception raised by the pipeline.

    Returns:
        EXIT_SYSTEM_ERROR for a missing document, EXIT_USER_ERROR otherwise.
    """
    if isinstance(err, InputMissingError):
        return EXIT_SYSTEM_ERROR
    return EXIT_USER_ERROR


def to_cli_error(err: BpmnTraceError) -> CLIError:
    """Convert a pipeline error into a CLIError with the matching exit code."""
    return CLIError(err.user_message, exit_code=exit_code_for(err))


def handle_write_error(err: OSError, path: object) -> CLIError:
    """Convert an output write failure into a CLIError.

    Args:
        err: The OSError raised while writing.
        path: Output directory that was being written.

    Returns:
        CLIError with EXIT_SYSTEM_ERROR.
    """
    if isinstance(err, PermissionError):
        return CLIError(f"Permission denied: Cannot write to {path}", exit_code=EXIT_SYSTEM_ERROR)
    return CLIError(f"Cannot write reports to {path}: {err.strerror or err}", exit_code=EXIT_SYSTEM_ERROR)


__all__ = [
    "EXIT_SUCCESS",
    "EXIT_SYSTEM_ERROR",
    "EXIT_USER_ERROR",
    "CLIError",
    "exit_code_for",
    "handle_write_error",
    "to_cli_error",
]
