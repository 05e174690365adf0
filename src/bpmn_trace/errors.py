"""Custom exception hierarchy for bpmn-trace.

This module defines the exception classes raised by the reporting pipeline:
- BpmnTraceError: Base exception for all bpmn-trace errors
- InputMissingError: Raised when the BPMN document does not exist
- DocumentParseError: Raised when the BPMN document is not well-formed XML
- DuplicateNodeIdError: Raised when two process nodes share an id
- ConfigurationError: Raised when configuration loading or validation fails

All of these are fatal for a run. Problems that only affect a single
node's metadata or a single test file are not exceptions: they are
defaulted or skipped and logged.

User-facing messages are safe to display; technical details are logged
internally via structlog.
"""

from __future__ import annotations

import structlog

logger = structlog.get_logger(__name__)


class BpmnTraceError(Exception):
    """Base exception for bpmn-trace.

    Args:
        user_message: Message safe to display on the terminal.
        internal_details: Optional technical details. Logged, never shown.

    Example:
        >>> raise BpmnTraceError(
        ...     "Report generation failed",
        ...     internal_details="lxml returned no root element",
        ... )
    """

    def __init__(
        self,
        user_message: str,
        *,
        internal_details: str | None = None,
    ) -> None:
        """Initialize BpmnTraceError with user message and optional internal details.

        Args:
            user_message: Safe message to display to the user.
            internal_details: Technical details for internal logging only.
        """
        super().__init__(user_message)
        self.user_message = user_message

        if internal_details:
            logger.error(
                "bpmn_trace_error",
                error_type=self.__class__.__name__,
                user_message=user_message,
                internal_details=internal_details,
            )


class InputMissingError(BpmnTraceError):
    """Raised when the BPMN document is absent.

    Checked once, before any extraction happens.

    Attributes:
        path: The path that was looked up.

    Example:
        >>> raise InputMissingError(Path("ci_test.bpmn"))
        # User sees: "BPMN document not found: ci_test.bpmn"
    """

    def __init__(self, path: object) -> None:
        """Initialize InputMissingError.

        Args:
            path: Path of the missing document.
        """
        super().__init__(f"BPMN document not found: {path}")
        self.path = path


class DocumentParseError(BpmnTraceError):
    """Raised when the BPMN document is not well-formed markup.

    Attributes:
        line_number: Line reported by the XML parser, if available.

    Example:
        >>> raise DocumentParseError(
        ...     "BPMN document is not well-formed XML",
        ...     line_number=12,
        ...     internal_details="Opening and ending tag mismatch: task line 10",
        ... )
        # User sees: "BPMN document is not well-formed XML (line 12)"
    """

    def __init__(
        self,
        user_message: str,
        *,
        line_number: int | None = None,
        internal_details: str | None = None,
    ) -> None:
        """Initialize DocumentParseError.

        Args:
            user_message: Safe message to display to the user.
            line_number: Line where parsing failed (optional).
            internal_details: Technical details for internal logging only.
        """
        if line_number:
            user_message = f"{user_message} (line {line_number})"
        super().__init__(user_message, internal_details=internal_details)
        self.line_number = line_number


class DuplicateNodeIdError(BpmnTraceError):
    """Raised when several process nodes carry the same id.

    Coverage of a duplicated id would be ambiguous, so the run is aborted
    instead of picking one of the nodes.

    Attributes:
        duplicate_ids: The offending ids, in document order.

    Example:
        >>> raise DuplicateNodeIdError(["Activity_1"])
        # User sees: "Duplicate node id in BPMN document: Activity_1"
    """

    def __init__(self, duplicate_ids: list[str]) -> None:
        """Initialize DuplicateNodeIdError.

        Args:
            duplicate_ids: Ids that occur more than once.
        """
        label = "id" if len(duplicate_ids) == 1 else "ids"
        super().__init__(f"Duplicate node {label} in BPMN document: {', '.join(duplicate_ids)}")
        self.duplicate_ids = duplicate_ids


class ConfigurationError(BpmnTraceError):
    """Raised when configuration file parsing or validation fails.

    Attributes:
        file_path: Path to the configuration file (if known).
        field_path: Dot-separated path to the invalid field (if known).

    Example:
        >>> raise ConfigurationError(
        ...     "Invalid configuration",
        ...     file_path="bpmn-trace.yaml",
        ...     field_path="scan_workers",
        ... )
        # User sees: "Invalid configuration (in bpmn-trace.yaml, field 'scan_workers')"
    """

    def __init__(
        self,
        user_message: str,
        *,
        file_path: str | None = None,
        field_path: str | None = None,
        internal_details: str | None = None,
    ) -> None:
        """Initialize ConfigurationError with context.

        Args:
            user_message: Safe message to display to the user.
            file_path: Path to the configuration file (optional).
            field_path: Dot-separated path to the field (optional).
            internal_details: Technical details for internal logging only.
        """
        context_parts: list[str] = []
        if file_path:
            context_parts.append(f"in {file_path}")
        if field_path:
            context_parts.append(f"field '{field_path}'")

        if context_parts:
            full_message = f"{user_message} ({', '.join(context_parts)})"
        else:
            full_message = user_message

        super().__init__(full_message, internal_details=internal_details)

        self.file_path = file_path
        self.field_path = field_path


__all__ = [
    "BpmnTraceError",
    "ConfigurationError",
    "DocumentParseError",
    "DuplicateNodeIdError",
    "InputMissingError",
]
