"""Run configuration for bpmn-trace.

A single immutable TraceConfig carries every piece of process-wide state
(root directory, document path, artifact globs, output location) and is
passed explicitly to each pipeline stage.

Precedence, highest first:
    1. Keyword overrides (CLI options)
    2. YAML configuration file (``--config``)
    3. Environment variables prefixed with ``BPMN_TRACE_``
    4. Defaults below
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from bpmn_trace.errors import ConfigurationError

DEFAULT_DOCUMENT = "ci_test.bpmn"
DEFAULT_REPORT_NAME = "bpmn-test-report"

# tests/**/*.{spec,test}.{ts,tsx,js,jsx}
DEFAULT_TEST_GLOBS: list[str] = [
    f"tests/**/*.{kind}.{ext}" for kind in ("spec", "test") for ext in ("ts", "tsx", "js", "jsx")
]

DEFAULT_TITLE_KEYWORDS: list[str] = ["test", "it", "describe"]


class ReportFormat(str, Enum):
    """Serialized report forms."""

    JSON = "json"
    CSV = "csv"
    HTML = "html"


class TraceConfig(BaseSettings):
    """Configuration for one report-generation run.

    Attributes:
        root: Directory that relative paths and test globs resolve against.
        document: BPMN document path (relative to root unless absolute).
        test_globs: Glob patterns selecting test artifacts under root.
        output_dir: Directory for written reports (relative to root unless absolute).
        report_name: Base file name of written reports, without extension.
        formats: Report forms to write.
        include_types: Restrict extraction to these tag local names (None = all).
        title_keywords: Call names whose first string argument is a test title.
        scan_workers: Threads used to read test files (1 = sequential).
        threshold: Minimum coverage percentage required for success.
        fail_on_orphans: Treat orphaned markers as a failure.

    Example:
        >>> config = TraceConfig(root=Path("/repo"), document="process.bpmn")
        >>> config.document_path
        PosixPath('/repo/process.bpmn')
    """

    model_config = SettingsConfigDict(
        env_prefix="BPMN_TRACE_",
        frozen=True,
        extra="forbid",
    )

    root: Path = Field(default_factory=Path.cwd, description="Project root directory")
    document: Path = Field(
        default=Path(DEFAULT_DOCUMENT),
        description="BPMN document, relative to root",
    )
    test_globs: list[str] = Field(
        default_factory=lambda: list(DEFAULT_TEST_GLOBS),
        min_length=1,
        description="Glob patterns for test files, relative to root",
    )
    output_dir: Path = Field(default=Path("."), description="Report output directory")
    report_name: str = Field(
        default=DEFAULT_REPORT_NAME,
        min_length=1,
        pattern=r"^[^/\\]+$",
        description="Report file base name",
    )
    formats: list[ReportFormat] = Field(
        default_factory=lambda: list(ReportFormat),
        description="Report formats to write",
    )
    include_types: list[str] | None = Field(
        default=None,
        description="BPMN element types to include (None = every element with an id)",
    )
    title_keywords: list[str] = Field(
        default_factory=lambda: list(DEFAULT_TITLE_KEYWORDS),
        min_length=1,
        description="Test declaration call names",
    )
    scan_workers: int = Field(default=1, ge=1, le=32, description="File read threads")
    threshold: float | None = Field(
        default=None,
        ge=0.0,
        le=100.0,
        description="Minimum coverage percentage",
    )
    fail_on_orphans: bool = Field(default=False, description="Fail when orphans exist")

    @field_validator("formats")
    @classmethod
    def formats_must_be_unique(cls, v: list[ReportFormat]) -> list[ReportFormat]:
        """Drop repeated formats, keeping first occurrence order."""
        return list(dict.fromkeys(v))

    @field_validator("title_keywords")
    @classmethod
    def keywords_must_be_identifiers(cls, v: list[str]) -> list[str]:
        """Validate that title keywords are plain identifiers."""
        for keyword in v:
            if not keyword.isidentifier():
                msg = f"title keyword must be an identifier, got {keyword!r}"
                raise ValueError(msg)
        return v

    @field_validator("test_globs")
    @classmethod
    def globs_must_be_relative(cls, v: list[str]) -> list[str]:
        """Validate that test globs are non-empty patterns relative to root."""
        for pattern in v:
            if not pattern.strip():
                msg = "test glob must not be empty"
                raise ValueError(msg)
            if Path(pattern).is_absolute() or pattern.startswith(("/", "\\")):
                msg = f"test glob must be relative to root, got {pattern!r}"
                raise ValueError(msg)
        return v

    @property
    def document_path(self) -> Path:
        """Absolute-or-root-relative path of the BPMN document."""
        return self.root / self.document

    @property
    def output_path(self) -> Path:
        """Directory reports are written to."""
        return self.root / self.output_dir

    def output_path_for(self, fmt: ReportFormat) -> Path:
        """Get the output file path for a report format.

        Args:
            fmt: Report format.

        Returns:
            Path such as ``<output_dir>/bpmn-test-report.csv``.
        """
        return self.output_path / f"{self.report_name}.{fmt.value}"

    @classmethod
    def from_yaml(cls, path: str | Path, **overrides: Any) -> TraceConfig:
        """Load and validate TraceConfig from a YAML file.

        Relative ``root`` values in the file resolve against the file's
        directory. Keyword overrides take precedence over file values.

        Args:
            path: Path to the YAML configuration file.
            **overrides: Field values that win over the file.

        Returns:
            Validated TraceConfig instance.

        Raises:
            ConfigurationError: If the file is missing, is not valid YAML,
                is not a mapping, or fails validation.

        Example:
            >>> config = TraceConfig.from_yaml("bpmn-trace.yaml", threshold=80)
        """
        path = Path(path)
        if not path.exists():
            raise ConfigurationError("Configuration file not found", file_path=str(path))

        try:
            with path.open("r", encoding="utf-8") as f:
                data: Any = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(
                "Invalid YAML in configuration file",
                file_path=str(path),
                internal_details=str(e),
            ) from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigurationError(
                "Configuration file must contain a mapping",
                file_path=str(path),
            )

        if "root" in data and data["root"] is not None:
            data["root"] = path.parent / Path(str(data["root"]))
        elif "root" not in overrides:
            data["root"] = path.parent

        data.update(overrides)
        return build_config(data, file_path=str(path))


def build_config(values: dict[str, Any], *, file_path: str | None = None) -> TraceConfig:
    """Validate configuration values, converting pydantic errors.

    Args:
        values: Field values.
        file_path: Source file for error context (optional).

    Returns:
        Validated TraceConfig.

    Raises:
        ConfigurationError: If validation fails.
    """
    try:
        return TraceConfig(**values)
    except ValidationError as e:
        first = e.errors()[0]
        field_path = ".".join(str(x) for x in first["loc"]) or None
        raise ConfigurationError(
            f"Invalid configuration: {first['msg']}",
            file_path=file_path,
            field_path=field_path,
            internal_details=str(e),
        ) from e


__all__ = [
    "DEFAULT_DOCUMENT",
    "DEFAULT_REPORT_NAME",
    "DEFAULT_TEST_GLOBS",
    "DEFAULT_TITLE_KEYWORDS",
    "ReportFormat",
    "TraceConfig",
    "build_config",
]
