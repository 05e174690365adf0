"""Shared pytest fixtures for bpmn-trace tests.

Provides a small BPMN project on disk (document plus Playwright-style test
files), CliRunner fixtures, and structlog configuration for test capture.
"""

from __future__ import annotations

from collections.abc import Callable, Generator
from pathlib import Path
import sys
from textwrap import dedent

from click.testing import CliRunner
import pytest
import structlog

BPMN_FILENAME = "ci_test.bpmn"

SAMPLE_BPMN = dedent(
    """\
    <?xml version="1.0" encoding="UTF-8"?>
    <bpmn:definitions xmlns:bpmn="http://www.omg.org/spec/BPMN/20100524/MODEL"
                      xmlns:custom="http://example.com/schema/custom"
                      id="Definitions_1">
      <bpmn:process id="Process_1" isExecutable="false">
        <bpmn:startEvent id="StartEvent_1" name="Start" />
        <bpmn:userTask id="Activity_11wac6l" name="Enter income">
          <bpmn:extensionElements>
            <custom:meta>
              <custom:playwrightRef>tests/income.spec.ts</custom:playwrightRef>
              <custom:jiraKeys>PAY-12, PAY-13|PAY-14</custom:jiraKeys>
              <custom:tags>income, mock</custom:tags>
              <custom:priority>High</custom:priority>
              <custom:figmaUrl>https://figma.com/file/abc</custom:figmaUrl>
            </custom:meta>
          </bpmn:extensionElements>
        </bpmn:userTask>
        <bpmn:serviceTask id="Activity_0check" name="Check credit" />
        <bpmn:endEvent id="EndEvent_1" />
        <bpmn:sequenceFlow id="Flow_1" sourceRef="StartEvent_1" targetRef="Activity_11wac6l" />
      </bpmn:process>
    </bpmn:definitions>
    """
)

SAMPLE_SPEC_TS = dedent(
    """\
    import { test, expect } from '@playwright/test';

    test.describe('UC - Income (mock)', () => {
      test('Valid income [bpmn:Activity_11wac6l]', async () => {
        expect(true).toBe(true);
      });

      test('Removed step [bpmn:Activity_gone]', async () => {
        expect(true).toBe(true);
      });
    });
    """
)


@pytest.fixture(autouse=True)
def configure_structlog_for_tests() -> None:
    """Configure structlog to output to stdout for test capture.

    Keeps log rendering independent of whichever test configured
    logging last.
    """
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=False,  # Important for test isolation
    )


@pytest.fixture
def cli_runner() -> CliRunner:
    """Create a Click test runner."""
    return CliRunner()


@pytest.fixture
def isolated_runner(cli_runner: CliRunner) -> Generator[CliRunner, None, None]:
    """Create a Click test runner with an isolated filesystem.

    Yields:
        CliRunner instance whose working directory is a fresh temp dir.
    """
    with cli_runner.isolated_filesystem():
        yield cli_runner


@pytest.fixture
def sample_bpmn_bytes() -> bytes:
    """Return the sample BPMN document as bytes."""
    return SAMPLE_BPMN.encode("utf-8")


@pytest.fixture
def write_file(tmp_path: Path) -> Callable[[str, str], Path]:
    """Factory fixture writing a text file below tmp_path.

    Returns:
        Function taking a relative path and content, returning the file path.
    """

    def _write(relative: str, content: str) -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def sample_project(tmp_path: Path, write_file: Callable[[str, str], Path]) -> Path:
    """Create a project with ci_test.bpmn and one Playwright spec file.

    Layout:
        <tmp>/ci_test.bpmn
        <tmp>/tests/income.spec.ts

    Returns:
        Project root directory.
    """
    write_file(BPMN_FILENAME, SAMPLE_BPMN)
    write_file("tests/income.spec.ts", SAMPLE_SPEC_TS)
    return tmp_path
