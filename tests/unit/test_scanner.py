"""Tests for bpmn_trace.scanner module.

These tests verify marker discovery in test files:
- [bpmn:<id>] markers with file, line and enclosing test title
- Several markers on one line or in one title
- Test file discovery from glob patterns, sorted and deduplicated
- Unreadable or vanished files are skipped
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from textwrap import dedent

import pytest

from bpmn_trace import scanner
from bpmn_trace.config import TraceConfig
from bpmn_trace.scanner import (
    MARKER_PATTERN,
    collect_titles,
    discover_test_files,
    scan_references,
    scan_text,
)


class TestMarkerPattern:
    """Tests for the marker regex."""

    def test_matches_marker(self) -> None:
        """Marker id is everything up to the closing bracket."""
        assert MARKER_PATTERN.findall("x [bpmn:Activity_11wac6l] y") == ["Activity_11wac6l"]

    def test_requires_non_empty_id(self) -> None:
        """[bpmn:] carries no id and is not a marker."""
        assert MARKER_PATTERN.findall("[bpmn:]") == []

    def test_case_sensitive_prefix(self) -> None:
        """Only the lowercase bpmn prefix is recognized."""
        assert MARKER_PATTERN.findall("[BPMN:A]") == []


class TestScanText:
    """Tests for scan_text function."""

    def test_single_marker_with_title(self) -> None:
        """Marker inside a test title is labelled with that title."""
        text = "test('Valid income [bpmn:Activity_1]', async () => {});"

        hits = scan_text(text, "tests/a.spec.ts")

        assert len(hits) == 1
        hit = hits[0]
        assert hit.referenced_id == "Activity_1"
        assert hit.source_file == "tests/a.spec.ts"
        assert hit.source_line == 1
        assert hit.associated_label == "Valid income [bpmn:Activity_1]"
        assert hit.marker == "[bpmn:Activity_1]"

    def test_two_markers_one_title(self) -> None:
        """[bpmn:A][bpmn:B] yields two hits with the same line and label."""
        text = "it('Pay [bpmn:A][bpmn:B]', () => {})"

        hits = scan_text(text, "a.spec.ts")

        assert [h.referenced_id for h in hits] == ["A", "B"]
        assert {h.source_line for h in hits} == {1}
        assert {h.associated_label for h in hits} == {"Pay [bpmn:A][bpmn:B]"}

    def test_line_numbers(self) -> None:
        """Line numbers are 1-based line of the marker."""
        text = dedent(
            """\
            import { test } from '@playwright/test';

            test('first [bpmn:A]', () => {});
            // [bpmn:B] mentioned in a comment
            test("second [bpmn:C]", () => {});
            """
        )

        hits = scan_text(text, "a.spec.ts")

        assert [(h.referenced_id, h.source_line) for h in hits] == [("A", 3), ("B", 4), ("C", 5)]

    def test_marker_outside_title_has_no_label(self) -> None:
        """Markers in comments or code still count, without a label."""
        hits = scan_text("// covers [bpmn:B]\n", "a.spec.ts")

        assert len(hits) == 1
        assert hits[0].associated_label is None

    def test_describe_and_template_literal_titles(self) -> None:
        """Titles come from describe() and backtick literals too."""
        text = dedent(
            """\
            test.describe(`Income [bpmn:G]`, () => {
              it("nested [bpmn:H]", () => {});
            });
            """
        )

        hits = scan_text(text, "a.spec.ts")

        assert [(h.referenced_id, h.associated_label) for h in hits] == [
            ("G", "Income [bpmn:G]"),
            ("H", "nested [bpmn:H]"),
        ]

    def test_repeated_marker_counts_each_occurrence(self) -> None:
        """The same marker twice yields two hits."""
        text = "test('a [bpmn:A]', f)\ntest('b [bpmn:A]', g)\n"

        hits = scan_text(text, "a.spec.ts")

        assert [(h.source_line, h.associated_label) for h in hits] == [
            (1, "a [bpmn:A]"),
            (2, "a [bpmn:A]"),
        ]

    def test_no_markers(self) -> None:
        """Files without markers produce no hits."""
        assert scan_text("test('plain', () => {})", "a.spec.ts") == []

    def test_custom_title_keywords(self) -> None:
        """Only the configured call names declare titles."""
        text = "scenario('Pay [bpmn:A]', f)"

        assert scan_text(text, "a.feature.ts")[0].associated_label is None
        hits = scan_text(text, "a.feature.ts", ["scenario"])
        assert hits[0].associated_label == "Pay [bpmn:A]"


class TestCollectTitles:
    """Tests for collect_titles function."""

    def test_collects_in_order(self) -> None:
        """Titles are returned in order of appearance."""
        text = "describe('Group', () => { it('one', f); test(\"two\", g); });"

        assert collect_titles(text) == ["Group", "one", "two"]

    def test_keyword_must_be_whole_word(self) -> None:
        """Calls such as latest('...') or submit('...') are not titles."""
        text = "latest('nope'); submit('no'); test.only('yes', f)"

        assert collect_titles(text) == []

    def test_member_call(self) -> None:
        """test.describe(...) is recognized through the describe keyword."""
        assert collect_titles("test.describe('Suite', f)") == ["Suite"]

    def test_case_insensitive(self) -> None:
        """Keywords match regardless of case."""
        assert collect_titles("Describe('Suite', f)") == ["Suite"]


class TestDiscoverTestFiles:
    """Tests for discover_test_files function."""

    def test_missing_root(self, tmp_path: Path) -> None:
        """A missing root yields no files."""
        assert discover_test_files(tmp_path / "missing", ["**/*.ts"]) == []

    def test_sorted_and_deduplicated(
        self,
        tmp_path: Path,
        write_file: Callable[[str, str], Path],
    ) -> None:
        """Overlapping patterns list each file once, sorted by path."""
        write_file("tests/b.spec.ts", "")
        write_file("tests/a.spec.ts", "")
        write_file("tests/sub/c.test.js", "")
        write_file("tests/notes.md", "")

        files = discover_test_files(tmp_path, ["tests/**/*.spec.ts", "tests/**/*.ts", "**/*.js"])

        assert [f.relative_to(tmp_path).as_posix() for f in files] == [
            "tests/a.spec.ts",
            "tests/b.spec.ts",
            "tests/sub/c.test.js",
        ]


class TestScanReferences:
    """Tests for scan_references function."""

    def test_scans_sample_project(self, sample_project: Path) -> None:
        """Hits carry root-relative POSIX paths and line numbers."""
        hits = scan_references(TraceConfig(root=sample_project))

        assert [(h.referenced_id, h.source_file, h.source_line) for h in hits] == [
            ("Activity_11wac6l", "tests/income.spec.ts", 4),
            ("Activity_gone", "tests/income.spec.ts", 8),
        ]

    def test_default_globs_cover_js_and_tsx(
        self,
        tmp_path: Path,
        write_file: Callable[[str, str], Path],
    ) -> None:
        """Default globs pick up .spec/.test files of every script flavour."""
        write_file("tests/a.spec.tsx", "test('a [bpmn:A]', f)")
        write_file("tests/deep/b.test.jsx", "test('b [bpmn:B]', f)")
        write_file("tests/c.test.js", "test('c [bpmn:C]', f)")
        write_file("tests/helper.ts", "// [bpmn:IGNORED]")
        write_file("src/d.spec.ts", "test('d [bpmn:D]', f)")

        hits = scan_references(TraceConfig(root=tmp_path))

        assert [h.referenced_id for h in hits] == ["A", "C", "B"]

    def test_files_visited_in_sorted_order(
        self,
        tmp_path: Path,
        write_file: Callable[[str, str], Path],
    ) -> None:
        """Hits come out file by file in path order."""
        write_file("tests/z.spec.ts", "test('z [bpmn:Z]', f)")
        write_file("tests/a.spec.ts", "test('a [bpmn:A]', f)")

        hits = scan_references(TraceConfig(root=tmp_path))

        assert [h.source_file for h in hits] == ["tests/a.spec.ts", "tests/z.spec.ts"]

    def test_parallel_scan_matches_sequential(
        self,
        tmp_path: Path,
        write_file: Callable[[str, str], Path],
    ) -> None:
        """Reading files on a thread pool yields the same hits."""
        for i in range(12):
            write_file(f"tests/f{i:02d}.spec.ts", f"test('t{i} [bpmn:N{i}]', f)\n")

        sequential = scan_references(TraceConfig(root=tmp_path))
        parallel = scan_references(TraceConfig(root=tmp_path, scan_workers=4))

        assert parallel == sequential
        assert len(parallel) == 12

    def test_undecodable_file_skipped(
        self,
        tmp_path: Path,
        write_file: Callable[[str, str], Path],
    ) -> None:
        """A file that is not valid UTF-8 is skipped, others still scanned."""
        (tmp_path / "tests").mkdir()
        (tmp_path / "tests" / "a.spec.ts").write_bytes(b"test('\xff\xfe [bpmn:BAD]', f)")
        write_file("tests/b.spec.ts", "test('ok [bpmn:OK]', f)")

        hits = scan_references(TraceConfig(root=tmp_path))

        assert [h.referenced_id for h in hits] == ["OK"]

    def test_file_removed_after_discovery_skipped(
        self,
        tmp_path: Path,
        write_file: Callable[[str, str], Path],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """A file that disappears between discovery and read is skipped."""
        gone = write_file("tests/a.spec.ts", "test('gone [bpmn:GONE]', f)")
        kept = write_file("tests/b.spec.ts", "test('ok [bpmn:OK]', f)")
        monkeypatch.setattr(
            scanner, "discover_test_files", lambda root, patterns: [gone, kept]
        )
        gone.unlink()

        hits = scan_references(TraceConfig(root=tmp_path))

        assert [h.referenced_id for h in hits] == ["OK"]

    def test_read_error_skipped_with_thread_pool(
        self,
        tmp_path: Path,
        write_file: Callable[[str, str], Path],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Read failures are skipped when files are read on a thread pool."""
        blocked = tmp_path / "tests" / "blocked.spec.ts"
        kept = write_file("tests/b.spec.ts", "test('ok [bpmn:OK]', f)")
        blocked.mkdir()
        monkeypatch.setattr(
            scanner, "discover_test_files", lambda root, patterns: [blocked, kept]
        )

        hits = scan_references(TraceConfig(root=tmp_path, scan_workers=2))

        assert [h.referenced_id for h in hits] == ["OK"]

    def test_no_test_directory(self, tmp_path: Path) -> None:
        """A project without tests produces no hits."""
        assert scan_references(TraceConfig(root=tmp_path)) == []
