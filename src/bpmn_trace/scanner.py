"""Scanner for ``[bpmn:<id>]`` markers in test files.

Test titles link to process nodes by embedding a marker:

    test('Valid income [bpmn:Activity_11wac6l]', async () => { ... });

The scanner never runs or imports tests; it reads each matching file as
text and reports every marker occurrence with its file, line and, when one
can be found, the test title that contains it.

Functions:
    scan_references: Scan the configured test files for markers
    scan_text: Scan one file's text for markers
    collect_titles: Collect test titles declared in one file's text

Usage:
    from bpmn_trace.scanner import scan_references

    hits = scan_references(config)
    for hit in hits:
        print(f"{hit.source_file}:{hit.source_line} -> {hit.referenced_id}")
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
import re
from typing import TYPE_CHECKING

import structlog

from bpmn_trace.config import DEFAULT_TITLE_KEYWORDS
from bpmn_trace.models import ReferenceHit

if TYPE_CHECKING:
    from collections.abc import Iterable

    from bpmn_trace.config import TraceConfig

logger = structlog.get_logger(__name__)

# Marker wire format: [bpmn:<id>], <id> = any run of characters except "]"
# Security: Safe from ReDoS - negated character class, no nesting
MARKER_PATTERN = re.compile(r"\[bpmn:([^\]]+)\]")  # nosonar: S4784


def scan_references(config: TraceConfig) -> list[ReferenceHit]:
    """Scan test files under the configured root for bpmn markers.

    Files are the union of every ``config.test_globs`` match, sorted by
    relative path. Hits come out file by file, and by position within
    each file.

    A file that cannot be read or decoded is skipped with a warning; the
    scan continues with the remaining files.

    Args:
        config: Run configuration (root, test_globs, title_keywords, scan_workers).

    Returns:
        List of ReferenceHit objects. Empty if no file contains a marker.
    """
    files = discover_test_files(config.root, config.test_globs)

    if config.scan_workers > 1 and len(files) > 1:
        with ThreadPoolExecutor(max_workers=config.scan_workers) as executor:
            texts = list(executor.map(_read_text, files))
    else:
        texts = [_read_text(f) for f in files]

    hits: list[ReferenceHit] = []
    for file_path, text in zip(files, texts, strict=True):
        if text is None:
            continue
        relative = file_path.relative_to(config.root).as_posix()
        hits.extend(scan_text(text, relative, config.title_keywords))

    logger.info("references_scanned", files=len(files), hits=len(hits))
    return hits


def discover_test_files(root: Path, patterns: Iterable[str]) -> list[Path]:
    """Find files under ``root`` matching any of the glob patterns.

    Args:
        root: Directory the patterns are relative to.
        patterns: Glob patterns such as ``tests/**/*.spec.ts``.

    Returns:
        Matching files, deduplicated and sorted by relative POSIX path.
    """
    if not root.is_dir():
        logger.debug("scan_root_missing", root=str(root))
        return []

    found: dict[str, Path] = {}
    for pattern in patterns:
        for path in root.glob(pattern):
            if path.is_file():
                found.setdefault(path.relative_to(root).as_posix(), path)

    return [found[key] for key in sorted(found)]


def scan_text(
    text: str,
    source_file: str,
    title_keywords: Iterable[str] = DEFAULT_TITLE_KEYWORDS,
) -> list[ReferenceHit]:
    """Scan one file's text for bpmn markers.

    Args:
        text: File contents.
        source_file: Path recorded on each hit.
        title_keywords: Call names that declare tests or test groups.

    Returns:
        One ReferenceHit per marker occurrence, in order of appearance.

    Example:
        >>> hits = scan_text("test('Pay [bpmn:A][bpmn:B]', () => {})", "a.spec.ts")
        >>> [(h.referenced_id, h.source_line) for h in hits]
        [('A', 1), ('B', 1)]
    """
    titles = collect_titles(text, title_keywords)

    hits: list[ReferenceHit] = []
    for match in MARKER_PATTERN.finditer(text):
        marker = match.group(0)
        label = next((t for t in titles if marker in t), None)
        hits.append(
            ReferenceHit(
                referenced_id=match.group(1),
                source_file=source_file,
                source_line=text.count("\n", 0, match.start()) + 1,
                associated_label=label,
            )
        )
    return hits


def collect_titles(text: str, title_keywords: Iterable[str] = DEFAULT_TITLE_KEYWORDS) -> list[str]:
    """Collect string literals passed as first argument to test declarations.

    Matches calls such as ``test('...')``, ``it("...")``,
    ``describe(`...`)`` and ``test.describe('...')``. Keywords are matched
    case-insensitively and as whole words.

    Args:
        text: File contents.
        title_keywords: Call names that declare tests or test groups.

    Returns:
        Titles in order of appearance.
    """
    return [m.group("title") for m in _title_pattern(tuple(title_keywords)).finditer(text)]


def _title_pattern(keywords: tuple[str, ...]) -> re.Pattern[str]:
    """Build the test-title regex for the given call names."""
    names = "|".join(re.escape(k) for k in keywords)
    # Security: Safe from ReDoS - lazy match bounded by the backreferenced quote
    return re.compile(
        rf"(?<![\w$])(?:{names})\s*\(\s*(?P<quote>['\"`])(?P<title>.*?)(?P=quote)",  # nosonar: S4784
        re.IGNORECASE,
    )


def _read_text(path: Path) -> str | None:
    """Read a file as UTF-8 text, returning None if it cannot be read."""
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("artifact_unreadable", path=str(path), error=str(e))
        return None


__all__ = [
    "MARKER_PATTERN",
    "collect_titles",
    "discover_test_files",
    "scan_references",
    "scan_text",
]
