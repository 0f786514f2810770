"""Line-range editing primitives: section removal, line filtering, counting.

All line numbers are 0-based and inclusive.  Every removal here returns
content with at most as many lines as it was given.
"""

import logging
import re
from dataclasses import dataclass, field

from scanclean.config import LINES_PER_PAGE
from scanclean.models import ExclusionZone

logger = logging.getLogger(__name__)

# Markdown header prefix
HEADER_PREFIX_RE = re.compile(r"^#{1,6}\s+")

# Emphasis, links, images and code spans for plain-text word counting
PLAIN_TEXT_RES = (
    (re.compile(r"!\[([^\]]*)\]\([^)]*\)"), r"\1"),
    (re.compile(r"\[([^\]]*)\]\([^)]*\)"), r"\1"),
    (re.compile(r"\*\*([^*]+)\*\*"), r"\1"),
    (re.compile(r"__([^_]+)__"), r"\1"),
    (re.compile(r"(?<!\*)\*([^*\n]+)\*(?!\*)"), r"\1"),
    (re.compile(r"(?<![_\w])_([^_\n]+)_(?![_\w])"), r"\1"),
    (re.compile(r"`([^`\n]+)`"), r"\1"),
)

# Four or more newlines collapse to three
EXCESS_BLANKS_RE = re.compile(r"\n{4,}")


# ── Counting ─────────────────────────────────────────────────────────────────


def count_words(content: str) -> int:
    return len(content.split())


def normalize_to_plain_text(content: str) -> str:
    """Strip Markdown syntax so word counts compare content, not markup."""
    text = "\n".join(HEADER_PREFIX_RE.sub("", line) for line in content.split("\n"))
    for pattern, replacement in PLAIN_TEXT_RES:
        text = pattern.sub(replacement, text)
    return text


def count_semantic_words(content: str) -> int:
    return len(normalize_to_plain_text(content).split())


def count_changes(original: str, updated: str) -> int:
    """Number of distinct lines present in only one of the two versions."""
    before = set(original.split("\n"))
    after = set(updated.split("\n"))
    return len(before - after) + len(after - before)


def line_count(content: str) -> int:
    return len(content.split("\n")) if content else 0


# ── Sampling ─────────────────────────────────────────────────────────────────


def normalize_whitespace(content: str) -> str:
    """Unix line endings, no trailing spaces, at most two blank lines in a row."""
    content = content.replace("\r\n", "\n").replace("\r", "\n")
    content = "\n".join(line.rstrip() for line in content.split("\n"))
    return EXCESS_BLANKS_RE.sub("\n\n\n", content)


def extract_head(content: str, max_chars: int) -> str:
    return content[:max_chars]


def extract_pages(content: str, pages: int) -> str:
    """The first ``pages`` pages of content, at LINES_PER_PAGE lines per page."""
    lines = content.split("\n")
    return "\n".join(lines[: pages * LINES_PER_PAGE])


def extract_tail(content: str, max_lines: int) -> tuple[str, int]:
    """The last max_lines lines, plus the document line number the sample starts at."""
    lines = content.split("\n")
    offset = max(0, len(lines) - max_lines)
    return "\n".join(lines[offset:]), offset


def head_line_limit(content: str, max_chars: int) -> int:
    """Number of whole lines that fit in the first max_chars characters."""
    return extract_head(content, max_chars).count("\n") + 1


# ── Removal ──────────────────────────────────────────────────────────────────


def remove_section(
    content: str,
    start_line: int,
    end_line: int,
    exclusions: list[ExclusionZone] | None = None,
) -> str:
    """Delete lines start_line..end_line, keeping any excluded sub-ranges.

    Exclusions are clamped to the removal range and kept in order.  An
    invalid range leaves the content unchanged.
    """
    lines = content.split("\n")
    if start_line < 0 or start_line >= len(lines) or start_line > end_line:
        logger.warning("Refusing to remove invalid range %d-%d (%d lines)", start_line, end_line, len(lines))
        return content
    end_line = min(end_line, len(lines) - 1)

    kept_inside: list[str] = []
    for zone in sorted(exclusions or [], key=lambda z: z.start_line):
        zone_start = max(zone.start_line, start_line)
        zone_end = min(zone.end_line, end_line)
        if zone_start > zone_end:
            continue
        logger.info("Keeping excluded lines %d-%d (%s)", zone_start, zone_end, zone.reason or "excluded")
        kept_inside.extend(lines[zone_start : zone_end + 1])

    return "\n".join(lines[:start_line] + kept_inside + lines[end_line + 1 :])


@dataclass
class SectionRemovalReport:
    """Outcome of remove_multiple_sections()."""

    content: str
    lines_removed: int = 0
    sections_removed: int = 0
    sections_rejected: int = 0
    rejected_details: list[str] = field(default_factory=list)


def remove_multiple_sections(content: str, sections: list[tuple[int, int]]) -> SectionRemovalReport:
    """Remove several line ranges, last first so earlier ranges stay valid."""
    report = SectionRemovalReport(content=content)
    total = line_count(content)
    seen: set[tuple[int, int]] = set()
    for start, end in sorted(sections, key=lambda s: s[0], reverse=True):
        if (start, end) in seen:
            continue
        seen.add((start, end))
        if start < 0 or end < start or start >= total:
            report.sections_rejected += 1
            report.rejected_details.append(f"lines {start}-{end} invalid for {total}-line document")
            logger.warning("Skipping invalid section %d-%d", start, end)
            continue
        before = line_count(report.content)
        report.content = remove_section(report.content, start, end)
        report.lines_removed += before - line_count(report.content)
        report.sections_removed += 1
    return report


def compile_patterns(patterns: list[str], flags: int = 0) -> list[re.Pattern]:
    """Compile regexes, logging and skipping any that are invalid."""
    compiled = []
    for pattern in patterns:
        try:
            compiled.append(re.compile(pattern, flags))
        except re.error as exc:
            logger.warning("Ignoring invalid pattern %r: %s", pattern, exc)
    return compiled


def remove_matching_lines(content: str, patterns: list[str]) -> tuple[str, int]:
    """Drop every line whose stripped text fully matches one of the patterns.

    Horizontal rules ("---", "***") are never dropped.  Returns (content,
    number of lines removed).
    """
    compiled = compile_patterns(patterns)
    if not compiled:
        return content, 0
    kept = []
    removed = 0
    for line in content.split("\n"):
        stripped = line.strip()
        if stripped and stripped not in ("---", "***", "___") and any(p.fullmatch(stripped) for p in compiled):
            removed += 1
            continue
        kept.append(line)
    return "\n".join(kept), removed


def remove_exact_lines(content: str, targets: set[str]) -> tuple[str, int]:
    """Drop lines whose stripped text is one of targets."""
    kept = []
    removed = 0
    for line in content.split("\n"):
        if line.strip() in targets:
            removed += 1
            continue
        kept.append(line)
    return "\n".join(kept), removed


def remove_patterns_in_text(content: str, patterns: list[str]) -> tuple[str, int]:
    """Delete every match of the patterns inside lines.  Returns (content, match count)."""
    total = 0
    for pattern in compile_patterns(patterns, re.MULTILINE):
        content, count = pattern.subn("", content)
        total += count
    if total:
        content = re.sub(r"(?<=\S) {2,}", " ", content)
    return content, total
