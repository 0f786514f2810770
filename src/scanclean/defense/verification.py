"""Phase B of boundary defense: does the region look like what it claims to be?

A boundary that passed the position checks is still only a pair of line
numbers.  ContentVerifier reads the lines in the range and looks for the
markers each region type must carry: an index has "term, 12, 45" entries,
a table of contents has a CONTENTS header and chapter listings, back matter
opens with NOTES / APPENDIX / GLOSSARY and friends.  A range that instead
contains chapter headings is main body and is refused.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field

from scanclean.defense import patterns
from scanclean.defense.validation import resolve_range
from scanclean.models import BoundaryInfo, SectionType

logger = logging.getLogger(__name__)

# Lines read from the start of a range
MAX_EXAMINED_LINES = 100

# Fewer lines than this cannot be judged
MIN_EXAMINED_LINES = 3

# Header search windows, in lines from the start of the range
BACK_MATTER_HEADER_WINDOW = 30
INDEX_HEADER_WINDOW = 10
NOTES_HEADER_WINDOW = 10


@dataclass
class VerificationResult:
    verified: bool
    confidence: float = 0.0
    reason: str = ""
    found_headers: list[str] = field(default_factory=list)
    entry_count: int = 0

    @classmethod
    def fail(cls, reason: str, **kwargs) -> "VerificationResult":
        return cls(verified=False, reason=reason, **kwargs)


@dataclass
class VerificationStats:
    attempts: int = 0
    verified: int = 0
    failures: Counter = field(default_factory=Counter)

    def to_dict(self) -> dict:
        return {"attempts": self.attempts, "verified": self.verified, "failures": dict(self.failures)}


def _headers(lines: list[str], catalogue) -> list[str]:
    found = []
    for line in lines:
        match = patterns.match_weighted(line, catalogue)
        if match:
            found.append(line.strip())
    return found


def _chapter_lines(lines: list[str]) -> list[str]:
    """Chapter headings that are not TOC listings ("Chapter 1 ..... 12")."""
    return [line.strip() for line in lines if patterns.is_chapter_indicator(line) and not patterns.is_toc_entry(line)]


class ContentVerifier:
    """Runs the per-type content rules on a candidate range."""

    def __init__(self):
        self.stats = VerificationStats()

    def verify(self, content: str, boundary: BoundaryInfo, section_type: SectionType) -> VerificationResult:
        lines = content.split("\n")
        start, end = resolve_range(boundary, section_type, len(lines))
        if start is None or start < 0 or start >= len(lines):
            result = VerificationResult.fail("start_out_of_bounds")
        else:
            end = len(lines) - 1 if end is None else min(end, len(lines) - 1)
            section = lines[start : end + 1]
            examined = section[:MAX_EXAMINED_LINES]
            if sum(1 for line in examined if line.strip()) < MIN_EXAMINED_LINES:
                result = VerificationResult.fail("insufficient_content")
            else:
                result = self._RULES[section_type](self, section, examined)

        self.stats.attempts += 1
        if result.verified:
            self.stats.verified += 1
            logger.debug("Phase B verified %s at %s-%s (%.2f)", section_type.label, start, end, result.confidence)
        else:
            self.stats.failures[result.reason] += 1
            logger.warning("Phase B rejected %s at %s-%s: %s", section_type.label, start, end, result.reason)
        return result

    # ── Rules ────────────────────────────────────────────────────────────────

    def _back_matter(self, section: list[str], examined: list[str]) -> VerificationResult:
        headers = _headers(examined[:BACK_MATTER_HEADER_WINDOW], patterns.BACK_MATTER_HEADERS)
        chapters = _chapter_lines(examined)
        if chapters and not headers:
            return VerificationResult.fail("chapter_content_found")
        if not headers:
            return VerificationResult.fail("no_expected_headers")
        matches = len(headers)
        confidence = 0.9 if matches >= 3 else 0.75 if matches == 2 else 0.6
        if chapters:
            confidence *= 0.7
        return VerificationResult(True, confidence, "back_matter_headers", headers)

    def _index(self, section: list[str], examined: list[str]) -> VerificationResult:
        headers = _headers(examined[:INDEX_HEADER_WINDOW], patterns.INDEX_HEADERS)
        entries = sum(1 for line in examined if patterns.INDEX_ENTRY_RE.match(line))
        chapters = _chapter_lines(examined)
        if chapters and not headers and entries < 5:
            return VerificationResult.fail("chapter_content_found", entry_count=entries)
        if not headers and entries < 10:
            return VerificationResult.fail("insufficient_index_entries", entry_count=entries)
        if headers and entries >= 20:
            confidence = 0.95
        elif headers and entries >= 10:
            confidence = 0.85
        elif entries >= 30:
            confidence = 0.75
        else:
            confidence = 0.65
        return VerificationResult(True, confidence, "index_entries", headers, entries)

    def _front_matter(self, section: list[str], examined: list[str]) -> VerificationResult:
        if _chapter_lines(section):
            return VerificationResult.fail("chapter_content_found")
        labels = set()
        for line in section:
            match = patterns.match_weighted(line, patterns.FRONT_MATTER_INDICATORS)
            if match:
                labels.add(match[1])
            elif patterns.FRONT_MATTER_SECTION_RE.match(line.strip()):
                labels.add(line.strip().lstrip("#").strip().upper())
        if not labels:
            return VerificationResult.fail("no_front_matter_markers")
        has_copyright = bool(labels & {"copyright", "copyright symbol", "all rights reserved"})
        if has_copyright and "ISBN" in labels:
            confidence = 0.9
        elif has_copyright or len(labels) >= 3:
            confidence = 0.8
        else:
            confidence = 0.6
        return VerificationResult(True, confidence, "front_matter_markers", sorted(labels), len(labels))

    def _table_of_contents(self, section: list[str], examined: list[str]) -> VerificationResult:
        headers = _headers(examined, patterns.TOC_HEADERS)
        entries = sum(
            1 for line in examined if patterns.is_toc_entry(line) or patterns.TOC_TITLE_LINE_RE.match(line.strip())
        )
        if not headers and entries < 5:
            return VerificationResult.fail("insufficient_toc_entries", entry_count=entries)
        if headers and entries >= 10:
            confidence = 0.95
        elif headers and entries >= 5:
            confidence = 0.85
        elif entries >= 10:
            confidence = 0.7
        else:
            confidence = 0.6
        return VerificationResult(True, confidence, "toc_entries", headers, entries)

    def _auxiliary_list(self, section: list[str], examined: list[str]) -> VerificationResult:
        headers = _headers(examined, patterns.AUXILIARY_HEADERS)
        entries = sum(1 for line in examined if patterns.is_auxiliary_entry(line))
        narrative = sum(
            1
            for line in examined
            if len(line.strip()) > patterns.NARRATIVE_LINE_MIN_CHARS and "..." not in line and "\t" not in line
        )
        chapters = _chapter_lines(examined)
        if chapters and not headers and entries < 3:
            return VerificationResult.fail("chapter_content_found", entry_count=entries)
        if narrative > 5 and not headers:
            return VerificationResult.fail("narrative_content_found", entry_count=entries)
        if not headers and entries < 5:
            return VerificationResult.fail("insufficient_list_entries", entry_count=entries)
        if headers and entries >= 5:
            confidence = 0.9
        elif headers and entries >= 2:
            confidence = 0.8
        elif entries >= 10:
            confidence = 0.7
        elif headers:
            confidence = 0.65
        else:
            confidence = 0.5
        if chapters:
            confidence *= 0.7
        return VerificationResult(True, confidence, "list_entries", headers, entries)

    def _notes_section(self, section: list[str], examined: list[str]) -> VerificationResult:
        headers = _headers(examined[:NOTES_HEADER_WINDOW], patterns.FOOTNOTE_HEADERS)
        entries = sum(1 for line in examined if patterns.is_footnote_entry(line))
        chapters = _chapter_lines(examined)
        if chapters and not headers:
            return VerificationResult.fail("chapter_content_found", entry_count=entries)
        if not headers and entries < 3:
            return VerificationResult.fail("insufficient_note_entries", entry_count=entries)
        if headers and entries >= 3:
            confidence = 0.9
        elif headers:
            confidence = 0.75
        elif entries >= 10:
            confidence = 0.75
        else:
            confidence = 0.6
        return VerificationResult(True, confidence, "note_entries", headers, entries)

    _RULES = {
        SectionType.BACK_MATTER: _back_matter,
        SectionType.INDEX: _index,
        SectionType.FRONT_MATTER: _front_matter,
        SectionType.TABLE_OF_CONTENTS: _table_of_contents,
        SectionType.AUXILIARY_LISTS: _auxiliary_list,
        SectionType.FOOTNOTES_ENDNOTES: _notes_section,
    }
