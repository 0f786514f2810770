"""Phase C of boundary defense: regex heuristics that need no analysis service.

Each detector scans only the part of the document where its region may
legally sit (front matter in the first 30%, index in the last 30%, ...)
and proposes a boundary.  Proposals are filtered through the same
PositionPolicy as service responses, so a heuristic never suggests a cut
that Phase A would refuse.

Detectors:
  - detect_front_matter   copyright/ISBN block up to the first chapter
  - detect_toc            CONTENTS header plus listing lines
  - detect_index          INDEX header, or a run of "term, 12" entries
  - detect_back_matter    NOTES / APPENDIX / GLOSSARY ... header after 50%
  - detect_auxiliary_lists  LIST OF FIGURES / TABLES / ABBREVIATIONS ...
  - detect_notes_sections   per-chapter and end-of-book NOTES sections
"""

import logging
from collections import Counter
from dataclasses import dataclass, field

from scanclean.defense import patterns
from scanclean.defense.policy import PositionPolicy
from scanclean.defense.validation import BoundaryValidator
from scanclean.models import BoundaryInfo, SectionType
from scanclean.text.citations import detect_notes_sections

logger = logging.getLogger(__name__)

# Lines after a TOC header scanned for listings
TOC_MAX_SCAN_LINES = 200

# Lines after an auxiliary-list header scanned for entries
AUXILIARY_MAX_SCAN_LINES = 150

# Consecutive blank lines that end a listing
LISTING_BLANK_RUN = 3

# A headerless index run needs this many entries
INDEX_RUN_MIN_ENTRIES = 20

# Notes sections found by header structure alone
NOTES_SECTION_CONFIDENCE = 0.70


@dataclass
class HeuristicResult:
    """One proposed region."""

    section_type: SectionType
    detected: bool
    boundary: BoundaryInfo | None = None
    confidence: float = 0.0
    matched_patterns: list[str] = field(default_factory=list)
    explanation: str = ""
    kind: str = ""

    @classmethod
    def nothing(cls, section_type: SectionType, explanation: str) -> "HeuristicResult":
        return cls(section_type=section_type, detected=False, explanation=explanation)


@dataclass
class HeuristicStats:
    attempts: Counter = field(default_factory=Counter)
    detections: Counter = field(default_factory=Counter)

    def to_dict(self) -> dict:
        return {
            section.value: {"attempts": self.attempts[section], "detections": self.detections[section]}
            for section in self.attempts
        }


class HeuristicDetector:
    """Regex detection of removable regions, constrained by a PositionPolicy."""

    def __init__(self, policy: PositionPolicy | None = None):
        self.policy = policy or PositionPolicy()
        self._validator = BoundaryValidator(self.policy)
        self.stats = HeuristicStats()

    def detect(self, section_type: SectionType, content: str) -> list[HeuristicResult]:
        """Run the detector for section_type; only detected results are returned."""
        detector = {
            SectionType.FRONT_MATTER: lambda text: [self.detect_front_matter(text)],
            SectionType.TABLE_OF_CONTENTS: lambda text: [self.detect_toc(text)],
            SectionType.INDEX: lambda text: [self.detect_index(text)],
            SectionType.BACK_MATTER: lambda text: [self.detect_back_matter(text)],
            SectionType.AUXILIARY_LISTS: self.detect_auxiliary_lists,
            SectionType.FOOTNOTES_ENDNOTES: self.detect_notes_sections,
        }[section_type]
        self.stats.attempts[section_type] += 1
        results = [result for result in detector(content) if result.detected]
        self.stats.detections[section_type] += len(results)
        for result in results:
            logger.info(
                "Heuristic %s: lines %s-%s (%.2f) %s",
                section_type.label,
                result.boundary.start_line,
                result.boundary.end_line,
                result.confidence,
                result.explanation,
            )
        return results

    # ── Helpers ──────────────────────────────────────────────────────────────

    def _too_short(self, lines: list[str]) -> bool:
        return len(lines) < self.policy.heuristic_min_document_lines

    def _acceptable(self, boundary: BoundaryInfo, section_type: SectionType, line_count: int) -> bool:
        if boundary.confidence < self.policy.heuristic_min_confidence:
            return False
        return self._validator.check(boundary, section_type, line_count).valid

    def _result(
        self, section_type: SectionType, start: int, end: int, confidence: float, matched: list[str], explanation: str,
        line_count: int, kind: str = "",
    ) -> HeuristicResult:
        confidence = round(min(confidence, 1.0), 3)
        boundary = BoundaryInfo(start_line=start, end_line=end, confidence=confidence, notes=explanation)
        if not self._acceptable(boundary, section_type, line_count):
            return HeuristicResult.nothing(section_type, f"Candidate {start}-{end} outside policy: {explanation}")
        return HeuristicResult(section_type, True, boundary, confidence, matched, explanation, kind)

    # ── Front matter ─────────────────────────────────────────────────────────

    def detect_front_matter(self, content: str) -> HeuristicResult:
        lines = content.split("\n")
        section = SectionType.FRONT_MATTER
        if self._too_short(lines):
            return HeuristicResult.nothing(section, "Document too short")
        limit = int(len(lines) * self.policy.front_matter_max_end)

        indicators: list[tuple[int, float, str]] = []
        main_start = None
        for number, line in enumerate(lines[: limit + 1]):
            match = patterns.match_weighted(line, patterns.FRONT_MATTER_INDICATORS)
            if match:
                indicators.append((number, match[0], match[1]))
                continue
            start_match = patterns.match_weighted(line, patterns.MAIN_CONTENT_START)
            if start_match and not patterns.is_toc_entry(line) and indicators:
                main_start = number
                break
        if not indicators:
            return HeuristicResult.nothing(section, "No copyright or publication markers")

        labels = sorted({label for _, _, label in indicators})
        best = max(weight for _, weight, _ in indicators)
        if main_start is not None:
            end = main_start - 1
            while end > 0 and not lines[end].strip():
                end -= 1
            confidence = best * (0.95 if len(labels) >= 2 else 0.85)
            explanation = f"{len(labels)} front matter markers before main content at line {main_start}"
        else:
            end = indicators[-1][0]
            while end + 1 < len(lines) and lines[end + 1].strip():
                end += 1
            confidence = best * 0.8
            explanation = f"{len(labels)} front matter markers, main content start not found"
        return self._result(section, 0, end, confidence, labels, explanation, len(lines))

    # ── Table of contents ────────────────────────────────────────────────────

    def _listing_end(self, lines: list[str], header_line: int, is_entry, max_scan: int) -> tuple[int, int]:
        """Last listing line after a header, and the number of entries seen."""
        end = header_line
        entries = 0
        blanks = 0
        for number in range(header_line + 1, min(len(lines), header_line + 1 + max_scan)):
            stripped = lines[number].strip()
            if not stripped:
                blanks += 1
                if blanks >= LISTING_BLANK_RUN:
                    break
                continue
            blanks = 0
            if is_entry(lines[number]):
                entries += 1
                end = number
                continue
            if stripped.startswith("#") or len(stripped) > patterns.NARRATIVE_LINE_MIN_CHARS:
                break
            # Short continuation lines (wrapped titles) stay in the listing
            end = number
        return end, entries

    def detect_toc(self, content: str) -> HeuristicResult:
        lines = content.split("\n")
        section = SectionType.TABLE_OF_CONTENTS
        if self._too_short(lines):
            return HeuristicResult.nothing(section, "Document too short")
        limit = int(len(lines) * self.policy.toc_max_end)

        def is_entry(line: str) -> bool:
            return patterns.is_toc_entry(line) or bool(patterns.TOC_TITLE_LINE_RE.match(line.strip()))

        for number, line in enumerate(lines[: limit + 1]):
            match = patterns.match_weighted(line, patterns.TOC_HEADERS)
            if not match:
                continue
            end, entries = self._listing_end(lines, number, is_entry, TOC_MAX_SCAN_LINES)
            confidence = match[0] + (0.05 if entries >= 5 else 0.0)
            if entries < 3:
                confidence *= 0.7
            return self._result(
                section, number, end, confidence, [match[1]], f"Contents header with {entries} entries", len(lines)
            )

        # No header: a dense run of page-numbered listings
        run_start, run_entries = None, 0
        run_end = 0
        for number, line in enumerate(lines[: limit + 1]):
            if patterns.is_toc_entry(line):
                if run_start is None:
                    run_start = number
                run_entries += 1
                run_end = number
            elif line.strip() and run_start is not None:
                if run_entries >= 5:
                    break
                run_start, run_entries = None, 0
        if run_start is not None and run_entries >= 5:
            return self._result(
                section, run_start, run_end, 0.7, ["toc entries"], f"{run_entries} listing lines without header", len(lines)
            )
        return HeuristicResult.nothing(section, "No contents header or listing")

    # ── Index ────────────────────────────────────────────────────────────────

    def detect_index(self, content: str) -> HeuristicResult:
        lines = content.split("\n")
        section = SectionType.INDEX
        if self._too_short(lines):
            return HeuristicResult.nothing(section, "Document too short")
        first = int(len(lines) * self.policy.index_min_start)
        last = len(lines) - 1

        for number in range(first, len(lines)):
            match = patterns.match_weighted(lines[number], patterns.INDEX_HEADERS)
            if not match:
                continue
            entries = sum(1 for line in lines[number:] if patterns.INDEX_ENTRY_RE.match(line))
            confidence = match[0] if entries >= 10 else match[0] * 0.75
            result = self._result(
                section, number, last, confidence, [match[1]], f"Index header with {entries} entries", len(lines)
            )
            if result.detected:
                return result

        # No header: from the first entry of a run that reaches the end
        entry_lines = [n for n in range(first, len(lines)) if patterns.INDEX_ENTRY_RE.match(lines[n])]
        if len(entry_lines) >= INDEX_RUN_MIN_ENTRIES:
            start = entry_lines[0]
            while start > first and patterns.INDEX_LETTER_DIVIDER_RE.match(lines[start - 1]):
                start -= 1
            density = len(entry_lines) / max(1, sum(1 for line in lines[start:] if line.strip()))
            if density >= 0.5:
                return self._result(
                    section, start, last, 0.7, ["index entries"], f"{len(entry_lines)} index entries", len(lines)
                )
        return HeuristicResult.nothing(section, "No index header or entry run")

    # ── Back matter ──────────────────────────────────────────────────────────

    def detect_back_matter(self, content: str) -> HeuristicResult:
        lines = content.split("\n")
        section = SectionType.BACK_MATTER
        if self._too_short(lines):
            return HeuristicResult.nothing(section, "Document too short")
        first = int(len(lines) * self.policy.back_matter_min_start)
        last = len(lines) - 1

        for number in range(first, len(lines)):
            match = patterns.match_weighted(lines[number], patterns.BACK_MATTER_HEADERS)
            if not match:
                continue
            result = self._result(
                section, number, last, match[0], [match[1]], f"Back matter header '{lines[number].strip()}'", len(lines)
            )
            if result.detected:
                return result
        return HeuristicResult.nothing(section, "No back matter header in the second half")

    # ── Auxiliary lists ──────────────────────────────────────────────────────

    def detect_auxiliary_lists(self, content: str) -> list[HeuristicResult]:
        lines = content.split("\n")
        section = SectionType.AUXILIARY_LISTS
        if self._too_short(lines):
            return []
        limit = int(len(lines) * self.policy.auxiliary_max_end)

        results: list[HeuristicResult] = []
        number = 0
        while number <= limit:
            match = patterns.match_weighted(lines[number], patterns.AUXILIARY_HEADERS)
            if not match:
                number += 1
                continue

            end, entries = self._listing_end(lines, number, patterns.is_auxiliary_entry, AUXILIARY_MAX_SCAN_LINES)
            confidence = match[0]
            if entries >= 5:
                confidence += 0.05
            elif entries < 2:
                confidence *= 0.6
            kind = patterns.auxiliary_kind(lines[number])
            result = self._result(
                section, number, end, confidence, [match[1]], f"{kind} with {entries} entries", len(lines), kind=kind
            )
            if result.detected:
                results.append(result)
            number = max(end, number) + 1
        return results

    # ── Notes sections ───────────────────────────────────────────────────────

    def detect_notes_sections(self, content: str) -> list[HeuristicResult]:
        lines = content.split("\n")
        section = SectionType.FOOTNOTES_ENDNOTES
        results = []
        for start, end in detect_notes_sections(content):
            result = self._result(
                section, start, end, NOTES_SECTION_CONFIDENCE, ["notes header"], "Notes section", len(lines)
            )
            if result.detected:
                results.append(result)
        return results
