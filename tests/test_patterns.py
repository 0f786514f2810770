"""Unit tests for running-line detection in the pattern pass.

Tests cover:
  - recurring chapter headings, list items and "Part N" lines are content
  - a running header is still found among recurring chapter headings
  - very short recurring lines are ignored
  - the heuristic fallback of detect_page_furniture on a chaptered book
"""

# pylint: disable=missing-class-docstring,missing-function-docstring

import asyncio

from fakes import FakeAnalysisClient, chaptered_lines, prose_lines

from scanclean.config import LINES_PER_PAGE
from scanclean.models import DetectedPatterns
from scanclean.pipeline.patterns import detect_page_furniture, detect_running_lines


def with_running_header(lines: list[str]) -> list[str]:
    """Open every page of lines with "THE QUIET VALLEY <page>"."""
    output = []
    for number, line in enumerate(lines):
        if number % LINES_PER_PAGE == 0:
            output.append(f"THE QUIET VALLEY {number // LINES_PER_PAGE + 1}")
        output.append(line)
    return output


def every_page(marker: str, pages: int = 40) -> str:
    lines = []
    for page in range(pages):
        lines.append(marker)
        lines.extend(prose_lines(LINES_PER_PAGE - 1, start=page * LINES_PER_PAGE))
    return "\n".join(lines)


# ===========================================================================
# Content lines
# ===========================================================================


class TestContentLinesKept:
    def test_chapter_headings_are_not_running_headers(self):
        assert detect_running_lines("\n".join(chaptered_lines())) == []

    def test_summary_items_and_part_lines_are_not_running_headers(self):
        assert detect_running_lines("\n".join(chaptered_lines(summary=True))) == []

    def test_uppercase_chapter_titles(self):
        assert detect_running_lines(every_page("CHAPTER 7")) == []

    def test_bulleted_line(self):
        assert detect_running_lines(every_page("* Key points")) == []

    def test_two_character_line(self):
        assert detect_running_lines(every_page("ok")) == []


# ===========================================================================
# Running headers among content
# ===========================================================================


class TestRunningHeaderAmongChapters:
    def test_only_the_header_is_reported(self):
        document = "\n".join(with_running_header(chaptered_lines(summary=True)))
        assert detect_running_lines(document) == [r"THE\ QUIET\ VALLEY\ \d+"]

    def test_three_character_header_counts(self):
        assert detect_running_lines(every_page("ABC")) == [r"ABC"]


class TestPageFurnitureFallback:
    def test_chaptered_book_yields_no_header_patterns(self):
        client = FakeAnalysisClient()
        patterns = asyncio.run(detect_page_furniture("\n".join(chaptered_lines()), client, DetectedPatterns()))
        assert patterns.pattern_source == "heuristic"
        assert patterns.header_patterns == []
