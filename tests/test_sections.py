"""Unit tests for the sections module.

Tests cover:
  - counting helpers (words, changed lines, lines)
  - sampling helpers (head, pages, tail with offset)
  - remove_section with exclusion zones and invalid ranges
  - remove_multiple_sections ordering and rejection
  - remove_matching_lines, the default page-number patterns and remove_patterns_in_text
"""

# pylint: disable=missing-class-docstring,missing-function-docstring

from scanclean.models import DEFAULT_PAGE_NUMBER_PATTERNS, ExclusionZone
from scanclean.text.sections import (
    count_changes,
    count_semantic_words,
    count_words,
    extract_pages,
    extract_tail,
    line_count,
    remove_matching_lines,
    remove_multiple_sections,
    remove_patterns_in_text,
    remove_section,
)


def numbered(count: int) -> str:
    """Lines "L0".."L{count-1}"."""
    return "\n".join(f"L{i}" for i in range(count))


# ===========================================================================
# Counting and sampling
# ===========================================================================


class TestCounting:
    def test_count_words(self):
        assert count_words("  one two\nthree ") == 3

    def test_semantic_words_ignore_markup(self):
        assert count_semantic_words("# Title\n**bold** [link](http://x.y)") == 3

    def test_count_changes(self):
        assert count_changes("a\nb\nc", "a\nc\nd") == 2

    def test_line_count_empty(self):
        assert line_count("") == 0
        assert line_count("a\nb") == 2


class TestSampling:
    def test_extract_pages(self):
        assert extract_pages(numbered(200), 2).split("\n")[-1] == "L99"

    def test_extract_tail_offset(self):
        sample, offset = extract_tail(numbered(100), 30)
        assert offset == 70
        assert sample.split("\n")[0] == "L70"

    def test_extract_tail_short_document(self):
        sample, offset = extract_tail(numbered(10), 30)
        assert offset == 0
        assert sample == numbered(10)


# ===========================================================================
# remove_section tests
# ===========================================================================


class TestRemoveSection:
    def test_removes_inclusive_range(self):
        assert remove_section(numbered(6), 1, 3) == "L0\nL4\nL5"

    def test_end_clamped(self):
        assert remove_section(numbered(4), 2, 99) == "L0\nL1"

    def test_invalid_range_unchanged(self):
        content = numbered(4)
        assert remove_section(content, 3, 1) == content
        assert remove_section(content, 10, 12) == content

    def test_exclusion_kept(self):
        result = remove_section(numbered(8), 1, 6, [ExclusionZone(3, 4, "dedication")])
        assert result == "L0\nL3\nL4\nL7"

    def test_exclusion_outside_range_ignored(self):
        result = remove_section(numbered(8), 1, 2, [ExclusionZone(5, 6, "index")])
        assert result == "L0\nL3\nL4\nL5\nL6\nL7"


class TestRemoveMultipleSections:
    def test_ranges_removed_last_first(self):
        report = remove_multiple_sections(numbered(10), [(1, 2), (6, 7)])
        assert report.content == "L0\nL3\nL4\nL5\nL8\nL9"
        assert report.lines_removed == 4
        assert report.sections_removed == 2

    def test_invalid_range_rejected(self):
        report = remove_multiple_sections(numbered(5), [(1, 1), (20, 25)])
        assert report.sections_rejected == 1
        assert report.content == "L0\nL2\nL3\nL4"

    def test_duplicate_range_once(self):
        report = remove_multiple_sections(numbered(5), [(1, 1), (1, 1)])
        assert report.sections_removed == 1
        assert report.content == "L0\nL2\nL3\nL4"


# ===========================================================================
# Line and in-text pattern removal
# ===========================================================================


class TestPatternRemoval:
    def test_matching_lines_removed(self):
        content, removed = remove_matching_lines("Text\n  42  \nMore\nPage 7", [r"\d+", r"Page \d+"])
        assert content == "Text\nMore"
        assert removed == 2

    def test_partial_match_kept(self):
        content, removed = remove_matching_lines("There were 42 cats", [r"\d+"])
        assert removed == 0
        assert content == "There were 42 cats"

    def test_horizontal_rule_never_removed(self):
        content, removed = remove_matching_lines("a\n---\nb", [r"-+"])
        assert content == "a\n---\nb"
        assert removed == 0

    def test_default_patterns_need_real_roman_numerals(self):
        content, removed = remove_matching_lines("xiv\nmix\ndid\nvii\ncivil\nXII", list(DEFAULT_PAGE_NUMBER_PATTERNS))
        assert content == "mix\ndid\ncivil"
        assert removed == 3

    def test_invalid_pattern_skipped(self):
        content, removed = remove_matching_lines("12\ntext", ["(unclosed", r"\d+"])
        assert content == "text"
        assert removed == 1

    def test_patterns_in_text(self):
        content, count = remove_patterns_in_text("A claim [1] and another [2].", [r"\[\d+\]"])
        assert count == 2
        assert content == "A claim and another ."
