"""Unit tests for the chapters module.

Tests cover:
  - detect_headings: chapter forms, parts, non-chapter headings, fenced code
  - insert_chapter_markers: marker styles and part folding
  - end_marker
  - strip_leading_metadata and apply_structure
"""

# pylint: disable=missing-class-docstring,missing-function-docstring

from scanclean.models import DocumentMetadata, MetadataFormat
from scanclean.text.chapters import (
    ChapterMarkerStyle,
    EndMarkerStyle,
    Heading,
    apply_structure,
    detect_headings,
    end_marker,
    insert_chapter_markers,
    strip_leading_metadata,
)

METADATA = DocumentMetadata(title="The Quiet Valley", author="Ellen Harrow")


def titles(content: str) -> list[str]:
    return [h.title for h in detect_headings(content)]


# ===========================================================================
# detect_headings tests
# ===========================================================================


class TestDetectHeadings:
    def test_chapter_with_colon_title(self):
        assert titles("# Chapter 1: The Storm") == ["The Storm"]

    def test_roman_chapter(self):
        assert titles("## CHAPTER IV") == ["CHAPTER IV"]

    def test_spelled_number(self):
        assert titles("# Chapter Twelve") == ["Chapter Twelve"]

    def test_numbered_heading(self):
        assert titles("# 3. The Storm") == ["3. The Storm"]

    def test_bare_number(self):
        assert titles("# 7") == ["Chapter 7"]

    def test_part_heading(self):
        headings = detect_headings("# Part II: Winter")
        assert headings == [Heading(0, "Part II: Winter", is_part=True)]

    def test_non_chapter_headings_skipped(self):
        assert titles("# Notes\n# Index\n# Introduction\n# Acknowledgments") == []

    def test_plain_lines_skipped(self):
        assert titles("Chapter 1 began in spring.") == []

    def test_fenced_code_skipped(self):
        content = "```\n# Chapter 9\n```\n# Chapter 10"
        assert detect_headings(content) == [Heading(3, "Chapter 10")]

    def test_line_numbers(self):
        content = "intro\n\n# Chapter 1\ntext\n# Chapter 2"
        assert [h.line for h in detect_headings(content)] == [2, 4]


# ===========================================================================
# Markers
# ===========================================================================


class TestInsertChapterMarkers:
    CONTENT = "intro\n# Part One\n# Chapter 1\ntext\n# Chapter 2\nmore"

    def test_part_folded_into_first_chapter(self):
        result = insert_chapter_markers(self.CONTENT, detect_headings(self.CONTENT), ChapterMarkerStyle.HTML_COMMENTS)
        assert result == (
            "intro\n# Part One\n<!-- PART: Part One | CHAPTER: Chapter 1 -->\n\n# Chapter 1\ntext\n"
            "<!-- CHAPTER: Chapter 2 -->\n\n# Chapter 2\nmore"
        )

    def test_token_style(self):
        content = "# Chapter 1\ntext"
        result = insert_chapter_markers(content, detect_headings(content), ChapterMarkerStyle.TOKEN_STYLE)
        assert result.startswith("<CHAPTER>Chapter 1</CHAPTER>\n\n# Chapter 1")

    def test_none_style_unchanged(self):
        assert insert_chapter_markers(self.CONTENT, detect_headings(self.CONTENT), ChapterMarkerStyle.NONE) == self.CONTENT

    def test_out_of_range_heading_ignored(self):
        assert insert_chapter_markers("a\nb", [Heading(10, "Ghost")], ChapterMarkerStyle.HTML_COMMENTS) == "a\nb"


class TestEndMarker:
    def test_standard(self):
        assert end_marker(EndMarkerStyle.STANDARD, METADATA) == "*** <!-- END OF THE QUIET VALLEY -->"

    def test_token_with_author(self):
        assert end_marker(EndMarkerStyle.TOKEN_WITH_AUTHOR, METADATA) == '<END_DOCUMENT author="Ellen Harrow">'

    def test_token_without_author(self):
        assert end_marker(EndMarkerStyle.TOKEN_WITH_AUTHOR, DocumentMetadata()) == "<END_DOCUMENT>"

    def test_none(self):
        assert end_marker(EndMarkerStyle.NONE, METADATA) == ""


# ===========================================================================
# Assembly
# ===========================================================================


class TestApplyStructure:
    def test_full_layout(self):
        result = apply_structure("Body", METADATA, [], marker_style=ChapterMarkerStyle.NONE)
        assert result == (
            "# The Quiet Valley\n\n---\ntitle: The Quiet Valley\nauthor: Ellen Harrow\n---\n\n---\n\nBody\n"
            "\n---\n\n*** <!-- END OF THE QUIET VALLEY -->\n"
        )

    def test_no_end_marker(self):
        result = apply_structure("Body", METADATA, [], end_style=EndMarkerStyle.NONE)
        assert result.endswith("---\n\nBody\n")

    def test_markdown_metadata(self):
        result = apply_structure("Body", METADATA, [], metadata_format=MetadataFormat.MARKDOWN)
        assert "- **Author:** Ellen Harrow" in result

    def test_previous_structure_stripped(self):
        assert strip_leading_metadata("# T\n\n---\ntitle: T\n---\n\n---\n\nBody") == "Body"

    def test_leading_yaml_stripped(self):
        assert strip_leading_metadata("\n---\ntitle: X\n---\n\nBody") == "Body"

    def test_body_without_metadata_untouched(self):
        assert strip_leading_metadata("# Chapter 1\ntext") == "# Chapter 1\ntext"
