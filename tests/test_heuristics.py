"""Unit tests for Phase C heuristic detection.

Tests cover:
  - detect_front_matter, detect_toc, detect_index, detect_back_matter
  - detect_auxiliary_lists and detect_notes_sections
  - short documents and position limits
"""

# pylint: disable=missing-class-docstring,missing-function-docstring

from fakes import front_matter_lines, index_lines, notes_lines, prose_lines

from scanclean.defense.heuristics import HeuristicDetector
from scanclean.models import SectionType


def joined(*parts: list[str]) -> str:
    return "\n".join(line for part in parts for line in part)


def toc_block() -> list[str]:
    return ["# Contents"] + [f"Chapter {n} The Storm ..... {n * 10}" for n in range(1, 9)] + ["", "", ""]


def figures_block() -> list[str]:
    return ["# List of Figures"] + [f"Figure {n}. Map of the valley ..... {n + 4}" for n in range(1, 9)] + ["", "", ""]


# ===========================================================================
# Front of book
# ===========================================================================


class TestFrontMatter:
    def test_copyright_block_before_first_chapter(self):
        content = joined(front_matter_lines(), ["# Chapter 1"], prose_lines(192))
        result = HeuristicDetector().detect_front_matter(content)
        assert result.detected
        assert (result.boundary.start_line, result.boundary.end_line) == (0, 5)
        assert result.confidence == 0.95
        assert "ISBN" in result.matched_patterns

    def test_no_markers(self):
        assert not HeuristicDetector().detect_front_matter(joined(prose_lines(200))).detected

    def test_short_document(self):
        result = HeuristicDetector().detect_front_matter(joined(front_matter_lines(), prose_lines(10)))
        assert not result.detected
        assert result.explanation == "Document too short"


class TestTableOfContents:
    def test_header_and_listings(self):
        content = joined(toc_block(), ["# Chapter 1"], prose_lines(188))
        result = HeuristicDetector().detect_toc(content)
        assert result.detected
        assert (result.boundary.start_line, result.boundary.end_line) == (0, 8)
        assert result.confidence == 1.0

    def test_headerless_listing_run(self):
        content = joined(toc_block()[1:], prose_lines(190))
        result = HeuristicDetector().detect_toc(content)
        assert result.detected
        assert (result.boundary.start_line, result.boundary.end_line) == (0, 7)
        assert result.confidence == 0.7

    def test_contents_header_too_late(self):
        content = joined(prose_lines(150), toc_block(), prose_lines(39, start=150))
        assert not HeuristicDetector().detect_toc(content).detected


class TestAuxiliaryLists:
    def test_list_of_figures(self):
        content = joined(figures_block(), prose_lines(188))
        results = HeuristicDetector().detect_auxiliary_lists(content)
        assert len(results) == 1
        assert results[0].kind == "List of Figures"
        assert (results[0].boundary.start_line, results[0].boundary.end_line) == (0, 8)


# ===========================================================================
# Back of book
# ===========================================================================


class TestBackOfBook:
    def test_index_header(self):
        result = HeuristicDetector().detect_index(joined(prose_lines(900), index_lines(100)))
        assert result.detected
        assert (result.boundary.start_line, result.boundary.end_line) == (900, 999)
        assert result.confidence == 1.0

    def test_headerless_index_run(self):
        result = HeuristicDetector().detect_index(joined(prose_lines(900), index_lines(100)[1:]))
        assert result.detected
        assert result.boundary.start_line == 900
        assert result.confidence == 0.7

    def test_no_index(self):
        assert not HeuristicDetector().detect_index(joined(prose_lines(1000))).detected

    def test_back_matter_header(self):
        result = HeuristicDetector().detect_back_matter(joined(prose_lines(850), notes_lines(50)))
        assert result.detected
        assert (result.boundary.start_line, result.boundary.end_line) == (850, 899)
        assert result.matched_patterns == ["notes"]

    def test_back_matter_header_in_first_half_ignored(self):
        content = joined(prose_lines(100), notes_lines(20), prose_lines(880, start=100))
        assert not HeuristicDetector().detect_back_matter(content).detected

    def test_notes_sections(self):
        results = HeuristicDetector().detect_notes_sections(joined(prose_lines(850), notes_lines(50)))
        assert len(results) == 1
        assert (results[0].boundary.start_line, results[0].boundary.end_line) == (850, 899)
        assert results[0].confidence == 0.7


class TestDetect:
    def test_only_detections_returned_and_counted(self):
        detector = HeuristicDetector()
        assert detector.detect(SectionType.INDEX, joined(prose_lines(1000))) == []
        assert len(detector.detect(SectionType.BACK_MATTER, joined(prose_lines(850), notes_lines(50)))) == 1
        assert detector.stats.to_dict() == {
            "index": {"attempts": 1, "detections": 0},
            "back_matter": {"attempts": 1, "detections": 1},
        }
