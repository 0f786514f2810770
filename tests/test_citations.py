"""Unit tests for the citations module.

Tests cover:
  - remove_citations: common styles, detected patterns, fallback, protected numbers
  - is_bibliography_line
  - remove_footnote_markers
  - detect_notes_sections
"""

# pylint: disable=missing-class-docstring,missing-function-docstring

from scanclean.text.citations import (
    detect_notes_sections,
    is_bibliography_line,
    remove_citations,
    remove_footnote_markers,
)

BIBLIO_ENTRY = "Smith, J. (2005). The River Book. Larkspur Press."


# ===========================================================================
# remove_citations tests
# ===========================================================================


class TestRemoveCitations:
    def test_apa_citation(self):
        content, count = remove_citations("As shown (Smith, 2005), the river rises.")
        assert content == "As shown, the river rises."
        assert count >= 1

    def test_apa_with_page(self):
        content, _ = remove_citations("Floods recur (Smith & Jones, 2005, p. 12) each spring.")
        assert content == "Floods recur each spring."

    def test_numeric_citation(self):
        content, _ = remove_citations("Rivers rise [3] in spring.")
        assert content == "Rivers rise in spring."

    def test_author_kept_before_year(self):
        content, _ = remove_citations("Smith (2005) argues otherwise.")
        assert content == "Smith argues otherwise."

    def test_decimal_survives(self):
        content, _ = remove_citations("Pi is 3.14 [2] roughly.")
        assert content == "Pi is 3.14 roughly."

    def test_cross_reference_survives(self):
        content, _ = remove_citations("See Table [3] for values.")
        assert content == "See Table [3] for values."

    def test_bibliography_untouched(self):
        content, count = remove_citations(BIBLIO_ENTRY)
        assert content == BIBLIO_ENTRY
        assert count == 0

    def test_detected_patterns_used(self):
        content, count = remove_citations("Text <<4>> here.", [r"<<\d+>>"])
        assert content == "Text here."
        assert count == 1

    def test_fallback_when_detected_patterns_match_nothing(self):
        content, _ = remove_citations("Rivers rise [3] in spring.", [r"\{\{cite\}\}"])
        assert content == "Rivers rise in spring."

    def test_plain_prose_unchanged(self):
        text = "Nothing to see in this quiet sentence."
        assert remove_citations(text) == (text, 0)


class TestBibliographyLine:
    def test_apa_entry(self):
        assert is_bibliography_line(BIBLIO_ENTRY) is True

    def test_prose(self):
        assert is_bibliography_line("The river rose quickly that spring, 2005") is False


# ===========================================================================
# remove_footnote_markers tests
# ===========================================================================


class TestRemoveFootnoteMarkers:
    def test_superscript_marker(self):
        assert remove_footnote_markers("The river rose¹ quickly.") == ("The river rose quickly.", 1)

    def test_bracketed_marker(self):
        content, count = remove_footnote_markers("A claim[2] here")
        assert content == "A claim here"
        assert count == 1

    def test_dagger_marker(self):
        content, _ = remove_footnote_markers("He left.† Then returned.")
        assert content == "He left. Then returned."

    def test_definition_line_kept(self):
        line = "[^1]: The definition itself."
        assert remove_footnote_markers(line) == (line, 0)

    def test_detected_pattern_first(self):
        content, count = remove_footnote_markers("Word{12} here", r"\{\d+\}")
        assert content == "Word here"
        assert count == 1

    def test_decimal_kept(self):
        assert remove_footnote_markers("Measured 3.5 units.") == ("Measured 3.5 units.", 0)

    def test_doi_kept(self):
        line = "Cited as 10.1000/182[4] in the survey."
        assert remove_footnote_markers(line) == (line, 0)

    def test_marker_beside_doi(self):
        content, count = remove_footnote_markers("The river rose¹ as doi:10.1000/182[4] notes.")
        assert content == "The river rose as doi:10.1000/182[4] notes."
        assert count == 1


# ===========================================================================
# detect_notes_sections tests
# ===========================================================================


class TestDetectNotesSections:
    def test_ends_at_next_heading(self):
        lines = ["Body text", "# NOTES", "1. First", "2. Second", "", "# Chapter Two", "More"]
        assert detect_notes_sections("\n".join(lines)) == [(1, 3)]

    def test_ends_at_end_header(self):
        lines = ["## Notes", "1. a", "2. b", "### Index", "x"]
        assert detect_notes_sections("\n".join(lines)) == [(0, 2)]

    def test_runs_to_document_end(self):
        lines = ["x", "NOTES", "1. a", "2. b"]
        assert detect_notes_sections("\n".join(lines)) == [(1, 3)]

    def test_header_only_ignored(self):
        assert detect_notes_sections("# NOTES\n\n# Next") == []

    def test_no_notes(self):
        assert detect_notes_sections("Just text\nmore text") == []
