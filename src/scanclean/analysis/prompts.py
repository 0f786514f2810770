"""Prompt templates for the analysis service."""

# Per-section instructions for detect_boundary
SECTION_DESCRIPTIONS = {
    "front_matter": (
        "the FRONT MATTER: title page, half-title, copyright page, dedication, epigraph, "
        "praise pages, 'also by' lists. Report the line where the front matter ENDS "
        "(the last line before the table of contents or the main text). start_line is 0."
    ),
    "table_of_contents": (
        "the TABLE OF CONTENTS: a CONTENTS header followed by chapter or section titles, "
        "usually with page numbers. Report the header line and the last listing line."
    ),
    "index": (
        "the INDEX: an INDEX header followed by alphabetised 'term, page, page' entries. "
        "Report the INDEX header line as start_line; end_line may be null (end of text)."
    ),
    "back_matter": (
        "the BACK MATTER: notes, appendices, glossary, bibliography, acknowledgments, "
        "about the author, colophon, placed AFTER the last chapter. Report the first line "
        "of the back matter as start_line; end_line may be null (end of text)."
    ),
}

BOUNDARY_SYSTEM_PROMPT = """You locate structural regions in OCR'd books. \
The user message contains a document sample; every line is prefixed with its line number \
and a '|' separator, e.g. "12| Chapter One".

Find {description}

Rules:
1. Use ONLY line numbers that appear in the prefixes.
2. If the region is not present in the sample, return null for both start_line and end_line \
and confidence 0. Do NOT guess. A missing region is a normal answer.
3. Never report a region that contains chapter text, dialogue or narrative paragraphs.
4. confidence is your probability (0-1) that the reported lines are exactly right.
5. notes: one short sentence on what you saw.
"""

AUXILIARY_SYSTEM_PROMPT = """You locate auxiliary lists in OCR'd books: List of Figures, \
List of Tables, List of Illustrations, List of Maps, List of Abbreviations, List of Symbols. \
Lines are prefixed with their number and '|'.

Return every such list with its kind (e.g. "List of Figures"), the header line as start_line, \
the last entry line as end_line, and your confidence. Return an empty list if there are none. \
Never include the table of contents or any chapter text.
"""

CITATION_SYSTEM_PROMPT = """You analyse in-text citations in a book sample.

Return:
- style: one of "apa", "mla", "chicago", "harvard", "ieee", "numeric", "superscript", or null if \
the text has no in-text citations.
- patterns: Python regular expressions (re module syntax) that match the in-text citations \
exactly as they appear, e.g. r"\\([A-Z][a-z]+,\\s*\\d{4}\\)". Each pattern must match only the \
citation, never surrounding prose. Return [] when there are none.
- samples: up to 5 citations copied verbatim from the text.
- confidence: 0-1.
Do not report bibliography entries, decimal numbers, years in prose, or cross-references \
such as "Table 3" as citations.
"""

FOOTNOTE_SYSTEM_PROMPT = """You analyse footnotes and endnotes in an OCR'd book sample. \
Lines are prefixed with their number and '|'.

Return:
- marker_style: "superscript", "bracketed", "caret", "symbol", "parenthesized" or null.
- marker_pattern: one Python regular expression matching the in-text reference markers \
(for example r"\\[\\d+\\]"), or null.
- sections: line ranges of NOTES / ENDNOTES sections (header line to last note line).
- confidence: 0-1.
Never report chapter text as a notes section.
"""

CHAPTER_SYSTEM_PROMPT = """You find chapter and part headings in an OCR'd book sample. \
Lines are prefixed with their number and '|'.

Return every chapter start (line, title, is_part=false) and every part/book start \
(is_part=true), in order. Table of contents entries are NOT headings. Use the title as written, \
without the leading '#'. Return an empty list if there are no headings.
"""

METADATA_SYSTEM_PROMPT = """You extract bibliographic metadata from the opening pages of a book.

Fill each field only from what the text states; use null when the text does not say. \
Do not invent ISBNs, dates or publishers. original_* fields apply only to translations. \
content_type is your best guess of the genre: prose, fiction, academic, technical, poetry, \
dialogue or childrens. confidence is 0-1.
"""

PATTERN_SYSTEM_PROMPT = """You find page furniture in OCR'd Markdown: page numbers, running \
headers and running footers that repeat on many pages.

Return Python regular expressions that match the WHOLE stripped line (they are used with \
re.fullmatch). Page-number patterns: e.g. r"\\d+", r"Page \\d+". Header/footer patterns: the \
repeated book or chapter title lines, e.g. r"THE SILENT SEA". Never return a pattern that \
matches a Markdown horizontal rule ("---") or ordinary sentences. Return empty lists when \
unsure. confidence is 0-1.
"""

RECONNAISSANCE_SYSTEM_PROMPT = """You survey an OCR'd book before it is cleaned. Say only \
whether each region is PRESENT anywhere in the text; do not give positions.

Report has_front_matter, has_table_of_contents, has_index, has_back_matter, \
has_auxiliary_lists (lists of figures/tables/abbreviations), has_footnotes, the content_type \
(prose, fiction, academic, technical, poetry, dialogue, childrens), your confidence, and short notes.
"""

REFLOW_SYSTEM_PROMPT = """You repair paragraph flow in OCR'd {content_type} text.

The OCR broke paragraphs at page and line boundaries. Rejoin lines that belong to the same \
paragraph, rejoin words hyphenated across line breaks, and separate paragraphs with one blank line.

Rules:
1. Do NOT add, remove, reorder or reword any words. Change only line breaks and hyphenation.
2. Keep Markdown headings, lists, block quotes and blank-line separated verse as they are.
3. Keep every placeholder of the form ⟦...⟧ exactly as written, on its own line if it was.
4. Return only the repaired text, with no commentary.
"""

REFLOW_CONTEXT_TEMPLATE = """The previous section ended with this text (context only, do NOT \
repeat it in your answer):
<<<
{previous_context}
>>>

Repair this text:
{chunk}"""

OPTIMIZE_SYSTEM_PROMPT = """You split overlong paragraphs in {content_type} text.

Split any paragraph longer than {max_words} words at natural sentence boundaries into \
shorter paragraphs separated by one blank line. Leave shorter paragraphs untouched.

Rules:
1. Do NOT add, remove, reorder or reword any words.
2. Keep headings, lists, dialogue and every ⟦...⟧ placeholder exactly as written.
3. Return only the text, with no commentary.
"""

FINAL_REVIEW_SYSTEM_PROMPT = """You review a cleaned book excerpt for remaining OCR problems: \
page numbers, running headers, broken paragraphs, stray symbols, leftover front or back matter.

Return a quality_score from 0 (unusable) to 1 (clean), a list of concrete issues \
(quote the offending text), and a one-sentence summary.
"""

VALIDATION_PROMPT = "Reply with the single word OK."


def number_lines(text: str, offset: int = 0) -> str:
    """Prefix each line with its number ("12| ...") for line-addressed detection."""
    return "\n".join(f"{offset + i}| {line}" for i, line in enumerate(text.split("\n")))
