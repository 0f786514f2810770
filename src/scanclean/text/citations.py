"""Citation, footnote-marker and notes-section removal.

Three jobs, all pattern based:

  remove_citations        -- strip in-text citations ("(Smith, 2005, p. 12)",
                             "[3]", "ibid.") using the patterns detection
                             found, or a catalogue of common styles
  remove_footnote_markers -- strip reference marks (¹, [2], †, ^a) from prose
  detect_notes_sections   -- find NOTES / ENDNOTES blocks by their headers

Bibliography entries are recognised and left untouched.  Decimal numbers,
DOIs and "Table [3]" style references are shielded before any citation regex
runs, so "3.14" and "10.1000/xyz" survive patterns meant for page numbers.
Callers are expected to have shielded tables, code and math already.
"""

import logging
import re

from scanclean.text import sections, shield

logger = logging.getLogger(__name__)

# ── Building blocks ──────────────────────────────────────────────────────────

# Capitalised surname, including accented and hyphenated forms
NAME = r"[A-Z][A-Za-zÀ-ÖØ-öø-ÿĀ-žḀ-ỿ\-']+"

# Capitalised words that introduce cross-references rather than authors
_NOT_AUTHOR = r"(?!(?:Chapter|Figure|Fig|Table|Section|Part|Page|Volume|Vol|Appendix|Equation|Step|Note|Book|Article|Plate|Verse|Line)\b)"
AUTHOR = _NOT_AUTHOR + NAME

# Optional ", p. 12" or ", pp. 12-15"
PAGE = r"(?:,\s*pp?\.?\s*\d+(?:[–\-]\d+)?)?"

YEAR = r"\d{4}[a-z]?"
AUTHORS = rf"{AUTHOR}(?:\s+(?:&|and)\s+{AUTHOR})*(?:\s+et\s+al\.?)?"
SINGLE_CITE = rf"{AUTHORS},?\s*{YEAR}{PAGE}"
INTRO = r"(?:see|cf\.?|e\.?g\.?,?|i\.?e\.?,?)"
LATIN = r"(?:ibid\.?|op\.?\s*cit\.?|loc\.?\s*cit\.?)"
LETTER = "[^\\W\\d_]"

# ── Common citation styles ───────────────────────────────────────────────────

# (compiled pattern, replacement); tried in order on each line
COMMON_CITATION_PATTERNS = (
    # APA: (Smith, 2005), (Smith & Jones, 2005, p. 4)
    (re.compile(rf"\({AUTHORS},\s*{YEAR}{PAGE}\)"), ""),
    # Harvard: (Smith 2005)
    (re.compile(rf"\({AUTHORS}\s+{YEAR}{PAGE}\)"), ""),
    # With an introductory phrase: (see Smith, 2005)
    (re.compile(rf"\({INTRO}\s+{SINGLE_CITE}\)", re.IGNORECASE), ""),
    # Several at once: (Smith, 2005; Jones, 2010)
    (re.compile(rf"\((?:{INTRO}\s+)?{SINGLE_CITE}(?:;\s*(?:{INTRO}\s+)?{SINGLE_CITE})+\)"), ""),
    # Secondary: (Smith, 1990, as cited in Jones, 2005)
    (re.compile(rf"\({AUTHORS}(?:,\s*{YEAR})?,?\s+as\s+cited\s+in\s+{SINGLE_CITE}\)"), ""),
    # Harvard with bare page: (Smith 2005, 45)
    (re.compile(rf"\({AUTHOR}\s+\d{{4}},\s*\d{{1,4}}(?:[–\-]\d{{1,4}})?\)"), ""),
    # Colon page: (Smith 2005: 45)
    (re.compile(rf"\({AUTHORS},?\s+\d{{4}}:\s*\d+(?:[–\-]\d+)?\)"), ""),
    # MLA: (Smith 45), (Smith and Jones 45-47)
    (re.compile(rf"\({AUTHOR}(?:\s+(?:&|and)\s+{AUTHOR})?\s+\d+(?:[–\-]\d+)?\)"), ""),
    # IEEE / numeric: [3], [3, 5], [3-7]
    (re.compile(r"(?<=[\s(,;])\[\d+(?:\s*[–\-,]\s*\d+)*\](?=[\s.,;:)\]]|$)"), ""),
    # Superscript numerals after a word: word¹²
    (re.compile(rf"(?<={LETTER}{LETTER})[¹²³⁰⁴⁵⁶⁷⁸⁹]+(?=[\s.,;:)\]”\"]|$)"), ""),
    # Author with Latin abbreviation: (Smith, op. cit., p. 4)
    (re.compile(rf"\({AUTHOR},?\s+{LATIN}(?:,?\s*pp?\.?\s*\d+(?:[–\-]\d+)?)?\)", re.IGNORECASE), ""),
    # Latin abbreviation in parentheses: (ibid., p. 4)
    (re.compile(rf"\({LATIN}(?:,?\s*pp?\.?\s*\d+(?:[–\-]\d+)?)?\)", re.IGNORECASE), ""),
    # Standalone Latin abbreviation
    (re.compile(r"\b(?:ibid|op\.\s*cit|loc\.\s*cit)\b\.?", re.IGNORECASE), ""),
    # Chapter and page: (Ch. 3, p. 45), (pp. 12-14)
    (re.compile(r"\((?:Ch(?:apter)?\.?\s*\d+,\s*)?pp?\.\s*\d+(?:[–\-]\d+)?\)"), ""),
    # Sentence-initial author keeps the name: "Smith (2005) argues" -> "Smith argues"
    (re.compile(rf"\b({AUTHORS})\s+\({YEAR}{PAGE}\)"), r"\1"),
)

# ── Shields applied before citation patterns ─────────────────────────────────

# DOI, with or without a "doi:" prefix
DOI_RE = re.compile(r"(?:doi:\s*)?10\.\d{4,}/\S+", re.IGNORECASE)

# Decimal number: 3.14, 2.5
DECIMAL_RE = re.compile(r"\b\d+\.\d+\b")

# Cross-reference with a bracketed number: Table [3], Figure [12]
CROSS_REFERENCE_RE = re.compile(r"\b(?:Table|Figure|Fig\.|Equation|Eq\.|Section)\s*\[\d+\]", re.IGNORECASE)

# ── Orphaned fragments left behind by partial matches ────────────────────────

ORPHAN_PATTERNS = (
    (re.compile(r"\(\s*,?\s*pp?\.\s*\d+(?:[–\-]\d+)?\s*\)"), ""),
    (re.compile(r"\(\s*(?:see|cf\.?|e\.?g\.?|i\.?e\.?)\s*\)", re.IGNORECASE), ""),
    (re.compile(r"\(\s*[,;\s]+\s*\)"), ""),
    (re.compile(r"\(\s*et\s+al\.?\s*,?\s*\)"), ""),
    (re.compile(rf"\(\s*{NAME},\s*\.+,?\s*pp?\.?\s*\d+(?:[–\-]\d+)?\s*\)"), ""),
    (re.compile(rf"\(\s*{NAME},\s*pp?\.?\s*\d+(?:[–\-]\d+)?\s*\)"), ""),
    (re.compile(r"\(\s*as\s+cited\s+in\s*[A-Za-z]*,?\s*\)", re.IGNORECASE), ""),
    (re.compile(rf"\(\s*{NAME},\s*\)"), ""),
    (re.compile(r";\s*\)"), ")"),
    (re.compile(r",\s*,"), ","),
    (re.compile(r"\(\s*\)"), ""),
    (re.compile(r"\[\s*\]"), ""),
    (re.compile(r"(?<=\S)[ \t]+(?=[,.;:](?:\s|$))"), ""),
)

MULTI_SPACE_RE = re.compile(r"(?<=\S) {2,}")

# ── Bibliography lines ───────────────────────────────────────────────────────

# "Smith, J." / "O'Brien, A."
BIBLIO_AUTHOR_RE = re.compile(r"^\s*(?:[-*]\s+)?[A-Z][a-zA-Z'\-]+,\s+[A-Z]")

# "(2005)." APA year
BIBLIO_APA_YEAR_RE = re.compile(r"\(\d{4}\)\s*\.")

# Year closing the entry
BIBLIO_END_YEAR_RE = re.compile(r"\d{4}\s*[.,]?\s*$")

BIBLIO_TOKENS = (
    "Publisher",
    "Press",
    "Journal",
    "University",
    "Vol.",
    "pp.",
    "doi:",
    "Retrieved from",
    "https://",
    "http://",
    "ISBN",
)


def is_bibliography_line(line: str) -> bool:
    """True for lines that look like a reference-list entry."""
    if len(line) <= 20 or not BIBLIO_AUTHOR_RE.match(line):
        return False
    if BIBLIO_APA_YEAR_RE.search(line) or BIBLIO_END_YEAR_RE.search(line):
        return True
    if any(token in line for token in BIBLIO_TOKENS):
        return True
    if "_" in line and "." in line:
        return True
    return line.count(".") >= 3


# ── Citation removal ─────────────────────────────────────────────────────────


def _apply(patterns, text: str) -> tuple[str, int]:
    total = 0
    for pattern, replacement in patterns:
        text, count = pattern.subn(replacement, text)
        total += count
    return text, total


def clean_orphaned_artifacts(line: str) -> tuple[str, int]:
    """Tidy fragments such as "( , p. 4)", "(see )" or ",," left by removals."""
    line, count = _apply(ORPHAN_PATTERNS, line)
    if count:
        line = MULTI_SPACE_RE.sub(" ", line)
    return line, count


def remove_citations(content: str, patterns: list[str] | None = None) -> tuple[str, int]:
    """Remove in-text citations.  Returns (content, number of removals).

    The detected ``patterns`` are tried first.  When there are none, or they
    match nothing in the whole document, the common-style catalogue is used
    instead.
    """
    detected = [(p, "") for p in sections.compile_patterns(patterns or [])]
    use_common = not detected

    output, total = _remove_citations_with(content, detected) if detected else (content, 0)
    if detected and total == 0:
        logger.info("Detected citation patterns matched nothing -- falling back to common styles")
        use_common = True
    if use_common:
        output, total = _remove_citations_with(content, COMMON_CITATION_PATTERNS)

    logger.info("Removed %d citations", total)
    return output, total


def _remove_citations_with(content: str, patterns) -> tuple[str, int]:
    lines = []
    total = 0
    for line in content.split("\n"):
        if not line.strip() or is_bibliography_line(line):
            lines.append(line)
            continue
        protected, dois = shield.protect_pattern(line, DOI_RE, "DOI")
        protected, refs = shield.protect_pattern(protected, CROSS_REFERENCE_RE, "XREF")
        protected, decimals = shield.protect_pattern(protected, DECIMAL_RE, "DEC")

        cleaned, count = _apply(patterns, protected)
        if count:
            cleaned, orphans = clean_orphaned_artifacts(cleaned)
            count += orphans
            cleaned = MULTI_SPACE_RE.sub(" ", cleaned)

        cleaned = shield.restore_placeholders(cleaned, decimals)
        cleaned = shield.restore_placeholders(cleaned, refs)
        cleaned = shield.restore_placeholders(cleaned, dois)
        lines.append(cleaned)
        total += count
    return "\n".join(lines), total


# ── Footnote markers ─────────────────────────────────────────────────────────

DEFAULT_FOOTNOTE_MARKER_PATTERNS = (
    # Superscript digits after a lowercase word
    re.compile(r"(?<=[a-zà-öø-ÿ]{3})[¹²³⁰⁴⁵⁶⁷⁸⁹]+(?=[\s.,;:)\]”\"]|$)"),
    # Markdown footnote reference: [^3]
    re.compile(r"\[\^\d+\](?!:)"),
    # Bracketed number: [3]
    re.compile(r"(?<=\S)\[\d+\](?!:)"),
    # Caret forms: ^(3), ^a
    re.compile(r"\^\(\d+\)"),
    re.compile(r"\^[a-z](?=\s|$|[.,;:])"),
    # Dagger family after a word
    re.compile(r"(?<=[\w.,;:!?)\"'])[†‡§¶‖]+(?=\s|$|[.,;:])"),
)

# A lone asterisk after a word, only trusted when it is the line's only asterisk
ASTERISK_MARKER_RE = re.compile(r"(?<=[\w.,;:!?)\"'])\*(?=\s|$)")


def remove_footnote_markers(content: str, marker_pattern: str | None = None) -> tuple[str, int]:
    """Remove footnote reference marks from prose.  Returns (content, count).

    The detected marker pattern, if any, runs before the defaults.
    Bibliography lines and Markdown footnote definitions ("[^1]: ...") are
    left alone.
    """
    patterns = list(sections.compile_patterns([marker_pattern])) if marker_pattern else []
    patterns.extend(DEFAULT_FOOTNOTE_MARKER_PATTERNS)

    lines = []
    total = 0
    for line in content.split("\n"):
        if not line.strip() or is_bibliography_line(line) or line.lstrip().startswith("[^"):
            lines.append(line)
            continue
        protected, dois = shield.protect_pattern(line, DOI_RE, "DOI")
        protected, refs = shield.protect_pattern(protected, CROSS_REFERENCE_RE, "XREF")
        protected, decimals = shield.protect_pattern(protected, DECIMAL_RE, "DEC")
        count = 0
        for pattern in patterns:
            protected, n = pattern.subn("", protected)
            count += n
        if protected.count("*") == 1:
            protected, n = ASTERISK_MARKER_RE.subn("", protected)
            count += n
        protected = shield.restore_placeholders(protected, decimals)
        protected = shield.restore_placeholders(protected, refs)
        protected = shield.restore_placeholders(protected, dois)
        lines.append(protected)
        total += count

    logger.info("Removed %d footnote markers", total)
    return "\n".join(lines), total


# ── Notes sections ───────────────────────────────────────────────────────────

# "# NOTES", "## Endnotes", or a bare "NOTES" line
NOTES_HEADER_RE = re.compile(r"^(?:#{1,3}\s*(?:NOTES|Notes|ENDNOTES|Endnotes|END NOTES|End Notes)|(?:NOTES|ENDNOTES))\s*$")

# Headers that end a notes section
NOTES_END_RE = re.compile(
    r"^#{1,3}\s*(?:INDEX|Index|APPENDIX|Appendix|GLOSSARY|Glossary|BIBLIOGRAPHY|Bibliography|REFERENCES|References"
    r"|ACKNOWLEDGE?MENTS|Acknowledge?ments|ABOUT THE AUTHOR|About the Author)"
)

# Markdown heading, capturing its level
HEADING_LEVEL_RE = re.compile(r"^(#{1,6})\s+\S")


def _heading_level(line: str) -> int:
    match = HEADING_LEVEL_RE.match(line)
    return len(match.group(1)) if match else 0


def detect_notes_sections(content: str) -> list[tuple[int, int]]:
    """Find notes blocks by header.  Returns (start_line, end_line) pairs.

    A section runs from its header to the line before the next ending
    header or the next heading at the same or a higher level, or to the end
    of the document.  A bare "NOTES" line counts as a level-1 heading.
    """
    lines = content.split("\n")
    found: list[tuple[int, int]] = []
    i = 0
    while i < len(lines):
        if not NOTES_HEADER_RE.match(lines[i].strip()):
            i += 1
            continue
        start = i
        level = _heading_level(lines[i].strip()) or 1
        end = len(lines) - 1
        for j in range(start + 1, len(lines)):
            stripped = lines[j].strip()
            if NOTES_HEADER_RE.match(stripped):
                end = j - 1
                break
            heading = _heading_level(stripped)
            if NOTES_END_RE.match(stripped) or (heading and heading <= level):
                end = j - 1
                break
        while end > start and not lines[end].strip():
            end -= 1
        if end > start:
            found.append((start, end))
            logger.debug("Notes section at lines %d-%d", start, end)
        i = end + 1
    return found
