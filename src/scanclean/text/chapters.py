"""Chapter/part detection and final document assembly.

detect_headings() finds chapter and part headings with regexes; the
structure step uses it when the analysis service is unavailable or finds
nothing.  apply_structure() assembles the finished document:

    # Title

    ---
    title: ...          (metadata block: YAML, JSON or Markdown)
    ---

    ---

    <!-- CHAPTER: One -->
    # Chapter One
    ...

    ---

    *** <!-- END OF TITLE -->
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum

from scanclean.models import DocumentMetadata, MetadataFormat

logger = logging.getLogger(__name__)


class ChapterMarkerStyle(str, Enum):
    NONE = "none"
    HTML_COMMENTS = "html_comments"
    MARKDOWN_H1 = "markdown_h1"
    MARKDOWN_H2 = "markdown_h2"
    TOKEN_STYLE = "token_style"


class EndMarkerStyle(str, Enum):
    NONE = "none"
    MINIMAL = "minimal"
    SIMPLE = "simple"
    STANDARD = "standard"
    HTML_COMMENT = "html_comment"
    MARKDOWN_HR = "markdown_hr"
    TOKEN = "token"
    TOKEN_WITH_AUTHOR = "token_with_author"


@dataclass(frozen=True)
class Heading:
    """A chapter or part start, with its line in the current content."""

    line: int
    title: str
    is_part: bool = False


# ── Heading patterns ─────────────────────────────────────────────────────────

_NUMBER_WORDS = r"One|Two|Three|Four|Five|Six|Seven|Eight|Nine|Ten|Eleven|Twelve|Thirteen|Fourteen|Fifteen|Sixteen|Seventeen|Eighteen|Nineteen|Twenty"

# "# Chapter 3: The Storm", "## CHAPTER IV", "# Chapter Twelve"
CHAPTER_WORD_RE = re.compile(rf"^#{{1,2}}\s*chapter\s+(\d+|[IVXLC]+|{_NUMBER_WORDS}|[A-Z][a-z]+)\b[.:\s]?(.*)$", re.IGNORECASE)

# "# 3. The Storm"
NUMBERED_HEADING_RE = re.compile(r"^#{1,2}\s+(\d{1,3})[.:\s]+(.+)$")

# "# IV. The Storm"
ROMAN_HEADING_RE = re.compile(r"^#{1,2}\s+([IVXLC]+)[.:\s]+(.+)$")

# "# 3"
BARE_NUMBER_HEADING_RE = re.compile(r"^#{1,2}\s+(\d{1,3})\s*$")

# "# Part II: Winter", "## BOOK ONE", "# Volume 3"
PART_RE = re.compile(r"^#{1,2}\s*(?:part|book|volume)\s+(\d+|[IVXLC]+|One|Two|Three|Four|Five|Six|Seven|Eight|Nine|Ten)\b[.:\s]?(.*)$", re.IGNORECASE)

# Headings that are never chapters
NON_CHAPTER_KEYWORDS = (
    "notes",
    "index",
    "appendix",
    "bibliography",
    "glossary",
    "references",
    "acknowledgment",
    "acknowledgement",
    "about the author",
    "contents",
    "table of contents",
)

# Fenced code delimiter
FENCE_RE = re.compile(r"^\s*```")

# Leading metadata a previous run (or the OCR tool) may have left
LEADING_YAML_RE = re.compile(r"\A---\n(?:[A-Za-z_]+:[^\n]*\n)+---\n+")
LEADING_STRUCTURE_RE = re.compile(r"\A#\s+[^\n]+\n+---\n(?:[A-Za-z_]+:[^\n]*\n)+---\n+(?:---\n+)?")


def _strip_hashes(line: str) -> str:
    return line.lstrip("#").strip()


def _chapter_title(line: str) -> str | None:
    lowered = _strip_hashes(line).lower()
    if any(lowered.startswith(keyword) for keyword in NON_CHAPTER_KEYWORDS):
        return None
    match = CHAPTER_WORD_RE.match(line)
    if match:
        rest = match.group(2).strip()
        if rest.startswith(":") or rest.startswith("."):
            rest = rest[1:].strip()
        return rest if rest and ":" in _strip_hashes(line) else _strip_hashes(line)
    for pattern in (NUMBERED_HEADING_RE, ROMAN_HEADING_RE):
        match = pattern.match(line)
        if match:
            return _strip_hashes(line)
    match = BARE_NUMBER_HEADING_RE.match(line)
    if match:
        return f"Chapter {match.group(1)}"
    return None


def detect_headings(content: str) -> list[Heading]:
    """Find chapter and part headings outside fenced code.

    A line that is a part heading is never also reported as a chapter.
    """
    headings: list[Heading] = []
    in_code = False
    for number, raw in enumerate(content.split("\n")):
        if FENCE_RE.match(raw):
            in_code = not in_code
            continue
        if in_code:
            continue
        line = raw.strip()
        if not line.startswith("#"):
            continue
        if PART_RE.match(line):
            headings.append(Heading(number, _strip_hashes(line), is_part=True))
            continue
        title = _chapter_title(line)
        if title:
            headings.append(Heading(number, title))
    logger.debug(
        "Heuristic headings: %d chapters, %d parts",
        sum(1 for h in headings if not h.is_part),
        sum(1 for h in headings if h.is_part),
    )
    return headings


# ── Markers ──────────────────────────────────────────────────────────────────


def chapter_marker(title: str, style: ChapterMarkerStyle, part: str | None = None) -> str:
    """Marker inserted before a chapter heading.  A part title is folded in when given."""
    if style == ChapterMarkerStyle.NONE:
        return ""
    if part:
        return {
            ChapterMarkerStyle.HTML_COMMENTS: f"<!-- PART: {part} | CHAPTER: {title} -->",
            ChapterMarkerStyle.MARKDOWN_H1: f"# {part}\n\n## {title}",
            ChapterMarkerStyle.MARKDOWN_H2: f"## {part}\n\n### {title}",
            ChapterMarkerStyle.TOKEN_STYLE: f"<PART>{part}</PART>\n<CHAPTER>{title}</CHAPTER>",
        }[style]
    return {
        ChapterMarkerStyle.HTML_COMMENTS: f"<!-- CHAPTER: {title} -->",
        ChapterMarkerStyle.MARKDOWN_H1: f"# {title}",
        ChapterMarkerStyle.MARKDOWN_H2: f"## {title}",
        ChapterMarkerStyle.TOKEN_STYLE: f"<CHAPTER>{title}</CHAPTER>",
    }[style]


def part_marker(title: str, style: ChapterMarkerStyle) -> str:
    return {
        ChapterMarkerStyle.NONE: "",
        ChapterMarkerStyle.HTML_COMMENTS: f"<!-- PART: {title} -->",
        ChapterMarkerStyle.MARKDOWN_H1: f"# {title}",
        ChapterMarkerStyle.MARKDOWN_H2: f"## {title}",
        ChapterMarkerStyle.TOKEN_STYLE: f"<PART>{title}</PART>",
    }[style]


def end_marker(style: EndMarkerStyle, metadata: DocumentMetadata) -> str:
    if style == EndMarkerStyle.STANDARD:
        return f"*** <!-- END OF {metadata.title.upper()} -->"
    if style == EndMarkerStyle.HTML_COMMENT:
        return f"<!-- END OF DOCUMENT: {metadata.title} -->"
    if style == EndMarkerStyle.TOKEN_WITH_AUTHOR:
        return f'<END_DOCUMENT author="{metadata.author}">' if metadata.author else "<END_DOCUMENT>"
    return {
        EndMarkerStyle.NONE: "",
        EndMarkerStyle.MINIMAL: "***",
        EndMarkerStyle.SIMPLE: "[END]",
        EndMarkerStyle.MARKDOWN_HR: "---",
        EndMarkerStyle.TOKEN: "<END_DOCUMENT>",
    }[style]


def insert_chapter_markers(content: str, headings: list[Heading], style: ChapterMarkerStyle) -> str:
    """Insert a marker line (plus a blank line) before each heading.

    A chapter that follows a part heading with no chapter in between gets the
    part folded into its own marker and the part gets no separate marker.
    Markers are inserted from the bottom up so line numbers stay valid.
    """
    if style == ChapterMarkerStyle.NONE or not headings:
        return content
    lines = content.split("\n")
    ordered = sorted({h.line: h for h in headings if 0 <= h.line < len(lines)}.values(), key=lambda h: h.line)

    markers: dict[int, str] = {}
    pending_part: Heading | None = None
    for heading in ordered:
        if heading.is_part:
            if pending_part is not None:
                markers[pending_part.line] = part_marker(pending_part.title, style)
            pending_part = heading
            continue
        if pending_part is not None:
            markers[heading.line] = chapter_marker(heading.title, style, part=pending_part.title)
            pending_part = None
        else:
            markers[heading.line] = chapter_marker(heading.title, style)
    if pending_part is not None:
        markers[pending_part.line] = part_marker(pending_part.title, style)

    for line_number in sorted(markers, reverse=True):
        lines[line_number:line_number] = [markers[line_number], ""]
    logger.info("Inserted %d chapter/part markers", len(markers))
    return "\n".join(lines)


def strip_leading_metadata(content: str) -> str:
    """Remove a YAML block and title header left at the top by an earlier run."""
    stripped = content.lstrip("\n")
    stripped = LEADING_STRUCTURE_RE.sub("", stripped, count=1)
    return LEADING_YAML_RE.sub("", stripped, count=1)


def apply_structure(
    content: str,
    metadata: DocumentMetadata,
    headings: list[Heading],
    marker_style: ChapterMarkerStyle = ChapterMarkerStyle.HTML_COMMENTS,
    end_style: EndMarkerStyle = EndMarkerStyle.STANDARD,
    metadata_format: MetadataFormat = MetadataFormat.YAML,
) -> str:
    """Assemble title, metadata, chapter-marked content and end marker."""
    body = insert_chapter_markers(content.strip("\n"), headings, marker_style)
    parts = [f"# {metadata.title}", metadata.render(metadata_format), "---", body]
    document = "\n\n".join(parts) + "\n"
    marker = end_marker(end_style, metadata)
    if marker:
        document += f"\n---\n\n{marker}\n"
    return document
