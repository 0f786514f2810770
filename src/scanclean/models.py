"""Plain data types shared by the detectors, the defense engine and the pipeline."""

import json
from dataclasses import asdict, dataclass, field
from enum import Enum


class SectionType(str, Enum):
    """Structural regions that the pipeline can remove."""

    FRONT_MATTER = "front_matter"
    TABLE_OF_CONTENTS = "table_of_contents"
    INDEX = "index"
    BACK_MATTER = "back_matter"
    AUXILIARY_LISTS = "auxiliary_lists"
    FOOTNOTES_ENDNOTES = "footnotes_endnotes"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()


class ContentType(str, Enum):
    """Broad document genre; drives a few step parameters."""

    AUTO = "auto"
    PROSE = "prose"
    FICTION = "fiction"
    ACADEMIC = "academic"
    TECHNICAL = "technical"
    POETRY = "poetry"
    DIALOGUE = "dialogue"
    CHILDRENS = "childrens"


@dataclass
class BoundaryInfo:
    """A single detected region: optional start/end line (0-based, inclusive)."""

    start_line: int | None = None
    end_line: int | None = None
    confidence: float = 0.0
    notes: str = ""

    @property
    def is_empty(self) -> bool:
        return self.start_line is None and self.end_line is None

    def shifted(self, offset: int) -> "BoundaryInfo":
        """Translate sample-relative line numbers into document line numbers."""
        return BoundaryInfo(
            start_line=None if self.start_line is None else self.start_line + offset,
            end_line=None if self.end_line is None else self.end_line + offset,
            confidence=self.confidence,
            notes=self.notes,
        )

    @classmethod
    def not_found(cls, notes: str = "Section not found") -> "BoundaryInfo":
        return cls(confidence=0.0, notes=notes)


@dataclass(frozen=True)
class ExclusionZone:
    """A sub-range inside a removal range that must be kept."""

    start_line: int
    end_line: int
    reason: str = ""


@dataclass
class ContentTypeFlags:
    """What kind of document this is, as far as detection can tell."""

    primary: ContentType = ContentType.PROSE
    is_fiction: bool = False
    is_academic: bool = False
    is_technical: bool = False
    is_childrens: bool = False
    has_code: bool = False
    has_math: bool = False
    has_poetry: bool = False
    has_dialogue: bool = False
    confidence: float = 0.0


class MetadataFormat(str, Enum):
    YAML = "yaml"
    JSON = "json"
    MARKDOWN = "markdown"


@dataclass
class DocumentMetadata:
    """Bibliographic metadata extracted from the front matter."""

    title: str = "Untitled"
    subtitle: str | None = None
    author: str | None = None
    translator: str | None = None
    editor: str | None = None
    publisher: str | None = None
    publish_date: str | None = None
    isbn: str | None = None
    language: str | None = None
    genre: str | None = None
    series: str | None = None
    series_number: str | None = None
    edition: str | None = None
    original_date: str | None = None
    original_language: str | None = None
    original_title: str | None = None

    @property
    def is_translation(self) -> bool:
        return bool(self.translator or self.original_language or self.original_title)

    def fields(self) -> list[tuple[str, str]]:
        """Non-empty (key, value) pairs in display order.

        The original_* fields are only reported for translations.
        """
        pairs = []
        for key, value in asdict(self).items():
            if value in (None, ""):
                continue
            if key.startswith("original_") and not self.is_translation:
                continue
            pairs.append((key, str(value)))
        return pairs

    def render(self, fmt: MetadataFormat = MetadataFormat.YAML) -> str:
        """Render as a YAML front-matter block, a JSON code block, or a Markdown list."""
        pairs = self.fields()
        if fmt == MetadataFormat.JSON:
            return "```json\n" + json.dumps(dict(pairs), indent=2, ensure_ascii=False) + "\n```"
        if fmt == MetadataFormat.MARKDOWN:
            return "\n".join(f"- **{key.replace('_', ' ').title()}:** {value}" for key, value in pairs)
        lines = ["---"]
        for key, value in pairs:
            if any(ch in value for ch in ':#"\'') or value != value.strip():
                value = json.dumps(value, ensure_ascii=False)
            lines.append(f"{key}: {value}")
        lines.append("---")
        return "\n".join(lines)


# Page-number lines recognised when detection supplies nothing better.
# The Markdown horizontal rule "---" is deliberately absent.
DEFAULT_PAGE_NUMBER_PATTERNS = (
    r"^\d+$",
    # Roman numerals only: lowercase below c (front-matter pages), uppercase any
    r"^(?=[ivxl])(?:xc|xl|l?x{0,3})(?:ix|iv|v?i{0,3})$",
    r"^(?=[IVXLCDM])M{0,3}(?:CM|CD|D?C{0,3})(?:XC|XL|L?X{0,3})(?:IX|IV|V?I{0,3})$",
    r"^Page\s+\d+$",
    r"^p\.?\s*\d+$",
    r"^\d+\s+of\s+\d+$",
    r"^-\s*\d+\s*-$",
    r"^-\s*[ivxlcdmIVXLCDM]+\s*-$",
    r"^—\s*\d+\s*—$",
    r"^—\s*[ivxlcdmIVXLCDM]+\s*—$",
    r"^\[\d+\]$",
    r"^--\s*-$",
    r"^-\s*--$",
    r"^—\s*-$",
    r"^-\s*—$",
    r"^\s*—\s*$",
)

DEFAULT_SPECIAL_CHARACTERS = ("[", "]", "*", "_")


@dataclass
class DetectedPatterns:
    """Everything pattern and AI detection has learned about one document.

    Line numbers are only meaningful against the content they were computed
    from; steps that run after content has changed treat them as presence
    hints.
    """

    page_number_patterns: list[str] = field(default_factory=list)
    header_patterns: list[str] = field(default_factory=list)
    footer_patterns: list[str] = field(default_factory=list)
    pattern_confidence: float = 0.0
    pattern_source: str = "none"

    front_matter_end_line: int | None = None
    front_matter_confidence: float = 0.0
    toc_start_line: int | None = None
    toc_end_line: int | None = None
    toc_confidence: float = 0.0
    index_start_line: int | None = None
    index_confidence: float = 0.0
    back_matter_start_line: int | None = None
    back_matter_confidence: float = 0.0

    citation_style: str | None = None
    citation_patterns: list[str] = field(default_factory=list)
    citation_samples: list[str] = field(default_factory=list)
    citation_confidence: float = 0.0

    footnote_marker_style: str | None = None
    footnote_marker_pattern: str | None = None
    footnote_sections: list[tuple[int, int]] = field(default_factory=list)
    footnote_confidence: float = 0.0

    chapter_start_lines: list[int] = field(default_factory=list)
    chapter_titles: list[str] = field(default_factory=list)
    part_start_lines: list[int] = field(default_factory=list)
    part_titles: list[str] = field(default_factory=list)

    content_flags: ContentTypeFlags = field(default_factory=ContentTypeFlags)

    @property
    def has_citations(self) -> bool:
        return bool(self.citation_patterns)

    @property
    def has_header_footer(self) -> bool:
        return bool(self.header_patterns or self.footer_patterns)

    def effective_page_number_patterns(self) -> list[str]:
        return list(self.page_number_patterns) or list(DEFAULT_PAGE_NUMBER_PATTERNS)

    def to_dict(self) -> dict:
        return asdict(self)
