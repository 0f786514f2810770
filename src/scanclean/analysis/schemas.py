"""Pydantic models used as structured-output response formats.

Every field is required (nullable where the service may have no answer) so
the schemas stay valid under strict structured outputs.  Line numbers are
relative to the numbered sample the service was shown; callers shift them
into document coordinates.
"""

import logging
import re
from typing import Literal

from pydantic import BaseModel, field_validator

from scanclean.models import BoundaryInfo, ContentType, DocumentMetadata

logger = logging.getLogger(__name__)

ContentTypeName = Literal["prose", "fiction", "academic", "technical", "poetry", "dialogue", "childrens"]


def _valid_regexes(patterns: list[str]) -> list[str]:
    """Drop patterns that do not compile."""
    kept = []
    for pattern in patterns:
        try:
            re.compile(pattern)
        except re.error as exc:
            logger.warning("Discarding invalid pattern from service %r: %s", pattern, exc)
            continue
        kept.append(pattern)
    return kept


class ScoredResponse(BaseModel):
    """Base for responses that carry the service's own confidence, clamped to [0, 1]."""

    confidence: float

    @field_validator("confidence")
    @classmethod
    def clamp_confidence(cls, value: float) -> float:
        return min(1.0, max(0.0, value))


class BoundaryResponse(ScoredResponse):
    """Start/end line of one structural region, or nulls when absent."""

    start_line: int | None
    end_line: int | None
    notes: str

    def to_boundary(self) -> BoundaryInfo:
        return BoundaryInfo(self.start_line, self.end_line, self.confidence, self.notes)


class AuxiliaryListInfo(ScoredResponse):
    kind: str
    start_line: int
    end_line: int

    def to_boundary(self) -> BoundaryInfo:
        return BoundaryInfo(self.start_line, self.end_line, self.confidence, self.kind)


class AuxiliaryListsResponse(BaseModel):
    lists: list[AuxiliaryListInfo]


class CitationDetection(ScoredResponse):
    """Citation style plus Python regexes matching the in-text citations."""

    style: str | None
    patterns: list[str]
    samples: list[str]

    @field_validator("patterns")
    @classmethod
    def drop_invalid_patterns(cls, value: list[str]) -> list[str]:
        return _valid_regexes(value)


class NoteSection(BaseModel):
    start_line: int
    end_line: int


class FootnoteDetection(ScoredResponse):
    """Marker style, a marker regex, and the line ranges of notes sections."""

    marker_style: str | None
    marker_pattern: str | None
    sections: list[NoteSection]

    @field_validator("marker_pattern")
    @classmethod
    def drop_invalid_pattern(cls, value: str | None) -> str | None:
        if value is None:
            return None
        kept = _valid_regexes([value])
        return kept[0] if kept else None


class ChapterEntry(BaseModel):
    line: int
    title: str
    is_part: bool


class ChapterDetection(ScoredResponse):
    chapters: list[ChapterEntry]


class MetadataExtraction(ScoredResponse):
    """Bibliographic fields read from the front matter, plus a genre guess."""

    title: str | None
    subtitle: str | None
    author: str | None
    translator: str | None
    editor: str | None
    publisher: str | None
    publish_date: str | None
    isbn: str | None
    language: str | None
    genre: str | None
    series: str | None
    series_number: str | None
    edition: str | None
    original_date: str | None
    original_language: str | None
    original_title: str | None
    content_type: ContentTypeName

    def to_metadata(self) -> DocumentMetadata:
        fields = self.model_dump(exclude={"content_type", "confidence"})
        if not fields.get("title"):
            fields.pop("title")
        return DocumentMetadata(**fields)

    @property
    def content_type_enum(self) -> ContentType:
        return ContentType(self.content_type)


class PatternDetection(ScoredResponse):
    """Regexes for whole lines that are page furniture."""

    page_number_patterns: list[str]
    header_patterns: list[str]
    footer_patterns: list[str]

    @field_validator("page_number_patterns", "header_patterns", "footer_patterns")
    @classmethod
    def drop_invalid_patterns(cls, value: list[str]) -> list[str]:
        return _valid_regexes(value)


class ReconnaissanceHints(ScoredResponse):
    """Presence-only hints; positions are deliberately not requested."""

    has_front_matter: bool
    has_table_of_contents: bool
    has_index: bool
    has_back_matter: bool
    has_auxiliary_lists: bool
    has_footnotes: bool
    content_type: ContentTypeName
    notes: str


class FinalReview(BaseModel):
    quality_score: float
    issues: list[str]
    summary: str

    @field_validator("quality_score")
    @classmethod
    def clamp_score(cls, value: float) -> float:
        return min(1.0, max(0.0, value))
