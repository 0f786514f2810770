"""Position, size and confidence limits for each removable region.

The position limits encode where a region can legitimately sit in a book;
they are the single control that stops a hallucinated boundary (say, "back
matter starts at line 4") from deleting the document.  They are empirical,
so they live in a model that a configuration file can override.
"""

from pydantic import BaseModel, Field, model_validator


class PositionPolicy(BaseModel):
    """Document-relative limits checked by response validation and heuristics.

    Fractions are of the document's line count.
    """

    model_config = {"frozen": True}

    # Front matter: from line 0 to an end line
    front_matter_max_end: float = Field(0.30, ge=0.0, le=1.0)
    front_matter_max_removal: float = Field(0.40, ge=0.0, le=1.0)
    front_matter_min_lines: int = Field(3, ge=1)
    front_matter_min_confidence: float = Field(0.60, ge=0.0, le=1.0)

    # Table of contents: explicit start and end
    toc_max_end: float = Field(0.20, ge=0.0, le=1.0)
    toc_max_removal: float = Field(0.20, ge=0.0, le=1.0)
    toc_min_lines: int = Field(5, ge=1)
    toc_min_confidence: float = Field(0.60, ge=0.0, le=1.0)

    # Index: from a start line to the end of the document
    index_min_start: float = Field(0.70, ge=0.0, le=1.0)
    index_max_removal: float = Field(0.25, ge=0.0, le=1.0)
    index_min_lines: int = Field(10, ge=1)
    index_min_confidence: float = Field(0.65, ge=0.0, le=1.0)

    # Back matter: from a start line to the end of the document
    back_matter_min_start: float = Field(0.50, ge=0.0, le=1.0)
    back_matter_max_removal: float = Field(0.45, ge=0.0, le=1.0)
    back_matter_min_lines: int = Field(5, ge=1)
    back_matter_min_confidence: float = Field(0.70, ge=0.0, le=1.0)

    # Auxiliary lists (figures, tables, abbreviations): each list separately
    auxiliary_max_end: float = Field(0.40, ge=0.0, le=1.0)
    auxiliary_max_span: float = Field(0.15, ge=0.0, le=1.0)
    auxiliary_min_lines: int = Field(3, ge=1)
    auxiliary_min_confidence: float = Field(0.65, ge=0.0, le=1.0)

    # Notes sections: small when in the first half (per-chapter notes)
    footnotes_max_removal: float = Field(0.12, ge=0.0, le=1.0)
    footnotes_early_max_removal: float = Field(0.05, ge=0.0, le=1.0)
    footnotes_early_before: float = Field(0.50, ge=0.0, le=1.0)
    footnotes_min_lines: int = Field(4, ge=1)
    footnotes_min_confidence: float = Field(0.70, ge=0.0, le=1.0)

    # Heuristic detectors do not run on documents shorter than this
    heuristic_min_document_lines: int = Field(50, ge=1)
    heuristic_min_confidence: float = Field(0.60, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def validate_ordering(self) -> "PositionPolicy":
        """Front regions must end before back regions can start."""
        if self.front_matter_max_end > self.back_matter_min_start:
            raise ValueError("front_matter_max_end must not exceed back_matter_min_start")
        if self.toc_max_end > self.index_min_start:
            raise ValueError("toc_max_end must not exceed index_min_start")
        return self
