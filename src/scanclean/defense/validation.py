"""Phase A of boundary defense: position, size and confidence checks.

A boundary proposed by the analysis service (or a heuristic) is checked
against the document it would be cut from, before any content is looked at:

    1. bounds      both lines inside the document, start <= end
    2. position    front regions end early, back regions start late
    3. size        no more than a fraction of the document removed
    4. span        enough lines to be a real section
    5. confidence  the proposer's own confidence clears the floor

A boundary with neither start nor end means "not found"; that is a valid
no-op, not a rejection.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum

from scanclean.defense.policy import PositionPolicy
from scanclean.models import BoundaryInfo, SectionType

logger = logging.getLogger(__name__)


class RejectionReason(str, Enum):
    NO_BOUNDARY = "no_boundary"
    OUT_OF_BOUNDS = "out_of_bounds"
    INVALID_RANGE = "invalid_range"
    POSITION_TOO_EARLY = "position_too_early"
    POSITION_TOO_LATE = "position_too_late"
    EXCESSIVE_REMOVAL = "excessive_removal"
    SECTION_TOO_SMALL = "section_too_small"
    LOW_CONFIDENCE = "low_confidence"


@dataclass
class ValidationResult:
    """Outcome of one Phase A check.

    start_line/end_line are the resolved inclusive range (implicit ends
    filled in) when the boundary is valid.
    """

    valid: bool
    reason: RejectionReason | None = None
    explanation: str = ""
    start_line: int | None = None
    end_line: int | None = None

    @property
    def is_no_op(self) -> bool:
        return self.valid and self.reason == RejectionReason.NO_BOUNDARY

    @classmethod
    def reject(cls, reason: RejectionReason, explanation: str) -> "ValidationResult":
        return cls(valid=False, reason=reason, explanation=explanation)


@dataclass
class ValidationStats:
    attempts: int = 0
    passed: int = 0
    rejections: Counter = field(default_factory=Counter)

    @property
    def rejected(self) -> int:
        return sum(self.rejections.values())

    def to_dict(self) -> dict:
        return {
            "attempts": self.attempts,
            "passed": self.passed,
            "rejected": self.rejected,
            "by_reason": {reason.value: count for reason, count in self.rejections.items()},
        }


def resolve_range(boundary: BoundaryInfo, section_type: SectionType, line_count: int) -> tuple[int | None, int | None]:
    """Fill in the implicit end of a region.

    Front matter starts at line 0; index and back matter run to the last
    line.  Other types need both ends.
    """
    start, end = boundary.start_line, boundary.end_line
    if section_type == SectionType.FRONT_MATTER and start is None and end is not None:
        start = 0
    if section_type in (SectionType.INDEX, SectionType.BACK_MATTER) and start is not None and end is None:
        end = line_count - 1
    return start, end


class BoundaryValidator:
    """Checks proposed boundaries against a PositionPolicy."""

    def __init__(self, policy: PositionPolicy | None = None):
        self.policy = policy or PositionPolicy()
        self.stats = ValidationStats()

    def validate(self, boundary: BoundaryInfo, section_type: SectionType, line_count: int) -> ValidationResult:
        """check() plus statistics and logging."""
        result = self.check(boundary, section_type, line_count)
        self.stats.attempts += 1
        if result.valid:
            self.stats.passed += 1
        else:
            self.stats.rejections[result.reason] += 1
            logger.warning(
                "Phase A rejected %s boundary (%s-%s, confidence %.2f): %s",
                section_type.label,
                boundary.start_line,
                boundary.end_line,
                boundary.confidence,
                result.explanation,
            )
        return result

    def check(self, boundary: BoundaryInfo, section_type: SectionType, line_count: int) -> ValidationResult:
        """Pure Phase A check with no side effects."""
        if boundary.is_empty:
            return ValidationResult(valid=True, reason=RejectionReason.NO_BOUNDARY, explanation="No section detected")

        start, end = resolve_range(boundary, section_type, line_count)
        if start is None or end is None:
            return ValidationResult.reject(
                RejectionReason.INVALID_RANGE, f"{section_type.label} needs both a start and an end line"
            )
        if line_count <= 0 or start < 0 or end >= line_count:
            return ValidationResult.reject(
                RejectionReason.OUT_OF_BOUNDS, f"Lines {start}-{end} outside document of {line_count} lines"
            )
        if start > end:
            return ValidationResult.reject(RejectionReason.INVALID_RANGE, f"Start {start} after end {end}")

        span = end - start + 1
        rule = _RULES.get(section_type)
        if rule is not None:
            rejection = rule(self.policy, start, end, span, line_count, boundary.confidence)
            if rejection is not None:
                return rejection

        return ValidationResult(valid=True, explanation="Passed", start_line=start, end_line=end)


# ── Per-type rules ───────────────────────────────────────────────────────────


def _pct(fraction: float) -> str:
    return f"{fraction * 100:.0f}%"


def _size_and_confidence(
    label: str, span: int, line_count: int, max_removal: float, min_lines: int, confidence: float, min_confidence: float
) -> ValidationResult | None:
    if span / line_count > max_removal:
        return ValidationResult.reject(
            RejectionReason.EXCESSIVE_REMOVAL,
            f"{label} would remove {_pct(span / line_count)} of the document (max {_pct(max_removal)})",
        )
    if span < min_lines:
        return ValidationResult.reject(
            RejectionReason.SECTION_TOO_SMALL, f"{label} spans {span} lines (min {min_lines})"
        )
    if confidence < min_confidence:
        return ValidationResult.reject(
            RejectionReason.LOW_CONFIDENCE, f"{label} confidence {confidence:.2f} below {min_confidence:.2f}"
        )
    return None


def _front_matter(policy, start, end, span, line_count, confidence):
    if end / line_count > policy.front_matter_max_end:
        return ValidationResult.reject(
            RejectionReason.POSITION_TOO_LATE,
            f"Front matter ends at {_pct(end / line_count)} (must end within first {_pct(policy.front_matter_max_end)})",
        )
    return _size_and_confidence(
        "Front matter",
        span,
        line_count,
        policy.front_matter_max_removal,
        policy.front_matter_min_lines,
        confidence,
        policy.front_matter_min_confidence,
    )


def _table_of_contents(policy, start, end, span, line_count, confidence):
    if end / line_count > policy.toc_max_end:
        return ValidationResult.reject(
            RejectionReason.POSITION_TOO_LATE,
            f"Table of contents ends at {_pct(end / line_count)} (must end within first {_pct(policy.toc_max_end)})",
        )
    return _size_and_confidence(
        "Table of contents",
        span,
        line_count,
        policy.toc_max_removal,
        policy.toc_min_lines,
        confidence,
        policy.toc_min_confidence,
    )


def _index(policy, start, end, span, line_count, confidence):
    if start / line_count < policy.index_min_start:
        return ValidationResult.reject(
            RejectionReason.POSITION_TOO_EARLY,
            f"Index starts at {_pct(start / line_count)} (must start after {_pct(policy.index_min_start)})",
        )
    return _size_and_confidence(
        "Index",
        span,
        line_count,
        policy.index_max_removal,
        policy.index_min_lines,
        confidence,
        policy.index_min_confidence,
    )


def _back_matter(policy, start, end, span, line_count, confidence):
    if start / line_count < policy.back_matter_min_start:
        return ValidationResult.reject(
            RejectionReason.POSITION_TOO_EARLY,
            f"Back matter starts at {_pct(start / line_count)} (must start after {_pct(policy.back_matter_min_start)})",
        )
    return _size_and_confidence(
        "Back matter",
        span,
        line_count,
        policy.back_matter_max_removal,
        policy.back_matter_min_lines,
        confidence,
        policy.back_matter_min_confidence,
    )


def _auxiliary_list(policy, start, end, span, line_count, confidence):
    if end / line_count > policy.auxiliary_max_end:
        return ValidationResult.reject(
            RejectionReason.POSITION_TOO_LATE,
            f"Auxiliary list ends at {_pct(end / line_count)} (must end within first {_pct(policy.auxiliary_max_end)})",
        )
    return _size_and_confidence(
        "Auxiliary list",
        span,
        line_count,
        policy.auxiliary_max_span,
        policy.auxiliary_min_lines,
        confidence,
        policy.auxiliary_min_confidence,
    )


def _notes_section(policy, start, end, span, line_count, confidence):
    early = start / line_count < policy.footnotes_early_before
    max_removal = policy.footnotes_early_max_removal if early else policy.footnotes_max_removal
    return _size_and_confidence(
        "Notes section",
        span,
        line_count,
        max_removal,
        policy.footnotes_min_lines,
        confidence,
        policy.footnotes_min_confidence,
    )


_RULES = {
    SectionType.FRONT_MATTER: _front_matter,
    SectionType.TABLE_OF_CONTENTS: _table_of_contents,
    SectionType.INDEX: _index,
    SectionType.BACK_MATTER: _back_matter,
    SectionType.AUXILIARY_LISTS: _auxiliary_list,
    SectionType.FOOTNOTES_ENDNOTES: _notes_section,
}
