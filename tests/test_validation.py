"""Unit tests for Phase A boundary validation and the position policy.

Tests cover:
  - resolve_range: implicit start/end per section type
  - BoundaryValidator.check: bounds, position, size, span and confidence rules
  - BoundaryValidator.validate statistics
  - PositionPolicy ordering validation
"""

# pylint: disable=missing-class-docstring,missing-function-docstring

import pytest
from pydantic import ValidationError

from scanclean.defense.policy import PositionPolicy
from scanclean.defense.validation import BoundaryValidator, RejectionReason, resolve_range
from scanclean.models import BoundaryInfo, SectionType

LINES = 1000


def check(section_type: SectionType, start, end, confidence=0.9, line_count=LINES):
    return BoundaryValidator().check(BoundaryInfo(start, end, confidence), section_type, line_count)


# ===========================================================================
# resolve_range tests
# ===========================================================================


class TestResolveRange:
    def test_front_matter_starts_at_zero(self):
        assert resolve_range(BoundaryInfo(None, 40), SectionType.FRONT_MATTER, LINES) == (0, 40)

    def test_back_matter_runs_to_end(self):
        assert resolve_range(BoundaryInfo(800, None), SectionType.BACK_MATTER, LINES) == (800, 999)

    def test_toc_needs_both(self):
        assert resolve_range(BoundaryInfo(10, None), SectionType.TABLE_OF_CONTENTS, LINES) == (10, None)


# ===========================================================================
# BoundaryValidator.check tests
# ===========================================================================


class TestCheck:
    def test_not_found_is_valid_no_op(self):
        result = BoundaryValidator().check(BoundaryInfo.not_found(), SectionType.INDEX, LINES)
        assert result.valid and result.is_no_op

    def test_valid_front_matter(self):
        result = check(SectionType.FRONT_MATTER, None, 40)
        assert result.valid
        assert (result.start_line, result.end_line) == (0, 40)

    def test_out_of_bounds(self):
        assert check(SectionType.TABLE_OF_CONTENTS, 10, 1200).reason == RejectionReason.OUT_OF_BOUNDS

    def test_inverted_range(self):
        assert check(SectionType.TABLE_OF_CONTENTS, 50, 20).reason == RejectionReason.INVALID_RANGE

    def test_missing_end(self):
        assert check(SectionType.AUXILIARY_LISTS, 50, None).reason == RejectionReason.INVALID_RANGE

    def test_back_matter_too_early(self):
        assert check(SectionType.BACK_MATTER, 4, None, 0.95).reason == RejectionReason.POSITION_TOO_EARLY

    def test_index_too_early(self):
        assert check(SectionType.INDEX, 500, None).reason == RejectionReason.POSITION_TOO_EARLY

    def test_front_matter_too_late(self):
        assert check(SectionType.FRONT_MATTER, 0, 400).reason == RejectionReason.POSITION_TOO_LATE

    def test_toc_too_late(self):
        assert check(SectionType.TABLE_OF_CONTENTS, 150, 250).reason == RejectionReason.POSITION_TOO_LATE

    def test_index_excessive_removal(self):
        # starts at 72% but 28% would be removed
        assert check(SectionType.INDEX, 720, None).reason == RejectionReason.EXCESSIVE_REMOVAL

    def test_toc_too_small(self):
        assert check(SectionType.TABLE_OF_CONTENTS, 10, 12).reason == RejectionReason.SECTION_TOO_SMALL

    def test_low_confidence(self):
        assert check(SectionType.BACK_MATTER, 800, None, 0.5).reason == RejectionReason.LOW_CONFIDENCE

    def test_early_notes_section_limited(self):
        # 8% is fine late in the book but too much in the first half
        assert check(SectionType.FOOTNOTES_ENDNOTES, 100, 179, 0.8).reason == RejectionReason.EXCESSIVE_REMOVAL
        assert check(SectionType.FOOTNOTES_ENDNOTES, 800, 879, 0.8).valid

    def test_auxiliary_span_limit(self):
        assert check(SectionType.AUXILIARY_LISTS, 100, 300).reason == RejectionReason.EXCESSIVE_REMOVAL


class TestValidateStats:
    def test_counts_attempts_and_reasons(self):
        validator = BoundaryValidator()
        validator.validate(BoundaryInfo(None, 40, 0.9), SectionType.FRONT_MATTER, LINES)
        validator.validate(BoundaryInfo(4, None, 0.9), SectionType.BACK_MATTER, LINES)
        stats = validator.stats.to_dict()
        assert stats["attempts"] == 2
        assert stats["passed"] == 1
        assert stats["by_reason"] == {"position_too_early": 1}


# ===========================================================================
# PositionPolicy tests
# ===========================================================================


class TestPositionPolicy:
    def test_custom_policy_applies(self):
        validator = BoundaryValidator(PositionPolicy(back_matter_min_start=0.3, front_matter_max_end=0.2))
        result = validator.check(BoundaryInfo(400, None, 0.9), SectionType.BACK_MATTER, LINES)
        assert result.reason == RejectionReason.EXCESSIVE_REMOVAL

    def test_overlapping_front_and_back_rejected(self):
        with pytest.raises(ValidationError):
            PositionPolicy(front_matter_max_end=0.6)

    def test_frozen(self):
        with pytest.raises(ValidationError):
            PositionPolicy().toc_min_lines = 2
