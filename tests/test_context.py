"""Unit tests for the run context, post-step checks and the shared pattern pass.

Tests cover:
  - CleaningContext: revisions and cached boundaries, presence hints, removal log, anomalies
  - verify_step advisory checks
  - detect_running_lines and detect_page_furniture fallback
"""

# pylint: disable=missing-class-docstring,missing-function-docstring

import asyncio

import pytest
from fakes import FakeAnalysisClient, prose_lines

from scanclean.analysis.schemas import PatternDetection, ReconnaissanceHints
from scanclean.errors import CleaningCancelled
from scanclean.models import BoundaryInfo, DetectedPatterns, SectionType
from scanclean.pipeline.configuration import CleaningConfiguration
from scanclean.pipeline.context import CleaningContext, Severity
from scanclean.pipeline.patterns import detect_page_furniture, detect_running_lines
from scanclean.pipeline.steps import CleaningStep, PipelinePhase
from scanclean.pipeline.verification import verify_step


def make_context() -> CleaningContext:
    return CleaningContext(configuration=CleaningConfiguration())


def make_hints(confidence: float = 0.9, **present) -> ReconnaissanceHints:
    fields = {
        "has_front_matter": False,
        "has_table_of_contents": False,
        "has_index": False,
        "has_back_matter": False,
        "has_auxiliary_lists": False,
        "has_footnotes": False,
    }
    fields.update(present)
    return ReconnaissanceHints(confidence=confidence, content_type="prose", notes="", **fields)


def book_with_running_header(pages: int = 20) -> str:
    """Pages of prose, each opened by "THE QUIET VALLEY <page>"."""
    lines = []
    for page in range(pages):
        lines.append(f"THE QUIET VALLEY {page + 1}")
        lines.extend(prose_lines(49, start=page * 49))
    return "\n".join(lines)


# ===========================================================================
# CleaningContext tests
# ===========================================================================


class TestCachedBoundaries:
    def test_fresh_boundary_returned(self):
        context = make_context()
        context.cache_boundary(SectionType.FRONT_MATTER, BoundaryInfo(0, 12, 0.9))
        assert context.cached_boundary(SectionType.FRONT_MATTER).end_line == 12

    def test_stale_after_content_change(self):
        context = make_context()
        context.cache_boundary(SectionType.FRONT_MATTER, BoundaryInfo(0, 12, 0.9))
        context.content_changed()
        assert context.cached_boundary(SectionType.FRONT_MATTER) is None
        assert context.has_presence_evidence(SectionType.FRONT_MATTER)

    def test_empty_boundary_is_no_evidence(self):
        context = make_context()
        context.cache_boundary(SectionType.INDEX, BoundaryInfo.not_found())
        assert not context.has_presence_evidence(SectionType.INDEX)


class TestHints:
    def test_confident_absence(self):
        context = make_context()
        context.hints = make_hints(0.9, has_index=True)
        assert context.hint_says_absent(SectionType.BACK_MATTER)
        assert not context.hint_says_absent(SectionType.INDEX)

    def test_unconfident_hints_ignored(self):
        context = make_context()
        context.hints = make_hints(0.6)
        assert not context.hint_says_absent(SectionType.BACK_MATTER)

    def test_cached_boundary_overrides_absence_hint(self):
        context = make_context()
        context.hints = make_hints(0.9)
        context.cache_boundary(SectionType.TABLE_OF_CONTENTS, BoundaryInfo(3, 20, 0.8))
        assert not context.hint_says_absent(SectionType.TABLE_OF_CONTENTS)


class TestLogs:
    def test_was_removed_needs_lines(self):
        context = make_context()
        context.record_removal("index", CleaningStep.REMOVE_INDEX, 0)
        assert not context.was_removed(SectionType.INDEX)
        context.record_removal("index", CleaningStep.REMOVE_INDEX, 40, 900, 939, "ai")
        assert context.was_removed(SectionType.INDEX)

    def test_duplicate_anomalies_suppressed(self):
        context = make_context()
        for _ in range(2):
            context.add_anomaly(CleaningStep.REMOVE_INDEX, Severity.WARNING, "same message")
        assert len(context.anomalies) == 1

    def test_phase_confidences(self):
        context = make_context()
        context.step_confidences[CleaningStep.REMOVE_PAGE_NUMBERS] = 0.8
        context.step_confidences[CleaningStep.REMOVE_HEADERS_FOOTERS] = 0.9
        context.step_confidences[CleaningStep.ADD_STRUCTURE] = 0.7
        assert context.phase_confidences() == {PipelinePhase.SEMANTIC_CLEANING: 0.85, PipelinePhase.ASSEMBLY: 0.7}

    def test_check_cancelled(self):
        context = make_context()
        context.completed_steps.append(CleaningStep.RECONNAISSANCE)
        context.is_cancelled = lambda: True
        with pytest.raises(CleaningCancelled) as excinfo:
            context.check_cancelled()
        assert excinfo.value.completed_steps == [CleaningStep.RECONNAISSANCE]


# ===========================================================================
# verify_step tests
# ===========================================================================


class TestVerifyStep:
    def test_growing_removal_step(self):
        context = make_context()
        verify_step(CleaningStep.REMOVE_CITATIONS, "a", "a\nb", context)
        assert [a.severity for a in context.anomalies] == [Severity.WARNING]

    def test_large_removal_is_critical(self):
        context = make_context()
        verify_step(CleaningStep.REMOVE_BACK_MATTER, "\n".join("x" * 10), "x", context)
        assert context.anomalies[0].severity == Severity.CRITICAL

    def test_detected_but_not_removed(self):
        context = make_context()
        context.cache_boundary(SectionType.INDEX, BoundaryInfo(900, None, 0.9))
        verify_step(CleaningStep.REMOVE_INDEX, "same", "same", context)
        assert len(context.anomalies) == 1
        assert "nothing was removed" in context.anomalies[0].message

    def test_already_removed_no_warning(self):
        context = make_context()
        context.cache_boundary(SectionType.TABLE_OF_CONTENTS, BoundaryInfo(3, 20, 0.9))
        context.record_removal("table_of_contents", CleaningStep.REMOVE_FRONT_MATTER, 18, 0, 30, "within front_matter")
        verify_step(CleaningStep.REMOVE_TABLE_OF_CONTENTS, "same", "same", context)
        assert context.anomalies == []

    def test_no_evidence_no_warning(self):
        context = make_context()
        verify_step(CleaningStep.REMOVE_INDEX, "same", "same", context)
        assert context.anomalies == []


# ===========================================================================
# Pattern pass tests
# ===========================================================================


class TestRunningLines:
    def test_running_header_found_with_page_number_masked(self):
        patterns = detect_running_lines(book_with_running_header())
        assert patterns == [r"THE\ QUIET\ VALLEY\ \d+"]

    def test_prose_has_no_running_lines(self):
        assert detect_running_lines("\n".join(prose_lines(1000))) == []

    def test_short_document(self):
        assert detect_running_lines("a\nb\na\nb") == []


class TestDetectPageFurniture:
    def test_service_patterns_used(self):
        client = FakeAnalysisClient(
            patterns=PatternDetection(
                confidence=0.9, page_number_patterns=[r"\d+"], header_patterns=["THE QUIET VALLEY"], footer_patterns=[]
            )
        )
        patterns = asyncio.run(detect_page_furniture("text", client, DetectedPatterns()))
        assert patterns.pattern_source == "ai"
        assert patterns.header_patterns == ["THE QUIET VALLEY"]

    def test_heuristic_fallback_on_error(self):
        client = FakeAnalysisClient(errors={"detect_patterns": RuntimeError("timeout")})
        patterns = asyncio.run(detect_page_furniture(book_with_running_header(), client, DetectedPatterns()))
        assert patterns.pattern_source == "heuristic"
        assert patterns.pattern_confidence == 0.6
        assert len(patterns.header_patterns) == 1
