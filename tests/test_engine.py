"""Unit tests for the three-phase boundary defense engine.

Tests cover:
  - service candidates accepted through Phases A and B
  - rejected candidates falling back to heuristics (Phase C)
  - no-op outcomes when nothing survives
  - overlap handling in resolve_regions and engine statistics
"""

# pylint: disable=missing-class-docstring,missing-function-docstring

from fakes import front_matter_lines, notes_lines, prose_lines

from scanclean.defense.engine import BoundaryDefenseEngine
from scanclean.defense.heuristics import HeuristicDetector
from scanclean.models import BoundaryInfo, SectionType

NOTES_BOOK = "\n".join(prose_lines(850) + notes_lines(50))
PROSE_BOOK = "\n".join(prose_lines(1000))
FRONT_BOOK = "\n".join(front_matter_lines() + ["# Chapter 1"] + prose_lines(192))


# ===========================================================================
# resolve tests
# ===========================================================================


class TestResolve:
    def test_service_candidate_accepted(self):
        outcome = BoundaryDefenseEngine().resolve(NOTES_BOOK, SectionType.BACK_MATTER, BoundaryInfo(850, None, 0.9))
        assert outcome.accepted
        assert outcome.source == "ai"
        assert (outcome.boundary.start_line, outcome.boundary.end_line) == (850, 899)
        assert outcome.confidence == 0.75

    def test_early_candidate_rejected_heuristic_used(self):
        engine = BoundaryDefenseEngine()
        outcome = engine.resolve(NOTES_BOOK, SectionType.BACK_MATTER, BoundaryInfo(4, None, 0.95))
        assert outcome.accepted
        assert outcome.source == "heuristic"
        assert outcome.boundary.start_line == 850
        assert engine.stats.phase_a_rejections == 1

    def test_early_candidate_rejected_nothing_found(self):
        engine = BoundaryDefenseEngine()
        outcome = engine.resolve(PROSE_BOOK, SectionType.BACK_MATTER, BoundaryInfo(4, None, 0.95))
        assert not outcome.accepted
        assert engine.stats.outcomes["none"] == 1

    def test_content_mismatch_rejected(self):
        engine = BoundaryDefenseEngine()
        outcome = engine.resolve(PROSE_BOOK, SectionType.BACK_MATTER, BoundaryInfo(800, None, 0.9))
        assert not outcome.accepted
        assert engine.stats.phase_b_rejections == 1

    def test_front_matter_swallowing_chapter_replaced_by_heuristic(self):
        outcome = BoundaryDefenseEngine().resolve(FRONT_BOOK, SectionType.FRONT_MATTER, BoundaryInfo(None, 20, 0.9))
        assert outcome.source == "heuristic"
        assert (outcome.boundary.start_line, outcome.boundary.end_line) == (0, 5)

    def test_no_candidate_no_heuristics(self):
        outcome = BoundaryDefenseEngine().resolve(NOTES_BOOK, SectionType.BACK_MATTER, None, use_heuristics=False)
        assert not outcome.accepted

    def test_no_candidate_heuristics(self):
        outcome = BoundaryDefenseEngine().resolve(NOTES_BOOK, SectionType.BACK_MATTER, None)
        assert outcome.source == "heuristic"

    def test_injected_heuristics_used(self):
        heuristics = HeuristicDetector()
        BoundaryDefenseEngine(heuristics=heuristics).resolve(NOTES_BOOK, SectionType.BACK_MATTER, None)
        assert heuristics.stats.to_dict() == {"back_matter": {"attempts": 1, "detections": 1}}


# ===========================================================================
# resolve_regions tests
# ===========================================================================


class TestResolveRegions:
    def test_overlapping_candidates_dropped(self):
        candidates = [BoundaryInfo(850, 899, 0.9), BoundaryInfo(860, 899, 0.9)]
        outcomes = BoundaryDefenseEngine().resolve_regions(NOTES_BOOK, SectionType.FOOTNOTES_ENDNOTES, candidates)
        assert len(outcomes) == 1
        assert outcomes[0].boundary.start_line == 850

    def test_kinds_attached(self):
        content = "\n".join(
            ["# List of Figures"] + [f"Figure {n}. Map of the valley ..... {n + 4}" for n in range(1, 9)] + prose_lines(191)
        )
        outcomes = BoundaryDefenseEngine().resolve_regions(
            content, SectionType.AUXILIARY_LISTS, [BoundaryInfo(0, 8, 0.9)], kinds=["List of Figures"]
        )
        assert [o.kind for o in outcomes] == ["List of Figures"]

    def test_heuristics_only_when_no_candidate_survives(self):
        engine = BoundaryDefenseEngine()
        outcomes = engine.resolve_regions(NOTES_BOOK, SectionType.FOOTNOTES_ENDNOTES, [BoundaryInfo(860, 899, 0.9)])
        assert [o.source for o in outcomes] == ["ai"]
        assert engine.heuristics.stats.to_dict() == {}

    def test_stats_dict(self):
        engine = BoundaryDefenseEngine()
        engine.resolve(NOTES_BOOK, SectionType.BACK_MATTER, BoundaryInfo(850, None, 0.9))
        stats = engine.stats_dict()
        assert stats["engine"]["outcomes"] == {"ai": 1}
        assert stats["validation"]["passed"] == 1
        assert stats["verification"]["verified"] == 1
