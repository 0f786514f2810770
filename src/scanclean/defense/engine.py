"""Three-phase boundary defense.

Every boundary the pipeline acts on goes through resolve():

    candidate ──► Phase A (position)  ──► Phase B (content) ──► accepted
        │ rejected / absent                  │ rejected
        └───────────────► Phase C (heuristics) ──► Phase A ──► Phase B ──► accepted
                                   │ nothing
                                   └──► no-op (content unchanged)

A rejected candidate never reaches the document.  Heuristic proposals are
re-checked by A and B exactly like service responses.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field

from scanclean.defense.heuristics import HeuristicDetector
from scanclean.defense.policy import PositionPolicy
from scanclean.defense.validation import BoundaryValidator
from scanclean.defense.verification import ContentVerifier
from scanclean.models import BoundaryInfo, SectionType

logger = logging.getLogger(__name__)


@dataclass
class DefenseOutcome:
    """The boundary to act on (or None) and how it was reached."""

    section_type: SectionType
    boundary: BoundaryInfo | None = None
    source: str = "none"  # "ai", "heuristic" or "none"
    confidence: float = 0.0
    kind: str = ""
    log: list[str] = field(default_factory=list)

    @property
    def accepted(self) -> bool:
        return self.boundary is not None


@dataclass
class DefenseStats:
    outcomes: Counter = field(default_factory=Counter)
    phase_a_rejections: int = 0
    phase_b_rejections: int = 0

    def to_dict(self) -> dict:
        return {
            "outcomes": dict(self.outcomes),
            "phase_a_rejections": self.phase_a_rejections,
            "phase_b_rejections": self.phase_b_rejections,
        }


class BoundaryDefenseEngine:
    """Validator, verifier and heuristic detector behind one call."""

    def __init__(
        self,
        policy: PositionPolicy | None = None,
        verifier: ContentVerifier | None = None,
        heuristics: HeuristicDetector | None = None,
    ):
        self.policy = policy or PositionPolicy()
        self.validator = BoundaryValidator(self.policy)
        self.verifier = verifier or ContentVerifier()
        self.heuristics = heuristics or HeuristicDetector(self.policy)
        self.stats = DefenseStats()

    def _check(self, content: str, line_count: int, boundary: BoundaryInfo, section_type: SectionType, log: list[str]):
        """Phases A and B.  Returns (resolved boundary, combined confidence) or None."""
        result = self.validator.validate(boundary, section_type, line_count)
        if not result.valid:
            self.stats.phase_a_rejections += 1
            log.append(f"Phase A: {result.reason.value}: {result.explanation}")
            return None
        if result.is_no_op:
            log.append("Phase A: no boundary")
            return None
        resolved = BoundaryInfo(result.start_line, result.end_line, boundary.confidence, boundary.notes)
        verification = self.verifier.verify(content, resolved, section_type)
        if not verification.verified:
            self.stats.phase_b_rejections += 1
            log.append(f"Phase B: {verification.reason}")
            return None
        log.append(f"Phase A+B passed ({verification.reason}, {verification.confidence:.2f})")
        return resolved, round((boundary.confidence + verification.confidence) / 2, 3)

    def resolve(
        self, content: str, section_type: SectionType, candidate: BoundaryInfo | None, use_heuristics: bool = True
    ) -> DefenseOutcome:
        """Decide the single region of section_type to remove, if any."""
        outcomes = self.resolve_regions(content, section_type, [candidate] if candidate else [], use_heuristics)
        if outcomes:
            return outcomes[0]
        return DefenseOutcome(section_type, log=["No boundary accepted"])

    def resolve_regions(
        self,
        content: str,
        section_type: SectionType,
        candidates: list[BoundaryInfo],
        use_heuristics: bool = True,
        kinds: list[str] | None = None,
    ) -> list[DefenseOutcome]:
        """Accepted regions of section_type, service candidates first.

        Heuristics run only when no candidate survives.  Overlapping regions
        are dropped in favour of the earlier accepted one.
        """
        line_count = content.count("\n") + 1
        accepted: list[DefenseOutcome] = []
        for position, candidate in enumerate(candidates):
            log: list[str] = []
            checked = self._check(content, line_count, candidate, section_type, log)
            if checked:
                kind = kinds[position] if kinds and position < len(kinds) else ""
                accepted.append(DefenseOutcome(section_type, checked[0], "ai", checked[1], kind, log))
            else:
                logger.info("%s candidate %d rejected: %s", section_type.label, position, "; ".join(log))

        if not accepted and use_heuristics:
            for heuristic in self.heuristics.detect(section_type, content):
                log = [f"Heuristic: {heuristic.explanation}"]
                checked = self._check(content, line_count, heuristic.boundary, section_type, log)
                if checked:
                    accepted.append(DefenseOutcome(section_type, checked[0], "heuristic", checked[1], heuristic.kind, log))

        accepted = _drop_overlaps(accepted)
        if accepted:
            for outcome in accepted:
                self.stats.outcomes[outcome.source] += 1
        else:
            self.stats.outcomes["none"] += 1
            logger.info("No %s boundary accepted; content left unchanged", section_type.label)
        return accepted

    def stats_dict(self) -> dict:
        return {
            "engine": self.stats.to_dict(),
            "validation": self.validator.stats.to_dict(),
            "verification": self.verifier.stats.to_dict(),
            "heuristics": self.heuristics.stats.to_dict(),
        }


def _drop_overlaps(outcomes: list[DefenseOutcome]) -> list[DefenseOutcome]:
    kept: list[DefenseOutcome] = []
    for outcome in outcomes:
        start, end = outcome.boundary.start_line, outcome.boundary.end_line
        if any(start <= k.boundary.end_line and k.boundary.start_line <= end for k in kept):
            logger.debug("Dropping overlapping %s region %d-%d", outcome.section_type.label, start, end)
            continue
        kept.append(outcome)
    return kept
