"""Mutable state owned by a single cleaning run.

The context is created when a run starts, handed to every step handler, and
discarded when the run ends.  Two rules keep its line numbers honest:

  - content_revision increases whenever a step changes the content.  A
    cached boundary is returned as a position only while the revision it
    was computed on is current; afterwards it is a presence hint at most.
  - Reconnaissance hints never carry positions at all.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from statistics import mean

from scanclean.analysis.schemas import FinalReview, ReconnaissanceHints
from scanclean.errors import CleaningCancelled
from scanclean.models import BoundaryInfo, ContentType, DetectedPatterns, DocumentMetadata, ExclusionZone, SectionType
from scanclean.pipeline.configuration import CleaningConfiguration
from scanclean.pipeline.steps import STEP_PHASES, CleaningStep, PipelinePhase

logger = logging.getLogger(__name__)

# Hint confidence above which "region absent" skips service detection
ABSENCE_HINT_CONFIDENCE = 0.7


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass(frozen=True)
class StepAnomaly:
    step: CleaningStep
    severity: Severity
    message: str

    def to_dict(self) -> dict:
        return {"step": self.step.value, "severity": self.severity.value, "message": self.message}


@dataclass(frozen=True)
class RemovalRecord:
    """One region removed by one step, in the coordinates of that step's input."""

    section_type: str
    step: CleaningStep
    lines_removed: int
    start_line: int | None = None
    end_line: int | None = None
    source: str = ""

    def to_dict(self) -> dict:
        return {
            "section_type": self.section_type,
            "step": self.step.value,
            "lines_removed": self.lines_removed,
            "start_line": self.start_line,
            "end_line": self.end_line,
            "source": self.source,
        }


@dataclass
class CachedBoundary:
    boundary: BoundaryInfo
    revision: int


def _never_cancelled() -> bool:
    return False


def _ignore_progress(fraction: float, message: str) -> None:  # pylint: disable=unused-argument
    return None


@dataclass
class CleaningContext:
    configuration: CleaningConfiguration
    patterns: DetectedPatterns = field(default_factory=DetectedPatterns)
    metadata: DocumentMetadata = field(default_factory=DocumentMetadata)
    content_type: ContentType = ContentType.PROSE
    hints: ReconnaissanceHints | None = None
    review: FinalReview | None = None
    content_revision: int = 0
    boundary_result: dict[SectionType, CachedBoundary] = field(default_factory=dict)
    step_confidences: dict[CleaningStep, float] = field(default_factory=dict)
    removal_log: list[RemovalRecord] = field(default_factory=list)
    exclusion_zones: list[ExclusionZone] = field(default_factory=list)
    anomalies: list[StepAnomaly] = field(default_factory=list)
    is_cancelled: Callable[[], bool] = _never_cancelled
    progress: Callable[[float, str], None] = _ignore_progress
    current_step: CleaningStep | None = None
    completed_steps: list[CleaningStep] = field(default_factory=list)

    # ── Cancellation ─────────────────────────────────────────────────────────

    def check_cancelled(self) -> None:
        """Raise CleaningCancelled if cancellation was requested."""
        if self.is_cancelled():
            raise CleaningCancelled(self.completed_steps)

    # ── Revisions and cached boundaries ──────────────────────────────────────

    def content_changed(self) -> None:
        self.content_revision += 1

    def cache_boundary(self, section_type: SectionType, boundary: BoundaryInfo) -> None:
        """Remember a boundary computed on the current content."""
        self.boundary_result[section_type] = CachedBoundary(boundary, self.content_revision)

    def cached_boundary(self, section_type: SectionType) -> BoundaryInfo | None:
        """The cached boundary, if it was computed on the current content revision."""
        cached = self.boundary_result.get(section_type)
        if cached is None:
            return None
        if cached.revision != self.content_revision:
            logger.debug(
                "Cached %s boundary is stale (revision %d, now %d); presence hint only",
                section_type.label,
                cached.revision,
                self.content_revision,
            )
            return None
        return cached.boundary

    def has_presence_evidence(self, section_type: SectionType) -> bool:
        """Any earlier signal, stale or not, that the region exists."""
        cached = self.boundary_result.get(section_type)
        if cached is not None and not cached.boundary.is_empty:
            return True
        if self.hints is None:
            return False
        return bool(
            {
                SectionType.FRONT_MATTER: self.hints.has_front_matter,
                SectionType.TABLE_OF_CONTENTS: self.hints.has_table_of_contents,
                SectionType.INDEX: self.hints.has_index,
                SectionType.BACK_MATTER: self.hints.has_back_matter,
                SectionType.AUXILIARY_LISTS: self.hints.has_auxiliary_lists,
                SectionType.FOOTNOTES_ENDNOTES: self.hints.has_footnotes,
            }[section_type]
        )

    def hint_says_absent(self, section_type: SectionType) -> bool:
        """Reconnaissance is confident the region does not exist."""
        if self.hints is None or self.hints.confidence <= ABSENCE_HINT_CONFIDENCE:
            return False
        return not self.has_presence_evidence(section_type)

    # ── Removal log ──────────────────────────────────────────────────────────

    def record_removal(
        self,
        section_type: str,
        step: CleaningStep,
        lines_removed: int,
        start_line: int | None = None,
        end_line: int | None = None,
        source: str = "",
    ) -> None:
        record = RemovalRecord(section_type, step, lines_removed, start_line, end_line, source)
        self.removal_log.append(record)
        logger.info("Removed %s: %d lines (%s-%s, %s)", section_type, lines_removed, start_line, end_line, source or step.value)

    def was_removed(self, section_type: SectionType | str) -> bool:
        name = section_type.value if isinstance(section_type, SectionType) else section_type
        return any(record.section_type == name and record.lines_removed > 0 for record in self.removal_log)

    # ── Anomalies and confidences ────────────────────────────────────────────

    def add_anomaly(self, step: CleaningStep, severity: Severity, message: str) -> None:
        anomaly = StepAnomaly(step, severity, message)
        if anomaly in self.anomalies:
            return
        self.anomalies.append(anomaly)
        if severity == Severity.CRITICAL:
            logger.error("[%s] %s", step.value, message)
        else:
            logger.warning("[%s] %s", step.value, message)

    def phase_confidences(self) -> dict[PipelinePhase, float]:
        """Mean step confidence per phase, over executed steps that reported one."""
        grouped: dict[PipelinePhase, list[float]] = {}
        for step, confidence in self.step_confidences.items():
            grouped.setdefault(STEP_PHASES[step], []).append(confidence)
        return {phase: round(mean(values), 3) for phase, values in grouped.items()}
