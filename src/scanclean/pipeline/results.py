"""Result types returned by step handlers and by a whole run."""

from dataclasses import dataclass, field

from scanclean.analysis.schemas import FinalReview
from scanclean.models import DetectedPatterns, DocumentMetadata
from scanclean.pipeline.context import RemovalRecord, StepAnomaly
from scanclean.pipeline.steps import CleaningStep, PipelinePhase


@dataclass(frozen=True)
class StepResult:
    content: str
    api_calls: int = 0
    tokens: int = 0
    changes: int = 0
    word_count: int = 0
    confidence: float | None = None


@dataclass(frozen=True)
class StepRecord:
    """How one executed step went, for the report."""

    step: CleaningStep
    word_count: int
    changes: int
    api_calls: int
    tokens: int
    confidence: float | None
    duration: float

    def to_dict(self) -> dict:
        return {
            "step": self.step.value,
            "number": self.step.number,
            "word_count": self.word_count,
            "changes": self.changes,
            "api_calls": self.api_calls,
            "tokens": self.tokens,
            "confidence": self.confidence,
            "duration_seconds": round(self.duration, 2),
        }


@dataclass(frozen=True)
class CleanedContent:
    content: str
    patterns: DetectedPatterns
    metadata: DocumentMetadata
    steps: list[StepRecord]
    started_at: str
    duration: float
    api_calls: int
    tokens: int
    original_word_count: int
    phase_confidences: dict[PipelinePhase, float] = field(default_factory=dict)
    anomalies: list[StepAnomaly] = field(default_factory=list)
    removal_log: list[RemovalRecord] = field(default_factory=list)
    review: FinalReview | None = None
    defense_stats: dict = field(default_factory=dict)

    @property
    def executed_steps(self) -> list[CleaningStep]:
        return [record.step for record in self.steps]

    @property
    def word_count(self) -> int:
        return len(self.content.split())

    @property
    def confidence(self) -> float | None:
        """Mean of the phase confidences."""
        if not self.phase_confidences:
            return None
        return round(sum(self.phase_confidences.values()) / len(self.phase_confidences), 3)

    def to_report(self) -> dict:
        """JSON-serialisable run report."""
        return {
            "started_at": self.started_at,
            "duration_seconds": round(self.duration, 2),
            "original_word_count": self.original_word_count,
            "word_count": self.word_count,
            "api_calls": self.api_calls,
            "tokens": self.tokens,
            "confidence": self.confidence,
            "phase_confidences": {phase.value: value for phase, value in self.phase_confidences.items()},
            "steps": [record.to_dict() for record in self.steps],
            "metadata": dict(self.metadata.fields()),
            "patterns": self.patterns.to_dict(),
            "anomalies": [anomaly.to_dict() for anomaly in self.anomalies],
            "removal_log": [record.to_dict() for record in self.removal_log],
            "review": self.review.model_dump() if self.review else None,
            "defense": self.defense_stats,
        }
