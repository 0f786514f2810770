"""Cleaning pipeline orchestrator.

Runs the enabled steps of one configuration over one document:

  1. Reject a configuration with no enabled steps.
  2. If any enabled step is hybrid, run the shared pattern pass once.
  3. Run the enabled steps in pipeline order, each on the previous output.
  4. After each step, run the advisory post-step checks.
  5. Aggregate step confidences per phase and assemble a CleanedContent.

One run at a time per instance.  Cancellation is cooperative: it is checked
before every step and between chunks of the chunked steps.
"""

import logging
import time
from collections.abc import Callable
from datetime import datetime, timezone
from enum import Enum

from scanclean.analysis.client import AnalysisClient
from scanclean.defense.engine import BoundaryDefenseEngine
from scanclean.errors import (
    CleaningCancelled,
    ConfigurationError,
    NonTransientServiceError,
    PipelineBusyError,
    StepFailedError,
)
from scanclean.pipeline.configuration import CleaningConfiguration
from scanclean.pipeline.context import CleaningContext
from scanclean.pipeline.handlers import StepHandlers
from scanclean.pipeline.patterns import detect_page_furniture
from scanclean.pipeline.providers import BoundaryPreDetectionProvider, FinalReviewProvider, ReconnaissanceProvider
from scanclean.pipeline.results import CleanedContent, StepRecord, StepResult
from scanclean.pipeline.steps import CleaningStep, ProcessingMethod
from scanclean.pipeline.verification import verify_step
from scanclean.text.sections import count_words

logger = logging.getLogger(__name__)


class PipelineState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class StepStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


StepStartedCallback = Callable[[CleaningStep], None]
StepCompletedCallback = Callable[[CleaningStep, StepResult], None]
ProgressCallback = Callable[[float, str], None]


class CleaningPipeline:
    """Sequential sixteen-step cleaner around one analysis client."""

    def __init__(
        self,
        client: AnalysisClient,
        engine: BoundaryDefenseEngine | None = None,
        reconnaissance: ReconnaissanceProvider | None = None,
        predetection: BoundaryPreDetectionProvider | None = None,
        final_review: FinalReviewProvider | None = None,
        on_step_started: StepStartedCallback | None = None,
        on_step_completed: StepCompletedCallback | None = None,
        on_progress: ProgressCallback | None = None,
    ):
        self.client = client
        self.engine = engine
        self.reconnaissance = reconnaissance
        self.predetection = predetection
        self.final_review = final_review
        self.on_step_started = on_step_started
        self.on_step_completed = on_step_completed
        self.on_progress = on_progress
        self.state = PipelineState.IDLE
        self.step_status: dict[CleaningStep, StepStatus] = {}
        self.failure: StepFailedError | None = None
        self._cancel_requested = False

    @property
    def is_running(self) -> bool:
        return self.state == PipelineState.RUNNING

    def cancel(self) -> None:
        """Request cancellation; honoured at the next step or chunk boundary."""
        if self.is_running:
            logger.warning("Cancellation requested")
            self._cancel_requested = True

    def _progress(self, fraction: float, message: str) -> None:
        if self.on_progress is not None:
            self.on_progress(fraction, message)

    async def run(self, document: str, configuration: CleaningConfiguration) -> CleanedContent:
        """Clean document with configuration.

        Raises ConfigurationError when no step is enabled, PipelineBusyError
        when a run is already active, StepFailedError when a step fails and
        CleaningCancelled when cancel() was called.
        """
        if self.is_running:
            raise PipelineBusyError("A cleaning run is already in progress")
        steps = configuration.ordered_steps()
        if not steps:
            raise ConfigurationError("No cleaning steps are enabled")

        self.state = PipelineState.RUNNING
        self.step_status = {step: StepStatus.PENDING for step in steps}
        self.failure = None
        self._cancel_requested = False
        try:
            result = await self._run(document, configuration, steps)
        except CleaningCancelled as exc:
            self.state = PipelineState.CANCELLED
            logger.warning("Run cancelled after %d steps", len(exc.completed_steps))
            raise
        except StepFailedError as exc:
            self.state = PipelineState.FAILED
            self.failure = exc
            raise
        except BaseException:
            self.state = PipelineState.FAILED
            raise
        self.state = PipelineState.COMPLETED
        return result

    async def _run(self, document: str, configuration: CleaningConfiguration, steps: list[CleaningStep]) -> CleanedContent:
        started_at = datetime.now(timezone.utc).isoformat()
        t0 = time.time()
        calls_before, tokens_before = self.client.usage.snapshot()
        engine = self.engine or BoundaryDefenseEngine(configuration.position_policy)
        handlers = StepHandlers(self.client, engine, self.reconnaissance, self.predetection, self.final_review)
        context = CleaningContext(
            configuration=configuration,
            content_type=configuration.content_type,
            is_cancelled=lambda: self._cancel_requested,
            progress=self._progress,
        )
        logger.info("Cleaning %d words with %d steps", count_words(document), len(steps))

        if any(step.method == ProcessingMethod.HYBRID for step in steps):
            context.check_cancelled()
            try:
                await detect_page_furniture(document, self.client, context.patterns)
            except NonTransientServiceError as exc:
                raise StepFailedError("pattern_detection", str(exc)) from exc

        content = document
        records: list[StepRecord] = []
        for step in steps:
            context.check_cancelled()
            context.current_step = step
            self.step_status[step] = StepStatus.IN_PROGRESS
            if self.on_step_started is not None:
                self.on_step_started(step)
            logger.info("Step %d/16: %s", step.number, step.label)

            step_t0 = time.time()
            try:
                result = await handlers.run(step, content, context)
            except CleaningCancelled:
                self.step_status[step] = StepStatus.FAILED
                raise
            except Exception as exc:
                self.step_status[step] = StepStatus.FAILED
                logger.error("Step %s failed: %s", step.value, exc)
                raise StepFailedError(step, str(exc)) from exc

            verify_step(step, content, result.content, context)
            if result.content != content:
                context.content_changed()
            content = result.content
            if result.confidence is not None:
                context.step_confidences[step] = result.confidence
            records.append(
                StepRecord(
                    step=step,
                    word_count=result.word_count,
                    changes=result.changes,
                    api_calls=result.api_calls,
                    tokens=result.tokens,
                    confidence=result.confidence,
                    duration=time.time() - step_t0,
                )
            )
            self.step_status[step] = StepStatus.COMPLETED
            context.completed_steps.append(step)
            if self.on_step_completed is not None:
                self.on_step_completed(step, result)
            logger.info(
                "Completed %s: %d words, %d line changes, %d API calls",
                step.label,
                result.word_count,
                result.changes,
                result.api_calls,
            )

        calls_after, tokens_after = self.client.usage.snapshot()
        duration = time.time() - t0
        logger.info("Cleaning finished in %.1fs (%d API calls)", duration, calls_after - calls_before)
        return CleanedContent(
            content=content,
            patterns=context.patterns,
            metadata=context.metadata,
            steps=records,
            started_at=started_at,
            duration=duration,
            api_calls=calls_after - calls_before,
            tokens=tokens_after - tokens_before,
            original_word_count=count_words(document),
            phase_confidences=context.phase_confidences(),
            anomalies=list(context.anomalies),
            removal_log=list(context.removal_log),
            review=context.review,
            defense_stats=engine.stats_dict(),
        )
