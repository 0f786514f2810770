"""Advisory checks run after each step.  They add anomalies and never fail a run."""

import logging

from scanclean.pipeline.context import CleaningContext, Severity
from scanclean.pipeline.steps import BOUNDARY_STEPS, CleaningStep
from scanclean.text.sections import line_count

logger = logging.getLogger(__name__)

# Share of the remaining lines a single step may remove before it is CRITICAL
CRITICAL_REMOVAL_FRACTION = 0.5


def verify_step(step: CleaningStep, before: str, after: str, context: CleaningContext) -> None:
    lines_before = line_count(before)
    lines_after = line_count(after)

    if step.is_removal and lines_after > lines_before:
        context.add_anomaly(step, Severity.WARNING, f"Removal step grew content from {lines_before} to {lines_after} lines")

    if lines_before and (lines_before - lines_after) / lines_before > CRITICAL_REMOVAL_FRACTION:
        context.add_anomaly(
            step,
            Severity.CRITICAL,
            f"Removed {lines_before - lines_after} of {lines_before} lines ({(lines_before - lines_after) / lines_before:.0%})",
        )

    section_type = BOUNDARY_STEPS.get(step)
    if section_type is None or before != after:
        return
    if context.was_removed(section_type):
        logger.debug("%s already removed earlier; no change expected", section_type.label)
        return
    if context.has_presence_evidence(section_type):
        context.add_anomaly(
            step, Severity.WARNING, f"{section_type.label} was detected earlier but nothing was removed"
        )
