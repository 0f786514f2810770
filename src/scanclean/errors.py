"""Exceptions raised by the cleaning pipeline and the analysis client.

Safety rejections (a boundary refused by the defense engine) are not
errors; they are logged outcomes and never raise.
"""


class CleaningError(Exception):
    """Base class for pipeline errors."""


class ConfigurationError(CleaningError):
    """The configuration cannot be run (for example, no steps enabled)."""


class PipelineBusyError(CleaningError):
    """A run was requested while another run is active on the same pipeline."""


class StepFailedError(CleaningError):
    """A step failed and the run was aborted."""

    def __init__(self, step, reason: str):
        self.step = step
        self.reason = reason
        super().__init__(f"Step '{getattr(step, 'value', step)}' failed: {reason}")


class CleaningCancelled(CleaningError):
    """The run was cancelled; completed_steps lists what finished before."""

    def __init__(self, completed_steps: list | None = None):
        self.completed_steps = list(completed_steps or [])
        super().__init__(f"Cleaning cancelled after {len(self.completed_steps)} completed steps")


class AnalysisServiceError(CleaningError):
    """The analysis service could not answer."""


class TransientServiceError(AnalysisServiceError):
    """Timeout, rate limit or server error that outlived the client's retries."""


class NonTransientServiceError(AnalysisServiceError):
    """Authentication or request error; retrying will not help."""
