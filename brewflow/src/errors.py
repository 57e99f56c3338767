"""
Exception hierarchy for the incremental DataBrew pipeline.

Every failure that ends a workflow run is a PipelineError. None of them
trigger an automatic retry of the cycle: the external scheduler re-invokes
the workflow, which is safe because the checkpoint only advances on full
success.
"""

from typing import Optional


class PipelineError(Exception):
    """Base exception for pipeline errors."""
    pass


class ConfigurationError(PipelineError):
    """Raised when required pipeline settings are missing or malformed."""
    pass


class InfrastructureError(PipelineError):
    """Raised when a store or AWS service cannot be reached or rejects a call."""
    pass


class InvalidWindowError(PipelineError):
    """Raised when the checkpoint is newer than the current time or unreadable."""
    pass


class JobFailedError(PipelineError):
    """Raised when the transform job reaches a terminal non-success state."""

    def __init__(self, state: str, run_id: Optional[str] = None):
        self.state = state
        self.run_id = run_id
        super().__init__(f"DataBrew job run {run_id} failed with state {state}")


class PartialRelocationError(PipelineError):
    """
    Raised when one or more copy/delete pairs failed during post-processing.

    Objects that were already moved stay moved; the checkpoint is untouched.
    """

    def __init__(self, result):
        self.result = result
        failed = len(result.failures)
        super().__init__(
            f"Error moving files: {failed} of {failed + len(result.moved)} "
            f"relocations failed"
        )


class WorkflowTimeoutError(PipelineError):
    """Raised when the overall run budget is exhausted."""

    def __init__(self, stage: str, timeout_seconds: float):
        self.stage = stage
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"Workflow exceeded {timeout_seconds:.0f}s timeout during {stage}"
        )
