"""
Incremental DataBrew Pipeline

This package orchestrates incremental processing of newly arrived
partitioned files through an AWS Glue DataBrew job.

Core modules:
    - models: Data classes (ExecutionWindow, JobRun, RelocationTask, etc.)
    - interfaces: Abstract collaborator interfaces (ObjectStore, ParameterService, ...)
    - pipeline: Checkpoint store/committer and window calculation
    - batch: DataBrew job submission and polling
    - postprocess: Output relocation
    - orchestrate: Full workflow cycle
"""

from brewflow.src.models import (
    Checkpoint,
    DatasetPathParameter,
    ExecutionWindow,
    JobRun,
    JobState,
    RelocationResult,
    RelocationTask,
    WorkflowResult,
)
from brewflow.src.errors import (
    ConfigurationError,
    InfrastructureError,
    InvalidWindowError,
    JobFailedError,
    PartialRelocationError,
    PipelineError,
    WorkflowTimeoutError,
)

__all__ = [
    "Checkpoint",
    "DatasetPathParameter",
    "ExecutionWindow",
    "JobRun",
    "JobState",
    "RelocationResult",
    "RelocationTask",
    "WorkflowResult",
    "ConfigurationError",
    "InfrastructureError",
    "InvalidWindowError",
    "JobFailedError",
    "PartialRelocationError",
    "PipelineError",
    "WorkflowTimeoutError",
]
