"""
Data models for the incremental DataBrew pipeline.

These dataclasses define the contract between workflow stages:
    - ExecutionWindow: time interval of newly arrived input for one run
    - JobRun: a submitted DataBrew job run and its last observed state
    - RelocationTask / RelocationResult: post-processing of job output
    - WorkflowResult: summary returned at the end of a successful cycle
"""

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from brewflow.src.errors import InvalidWindowError, WorkflowTimeoutError


def format_timestamp(value: datetime) -> str:
    """Render a timestamp as ISO-8601 UTC with millisecond precision."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def parse_timestamp(value: str) -> datetime:
    """
    Parse an ISO-8601 timestamp into an aware UTC datetime.

    Accepts the `Z` suffix used by Step Functions execution start times.

    Raises:
        ValueError: If the value is not a valid timestamp
    """
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


class JobState(str, Enum):
    """
    DataBrew job run states.

    - STARTING, WAITING, RUNNING, STOPPING: in flight, poll again
    - SUCCEEDED: completed normally
    - FAILED, TIMEOUT, STOPPED: terminal failure
    """

    STARTING = "STARTING"
    WAITING = "WAITING"
    RUNNING = "RUNNING"
    STOPPING = "STOPPING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    TIMEOUT = "TIMEOUT"
    STOPPED = "STOPPED"

    @classmethod
    def parse(cls, raw: Optional[str]) -> Optional["JobState"]:
        """Map a reported state string to a JobState, or None if unrecognized."""
        try:
            return cls(raw)
        except ValueError:
            return None


@dataclass
class DatasetPathParameter:
    """
    Dynamic segment of the raw dataset key pattern (e.g. `{year}` in
    `events/{year}/{month}/<.*>.csv`).

    Attributes:
        name: Parameter name as used in the key pattern
        type: DataBrew parameter type (String, Number, Datetime)
        create_column: Whether DataBrew adds the value as a column
    """

    name: str
    type: str = "String"
    create_column: bool = True

    def to_databrew(self) -> Dict[str, Any]:
        return {
            "Name": self.name,
            "Type": self.type,
            "CreateColumn": self.create_column,
        }


@dataclass
class Checkpoint:
    """Last successful execution timestamp of a dataset."""

    dataset_id: str
    last_execution_timestamp: datetime


@dataclass(frozen=True)
class ExecutionWindow:
    """
    Half-open interval [start, end) of input selected for one execution.

    Attributes:
        start: Prior checkpoint, or the beginning of time on first run
        end: Time the current workflow execution began
    """

    start: datetime
    end: datetime

    def __post_init__(self):
        if self.start > self.end:
            raise InvalidWindowError(
                f"Window start {format_timestamp(self.start)} is after "
                f"end {format_timestamp(self.end)}"
            )

    def to_dict(self) -> Dict[str, str]:
        return {
            "start": format_timestamp(self.start),
            "end": format_timestamp(self.end),
        }


@dataclass
class JobRun:
    """
    A DataBrew job run.

    Attributes:
        id: RunId returned by StartJobRun
        state: Last observed state (None if the service reported an unknown value)
        dataset_window: Window the run was scoped to
        raw_state: State string exactly as reported by the service
    """

    id: str
    state: Optional[JobState]
    dataset_window: ExecutionWindow
    raw_state: str = JobState.STARTING.value


@dataclass(frozen=True)
class RelocationTask:
    """Copy+delete of one output object from the temporary area."""

    source_key: str
    destination_key: str


@dataclass
class RelocationResult:
    """Aggregate outcome of post-processing."""

    moved: List[RelocationTask] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failures: Dict[str, str] = field(default_factory=dict)
    listed: int = 0

    @property
    def succeeded(self) -> bool:
        return not self.failures

    @property
    def message(self) -> str:
        if self.failures:
            return "Error moving files"
        if self.listed == 0:
            return "No files found to move"
        return "Files moved successfully."

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "moved": len(self.moved),
            "skipped": len(self.skipped),
            "failed": len(self.failures),
        }


@dataclass
class WorkflowResult:
    """Summary of a completed workflow cycle."""

    dataset_id: str
    window: ExecutionWindow
    job_run_id: str
    relocation: RelocationResult
    committed: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dataset": self.dataset_id,
            "window": self.window.to_dict(),
            "job_run_id": self.job_run_id,
            "relocation": self.relocation.to_dict(),
            "committed": self.committed,
        }


class Deadline:
    """
    Overall time budget of a workflow run.

    Uses a monotonic clock so wall-clock adjustments cannot extend the run.
    """

    def __init__(
        self,
        timeout_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.timeout_seconds = timeout_seconds
        self._clock = clock
        self._started = clock()

    def elapsed(self) -> float:
        return self._clock() - self._started

    def remaining(self) -> float:
        return max(0.0, self.timeout_seconds - self.elapsed())

    def expired(self) -> bool:
        return self.elapsed() >= self.timeout_seconds

    def check(self, stage: str) -> None:
        """Raise WorkflowTimeoutError if the budget is exhausted."""
        if self.expired():
            raise WorkflowTimeoutError(stage, self.timeout_seconds)
