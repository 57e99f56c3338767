"""
DataBrew Job Runner

Submits a transform job scoped to an execution window and drives it to a
terminal state.

State machine:

    STARTING / WAITING / RUNNING / STOPPING  -> wait, describe again
    SUCCEEDED                                -> proceed to post-processing
    FAILED / TIMEOUT / STOPPED / unknown     -> JobFailedError

Usage:
    from brewflow.src.batch import JobRunner

    runner = JobRunner(DataBrewJobService("sales-clean-job"), poll_interval=30)
    run = runner.run(window, deadline=Deadline(15 * 60))
"""

import logging
import time
from enum import Enum
from typing import Callable, Optional

from brewflow.src.errors import InfrastructureError, JobFailedError
from brewflow.src.interfaces import TransformJobService
from brewflow.src.models import Deadline, ExecutionWindow, JobRun, JobState

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 30
DEFAULT_DESCRIBE_MAX_ATTEMPTS = 3


class PollAction(Enum):
    """What the poller does after observing a state."""

    WAIT = "wait"
    PROCEED = "proceed"
    FAIL = "fail"


IN_FLIGHT_STATES = frozenset(
    {JobState.STARTING, JobState.WAITING, JobState.RUNNING, JobState.STOPPING}
)


def next_action(state: Optional[JobState]) -> PollAction:
    """
    Transition function of the job state machine.

    Args:
        state: Observed state, or None for an unrecognized value

    Returns:
        WAIT for in-flight states, PROCEED for SUCCEEDED, FAIL otherwise
    """
    if state in IN_FLIGHT_STATES:
        return PollAction.WAIT
    if state == JobState.SUCCEEDED:
        return PollAction.PROCEED
    return PollAction.FAIL


class JobRunner:
    """
    Submit a DataBrew job and wait for it to finish.

    Polling uses a fixed interval with no backoff. The runner never cancels
    the job itself; timeouts only abandon monitoring.

    Attributes:
        job_service: TransformJobService used to start and describe runs
        poll_interval: Seconds between status checks (default: 30)
        describe_max_attempts: Attempts per status check before a transient
            error is escalated (default: 3)
    """

    def __init__(
        self,
        job_service: TransformJobService,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        describe_max_attempts: int = DEFAULT_DESCRIBE_MAX_ATTEMPTS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if describe_max_attempts < 1:
            raise ValueError("describe_max_attempts must be at least 1")

        self.job_service = job_service
        self.poll_interval = poll_interval
        self.describe_max_attempts = describe_max_attempts
        self._sleep = sleep

    def submit(self, window: ExecutionWindow) -> JobRun:
        """
        Start a job run for the given window.

        Raises:
            InfrastructureError: If the job could not be started
        """
        run_id = self.job_service.start_job_run()
        logger.info(
            f"Submitted job run {run_id} for window "
            f"{window.to_dict()['start']} .. {window.to_dict()['end']}"
        )
        return JobRun(id=run_id, state=JobState.STARTING, dataset_window=window)

    def _wait(self, deadline: Optional[Deadline], stage: str) -> None:
        """Sleep one poll interval, bounded by the remaining run budget."""
        if deadline is None:
            self._sleep(self.poll_interval)
            return

        deadline.check(stage)
        self._sleep(min(self.poll_interval, deadline.remaining()))
        deadline.check(stage)

    def _describe(self, run: JobRun, deadline: Optional[Deadline]) -> str:
        """Describe a run, retrying transient errors a bounded number of times."""
        for attempt in range(1, self.describe_max_attempts + 1):
            try:
                return self.job_service.describe_job_run(run.id)
            except InfrastructureError as e:
                if attempt == self.describe_max_attempts:
                    logger.error(
                        f"Describe of job run {run.id} failed {attempt} times, giving up"
                    )
                    raise
                logger.warning(
                    f"Describe of job run {run.id} failed "
                    f"(attempt {attempt}/{self.describe_max_attempts}), "
                    f"retrying in {self.poll_interval}s: {e}"
                )
                self._wait(deadline, "job status retry")

        raise InfrastructureError(f"Could not describe job run {run.id}")

    def wait_for_completion(
        self,
        run: JobRun,
        deadline: Optional[Deadline] = None,
    ) -> JobRun:
        """
        Poll a job run until it reaches a terminal state.

        Args:
            run: Submitted job run
            deadline: Overall run budget (default: None = no timeout)

        Returns:
            The run, in state SUCCEEDED

        Raises:
            JobFailedError: On any terminal non-success state
            InfrastructureError: If status checks keep failing
            WorkflowTimeoutError: If the deadline expires first
        """
        logger.info(f"Waiting for job run {run.id} to complete...")

        while True:
            self._wait(deadline, "job polling")

            raw_state = self._describe(run, deadline)
            run.raw_state = raw_state
            run.state = JobState.parse(raw_state)
            action = next_action(run.state)

            if action is PollAction.WAIT:
                logger.info(f"Job run {run.id}: {raw_state}")
                continue

            if action is PollAction.PROCEED:
                logger.info(f"Job run {run.id}: {raw_state}")
                return run

            logger.error(f"Job run {run.id} ended in state {raw_state!r}")
            raise JobFailedError(raw_state, run_id=run.id)

    def run(self, window: ExecutionWindow, deadline: Optional[Deadline] = None) -> JobRun:
        """Submit a job run and wait for it to succeed."""
        job_run = self.submit(window)
        return self.wait_for_completion(job_run, deadline)

    def cancel(self, run: JobRun) -> None:
        """Request cancellation of an in-flight run."""
        self.job_service.stop_job_run(run.id)

