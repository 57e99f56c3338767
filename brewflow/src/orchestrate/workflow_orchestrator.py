"""
Workflow Orchestrator - one incremental cycle of a dataset pipeline.

This module provides the high-level orchestration for processing newly
arrived input:
1. Read the dataset checkpoint (absent = first run)
2. Compute the execution window [checkpoint, execution start)
3. Scope the DataBrew dataset to the window
4. Start the DataBrew job and poll it to a terminal state
5. Relocate the job output from the temporary prefix
6. Advance the checkpoint to the window end

IMPORTANT: The checkpoint is written last, and only when every relocation
succeeded. Any failure or timeout leaves it untouched, so the next run
recomputes a window from the same checkpoint.

Overlapping runs against the same dataset are not guarded against: both read
the same checkpoint and may process the same window twice. Relocation is keyed
by destination path, so the duplicate work is harmless.

Usage:
    config = load_config()
    orchestrator = WorkflowOrchestrator.from_config(config)
    result = orchestrator.run()
"""

import logging
import time
from datetime import datetime, timezone
from typing import Callable, Optional

from brewflow.src.batch.job_runner import JobRunner
from brewflow.src.config import PipelineConfig
from brewflow.src.connectors import (
    DataBrewDatasetService,
    DataBrewJobService,
    S3ObjectStore,
    SSMParameterService,
)
from brewflow.src.errors import InfrastructureError, WorkflowTimeoutError
from brewflow.src.interfaces import DatasetDefinitionService
from brewflow.src.models import Deadline, JobRun, WorkflowResult
from brewflow.src.pipeline.checkpoint import CheckpointCommitter, CheckpointStore
from brewflow.src.pipeline.window import compute_window
from brewflow.src.postprocess.relocator import OutputRelocator

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class WorkflowOrchestrator:
    """
    Coordinate checkpoint, window, job run, relocation and commit.

    This is the main entry point for production runs. All AWS clients are
    injected so tests can substitute fakes.
    """

    def __init__(
        self,
        config: PipelineConfig,
        checkpoint_store: CheckpointStore,
        dataset_service: DatasetDefinitionService,
        job_runner: JobRunner,
        relocator: OutputRelocator,
        committer: Optional[CheckpointCommitter] = None,
        clock: Callable[[], datetime] = utc_now,
        monotonic: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize orchestrator.

        Args:
            config: Pipeline settings
            checkpoint_store: Store holding the dataset checkpoint
            dataset_service: Receives the window before job submission
            job_runner: Submits and polls the DataBrew job
            relocator: Moves job output to its final location
            committer: Advances the checkpoint (default: wraps checkpoint_store)
            clock: Wall clock giving the execution start time
            monotonic: Clock measuring the overall run budget
        """
        self.config = config
        self.checkpoint_store = checkpoint_store
        self.dataset_service = dataset_service
        self.job_runner = job_runner
        self.relocator = relocator
        self.committer = committer or CheckpointCommitter(checkpoint_store)
        self._clock = clock
        self._monotonic = monotonic

    @classmethod
    def from_config(
        cls,
        config: PipelineConfig,
        s3_client=None,
        ssm_client=None,
        databrew_client=None,
    ) -> "WorkflowOrchestrator":
        """
        Build an orchestrator backed by AWS services.

        Args:
            config: Validated pipeline settings
            s3_client: Optional S3 client (for testing)
            ssm_client: Optional SSM client (for testing)
            databrew_client: Optional DataBrew client (for testing)
        """
        region = config.region

        store = CheckpointStore(
            SSMParameterService(region=region, ssm_client=ssm_client),
            parameter_name_template=config.last_execution_parameter_name,
        )
        dataset_service = DataBrewDatasetService(
            dataset_name=config.dataset,
            raw_bucket=config.raw_bucket,
            raw_key_pattern=config.raw_key_pattern,
            path_parameters=config.dataset_path_parameters,
            region=region,
            databrew_client=databrew_client,
        )
        job_runner = JobRunner(
            DataBrewJobService(config.job, region=region, databrew_client=databrew_client),
            poll_interval=config.poll_interval_seconds,
            describe_max_attempts=config.describe_max_attempts,
        )
        relocator = OutputRelocator(
            S3ObjectStore(region=region, s3_client=s3_client),
            extension=config.file_extension,
            strip_segments=config.strip_segments,
            max_workers=config.max_workers,
        )

        return cls(config, store, dataset_service, job_runner, relocator)

    def _cancel_after_timeout(self, job_run: Optional[JobRun]) -> None:
        if job_run is None:
            return

        if not self.config.cancel_job_on_timeout:
            logger.warning(
                f"Abandoning monitoring of job run {job_run.id}; "
                f"the DataBrew run keeps its own lifecycle"
            )
            return

        try:
            self.job_runner.cancel(job_run)
        except InfrastructureError as e:
            logger.error(f"Could not stop job run {job_run.id} after timeout: {e}")

    def run(self) -> WorkflowResult:
        """
        Run one full cycle.

        Returns:
            WorkflowResult with committed=True

        Raises:
            InfrastructureError: If a store or AWS service fails
            InvalidWindowError: If the checkpoint is later than now or unreadable
            JobFailedError: If the job ends in a non-success state
            PartialRelocationError: If any output object failed to move
            WorkflowTimeoutError: If the overall run budget is exhausted
        """
        dataset = self.config.dataset
        started_at = self._clock()
        deadline = Deadline(self.config.timeout_seconds, clock=self._monotonic)
        job_run = None

        logger.info(f"Starting workflow for dataset {dataset}")

        try:
            # 1-2. Window from checkpoint
            last_execution = self.checkpoint_store.get(dataset)
            window = compute_window(last_execution, started_at)
            logger.info(
                f"Execution window: {window.to_dict()['start']} .. {window.to_dict()['end']}"
            )

            # 3. Scope dataset input
            self.dataset_service.update_window(window)

            # 4. Job run
            job_run = self.job_runner.submit(window)
            self.job_runner.wait_for_completion(job_run, deadline)
            deadline.check("post-processing")

            # 5. Relocate output
            relocation = self.relocator.relocate(
                self.config.output_bucket,
                self.config.tmp_prefix,
                self.config.out_prefix,
            )
            deadline.check("checkpoint commit")

            # 6. Commit, always last
            self.committer.commit(dataset, window.end, relocation)

        except WorkflowTimeoutError:
            logger.error(f"Workflow for dataset {dataset} timed out; checkpoint untouched")
            self._cancel_after_timeout(job_run)
            raise

        logger.info(
            f"Workflow for dataset {dataset} completed: "
            f"{len(relocation.moved)} files relocated, checkpoint advanced"
        )

        return WorkflowResult(
            dataset_id=dataset,
            window=window,
            job_run_id=job_run.id,
            relocation=relocation,
            committed=True,
        )
