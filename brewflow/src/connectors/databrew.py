"""
AWS Glue DataBrew connectors.

    - DataBrewJobService: start, describe and stop runs of a DataBrew job
    - DataBrewDatasetService: scope a dataset to an execution window via
      PathOptions.LastModifiedDateCondition
"""

import logging
from typing import Any, Dict, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from brewflow.src.errors import InfrastructureError
from brewflow.src.interfaces import DatasetDefinitionService, TransformJobService
from brewflow.src.models import DatasetPathParameter, ExecutionWindow
from brewflow.src.pipeline.window import window_condition

logger = logging.getLogger(__name__)


class DataBrewJobService(TransformJobService):
    """
    Runs of a single DataBrew job.

    Args:
        job_name: DataBrew job name
        region: AWS region (default: us-east-1)
        databrew_client: Optional DataBrew client (for testing)
    """

    def __init__(self, job_name: str, region: str = "us-east-1", databrew_client=None):
        self.job_name = job_name
        self.region = region
        self._databrew_client = databrew_client or boto3.client("databrew", region_name=region)

    def start_job_run(self) -> str:
        try:
            response = self._databrew_client.start_job_run(Name=self.job_name)
        except (ClientError, BotoCoreError) as e:
            raise InfrastructureError(
                f"Failed to start DataBrew job {self.job_name}: {e}"
            ) from e

        run_id = response["RunId"]
        logger.info(f"Started DataBrew job {self.job_name} (RunId: {run_id})")
        return run_id

    def describe_job_run(self, run_id: str) -> str:
        try:
            response = self._databrew_client.describe_job_run(
                Name=self.job_name,
                RunId=run_id,
            )
        except (ClientError, BotoCoreError) as e:
            raise InfrastructureError(
                f"Failed to describe DataBrew job run {run_id}: {e}"
            ) from e

        return response.get("State", "")

    def stop_job_run(self, run_id: str) -> None:
        try:
            self._databrew_client.stop_job_run(Name=self.job_name, RunId=run_id)
        except (ClientError, BotoCoreError) as e:
            raise InfrastructureError(
                f"Failed to stop DataBrew job run {run_id}: {e}"
            ) from e

        logger.warning(f"Requested stop of DataBrew job run {run_id}")


class DataBrewDatasetService(DatasetDefinitionService):
    """
    Updates a DataBrew dataset so the next job run only reads objects whose
    last-modified date falls inside the execution window.

    Args:
        dataset_name: DataBrew dataset name
        raw_bucket: Bucket holding the raw input files
        raw_key_pattern: Dynamic key of input files (e.g. "raw/{year}/<.*>.csv")
        path_parameters: Definitions of the dynamic key segments
        region: AWS region (default: us-east-1)
        databrew_client: Optional DataBrew client (for testing)
    """

    def __init__(
        self,
        dataset_name: str,
        raw_bucket: str,
        raw_key_pattern: str,
        path_parameters: Optional[List[DatasetPathParameter]] = None,
        region: str = "us-east-1",
        databrew_client=None,
    ):
        self.dataset_name = dataset_name
        self.raw_bucket = raw_bucket
        self.raw_key_pattern = raw_key_pattern
        self.path_parameters = path_parameters or []
        self.region = region
        self._databrew_client = databrew_client or boto3.client("databrew", region_name=region)

    def build_path_options(self, window: ExecutionWindow) -> Dict[str, Any]:
        """Build the PathOptions payload for UpdateDataset."""
        path_options: Dict[str, Any] = {
            "LastModifiedDateCondition": window_condition(window),
        }
        if self.path_parameters:
            path_options["Parameters"] = {
                param.name: param.to_databrew() for param in self.path_parameters
            }
        return path_options

    def update_window(self, window: ExecutionWindow) -> None:
        """
        Raises:
            InfrastructureError: On DataBrew errors
        """
        try:
            self._databrew_client.update_dataset(
                Name=self.dataset_name,
                Input={
                    "S3InputDefinition": {
                        "Bucket": self.raw_bucket,
                        "Key": self.raw_key_pattern,
                    },
                },
                PathOptions=self.build_path_options(window),
            )
        except (ClientError, BotoCoreError) as e:
            raise InfrastructureError(
                f"Failed to update DataBrew dataset {self.dataset_name}: {e}"
            ) from e

        logger.info(
            f"Dataset {self.dataset_name} scoped to "
            f"{window.to_dict()['start']} .. {window.to_dict()['end']}"
        )
