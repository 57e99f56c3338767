"""
AWS connectors for the incremental DataBrew pipeline.

Available connectors:
    - S3ObjectStore: Output object listing, copy and delete
    - SSMParameterService: Checkpoint parameters in Parameter Store
    - DataBrewJobService: DataBrew job runs
    - DataBrewDatasetService: DataBrew dataset window updates
"""

from brewflow.src.connectors.databrew import DataBrewDatasetService, DataBrewJobService
from brewflow.src.connectors.s3_object_store import S3ObjectStore
from brewflow.src.connectors.ssm_parameters import SSMParameterService

__all__ = [
    "S3ObjectStore",
    "SSMParameterService",
    "DataBrewJobService",
    "DataBrewDatasetService",
]
