"""
Abstract interfaces for the incremental DataBrew pipeline.

These interfaces enable:
    - TransformJobService: Start and monitor the batch transform job
    - DatasetDefinitionService: Scope the job's input dataset to a window
    - ObjectStore: List, copy and delete output objects
    - ParameterService: Durable key/value storage for checkpoints

Design Philosophy:
    - AWS clients are injected handles, not module-level singletons
    - Tests substitute fakes or MagicMocks for every collaborator
    - Implementations raise InfrastructureError for service failures
"""

from abc import ABC, abstractmethod
from typing import Iterator, Optional

from brewflow.src.models import ExecutionWindow


class TransformJobService(ABC):
    """
    Abstract interface for the external batch transform job.

    Implementations:
        - DataBrewJobService: AWS Glue DataBrew job runs
    """

    @abstractmethod
    def start_job_run(self) -> str:
        """
        Start a new run of the configured job.

        Returns:
            Run identifier
        """
        pass

    @abstractmethod
    def describe_job_run(self, run_id: str) -> str:
        """
        Get the current state of a job run.

        Returns:
            State string (STARTING, WAITING, RUNNING, STOPPING, SUCCEEDED,
            FAILED, TIMEOUT, STOPPED)
        """
        pass

    @abstractmethod
    def stop_job_run(self, run_id: str) -> None:
        """Request cancellation of a job run."""
        pass


class DatasetDefinitionService(ABC):
    """Accepts the source-path time filter before job submission."""

    @abstractmethod
    def update_window(self, window: ExecutionWindow) -> None:
        """Restrict the dataset input to objects modified inside the window."""
        pass


class ObjectStore(ABC):
    """
    Abstract interface for object storage.

    Implementations:
        - S3ObjectStore: Amazon S3
    """

    @abstractmethod
    def list_keys(self, bucket: str, prefix: str) -> Iterator[str]:
        """
        Lazily list all keys under a prefix.

        Pagination is handled transparently; the sequence is finite and can
        be restarted by calling list_keys again.
        """
        pass

    @abstractmethod
    def copy(self, bucket: str, source_key: str, destination_key: str) -> None:
        """Copy an object within a bucket."""
        pass

    @abstractmethod
    def delete(self, bucket: str, key: str) -> None:
        """Delete an object."""
        pass


class ParameterService(ABC):
    """
    Abstract interface for durable parameters.

    Implementations:
        - SSMParameterService: AWS Systems Manager Parameter Store
    """

    @abstractmethod
    def get_parameter(self, name: str) -> Optional[str]:
        """
        Read a parameter.

        Returns:
            Parameter value, or None if the parameter does not exist
        """
        pass

    @abstractmethod
    def put_parameter(self, name: str, value: str) -> None:
        """Create or overwrite a parameter."""
        pass
