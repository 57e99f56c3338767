"""
CheckpointStore / CheckpointCommitter - durable last-execution timestamps.

This is a thin wrapper around a ParameterService that provides a clean
interface for checkpoint/resume functionality.

The workflow reads the checkpoint once at the start of a run and writes it
once, as the very last action of a fully successful run. If anything fails
before that, the next run recomputes its window from the same checkpoint.
"""

import logging
from datetime import datetime
from typing import Optional

from brewflow.src.errors import InvalidWindowError, PartialRelocationError
from brewflow.src.interfaces import ParameterService
from brewflow.src.models import RelocationResult, format_timestamp, parse_timestamp

logger = logging.getLogger(__name__)

DEFAULT_PARAMETER_TEMPLATE = "/brewflow/{dataset_id}/last-execution-timestamp"


class CheckpointStore:
    """
    Last successful execution timestamp per dataset.

    Usage:
        store = CheckpointStore(SSMParameterService())
        last = store.get("sales")          # None on first run
        ...
        store.set("sales", window.end)
    """

    def __init__(
        self,
        parameters: ParameterService,
        parameter_name_template: str = DEFAULT_PARAMETER_TEMPLATE,
    ):
        """
        Initialize CheckpointStore.

        Args:
            parameters: ParameterService holding the checkpoint values
            parameter_name_template: Parameter name, optionally containing
                "{dataset_id}". A fixed name (no placeholder) pins the store
                to a single dataset.
        """
        self.parameters = parameters
        self.parameter_name_template = parameter_name_template

    def parameter_name(self, dataset_id: str) -> str:
        return self.parameter_name_template.format(dataset_id=dataset_id)

    def get(self, dataset_id: str) -> Optional[datetime]:
        """
        Read the checkpoint of a dataset.

        Returns:
            Last successful execution timestamp, or None if never committed

        Raises:
            InfrastructureError: If the parameter store cannot be read
            InvalidWindowError: If the stored value is not a timestamp
        """
        name = self.parameter_name(dataset_id)
        value = self.parameters.get_parameter(name)

        if value is None:
            logger.info(f"Checkpoint: no prior execution for {dataset_id}")
            return None

        try:
            timestamp = parse_timestamp(value)
        except ValueError as e:
            raise InvalidWindowError(
                f"Checkpoint {name} holds an unreadable timestamp: {value!r}"
            ) from e

        logger.info(f"Checkpoint: {dataset_id} last executed at {format_timestamp(timestamp)}")
        return timestamp

    def set(self, dataset_id: str, timestamp: datetime) -> None:
        """
        Overwrite the checkpoint of a dataset.

        Raises:
            InfrastructureError: If the parameter store cannot be written
        """
        self.parameters.put_parameter(
            self.parameter_name(dataset_id),
            format_timestamp(timestamp),
        )


class CheckpointCommitter:
    """
    Advances a dataset checkpoint, only after post-processing fully succeeded.

    This is the single point that mutates durable state.
    """

    def __init__(self, store: CheckpointStore):
        self.store = store

    def commit(
        self,
        dataset_id: str,
        window_end: datetime,
        relocation: RelocationResult,
    ) -> None:
        """
        Commit window_end as the new checkpoint.

        Args:
            dataset_id: Dataset being processed
            window_end: End of the execution window just processed
            relocation: Aggregate post-processing result

        Raises:
            PartialRelocationError: If any relocation failed (nothing written)
            InfrastructureError: If the parameter store cannot be written
        """
        if not relocation.succeeded:
            logger.error(
                f"Checkpoint for {dataset_id} not advanced: "
                f"{len(relocation.failures)} relocations failed"
            )
            raise PartialRelocationError(relocation)

        self.store.set(dataset_id, window_end)
        logger.info(f"Checkpoint: {dataset_id} advanced to {format_timestamp(window_end)}")
