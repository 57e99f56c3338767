"""
Prepare Window Lambda - Read the checkpoint and compute the execution window.

This Lambda is called by Step Functions at the start of a run. Its output
feeds the DataBrew UpdateDataset call and, at the end of the run, the
checkpoint commit.

Input:
    {
        "dataset": "sales-dataset",
        "parameterName": "/brewflow/sales-dataset/last-execution-timestamp",  # optional
        "currentTimestamp": "2024-05-01T10:15:30.123Z"  # optional, $$.Execution.StartTime
    }

Output:
    {
        "dataset": "sales-dataset",
        "last_execution_timestamp": "2024-04-30T10:15:30.000Z",
        "current_timestamp": "2024-05-01T10:15:30.123Z",
        "first_run": false
    }
"""

import json
import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict

from brewflow.src.connectors.ssm_parameters import SSMParameterService
from brewflow.src.errors import ConfigurationError, InvalidWindowError
from brewflow.src.models import format_timestamp, parse_timestamp
from brewflow.src.pipeline.checkpoint import DEFAULT_PARAMETER_TEMPLATE, CheckpointStore
from brewflow.src.pipeline.window import compute_window

logger = logging.getLogger()
logger.setLevel(logging.INFO)


def build_checkpoint_store(event: Dict[str, Any], parameters=None) -> CheckpointStore:
    """Create a CheckpointStore for the parameter named in the event or env."""
    template = (
        event.get("parameterName")
        or os.environ.get("LAST_EXECUTION_PARAMETER_NAME")
        or DEFAULT_PARAMETER_TEMPLATE
    )
    parameters = parameters or SSMParameterService(
        region=os.environ.get("AWS_REGION", "us-east-1")
    )
    return CheckpointStore(parameters, parameter_name_template=template)


def handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda handler for window preparation.

    Raises:
        ConfigurationError: If the dataset is missing
        InfrastructureError: If the checkpoint cannot be read
        InvalidWindowError: If the checkpoint is later than the current time
    """
    logger.info(f"Prepare window event: {json.dumps(event)}")

    dataset = event.get("dataset") or os.environ.get("DATASET_NAME")
    if not dataset:
        raise ConfigurationError("Missing required field: dataset (or DATASET_NAME env var)")

    if event.get("currentTimestamp"):
        try:
            now = parse_timestamp(event["currentTimestamp"])
        except ValueError as e:
            raise InvalidWindowError(
                f"Invalid currentTimestamp: {event['currentTimestamp']!r}"
            ) from e
    else:
        now = datetime.now(timezone.utc)

    store = build_checkpoint_store(event)
    last_execution = store.get(dataset)
    window = compute_window(last_execution, now)

    logger.info(f"Window for {dataset}: {json.dumps(window.to_dict())}")

    return {
        "dataset": dataset,
        "last_execution_timestamp": format_timestamp(window.start),
        "current_timestamp": format_timestamp(window.end),
        "first_run": last_execution is None,
    }
