"""
Commit Checkpoint Lambda - Advance the checkpoint after a successful run.

This Lambda is the last step of the Step Functions run. It only writes the
checkpoint when the relocation step returned statusCode 200; anything else
fails the execution and leaves the checkpoint untouched.

Input:
    {
        "dataset": "sales-dataset",
        "timestamps": {
            "last_execution_timestamp": "2024-04-30T10:15:30.000Z",
            "current_timestamp": "2024-05-01T10:15:30.123Z"
        },
        "lambdaResult": {"statusCode": 200, "body": "{...}"}
    }

Output:
    {
        "dataset": "sales-dataset",
        "committed": true,
        "last_execution_timestamp": "2024-05-01T10:15:30.123Z"
    }
"""

import json
import logging
import os
from typing import Any, Dict

from brewflow.src.errors import ConfigurationError, InvalidWindowError
from brewflow.src.lambdas.prepare_window import build_checkpoint_store
from brewflow.src.models import RelocationResult, format_timestamp, parse_timestamp
from brewflow.src.pipeline.checkpoint import CheckpointCommitter

logger = logging.getLogger()
logger.setLevel(logging.INFO)


def relocation_from_response(response: Dict[str, Any]) -> RelocationResult:
    """
    Rebuild an aggregate relocation result from the relocation Lambda output.

    Any non-200 status code becomes a failed result.
    """
    status_code = response.get("statusCode")
    try:
        body = json.loads(response.get("body") or "{}")
    except (TypeError, ValueError):
        body = {}
    if not isinstance(body, dict):
        body = {}

    if status_code == 200:
        return RelocationResult(listed=body.get("moved", 0) + body.get("skipped", 0))

    error = body.get("error") or "Lambda execution failed or returned non-200 status"
    return RelocationResult(failures={"post-processing": f"statusCode={status_code}: {error}"})


def handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda handler for checkpoint commit.

    Raises:
        ConfigurationError: If dataset or current_timestamp is missing
        PartialRelocationError: If relocation did not fully succeed
        InfrastructureError: If the checkpoint cannot be written
    """
    logger.info(f"Commit checkpoint event: {json.dumps(event)}")

    dataset = event.get("dataset") or os.environ.get("DATASET_NAME")
    current = (event.get("timestamps") or {}).get("current_timestamp")

    if not dataset:
        raise ConfigurationError("Missing required field: dataset (or DATASET_NAME env var)")
    if not current:
        raise ConfigurationError("Missing required field: timestamps.current_timestamp")

    try:
        window_end = parse_timestamp(current)
    except ValueError as e:
        raise InvalidWindowError(f"Invalid current_timestamp: {current!r}") from e

    relocation = relocation_from_response(event.get("lambdaResult") or {})

    committer = CheckpointCommitter(build_checkpoint_store(event))
    committer.commit(dataset, window_end, relocation)

    return {
        "dataset": dataset,
        "committed": True,
        "last_execution_timestamp": format_timestamp(window_end),
    }
