"""
Relocate Output Lambda - Move DataBrew output from the temporary prefix.

This Lambda is called by Step Functions after the DataBrew job SUCCEEDED.
The state machine only advances the checkpoint when statusCode is 200.

Input:
    {
        "destinationBucket": "out-data-bucket",
        "sourceKey": "tmp",
        "destinationKey": "data"
    }

Output:
    {
        "statusCode": 200,
        "body": "{\"message\": \"Files moved successfully.\", \"moved\": 3, ...}"
    }

Or on failure:
    {
        "statusCode": 500,
        "body": "{\"message\": \"Error moving files\", \"error\": \"...\"}"
    }
"""

import json
import logging
import os
from typing import Any, Dict

from brewflow.src.connectors.s3_object_store import S3ObjectStore
from brewflow.src.errors import PartialRelocationError, PipelineError
from brewflow.src.postprocess.relocator import (
    DEFAULT_EXTENSION,
    DEFAULT_MAX_WORKERS,
    DEFAULT_STRIP_SEGMENTS,
    OutputRelocator,
)

logger = logging.getLogger()
logger.setLevel(logging.INFO)

REQUIRED_FIELDS = ("destinationBucket", "sourceKey", "destinationKey")


def build_relocator(object_store=None) -> OutputRelocator:
    """Create an OutputRelocator from environment settings."""
    store = object_store or S3ObjectStore(region=os.environ.get("AWS_REGION", "us-east-1"))
    return OutputRelocator(
        store,
        extension=os.environ.get("FILE_EXTENSION", DEFAULT_EXTENSION),
        strip_segments=int(os.environ.get("STRIP_SEGMENTS", DEFAULT_STRIP_SEGMENTS)),
        max_workers=int(os.environ.get("MAX_WORKERS", DEFAULT_MAX_WORKERS)),
    )


def _response(status_code: int, body: Dict[str, Any]) -> Dict[str, Any]:
    return {"statusCode": status_code, "body": json.dumps(body)}


def handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda handler for output relocation.

    Args:
        event: Lambda event with destinationBucket, sourceKey, destinationKey
        context: Lambda context (unused)

    Returns:
        Dict with statusCode (200 or 500) and JSON body
    """
    logger.info(f"Relocate output event: {json.dumps(event)}")

    missing = [name for name in REQUIRED_FIELDS if not event.get(name)]
    if missing:
        return _response(
            500,
            {
                "message": "Error moving files",
                "error": f"Missing required field: {', '.join(missing)}",
            },
        )

    try:
        result = build_relocator().relocate(
            event["destinationBucket"],
            event["sourceKey"],
            event["destinationKey"],
        )
    except PartialRelocationError as e:
        logger.error(f"Error moving files: {e}")
        body = e.result.to_dict()
        body["error"] = str(e)
        body["failures"] = e.result.failures
        return _response(500, body)
    except PipelineError as e:
        logger.error(f"Error moving files: {e}")
        return _response(500, {"message": "Error moving files", "error": str(e)})

    return _response(200, result.to_dict())
