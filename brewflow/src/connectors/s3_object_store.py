"""
S3ObjectStore - S3 implementation of the ObjectStore interface.

Keeps S3 interactions isolated for easier testing with moto.
"""

import logging
from typing import Iterator

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from brewflow.src.errors import InfrastructureError
from brewflow.src.interfaces import ObjectStore

logger = logging.getLogger(__name__)


class S3ObjectStore(ObjectStore):
    """
    Object store backed by Amazon S3.

    Args:
        region: AWS region (default: us-east-1)
        s3_client: Optional S3 client (for testing)
    """

    def __init__(self, region: str = "us-east-1", s3_client=None):
        self.region = region
        self._s3_client = s3_client or boto3.client("s3", region_name=region)

    def list_keys(self, bucket: str, prefix: str) -> Iterator[str]:
        """
        List keys under s3://bucket/prefix, page by page.

        Raises:
            InfrastructureError: On S3 errors
        """
        paginator = self._s3_client.get_paginator("list_objects_v2")

        try:
            for page in paginator.paginate(Bucket=bucket, Prefix=prefix):
                for obj in page.get("Contents", []):
                    yield obj["Key"]
        except (ClientError, BotoCoreError) as e:
            raise InfrastructureError(
                f"Failed to list s3://{bucket}/{prefix}: {e}"
            ) from e

    def copy(self, bucket: str, source_key: str, destination_key: str) -> None:
        """
        Copy s3://bucket/source_key to s3://bucket/destination_key.

        Raises:
            InfrastructureError: On S3 errors
        """
        try:
            self._s3_client.copy_object(
                Bucket=bucket,
                CopySource={"Bucket": bucket, "Key": source_key},
                Key=destination_key,
            )
        except (ClientError, BotoCoreError) as e:
            raise InfrastructureError(
                f"Failed to copy s3://{bucket}/{source_key} to {destination_key}: {e}"
            ) from e

        logger.debug(f"Copied s3://{bucket}/{source_key} -> {destination_key}")

    def delete(self, bucket: str, key: str) -> None:
        """
        Delete s3://bucket/key.

        Raises:
            InfrastructureError: On S3 errors
        """
        try:
            self._s3_client.delete_object(Bucket=bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise InfrastructureError(
                f"Failed to delete s3://{bucket}/{key}: {e}"
            ) from e

        logger.debug(f"Deleted s3://{bucket}/{key}")
