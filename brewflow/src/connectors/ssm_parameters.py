"""
SSMParameterService - Parameter Store implementation of ParameterService.

Checkpoints are stored as plain String parameters. A missing parameter is a
valid state (first run); every other failure is an InfrastructureError.
"""

import logging
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from brewflow.src.errors import InfrastructureError
from brewflow.src.interfaces import ParameterService

logger = logging.getLogger(__name__)


class SSMParameterService(ParameterService):
    """
    AWS Systems Manager Parameter Store.

    Args:
        region: AWS region (default: us-east-1)
        ssm_client: Optional SSM client (for testing)
    """

    def __init__(self, region: str = "us-east-1", ssm_client=None):
        self.region = region
        self._ssm_client = ssm_client or boto3.client("ssm", region_name=region)

    def get_parameter(self, name: str) -> Optional[str]:
        """
        Read a parameter value.

        Returns:
            Parameter value, or None if the parameter does not exist

        Raises:
            InfrastructureError: On any SSM error other than ParameterNotFound
        """
        try:
            response = self._ssm_client.get_parameter(Name=name, WithDecryption=True)
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "")
            if error_code == "ParameterNotFound":
                logger.info(f"Parameter {name} not found")
                return None
            raise InfrastructureError(f"Failed to read parameter {name}: {e}") from e
        except BotoCoreError as e:
            raise InfrastructureError(f"Failed to read parameter {name}: {e}") from e

        return response["Parameter"]["Value"]

    def put_parameter(self, name: str, value: str) -> None:
        """
        Create or overwrite a String parameter.

        Raises:
            InfrastructureError: On SSM errors
        """
        try:
            self._ssm_client.put_parameter(
                Name=name,
                Value=value,
                Type="String",
                Overwrite=True,
            )
        except (ClientError, BotoCoreError) as e:
            raise InfrastructureError(f"Failed to write parameter {name}: {e}") from e

        logger.info(f"Wrote parameter {name}={value}")
