"""
Module: credentials.py
Description: Database credentials from AWS Secrets Manager.
"""

import json
from typing import Optional

import boto3
from botocore.exceptions import ClientError
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from fanout.errors import DownstreamError
from fanout.utils.logger import get_logger

logger = get_logger(__name__)


class DatabaseCredentials(BaseModel):
    """RDS credentials as stored by the RDS secret rotation format."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    host: str
    username: str
    password: str = Field(..., repr=False)
    port: int = 5432
    dbname: Optional[str] = None


class SecretsManagerCredentialProvider:
    """Reads database credentials from Secrets Manager."""

    def __init__(self, client=None):
        self.client = client or boto3.client('secretsmanager')

    def get_credentials(self, secret_id: str) -> DatabaseCredentials:
        """
        Fetch and parse a JSON credentials secret.

        Raises:
            DownstreamError: If the secret cannot be read or parsed
        """
        if not secret_id or not isinstance(secret_id, str):
            raise ValueError("secret_id must be a non-empty string")

        logger.debug("Retrieving secret for database", secret_id=secret_id)

        try:
            response = self.client.get_secret_value(SecretId=secret_id)
        except ClientError as e:
            logger.error(
                "Failed to retrieve database secret",
                secret_id=secret_id,
                error_code=e.response['Error']['Code']
            )
            raise DownstreamError(f"Failed to retrieve secret '{secret_id}'") from e

        try:
            credentials = DatabaseCredentials(**json.loads(response['SecretString']))
        except (KeyError, TypeError, ValueError, ValidationError) as e:
            raise DownstreamError(f"Secret '{secret_id}' is not a valid credentials document") from e

        logger.debug(
            "Retrieved secret for database",
            secret_id=secret_id,
            name=response.get('Name'),
            version_id=response.get('VersionId')
        )

        return credentials
